"""
Custom Exceptions Module

This module defines the exceptions raised by the HackMD API client. Every
failure surfaced by the client is exactly one of these classes, and each class
carries only the fields that make sense for its kind of failure.
"""

import asyncio
from typing import Optional

import aiohttp


class APIError(Exception):
    """
    Base exception class for all HackMD client errors.

    Attributes:
        message: Error message describing what went wrong
    """
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def retryable(self) -> bool:
        """Whether repeating the same request may succeed."""
        return False


class DomainError(APIError):
    """
    Generic client failure that does not fit any other category,
    e.g. issuing a request before the session was opened.
    """
    pass


class MissingArgument(APIError):
    """
    Raised when a required argument is missing or empty.
    Always fatal, never retried.
    """
    pass


class UrlError(APIError):
    """Raised when the base URL or a request path cannot be resolved."""
    pass


class HeaderError(APIError):
    """Raised when a value cannot be sent as an HTTP header."""
    pass


class SerializationError(APIError):
    """
    Raised when a request body cannot be encoded or a response body
    cannot be decoded into the expected model.

    Attributes:
        cause: The underlying JSON or validation error
    """
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class TransportError(APIError):
    """
    Raised when the HTTP exchange itself fails: connection refused, DNS
    failure, timeout, broken payload. Also used for non-2xx responses when
    response error wrapping is disabled.

    Attributes:
        cause: The underlying aiohttp or asyncio exception
    """
    def __init__(self, message: str, cause: BaseException):
        super().__init__(message)
        self.cause = cause

    @property
    def is_timeout(self) -> bool:
        return isinstance(self.cause, asyncio.TimeoutError)

    @property
    def is_connect(self) -> bool:
        """True when no connection to the server could be established."""
        return isinstance(self.cause, aiohttp.ClientConnectorError)

    @property
    def is_request(self) -> bool:
        """True when the connection broke while the request was in flight."""
        return (isinstance(self.cause, aiohttp.ClientConnectionError)
                and not self.is_connect and not self.is_timeout)

    @property
    def status(self) -> Optional[int]:
        """HTTP status of an unwrapped error response, if any."""
        if isinstance(self.cause, aiohttp.ClientResponseError):
            return self.cause.status
        return None

    @property
    def retryable(self) -> bool:
        return self.is_timeout or self.is_connect or self.is_request


class ResponseError(APIError):
    """
    Base class for errors classified from an HTTP response status.
    Never raised directly.

    Attributes:
        code: HTTP status code from the API response
        status_text: Reason phrase of the status code
    """
    def __init__(self, message: str, code: int, status_text: str):
        super().__init__(message)
        self.code = code
        self.status_text = status_text


class HttpResponseError(ResponseError):
    """
    Raised for any non-success status that is neither 429 nor 5xx,
    e.g. 401 Unauthorized, 403 Forbidden or 404 Not Found.
    Never retried.
    """
    pass


class InternalServerError(ResponseError):
    """
    Raised when the server returns a 5xx error.
    Indicates a transient server-side failure and is always retryable.
    """

    @property
    def retryable(self) -> bool:
        return True


class RateLimitError(ResponseError):
    """
    Raised when the API rate limit is exceeded (HTTP 429).

    Attributes:
        user_limit: Requests allowed in the current window
        user_remaining: Requests still available in the current window
        reset_after: Value of the reset header, when the server sent one
    """
    def __init__(self, message: str, code: int, status_text: str,
                 user_limit: int = 0, user_remaining: int = 0,
                 reset_after: Optional[int] = None):
        super().__init__(message, code, status_text)
        self.user_limit = user_limit
        self.user_remaining = user_remaining
        self.reset_after = reset_after

    def __str__(self) -> str:
        return f"{self.message}: {self.user_remaining}/{self.user_limit} requests remaining"

    @property
    def retryable(self) -> bool:
        return self.user_remaining > 0
