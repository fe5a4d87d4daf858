import asyncio
import unittest

import aiohttp

from hackmd_api.exceptions import (
    APIError,
    DomainError,
    HeaderError,
    HttpResponseError,
    InternalServerError,
    MissingArgument,
    RateLimitError,
    ResponseError,
    SerializationError,
    TransportError,
    UrlError,
)


class TestRetryable(unittest.TestCase):

    def test_terminal_errors(self):
        errors = [
            DomainError("failed"),
            MissingArgument("missing"),
            UrlError("bad url"),
            HeaderError("bad header"),
            SerializationError("bad json"),
            HttpResponseError("not found", 404, "Not Found"),
        ]
        for error in errors:
            with self.subTest(error=type(error).__name__):
                self.assertIsInstance(error, APIError)
                self.assertFalse(error.retryable)

    def test_server_errors_are_retryable(self):
        error = InternalServerError("HackMD internal error (502 Bad Gateway)", 502, "Bad Gateway")
        self.assertTrue(error.retryable)
        self.assertIsInstance(error, ResponseError)
        self.assertNotIsInstance(error, HttpResponseError)

    def test_rate_limit_depends_on_quota(self):
        exhausted = RateLimitError("Too many requests", 429, "Too Many Requests", user_limit=100)
        remaining = RateLimitError("Too many requests", 429, "Too Many Requests",
                                   user_limit=100, user_remaining=1, reset_after=60)

        self.assertFalse(exhausted.retryable)
        self.assertIsNone(exhausted.reset_after)
        self.assertTrue(remaining.retryable)
        self.assertEqual(str(remaining), "Too many requests: 1/100 requests remaining")


class TestTransportError(unittest.TestCase):

    def test_timeout(self):
        error = TransportError("timed out", asyncio.TimeoutError())
        self.assertTrue(error.is_timeout)
        self.assertFalse(error.is_connect)
        self.assertTrue(error.retryable)

    def test_server_timeout(self):
        error = TransportError("timed out", aiohttp.ServerTimeoutError("read timeout"))
        self.assertTrue(error.is_timeout)
        self.assertFalse(error.is_request)
        self.assertTrue(error.retryable)

    def test_disconnect_while_sending(self):
        error = TransportError("disconnected", aiohttp.ServerDisconnectedError())
        self.assertTrue(error.is_request)
        self.assertFalse(error.is_connect)
        self.assertTrue(error.retryable)

    def test_broken_payload_is_terminal(self):
        error = TransportError("broken body", aiohttp.ClientPayloadError("truncated"))
        self.assertFalse(error.retryable)
        self.assertIsNone(error.status)

    def test_unwrapped_status(self):
        cause = aiohttp.ClientResponseError(None, (), status=503, message="Service Unavailable")
        error = TransportError("failed with status 503", cause)
        self.assertEqual(error.status, 503)
        self.assertFalse(error.retryable)


if __name__ == "__main__":
    unittest.main()
