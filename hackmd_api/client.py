"""
HackMD API Integration Module

This module provides an asynchronous interface to the HackMD API, allowing for
creation, reading, updating and deletion of personal and team notes, and
retrieval of user and team information.

Every call goes through a single request executor that classifies the response
into a result or one of the errors in ``exceptions`` and transparently retries
transient failures with exponential backoff.
"""

import asyncio
import json
import logging
import os
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp
import backoff
from dotenv import load_dotenv
from pydantic import TypeAdapter, ValidationError
from yarl import URL

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
from hackmd_api.models import (
    DEFAULT_BASE_DELAY,
    DEFAULT_BASE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    ApiClientOptions,
    CreateNoteOptions,
    Note,
    RetryOptions,
    SingleNote,
    Team,
    UpdateNoteOptions,
    User,
)
from hackmd_api.utils import has_invalid_percent_encoding, is_valid_header_value, parse_int_header

logger = logging.getLogger(__name__)

_USER = TypeAdapter(User)
_SINGLE_NOTE = TypeAdapter(SingleNote)
_NOTE_LIST = TypeAdapter(List[Note])
_TEAM_LIST = TypeAdapter(List[Team])


class HackMDAPI:
    """
    Main class for interacting with the HackMD API.

    The client holds one connection pool, opened with ``async with`` and shared
    by every request made through it. Configuration is fixed at construction.

    Example:
        async with HackMDAPI("token") as api:
            me = await api.get_me()
    """

    def __init__(self, access_token: str, base_url: Optional[str] = None,
                 options: Optional[ApiClientOptions] = None):
        """
        Validate the configuration and prepare the client.

        Args:
            access_token: HackMD API token
            base_url: API root, defaults to DEFAULT_BASE_URL
            options: Timeout, retry and error wrapping settings

        Raises:
            MissingArgument: access_token is empty
            HeaderError: access_token cannot be sent in a header
            UrlError: base_url is not an absolute http(s) URL
        """
        if not access_token:
            raise MissingArgument("Missing access token when creating HackMD client")
        if not is_valid_header_value(access_token):
            raise HeaderError("Access token contains characters not allowed in an HTTP header")

        self.options = options or ApiClientOptions()
        self.base_url = self._parse_base_url(base_url or DEFAULT_BASE_URL)
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self._timeout = aiohttp.ClientTimeout(total=self.options.timeout)
        self.session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides) -> "HackMDAPI":
        """
        Build a client from HACKMD_* environment variables, loading a .env file first.

        HACKMD_ACCESS_TOKEN is required. HACKMD_API_BASE_URL, HACKMD_TIMEOUT,
        HACKMD_MAX_RETRIES and HACKMD_RETRY_BASE_DELAY are optional; a max
        retries value below zero is rejected.

        Keyword overrides take precedence over the environment: ``access_token``,
        ``base_url`` and any ApiClientOptions field, e.g. ``retry_options=None``.
        """
        load_dotenv(env_file)
        access_token = overrides.pop("access_token", None) or os.getenv("HACKMD_ACCESS_TOKEN", "")
        base_url = overrides.pop("base_url", None) or os.getenv("HACKMD_API_BASE_URL") or None
        unknown = sorted(set(overrides) - set(ApiClientOptions.model_fields))
        if unknown:
            raise TypeError(f"Unexpected client options: {', '.join(unknown)}")

        settings = dict(overrides)
        try:
            if "timeout" not in settings:
                settings["timeout"] = _env_number("HACKMD_TIMEOUT", float, DEFAULT_TIMEOUT)
            if "retry_options" not in settings:
                settings["retry_options"] = RetryOptions(
                    max_retries=_env_number("HACKMD_MAX_RETRIES", int, DEFAULT_MAX_RETRIES),
                    base_delay=_env_number("HACKMD_RETRY_BASE_DELAY", float, DEFAULT_BASE_DELAY),
                )
            options = ApiClientOptions(**settings)
        except ValueError as e:
            raise MissingArgument(f"Invalid HackMD client configuration: {e}") from e
        return cls(access_token, base_url, options)

    @staticmethod
    def _parse_base_url(raw: str) -> URL:
        try:
            url = URL(raw)
        except (TypeError, ValueError) as e:
            raise UrlError(f"Invalid base URL {raw!r}: {e}") from e
        if not url.is_absolute() or url.scheme not in ("http", "https"):
            raise UrlError(f"Base URL must be an absolute http(s) URL, got {raw!r}")
        # Relative paths resolve under the base path only if it ends with a slash
        if not url.raw_path.endswith("/"):
            url = url.with_path(url.raw_path + "/", encoded=True)
        return url

    async def __aenter__(self):
        """Async context manager entry"""
        self.session = aiohttp.ClientSession(headers=self._headers, timeout=self._timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()

    async def close(self):
        """Close the connection pool."""
        if self.session:
            await self.session.close()
            self.session = None

    def resolve(self, path: str) -> URL:
        """
        Join a relative API path against the base URL.

        Args:
            path: Path such as ``notes/abc123``, optionally with a query string

        Returns:
            URL: Absolute request URL

        Raises:
            UrlError: The path has bad percent-encoding or is not relative
        """
        if has_invalid_percent_encoding(path):
            raise UrlError(f"Invalid percent-encoding in path {path!r}")
        try:
            relative = URL(path)
        except (TypeError, ValueError) as e:
            raise UrlError(f"Invalid path {path!r}: {e}") from e
        if relative.is_absolute() or relative.scheme:
            raise UrlError(f"Path must be relative to the base URL, got {path!r}")
        return self.base_url.join(relative)

    # Request execution

    async def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None,
                       model: Optional[TypeAdapter] = None, idempotent: bool = True) -> Any:
        """
        Execute one API operation, retrying transient failures.

        Args:
            method: HTTP method
            path: Path relative to the base URL
            payload: JSON body, if any
            model: Adapter the response body is validated with; None discards it
            idempotent: False for requests that may have side effects when repeated

        Returns:
            The validated response, or None when no model is given
        """
        url = self.resolve(path)
        body = None
        if payload is not None:
            try:
                body = json.dumps(payload)
            except (TypeError, ValueError) as e:
                raise SerializationError(f"Could not encode request body for {method} {path}", e) from e

        async def attempt():
            return await self._send(method, url, body, model)

        retry_options = self.options.retry_options
        if retry_options is None:
            return await attempt()

        max_tries = retry_options.max_retries + 1

        def giveup(error: APIError) -> bool:
            return not self._should_retry(error, idempotent, retry_options)

        def log_retry(details):
            logger.warning(
                "%s %s failed (%s); retrying in %.3fs (attempt %d of %d)",
                method, path, details.get("exception"), details["wait"],
                details["tries"] + 1, max_tries,
                extra={"wait": details["wait"], "tries": details["tries"]},
            )

        retrying = backoff.on_exception(
            backoff.expo,
            APIError,
            max_tries=max_tries,
            giveup=giveup,
            on_backoff=log_retry,
            jitter=None,
            logger=None,
            factor=retry_options.base_delay,
        )(attempt)
        return await retrying()

    @staticmethod
    def _should_retry(error: APIError, idempotent: bool, retry_options: RetryOptions) -> bool:
        if not error.retryable:
            return False
        if idempotent or retry_options.retry_non_idempotent:
            return True
        # Only failures the server provably did not act on
        if isinstance(error, RateLimitError):
            return True
        return isinstance(error, TransportError) and error.is_connect

    async def _send(self, method: str, url: URL, body: Optional[str],
                    model: Optional[TypeAdapter]) -> Any:
        """Perform one physical attempt and classify its outcome."""
        if self.session is None:
            raise DomainError("Session not initialized. Use async with context manager.")

        try:
            async with self.session.request(method, url, data=body) as response:
                if not 200 <= response.status < 300:
                    if not self.options.wrap_response_errors:
                        cause = aiohttp.ClientResponseError(
                            response.request_info,
                            response.history,
                            status=response.status,
                            message=response.reason or "",
                            headers=response.headers,
                        )
                        raise TransportError(f"{method} {url} failed with status {response.status}",
                                             cause) from cause
                    raise self._classify_response(response)
                data = await self._read_json(response)
        except APIError:
            raise
        except asyncio.TimeoutError as e:
            raise TransportError(f"{method} {url} timed out", e) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"{method} {url} failed: {e}", e) from e

        if model is None:
            return None
        try:
            return model.validate_python(data)
        except ValidationError as e:
            raise SerializationError(f"Unexpected response shape from {method} {url}: {e}", e) from e

    @staticmethod
    async def _read_json(response: aiohttp.ClientResponse) -> Any:
        # An empty body reads as None
        try:
            return await response.json(content_type=None)
        except ValueError as e:
            raise SerializationError(f"Malformed JSON in response from {response.url}", e) from e

    @staticmethod
    def _classify_response(response: aiohttp.ClientResponse) -> ResponseError:
        status = response.status
        status_text = response.reason or "Unknown"

        if status == 429:
            return RateLimitError(
                f"Too many requests ({status} {status_text})",
                status,
                status_text,
                user_limit=parse_int_header(response.headers, "x-ratelimit-userlimit") or 0,
                user_remaining=parse_int_header(response.headers, "x-ratelimit-userremaining") or 0,
                reset_after=parse_int_header(response.headers, "x-ratelimit-userreset"),
            )
        if status >= 500:
            return InternalServerError(
                f"HackMD internal error ({status} {status_text})", status, status_text
            )
        return HttpResponseError(
            f"Received an error response ({status} {status_text}) from HackMD", status, status_text
        )

    # User API

    async def get_me(self) -> User:
        """Get the authenticated user and the teams they belong to"""
        return await self._request("GET", "me", model=_USER)

    async def get_history(self) -> List[Note]:
        """List the notes the user has recently visited"""
        return await self._request("GET", "history", model=_NOTE_LIST)

    async def get_note_list(self) -> List[Note]:
        """List the user's own notes"""
        notes = await self._request("GET", "notes", model=_NOTE_LIST)
        logger.info(f"Retrieved {len(notes)} notes")
        return notes

    async def get_note(self, note_id: str) -> SingleNote:
        """Get a note with its content"""
        path = f"notes/{_segment(note_id, 'note_id')}"
        note = await self._request("GET", path, model=_SINGLE_NOTE)
        logger.info(f"Retrieved note {note.id} ({len(note.content)} characters)")
        return note

    async def create_note(self, options: CreateNoteOptions) -> SingleNote:
        """
        Create a note in the user's workspace.

        Create requests are not idempotent: a 5xx or timeout is only retried
        when RetryOptions.retry_non_idempotent is set, since the note may
        already exist.

        Args:
            options: Title, content, permissions and permalink of the new note

        Returns:
            SingleNote: The created note
        """
        try:
            logger.info(f"Creating note '{options.title or 'Untitled'}'")
            note = await self._request("POST", "notes", payload=options.to_payload(),
                                       model=_SINGLE_NOTE, idempotent=False)
            logger.info(f"Successfully created note {note.id}")
            return note
        except APIError as e:
            logger.error(f"Error creating note: {e}")
            raise

    async def update_note(self, note_id: str, options: UpdateNoteOptions) -> SingleNote:
        """Update a note's content, permissions or permalink"""
        try:
            path = f"notes/{_segment(note_id, 'note_id')}"
            note = await self._request("PATCH", path, payload=options.to_payload(), model=_SINGLE_NOTE)
            logger.info(f"Successfully updated note {note_id}")
            return note
        except APIError as e:
            logger.error(f"Error updating note: {e}")
            raise

    async def update_note_content(self, note_id: str, content: str) -> SingleNote:
        """Replace a note's markdown content"""
        return await self.update_note(note_id, UpdateNoteOptions(content=content))

    async def delete_note(self, note_id: str) -> None:
        """Delete a note by ID"""
        try:
            logger.info(f"Deleting note {note_id}")
            await self._request("DELETE", f"notes/{_segment(note_id, 'note_id')}")
            logger.info(f"Note {note_id} deleted successfully")
        except APIError as e:
            logger.error(f"Error deleting note: {e}")
            raise

    # Team API

    async def get_teams(self) -> List[Team]:
        """List the teams the user belongs to"""
        teams = await self._request("GET", "teams", model=_TEAM_LIST)
        logger.info(f"Retrieved {len(teams)} teams")
        return teams

    async def get_team_notes(self, team_path: str) -> List[Note]:
        """List the notes of a team"""
        path = f"teams/{_segment(team_path, 'team_path')}/notes"
        return await self._request("GET", path, model=_NOTE_LIST)

    async def create_team_note(self, team_path: str, options: CreateNoteOptions) -> SingleNote:
        """
        Create a note in a team workspace.

        Same retry caveat as create_note.
        """
        try:
            path = f"teams/{_segment(team_path, 'team_path')}/notes"
            logger.info(f"Creating note '{options.title or 'Untitled'}' in team {team_path}")
            note = await self._request("POST", path, payload=options.to_payload(),
                                       model=_SINGLE_NOTE, idempotent=False)
            logger.info(f"Successfully created team note {note.id}")
            return note
        except APIError as e:
            logger.error(f"Error creating team note: {e}")
            raise

    async def update_team_note(self, team_path: str, note_id: str, options: UpdateNoteOptions) -> None:
        """Update a team note's content, permissions or permalink"""
        try:
            path = f"teams/{_segment(team_path, 'team_path')}/notes/{_segment(note_id, 'note_id')}"
            await self._request("PATCH", path, payload=options.to_payload())
            logger.info(f"Successfully updated team note {note_id}")
        except APIError as e:
            logger.error(f"Error updating team note: {e}")
            raise

    async def update_team_note_content(self, team_path: str, note_id: str, content: str) -> None:
        """Replace a team note's markdown content"""
        await self.update_team_note(team_path, note_id, UpdateNoteOptions(content=content))

    async def delete_team_note(self, team_path: str, note_id: str) -> None:
        """Delete a team note"""
        try:
            path = f"teams/{_segment(team_path, 'team_path')}/notes/{_segment(note_id, 'note_id')}"
            await self._request("DELETE", path)
            logger.info(f"Team note {note_id} deleted successfully")
        except APIError as e:
            logger.error(f"Error deleting team note: {e}")
            raise


def _segment(value: str, name: str) -> str:
    """Quote a path argument so it stays a single URL segment."""
    if not value:
        raise MissingArgument(f"Missing {name}")
    # Dot segments survive quoting and would be resolved away by the URL join
    if value in (".", ".."):
        raise UrlError(f"Invalid {name} {value!r}")
    return quote(value, safe="")


def _env_number(name: str, cast, default):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
