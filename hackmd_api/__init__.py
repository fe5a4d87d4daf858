"""
Async client for the HackMD API.

    async with HackMDAPI("token") as api:
        notes = await api.get_note_list()
"""

from hackmd_api.client import HackMDAPI
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
    DEFAULT_BASE_URL,
    ApiClientOptions,
    CommentPermissionType,
    CreateNoteOptions,
    Note,
    NotePermissionRole,
    NotePublishType,
    RetryOptions,
    SimpleUserProfile,
    SingleNote,
    Team,
    TeamVisibilityType,
    UpdateNoteOptions,
    User,
)
from hackmd_api.utils import setup_logging
