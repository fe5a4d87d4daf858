"""
Data Models Module

This module defines Pydantic models for the data exchanged with the HackMD API
and for the client configuration. Wire names are camelCase; attributes use
snake_case and either spelling is accepted when building a model.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_BASE_URL = "https://api.hackmd.io/v1"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 0.1


class HackMDModel(BaseModel):
    """Base for all wire models: immutable, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class TeamVisibilityType(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class NotePublishType(str, Enum):
    EDIT = "edit"
    VIEW = "view"
    SLIDE = "slide"
    BOOK = "book"


class CommentPermissionType(str, Enum):
    DISABLED = "disabled"
    FORBIDDEN = "forbidden"
    OWNERS = "owners"
    SIGNED_IN_USERS = "signed_in_users"
    EVERYONE = "everyone"


class NotePermissionRole(str, Enum):
    OWNER = "owner"
    SIGNED_IN = "signed_in"
    GUEST = "guest"


class Team(HackMDModel):
    """
    A HackMD team workspace.

    Attributes:
        path (str): URL path of the team, used to address team notes
        created_at (int): Creation time in epoch milliseconds
    """
    id: str
    owner_id: str
    name: str
    logo: str
    path: str
    description: str
    hard_breaks: bool
    visibility: TeamVisibilityType
    created_at: int


class User(HackMDModel):
    """The authenticated user, as returned by ``GET /me``."""
    id: str
    email: Optional[str] = None
    name: str
    user_path: str
    photo: str
    teams: List[Team] = Field(default_factory=list)


class SimpleUserProfile(HackMDModel):
    name: str
    user_path: str
    photo: str
    biography: Optional[str] = None
    created_at: int


class Note(HackMDModel):
    """
    Note metadata as listed by the notes, history and team notes endpoints.

    Attributes:
        last_changed_at (int): Last modification time in epoch milliseconds
        created_at (int): Creation time in epoch milliseconds
        published_at (Optional[int]): Publication time, if published
        last_change_user (Optional[SimpleUserProfile]): Author of the last change
    """
    id: str
    title: str
    tags: List[str] = Field(default_factory=list)
    last_changed_at: int
    created_at: int
    last_change_user: Optional[SimpleUserProfile] = None
    publish_type: NotePublishType
    published_at: Optional[int] = None
    user_path: Optional[str] = None
    team_path: Optional[str] = None
    permalink: Optional[str] = None
    short_id: str
    publish_link: str
    read_permission: NotePermissionRole
    write_permission: NotePermissionRole


class SingleNote(Note):
    """A note with its markdown content, fields flattened alongside ``content``."""
    content: str

    @property
    def note(self) -> Note:
        """The metadata part of this note, without the content."""
        return Note.model_validate(self.model_dump(exclude={"content"}))


class NoteOptions(HackMDModel):
    """Base for request bodies: absent fields are never sent."""

    def to_payload(self) -> Dict[str, Any]:
        """
        Convert the model to a JSON-ready dictionary.

        Returns:
            dict: camelCase keys, fields that are None left out
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CreateNoteOptions(NoteOptions):
    title: Optional[str] = None
    content: Optional[str] = None
    read_permission: Optional[NotePermissionRole] = None
    write_permission: Optional[NotePermissionRole] = None
    comment_permission: Optional[CommentPermissionType] = None
    permalink: Optional[str] = None


class UpdateNoteOptions(NoteOptions):
    content: Optional[str] = None
    read_permission: Optional[NotePermissionRole] = None
    write_permission: Optional[NotePermissionRole] = None
    permalink: Optional[str] = None


class RetryOptions(BaseModel):
    """
    Retry policy for failed requests.

    Attributes:
        max_retries (int): Retries after the first attempt; total attempts is max_retries + 1
        base_delay (float): Wait in seconds before the first retry, doubled for each further one
        retry_non_idempotent (bool): Also retry POST requests on failures the
            server may already have acted on (5xx, timeouts)
    """
    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(DEFAULT_MAX_RETRIES, ge=0)
    base_delay: float = Field(DEFAULT_BASE_DELAY, ge=0)
    retry_non_idempotent: bool = False


class ApiClientOptions(BaseModel):
    """
    Client behaviour settings, fixed for the lifetime of a client.

    Attributes:
        wrap_response_errors (bool): Classify error responses into rich error
            types; when False every non-2xx status is a plain TransportError
        timeout (Optional[float]): Seconds allowed for each physical attempt
        retry_options (Optional[RetryOptions]): None disables retrying
    """
    model_config = ConfigDict(frozen=True)

    wrap_response_errors: bool = True
    timeout: Optional[float] = Field(DEFAULT_TIMEOUT, gt=0)
    retry_options: Optional[RetryOptions] = Field(default_factory=RetryOptions)
