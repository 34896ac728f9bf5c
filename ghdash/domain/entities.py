from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Protocol, TypeVar


class HasId(Protocol):
    """Anything the stores can hold: a remote-issued, stable string id."""

    @property
    def id(self) -> str: ...


T = TypeVar("T", bound=HasId)


class ColumnType(str, Enum):
    TODO        = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE        = "DONE"
    BACKLOG     = "BACKLOG"


class IssueState(str, Enum):
    OPEN   = "OPEN"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class User:
    """
    Immutable domain entity for a GitHub user (the viewer, an assignee,
    a project owner).

    Field names are OURS (snake_case), not GitHub's (camelCase).
    The translation happens in the mappers, not here.
    """
    id:               str
    login:            str
    avatar_url:       str = ""
    name:             str | None = None
    bio:              str | None = None
    location:         str | None = None
    company:          str | None = None
    email:            str | None = None
    website_url:      str | None = None
    twitter_username: str | None = None


@dataclass(frozen=True)
class Label:
    id:          str
    name:        str
    color:       str = ""
    description: str | None = None


@dataclass(frozen=True)
class Collaborator:
    id:         str
    login:      str
    avatar_url: str = ""
    permission: str = "READ"


@dataclass(frozen=True)
class ColumnOption:
    id:    str
    name:  str
    color: str | None = None


@dataclass(frozen=True)
class Column:
    """A project board column, backed by a ProjectV2 field."""
    id:       str
    name:     str
    type:     ColumnType
    field_id: str | None = None
    options:  tuple[ColumnOption, ...] = ()


@dataclass(frozen=True)
class Issue:
    id:              str
    title:           str
    number:          int = 0
    state:           IssueState = IssueState.OPEN
    body:            str | None = None
    url:             str = ""
    created_at:      datetime | None = None
    updated_at:      datetime | None = None
    labels:          tuple[Label, ...] = ()
    assignees:       tuple[User, ...] = ()
    project_item_id: str | None = None
    status:          str | None = None
    is_draft:        bool = False


@dataclass(frozen=True)
class RepositorySummary:
    """Lightweight repository reference embedded in a Project."""
    id:          str
    name:        str
    owner_login: str = ""


@dataclass(frozen=True)
class Repository:
    id:               str
    name:             str
    owner_login:      str = ""
    owner_avatar_url: str = ""
    description:      str | None = None
    url:              str = ""
    created_at:       datetime | None = None
    updated_at:       datetime | None = None
    is_private:       bool = False
    visibility:       str = "PUBLIC"
    collaborators:    tuple[Collaborator, ...] = ()

    @property
    def name_with_owner(self) -> str:
        return f"{self.owner_login}/{self.name}" if self.owner_login else self.name


@dataclass(frozen=True)
class Project:
    """
    Immutable domain entity for a GitHub Projects v2 board.

    Relationships are embedded summaries, never live references to
    entities held by other stores.
    """
    id:            str
    name:          str
    number:        int = 0
    description:   str | None = None
    url:           str = ""
    closed:        bool = False
    created_at:    datetime | None = None
    updated_at:    datetime | None = None
    owner_login:   str | None = None
    creator_login: str | None = None
    repositories:  tuple[RepositorySummary, ...] = ()
    columns:       tuple[Column, ...] = ()
    issues:        tuple[Issue, ...] = ()
    labels:        tuple[Label, ...] = ()


# Drafts: what callers hand to create(). No ids, the server issues those.

@dataclass(frozen=True)
class ProjectDraft:
    owner_id:    str
    title:       str
    description: str | None = None


@dataclass(frozen=True)
class RepositoryDraft:
    name:        str
    description: str | None = None
    visibility:  str = "PRIVATE"


@dataclass(frozen=True)
class IssueDraft:
    repository_id: str
    title:         str
    body:          str = ""
    project_id:    str | None = None


@dataclass(frozen=True)
class LabelDraft:
    repository_id: str
    name:          str
    color:         str
    description:   str | None = None


@dataclass(frozen=True)
class CollaboratorDraft:
    project_id: str
    login:      str
    permission: str = "WRITE"


@dataclass(frozen=True)
class ViewerSlices:
    """Everything the aggregated startup query yields, already mapped."""
    user:          User | None
    repositories:  list[Repository] = field(default_factory=list)
    projects:      list[Project] = field(default_factory=list)
    issues:        list[Issue] = field(default_factory=list)
    labels:        list[Label] = field(default_factory=list)
    collaborators: list[Collaborator] = field(default_factory=list)


@dataclass(frozen=True)
class AppSnapshot:
    """
    Immutable value object summarising a completed initialisation.
    Returned by the initializer once every store has been hydrated.
    """
    user:          User | None
    repositories:  int
    projects:      int
    issues:        int
    labels:        int
    collaborators: int
    elapsed_secs:  float
