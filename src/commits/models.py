"""Commit work-unit models. Pure data, no I/O."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

from daylens.models import GitCommit, TimeRange


class CommitWorkMode(StrEnum):
    """What a commit (or a group of commits) was doing."""

    BUILDING = "building"
    DEBUGGING = "debugging"
    RESTRUCTURING = "restructuring"
    TESTING = "testing"
    DOCUMENTING = "documenting"
    INFRASTRUCTURE = "infrastructure"
    OPTIMIZING = "optimizing"
    REVERTING = "reverting"
    TWEAKING = "tweaking"


class ParsedCommit(BaseModel):
    """A commit message split along the conventional-commit grammar.

    Non-conventional messages have an empty ``type`` and keep the whole
    (trimmed) message as ``description``.
    """

    type: str = ""
    scope: str | None = None
    breaking: bool = False
    description: str
    raw: str


class CommitWorkUnit(BaseModel):
    """A labeled group of commits forming one coherent piece of work."""

    label: str
    work_mode: CommitWorkMode
    commits: list[GitCommit] = Field(default_factory=list)
    repos: list[str] = Field(default_factory=list)
    time_range: TimeRange = Field(default_factory=TimeRange)
    has_why_information: bool = False
    why_clause: str | None = None
    is_generic: bool = False
