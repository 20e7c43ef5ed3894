"""Input activity records handed over by the upstream collectors.

Records arrive already sanitized and, for browser visits, already mapped to
a domain category. Pure data, no I/O.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel, Field

from daylens.timestamps import to_local


class BrowserVisit(BaseModel):
    """A single page visit from browser history."""

    url: str
    title: str = ""
    time: datetime | None = None
    visit_count: int = 1
    domain: str = ""
    category: str | None = None


class SearchQuery(BaseModel):
    """A search-engine query."""

    query: str
    time: datetime | None = None
    engine: str = ""


class AssistantSession(BaseModel):
    """One user prompt sent to an AI coding assistant."""

    prompt: str
    time: datetime | None = None
    project: str = ""
    is_conversation_opener: bool = False
    conversation_file: str = ""
    conversation_turn_count: int = 0


class GitCommit(BaseModel):
    """A version-control commit (first line of the message only)."""

    hash: str = ""
    message: str
    time: datetime | None = None
    repo: str = ""
    files_changed: int = 0
    insertions: int = 0
    deletions: int = 0
    file_paths: list[str] = Field(default_factory=list)


class TimeRange(BaseModel):
    """Inclusive span covered by a group of records.

    Either end is ``None`` when none of the grouped records had a time.
    """

    start: datetime | None = None
    end: datetime | None = None

    @classmethod
    def spanning(cls, times: Iterable[datetime | None]) -> TimeRange:
        """Earliest to latest of *times*, skipping missing ones."""
        known = [t for t in times if t is not None]
        if not known:
            return cls()
        return cls(start=min(known, key=to_local), end=max(known, key=to_local))
