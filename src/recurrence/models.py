"""Recurrence models — pure data, no I/O.

``TopicHistory`` is the only value in this package that outlives a run. The
host loads it before analysis and saves the updated copy afterwards; its
JSON shape uses camelCase keys (``firstSeen``, ``recentDays`` ...).
"""

from __future__ import annotations

from datetime import date
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

TOPIC_HISTORY_VERSION = 1
MAX_RECENT_DAYS = 30


class Trend(StrEnum):
    """Day-over-day trend of a topic."""

    NEW = "new"
    RETURNING = "returning"
    RISING = "rising"
    STABLE = "stable"
    DECLINING = "declining"


# Sort priority for recurrence output.
TREND_ORDER: dict[Trend, int] = {
    Trend.NEW: 0,
    Trend.RETURNING: 1,
    Trend.RISING: 2,
    Trend.STABLE: 3,
    Trend.DECLINING: 4,
}


class TopicHistoryEntry(BaseModel):
    """Persisted record of one normalized topic."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    first_seen: date
    last_seen: date
    day_count: int = Field(default=1, ge=0)
    recent_days: list[date] = Field(default_factory=list, max_length=MAX_RECENT_DAYS)


class TopicHistory(BaseModel):
    """Versioned map of normalized topic -> history entry."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    version: Literal[1] = TOPIC_HISTORY_VERSION
    topics: dict[str, TopicHistoryEntry] = Field(default_factory=dict)

    def to_json(self) -> str:
        """Serialize in the persisted (camelCase) shape."""
        return self.model_dump_json(by_alias=True, indent=2)


class RecurrenceSignal(BaseModel):
    """Trend classification of one of today's topics."""

    topic: str
    frequency: int
    trend: Trend
    first_seen: date | None = None
    last_seen: date | None = None
    day_count: int


class KnowledgeDelta(BaseModel):
    """What today added to the knowledge layer."""

    new_topics: list[str] = Field(default_factory=list)
    recurring_topics: list[str] = Field(default_factory=list)
    novel_entities: list[str] = Field(default_factory=list)
    connections: list[str] = Field(default_factory=list)
