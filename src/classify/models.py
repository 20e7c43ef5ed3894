"""Pure data models for event classification.

All Pydantic models and enums live here. No I/O, no business logic.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

MAX_TOPICS = 3
MAX_ENTITIES = 5
MAX_SUMMARY_CHARS = 120

# Confidence assigned to every rule-classified event. Kept below what an
# LLM classification reports so consumers can tell the two apart.
RULE_CONFIDENCE = 0.3


class EventSource(StrEnum):
    """Where a raw event came from."""

    BROWSER = "browser"
    SEARCH = "search"
    AI_ASSISTANT = "ai_assistant"
    COMMIT = "commit"


class ActivityType(StrEnum):
    """Coarse label for what the user was doing."""

    RESEARCH = "research"
    DEBUGGING = "debugging"
    IMPLEMENTATION = "implementation"
    INFRASTRUCTURE = "infrastructure"
    WRITING = "writing"
    LEARNING = "learning"
    ADMIN = "admin"
    COMMUNICATION = "communication"
    BROWSING = "browsing"
    PLANNING = "planning"
    UNKNOWN = "unknown"


class IntentType(StrEnum):
    """Why the user performed the activity."""

    COMPARE = "compare"
    IMPLEMENT = "implement"
    EVALUATE = "evaluate"
    READ = "read"
    TROUBLESHOOT = "troubleshoot"
    CONFIGURE = "configure"
    EXPLORE = "explore"
    COMMUNICATE = "communicate"
    UNKNOWN = "unknown"


class AssistantTaskType(StrEnum):
    """Verb-based task type of an AI-assistant prompt."""

    IMPLEMENTATION = "implementation"
    DEBUGGING = "debugging"
    REVIEW = "review"
    LEARNING = "learning"
    ARCHITECTURE = "architecture"


class RawActivityEvent(BaseModel):
    """Source-agnostic event produced by normalization.

    ``timestamp`` is an ISO-8601 string and may be empty when the
    collector had no time for the record.
    """

    timestamp: str = ""
    source: EventSource
    text: str
    category: str | None = None
    metadata: dict[str, str] = Field(default_factory=dict)


class StructuredEvent(BaseModel):
    """A classified event."""

    timestamp: str = ""
    source: EventSource
    activity_type: ActivityType
    topics: list[str] = Field(default_factory=list, max_length=MAX_TOPICS)
    entities: list[str] = Field(default_factory=list, max_length=MAX_ENTITIES)
    intent: IntentType
    confidence: float = Field(ge=0.0, le=1.0)
    category: str | None = None
    summary: str = Field(default="", max_length=MAX_SUMMARY_CHARS)

    @field_validator("topics", "entities", mode="before")
    @classmethod
    def _stringify(cls, value: object) -> object:
        if isinstance(value, list):
            return [str(v) for v in value]
        return value


class ClassificationResult(BaseModel):
    """Output of one classification run."""

    events: list[StructuredEvent] = Field(default_factory=list)
    total_processed: int = 0
    llm_classified: int = 0
    rule_classified: int = 0
    processing_time_ms: float = 0.0
