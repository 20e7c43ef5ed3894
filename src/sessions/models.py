"""Task-session models for AI-assistant conversations and search chains."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

from daylens.classify.models import AssistantTaskType
from daylens.models import AssistantSession, BrowserVisit, SearchQuery, TimeRange


class InteractionMode(StrEnum):
    """Acceleration: the user knows the goal. Exploration: the user is learning."""

    ACCELERATION = "acceleration"
    EXPLORATION = "exploration"


class SearchIntent(StrEnum):
    """Broder's query taxonomy."""

    NAVIGATIONAL = "navigational"
    INFORMATIONAL = "informational"
    TRANSACTIONAL = "transactional"


class AssistantTaskSession(BaseModel):
    """One assistant conversation summarized as a task."""

    task_title: str
    task_type: AssistantTaskType
    topic_cluster: str
    prompts: list[AssistantSession] = Field(default_factory=list)
    time_range: TimeRange = Field(default_factory=TimeRange)
    project: str = ""
    conversation_file: str
    turn_count: int = 0
    interaction_mode: InteractionMode
    is_deep_learning: bool = False


class SearchMission(BaseModel):
    """A chain of related search queries plus the pages visited meanwhile."""

    label: str
    queries: list[SearchQuery] = Field(default_factory=list)
    visits: list[BrowserVisit] = Field(default_factory=list)
    time_range: TimeRange = Field(default_factory=TimeRange)
    intent_type: SearchIntent
