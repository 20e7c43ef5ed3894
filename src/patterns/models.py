"""Pattern analysis models. Pure data, no I/O."""

from __future__ import annotations

from pydantic import BaseModel, Field

from daylens.classify.models import ActivityType
from daylens.commits.models import CommitWorkUnit
from daylens.recurrence.models import KnowledgeDelta, RecurrenceSignal
from daylens.sessions.models import AssistantTaskSession, SearchMission

MAX_CLUSTER_TOPICS = 5
MAX_CLUSTER_ENTITIES = 5


class TemporalCluster(BaseModel):
    """A block of consecutive hours dominated by one activity type."""

    hour_start: int = Field(ge=0, le=23)
    hour_end: int = Field(ge=0, le=23)
    activity_type: ActivityType
    event_count: int
    topics: list[str] = Field(default_factory=list, max_length=MAX_CLUSTER_TOPICS)
    entities: list[str] = Field(default_factory=list, max_length=MAX_CLUSTER_ENTITIES)
    intensity: float
    label: str


class TopicCooccurrence(BaseModel):
    """Two topics seen in the same time window."""

    topic_a: str
    topic_b: str
    strength: float = Field(ge=0.0, le=1.0)
    shared_events: int
    window: str


class EntityRelation(BaseModel):
    """Two entities mentioned together by the same events."""

    entity_a: str
    entity_b: str
    cooccurrences: int = Field(ge=3)
    contexts: list[ActivityType] = Field(default_factory=list)


class ActivityTypeCount(BaseModel):
    type: ActivityType
    count: int
    pct: int


class PeakHour(BaseModel):
    hour: int = Field(ge=0, le=23)
    count: int


class PatternAnalysis(BaseModel):
    """Everything extracted from one day of classified activity.

    ``focus_score`` is exactly ``0`` when there were no events, otherwise
    between 0.30 and 0.98.
    """

    temporal_clusters: list[TemporalCluster] = Field(default_factory=list)
    topic_cooccurrences: list[TopicCooccurrence] = Field(default_factory=list)
    entity_relations: list[EntityRelation] = Field(default_factory=list)
    recurrence_signals: list[RecurrenceSignal] = Field(default_factory=list)
    knowledge_delta: KnowledgeDelta = Field(default_factory=KnowledgeDelta)
    focus_score: float = 0.0
    focus_label: str = ""
    activity_concentration_score: float = 0.0
    top_activity_types: list[ActivityTypeCount] = Field(default_factory=list)
    peak_hours: list[PeakHour] = Field(default_factory=list)
    commit_work_units: list[CommitWorkUnit] = Field(default_factory=list)
    assistant_task_sessions: list[AssistantTaskSession] = Field(default_factory=list)
    search_missions: list[SearchMission] = Field(default_factory=list)
