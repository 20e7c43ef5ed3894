"""Recurrence domain — day-over-day topic trends over an injected history."""

from daylens.recurrence.models import (
    KnowledgeDelta,
    RecurrenceSignal,
    TopicHistory,
    TopicHistoryEntry,
    Trend,
)
from daylens.recurrence.services import (
    build_empty_topic_history,
    compute_knowledge_delta,
    compute_recurrence_signals,
    update_topic_history,
)

__all__ = [
    "KnowledgeDelta",
    "RecurrenceSignal",
    "TopicHistory",
    "TopicHistoryEntry",
    "Trend",
    "build_empty_topic_history",
    "compute_knowledge_delta",
    "compute_recurrence_signals",
    "update_topic_history",
]
