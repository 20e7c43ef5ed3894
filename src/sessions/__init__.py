"""Sessions domain — assistant task sessions and search missions."""

from daylens.sessions.models import (
    AssistantTaskSession,
    InteractionMode,
    SearchIntent,
    SearchMission,
)
from daylens.sessions.services import (
    classify_search_intent,
    detect_search_missions,
    extract_task_title,
    group_assistant_sessions_into_tasks,
)

__all__ = [
    "AssistantTaskSession",
    "InteractionMode",
    "SearchIntent",
    "SearchMission",
    "classify_search_intent",
    "detect_search_missions",
    "extract_task_title",
    "group_assistant_sessions_into_tasks",
]
