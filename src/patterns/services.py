"""Pattern extraction over one day of classified events.

All computation is local and statistical. Given identical inputs,
``extract_patterns`` returns an identical ``PatternAnalysis``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from daylens.classify.models import ClassificationResult
from daylens.commits.services import group_commits_into_work_units
from daylens.config import PatternConfig
from daylens.models import AssistantSession, BrowserVisit, GitCommit, SearchQuery
from daylens.patterns.cooccurrence import (
    extract_entity_relations,
    extract_topic_cooccurrences,
    gate_events,
)
from daylens.patterns.focus import (
    compute_activity_concentration,
    compute_focus_score,
    focus_label,
)
from daylens.patterns.models import PatternAnalysis
from daylens.patterns.temporal import (
    compute_activity_distribution,
    compute_peak_hours,
    extract_temporal_clusters,
)
from daylens.patterns.topics import filter_event_topics
from daylens.recurrence.models import TopicHistory
from daylens.recurrence.services import compute_knowledge_delta, compute_recurrence_signals
from daylens.sessions.services import detect_search_missions, group_assistant_sessions_into_tasks

logger = logging.getLogger(__name__)


def extract_patterns(
    classification: ClassificationResult,
    config: PatternConfig | None = None,
    topic_history: TopicHistory | None = None,
    today: date | str | None = None,
    commits: Iterable[GitCommit] = (),
    assistant_sessions: Iterable[AssistantSession] = (),
    searches: Iterable[SearchQuery] = (),
    visits: Iterable[BrowserVisit] = (),
) -> PatternAnalysis:
    """Build the day's ``PatternAnalysis``.

    Clusters, focus and the activity distribution use every event. The
    co-occurrence graph, entity relations, recurrence and knowledge delta
    only use topics and entities from knowledge-bearing categories.
    Co-occurrence topics also pass the same filter as cluster labels.

    Args:
        classification: Output of ``classify_events``.
        config: Pattern settings; defaults when omitted.
        topic_history: History loaded by the caller. It is read, never
            modified; use ``update_topic_history`` to advance it.
        today: The day being analyzed. Defaults to the current date.
        commits: Raw commits to group into work units.
        assistant_sessions: Raw assistant prompts to group into task sessions.
        searches: Raw search queries for mission detection.
        visits: Raw browser visits attached to search missions.

    Returns:
        The complete analysis.
    """
    config = config or PatternConfig()
    history = topic_history or TopicHistory()
    today = today or date.today()
    events = classification.events

    gated = gate_events(events)
    topics = list(dict.fromkeys(t for e in gated for t in e.topics))
    entities = list(dict.fromkeys(n for e in gated for n in e.entities))

    cooccurrences = extract_topic_cooccurrences(
        filter_event_topics(gated), config.cooccurrence_window_minutes
    )
    recurrence = (
        compute_recurrence_signals(topics, today, history) if config.track_recurrence else []
    )
    score = compute_focus_score(events)

    analysis = PatternAnalysis(
        temporal_clusters=extract_temporal_clusters(events, config.min_cluster_size),
        topic_cooccurrences=cooccurrences,
        entity_relations=extract_entity_relations(gated),
        recurrence_signals=recurrence,
        knowledge_delta=compute_knowledge_delta(topics, entities, recurrence, cooccurrences),
        focus_score=score,
        focus_label=focus_label(score),
        activity_concentration_score=compute_activity_concentration(events),
        top_activity_types=compute_activity_distribution(events),
        peak_hours=compute_peak_hours(events),
        commit_work_units=group_commits_into_work_units(commits),
        assistant_task_sessions=group_assistant_sessions_into_tasks(assistant_sessions),
        search_missions=detect_search_missions(searches, visits),
    )

    logger.debug(
        "Extracted %d clusters, %d co-occurrences, %d entity relations from %d events",
        len(analysis.temporal_clusters),
        len(analysis.topic_cooccurrences),
        len(analysis.entity_relations),
        len(events),
    )
    return analysis
