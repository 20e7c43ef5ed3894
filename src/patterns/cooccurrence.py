"""Topic co-occurrence windows and entity relations.

Both analyses only see topics and entities from knowledge-bearing
categories; ``gate_events`` blanks the rest beforehand.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta

from daylens.classify.models import ActivityType, StructuredEvent
from daylens.patterns.models import EntityRelation, TopicCooccurrence
from daylens.timestamps import format_hour, parse_timestamp

# Categories whose events may feed the knowledge graph. Shopping, maps,
# news and the like still count toward clusters, focus and distribution.
ENTITY_BEARING_CATEGORIES: frozenset[str] = frozenset(
    {"dev", "work", "research", "education", "ai_tools", "pkm", "writing"}
)

MAX_COOCCURRENCES = 20
MAX_ENTITY_RELATIONS = 15
MIN_ENTITY_COOCCURRENCES = 3


def gate_events(events: Sequence[StructuredEvent]) -> list[StructuredEvent]:
    """Copy of *events* with topics and entities cleared outside the whitelist."""
    return [
        e
        if (e.category or "other") in ENTITY_BEARING_CATEGORIES
        else e.model_copy(update={"topics": [], "entities": []})
        for e in events
    ]


def _time_windows(
    events: Sequence[StructuredEvent], window: timedelta
) -> list[list[tuple[datetime, StructuredEvent]]]:
    timed = [(t, e) for e in events if (t := parse_timestamp(e.timestamp)) is not None]
    timed.sort(key=lambda item: item[0])

    windows: list[list[tuple[datetime, StructuredEvent]]] = []
    current: list[tuple[datetime, StructuredEvent]] = []
    for item in timed:
        if current and item[0] - current[0][0] > window:
            windows.append(current)
            current = []
        current.append(item)
    if current:
        windows.append(current)
    return [w for w in windows if len(w) >= 2]


def extract_topic_cooccurrences(
    events: Sequence[StructuredEvent], window_minutes: int
) -> list[TopicCooccurrence]:
    """Count distinct topic pairs sharing a time window.

    A window opens at its first event and takes every following event
    within *window_minutes* of that start. Strength is the pair count
    relative to the most frequent pair. Top 20 by strength.
    """
    counts: dict[tuple[str, str], int] = {}
    labels: dict[tuple[str, str], str] = {}

    for window in _time_windows(events, timedelta(minutes=window_minutes)):
        topics = list(dict.fromkeys(t for _, e in window for t in e.topics))
        label = format_hour(window[0][0].hour)
        for i, first in enumerate(topics):
            for second in topics[i + 1 :]:
                key = (first, second) if first <= second else (second, first)
                counts[key] = counts.get(key, 0) + 1
                labels.setdefault(key, label)

    if not counts:
        return []

    peak = max(counts.values())
    pairs = [
        TopicCooccurrence(
            topic_a=a,
            topic_b=b,
            strength=count / peak,
            shared_events=count,
            window=labels[(a, b)],
        )
        for (a, b), count in counts.items()
    ]
    pairs.sort(key=lambda p: -p.strength)
    return pairs[:MAX_COOCCURRENCES]


def extract_entity_relations(events: Sequence[StructuredEvent]) -> list[EntityRelation]:
    """Entity pairs mentioned together by at least three events.

    Pairs seen only in ``unknown`` activity are dropped. Top 15 by count.
    """
    counts: dict[tuple[str, str], int] = {}
    contexts: dict[tuple[str, str], dict[ActivityType, None]] = {}

    for event in events:
        entities = list(dict.fromkeys(event.entities))
        for i, first in enumerate(entities):
            for second in entities[i + 1 :]:
                key = (first, second) if first <= second else (second, first)
                counts[key] = counts.get(key, 0) + 1
                contexts.setdefault(key, {})[event.activity_type] = None

    relations = [
        EntityRelation(entity_a=a, entity_b=b, cooccurrences=count, contexts=list(contexts[(a, b)]))
        for (a, b), count in counts.items()
        if count >= MIN_ENTITY_COOCCURRENCES
        and any(c != ActivityType.UNKNOWN for c in contexts[(a, b)])
    ]
    relations.sort(key=lambda r: -r.cooccurrences)
    return relations[:MAX_ENTITY_RELATIONS]
