"""Recurrence services — topic trends and knowledge delta over persisted history.

History is treated as an injected immutable value: every function here
takes a ``TopicHistory`` and, where it changes anything, returns a new one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from typing import TYPE_CHECKING

from daylens.recurrence.models import (
    MAX_RECENT_DAYS,
    TREND_ORDER,
    KnowledgeDelta,
    RecurrenceSignal,
    TopicHistory,
    TopicHistoryEntry,
    Trend,
)

if TYPE_CHECKING:
    from daylens.patterns.models import TopicCooccurrence

logger = logging.getLogger(__name__)

RETURNING_AFTER_DAYS = 7
TREND_WINDOW_DAYS = 14
STABLE_MIN_APPEARANCES = 5
RISING_MIN_APPEARANCES = 3

MAX_NOVEL_ENTITIES = 10
MAX_CONNECTIONS = 8
CONNECTION_MIN_STRENGTH = 0.5


def _as_date(value: date | str) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def normalize_topic(topic: str) -> str:
    return topic.strip().lower()


def _distinct(topics: Iterable[str]) -> list[tuple[str, str]]:
    """``(original, normalized)`` pairs, first spelling of each topic wins."""
    seen: set[str] = set()
    result: list[tuple[str, str]] = []
    for topic in topics:
        key = normalize_topic(topic)
        if not key or key in seen:
            continue
        seen.add(key)
        result.append((topic, key))
    return result


def build_empty_topic_history() -> TopicHistory:
    return TopicHistory()


def _classify_trend(entry: TopicHistoryEntry, today: date) -> Trend:
    if entry.last_seen < today - timedelta(days=RETURNING_AFTER_DAYS):
        return Trend.RETURNING
    window_start = today - timedelta(days=TREND_WINDOW_DAYS)
    recent = sum(1 for d in entry.recent_days if d >= window_start)
    if recent >= STABLE_MIN_APPEARANCES:
        return Trend.STABLE
    if recent >= RISING_MIN_APPEARANCES:
        return Trend.RISING
    return Trend.DECLINING


def _entry_before(entry: TopicHistoryEntry, today: date) -> TopicHistoryEntry | None:
    """*entry* as it stood before *today* was recorded.

    ``None`` when *today* was the topic's first day, so a re-run still sees
    it as new.
    """
    if today not in entry.recent_days:
        return entry
    if entry.day_count <= 1:
        return None
    earlier = [d for d in entry.recent_days if d < today]
    return TopicHistoryEntry(
        first_seen=entry.first_seen,
        last_seen=max(earlier) if earlier else entry.first_seen,
        day_count=entry.day_count - 1,
        recent_days=earlier,
    )


def compute_recurrence_signals(
    today_topics: Iterable[str],
    today: date | str,
    history: TopicHistory,
) -> list[RecurrenceSignal]:
    """Classify each of today's topics against *history*.

    Topics absent from history are ``new``. A day already recorded in
    *history* is counted once, so signals match ``update_topic_history``
    when a day is re-run. Otherwise a topic not seen for
    more than a week is ``returning``; one seen 5+ times in the last 14
    days is ``stable``, 3+ times ``rising``, else ``declining``.

    Sorted by trend (new, returning, rising, stable, declining), then by
    frequency descending.
    """
    today_date = _as_date(today)
    signals: list[RecurrenceSignal] = []

    for topic, key in _distinct(today_topics):
        recorded = history.topics.get(key)
        entry = _entry_before(recorded, today_date) if recorded is not None else None
        if entry is None:
            signals.append(
                RecurrenceSignal(
                    topic=topic,
                    frequency=1,
                    trend=Trend.NEW,
                    first_seen=recorded.first_seen if recorded is not None else today_date,
                    last_seen=today_date,
                    day_count=1,
                )
            )
            continue

        signals.append(
            RecurrenceSignal(
                topic=topic,
                frequency=entry.day_count + 1,
                trend=_classify_trend(entry, today_date),
                first_seen=entry.first_seen,
                last_seen=today_date,
                day_count=entry.day_count + 1,
            )
        )

    signals.sort(key=lambda s: (TREND_ORDER[s.trend], -s.frequency))
    return signals


def update_topic_history(
    history: TopicHistory,
    today_topics: Iterable[str],
    today: date | str,
) -> TopicHistory:
    """Return a new history with today's topics recorded.

    ``first_seen`` is preserved, ``recent_days`` keeps only dates within the
    trailing 30 days (at most 30 entries). A topic already recorded for
    *today* keeps its ``day_count``, so re-running a day does not double
    count, but its ``recent_days`` are still pruned.
    The input history is not modified.
    """
    today_date = _as_date(today)
    cutoff = today_date - timedelta(days=MAX_RECENT_DAYS)
    topics = dict(history.topics)

    for _topic, key in _distinct(today_topics):
        entry = topics.get(key)
        if entry is None:
            topics[key] = TopicHistoryEntry(
                first_seen=today_date,
                last_seen=today_date,
                day_count=1,
                recent_days=[today_date],
            )
            continue

        seen_today = today_date in entry.recent_days
        days = entry.recent_days if seen_today else [*entry.recent_days, today_date]
        recent = [d for d in days if d >= cutoff]
        topics[key] = TopicHistoryEntry(
            first_seen=entry.first_seen,
            last_seen=max(entry.last_seen, today_date),
            day_count=entry.day_count if seen_today else entry.day_count + 1,
            recent_days=recent[-MAX_RECENT_DAYS:],
        )

    logger.debug("Topic history now tracks %d topics", len(topics))
    return TopicHistory(version=history.version, topics=topics)


def compute_knowledge_delta(
    today_topics: Sequence[str],
    today_entities: Sequence[str],
    recurrence: Sequence[RecurrenceSignal],
    cooccurrences: Sequence[TopicCooccurrence],
) -> KnowledgeDelta:
    """Summarize what is new today.

    ``novel_entities`` uses a substring heuristic: an entity counts as novel
    unless its name appears inside a recurring topic. There is no
    per-entity history behind it.
    """
    new_topics = [s.topic for s in recurrence if s.trend == Trend.NEW]
    recurring = [s.topic for s in recurrence if s.trend != Trend.NEW and s.day_count > 1]
    recurring_lower = [t.lower() for t in recurring]

    novel = [
        e for e in today_entities
        if not any(e.lower() in t for t in recurring_lower)
    ]

    connections = [
        f"{c.topic_a} ↔ {c.topic_b}"
        for c in cooccurrences
        if c.strength >= CONNECTION_MIN_STRENGTH
    ]

    return KnowledgeDelta(
        new_topics=new_topics,
        recurring_topics=recurring,
        novel_entities=novel[:MAX_NOVEL_ENTITIES],
        connections=connections[:MAX_CONNECTIONS],
    )
