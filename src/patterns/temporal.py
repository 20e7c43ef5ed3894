"""Hour-based analyses: temporal clusters, peak hours, activity distribution."""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Sequence

from daylens.classify.models import ActivityType, StructuredEvent
from daylens.patterns.models import (
    MAX_CLUSTER_ENTITIES,
    MAX_CLUSTER_TOPICS,
    ActivityTypeCount,
    PeakHour,
    TemporalCluster,
)
from daylens.patterns.topics import filter_cluster_topics
from daylens.timestamps import format_hour, parse_timestamp

MAX_PEAK_HOURS = 5
LABEL_TOPICS = 3


def event_hour(event: StructuredEvent) -> int | None:
    """Local hour of *event*, or ``None`` when its timestamp is missing or invalid."""
    parsed = parse_timestamp(event.timestamp)
    return parsed.hour if parsed is not None else None


def bucket_by_hour(events: Sequence[StructuredEvent]) -> dict[int, list[StructuredEvent]]:
    """Events keyed by local hour, in ascending hour order."""
    buckets: dict[int, list[StructuredEvent]] = {}
    for event in events:
        hour = event_hour(event)
        if hour is not None:
            buckets.setdefault(hour, []).append(event)
    return dict(sorted(buckets.items()))


def _dedupe(values: Sequence[str]) -> list[str]:
    return list(dict.fromkeys(values))


def build_cluster(
    hour_start: int,
    hour_end: int,
    activity_type: ActivityType,
    events: Sequence[StructuredEvent],
) -> TemporalCluster:
    topics = filter_cluster_topics(_dedupe([t for e in events for t in e.topics]))
    entities = _dedupe([n for e in events for n in e.entities])

    label = f"{activity_type} {format_hour(hour_start)}-{format_hour(hour_end + 1)}"
    if topics:
        label += ": " + ", ".join(topics[:LABEL_TOPICS])

    return TemporalCluster(
        hour_start=hour_start,
        hour_end=hour_end,
        activity_type=activity_type,
        event_count=len(events),
        topics=topics[:MAX_CLUSTER_TOPICS],
        entities=entities[:MAX_CLUSTER_ENTITIES],
        intensity=len(events) / (hour_end - hour_start + 1),
        label=label,
    )


def extract_temporal_clusters(
    events: Sequence[StructuredEvent], min_cluster_size: int
) -> list[TemporalCluster]:
    """Merge hours sharing a dominant activity type into clusters.

    Each hour votes for its most common activity type. Hours of the same
    type at most one hour apart are merged. A cluster is kept only when it
    holds at least *min_cluster_size* events. Largest clusters first.
    """
    hours_by_type: dict[ActivityType, list[tuple[int, list[StructuredEvent]]]] = {}
    for hour, bucket in bucket_by_hour(events).items():
        dominant = Counter(e.activity_type for e in bucket).most_common(1)[0][0]
        hours_by_type.setdefault(dominant, []).append((hour, bucket))

    clusters: list[TemporalCluster] = []
    for activity_type, hours in hours_by_type.items():
        start, first_bucket = hours[0]
        prev = start
        members = list(first_bucket)

        for hour, bucket in hours[1:]:
            if hour - prev <= 1:
                members.extend(bucket)
                prev = hour
                continue
            if len(members) >= min_cluster_size:
                clusters.append(build_cluster(start, prev, activity_type, members))
            start = prev = hour
            members = list(bucket)

        if len(members) >= min_cluster_size:
            clusters.append(build_cluster(start, prev, activity_type, members))

    clusters.sort(key=lambda c: -c.event_count)
    return clusters


def compute_peak_hours(events: Sequence[StructuredEvent]) -> list[PeakHour]:
    """Top five hours by event count, earlier hour first on ties."""
    counts = Counter(h for h in (event_hour(e) for e in events) if h is not None)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [PeakHour(hour=h, count=c) for h, c in ranked[:MAX_PEAK_HOURS]]


def compute_activity_distribution(events: Sequence[StructuredEvent]) -> list[ActivityTypeCount]:
    """Event count and whole-number percentage per activity type."""
    counts = Counter(e.activity_type for e in events)
    total = len(events) or 1
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [
        ActivityTypeCount(type=t, count=c, pct=math.floor(c * 100 / total + 0.5))
        for t, c in ranked
    ]
