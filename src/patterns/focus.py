"""Focus score: how concentrated a day's topics and activities were."""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Sequence

from daylens.classify.models import StructuredEvent

FOCUS_FLOOR = 0.30
FOCUS_CEILING = 0.98
SIGMOID_STEEPNESS = 5

TOPIC_WEIGHT = 0.6
ACTIVITY_WEIGHT = 0.4

FOCUS_LABELS: tuple[tuple[float, str], ...] = (
    (0.75, "Highly focused"),
    (0.60, "Moderately focused"),
    (0.45, "Varied"),
)


def compute_topic_focus(events: Sequence[StructuredEvent]) -> float:
    """One minus the normalized Shannon entropy of topic mentions.

    Topics compare case-insensitively. Zero when no event carries a topic.
    """
    counts = Counter(t.lower() for e in events for t in e.topics)
    total = sum(counts.values())
    if total == 0:
        return 0.0

    entropy = -sum((c / total) * math.log2(c / total) for c in counts.values())
    max_entropy = math.log2(max(2, len(counts)))
    return max(0.0, min(1.0, 1 - entropy / max_entropy))


def compute_activity_concentration(events: Sequence[StructuredEvent]) -> float:
    """Share of events in the single most common activity type."""
    if not events:
        return 0.0
    top = Counter(e.activity_type for e in events).most_common(1)[0][1]
    return top / len(events)


def _sigmoid(x: float) -> float:
    return 1 / (1 + math.exp(-SIGMOID_STEEPNESS * (x - 0.5)))


def compress_score(blended: float) -> float:
    """Map a 0-1 blend onto 0.30-0.98 along a sigmoid.

    0.0 maps to 0.30, 0.5 to 0.64 and 1.0 to 0.98, so ordinary days land
    in the middle of the range instead of at its edges.
    """
    low = _sigmoid(0.0)
    high = _sigmoid(1.0)
    score = FOCUS_FLOOR + (FOCUS_CEILING - FOCUS_FLOOR) * (_sigmoid(blended) - low) / (high - low)
    return min(FOCUS_CEILING, max(FOCUS_FLOOR, score))


def compute_focus_score(events: Sequence[StructuredEvent]) -> float:
    """Blended, compressed focus score. Exactly ``0`` when there are no events."""
    if not events:
        return 0.0
    blended = TOPIC_WEIGHT * compute_topic_focus(events) + ACTIVITY_WEIGHT * compute_activity_concentration(
        events
    )
    return compress_score(blended)


def focus_label(score: float) -> str:
    """Human label for a focus score; empty for the no-events sentinel."""
    if score == 0:
        return ""
    for threshold, label in FOCUS_LABELS:
        if score >= threshold:
            return label
    return "Widely scattered"
