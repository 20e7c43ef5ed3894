"""Topic hygiene for temporal clusters and the co-occurrence graph.

Low-confidence classifications often carry raw page-title or slug
fragments in their topics. These must not leak into rendered cluster
labels or topic connections, so every topic passes through
``filter_cluster_topics`` before clustering or co-occurrence counting.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from daylens.classify.models import StructuredEvent

# Pronouns, articles and demonstratives stripped from the front of a topic.
LEADING_NOISE: frozenset[str] = frozenset(
    {
        "the", "a", "an", "this", "that", "these", "those",
        "my", "our", "your", "his", "her", "its", "their",
        "some", "any", "all", "each", "every",
    }
)

STOPWORDS: frozenset[str] = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "from", "is", "are", "was", "were", "be", "been",
        "have", "has", "had", "do", "does", "did", "will", "would", "could",
        "should", "can", "may", "might", "shall", "must",
        "this", "that", "these", "those", "it", "its",
        "i", "we", "you", "he", "she", "they", "me", "us", "him", "her", "them",
        "my", "our", "your", "his", "their",
        "what", "which", "who", "whom", "where", "when", "how", "why",
        "not", "no", "so", "if", "then", "than", "just", "also", "very",
        "about", "up", "out", "into", "over", "after", "before",
        "some", "any", "all", "each", "every", "few", "more", "most",
        "other", "last", "first", "next", "new", "old", "same",
        "thing", "things", "stuff", "way", "lot",
    }
)

MAX_STOPWORD_RATIO = 0.5

_SLUG_CHARS_RE = re.compile(r"[/\\?=&]")
_STARTS_UPPER_RE = re.compile(r"^[A-Z]")
_MIXED_CASE_RE = re.compile(r"^[A-Z][a-z]")


def clean_topic(raw: str) -> str:
    """Strip leading noise words. May return an empty string."""
    words = raw.split()
    start = 0
    while start < len(words) and words[start].lower() in LEADING_NOISE:
        start += 1
    return " ".join(words[start:])


def stopword_ratio(topic: str) -> float:
    words = topic.lower().split()
    if not words:
        return 1.0
    return sum(1 for w in words if w in STOPWORDS) / len(words)


def _looks_like_proper_name(raw: str) -> bool:
    # "Some Company Name" is rejected, "OAuth PKCE" style acronym phrases are not.
    words = raw.split()
    return (
        len(words) >= 2
        and all(_STARTS_UPPER_RE.match(w) for w in words)
        and any(_MIXED_CASE_RE.match(w) for w in words)
    )


def filter_cluster_topics(topics: Iterable[str]) -> list[str]:
    """Drop topics that look like domains, names, slugs or filler; clean the rest."""
    result: list[str] = []
    for raw in topics:
        if "." in raw or _SLUG_CHARS_RE.search(raw) or _looks_like_proper_name(raw):
            continue
        cleaned = clean_topic(raw)
        if len(cleaned) < 2 or stopword_ratio(cleaned) >= MAX_STOPWORD_RATIO:
            continue
        result.append(cleaned)
    return result


def filter_event_topics(events: Sequence[StructuredEvent]) -> list[StructuredEvent]:
    """Copy of *events* with each event's topics run through ``filter_cluster_topics``."""
    return [
        e.model_copy(update={"topics": list(dict.fromkeys(filter_cluster_topics(e.topics)))})
        for e in events
    ]
