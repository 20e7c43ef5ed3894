"""Patterns domain — temporal clusters, co-occurrence graph and focus score.

Public API re-exports for the pattern extraction domain.
"""

from daylens.patterns.cooccurrence import (
    ENTITY_BEARING_CATEGORIES,
    extract_entity_relations,
    extract_topic_cooccurrences,
)
from daylens.patterns.focus import compress_score, compute_focus_score, focus_label
from daylens.patterns.models import (
    ActivityTypeCount,
    EntityRelation,
    PatternAnalysis,
    PeakHour,
    TemporalCluster,
    TopicCooccurrence,
)
from daylens.patterns.services import extract_patterns
from daylens.patterns.temporal import extract_temporal_clusters
from daylens.patterns.topics import clean_topic, filter_cluster_topics, filter_event_topics

__all__ = [
    # models
    "ActivityTypeCount",
    "EntityRelation",
    "PatternAnalysis",
    "PeakHour",
    "TemporalCluster",
    "TopicCooccurrence",
    # analyses
    "ENTITY_BEARING_CATEGORIES",
    "clean_topic",
    "compress_score",
    "compute_focus_score",
    "extract_entity_relations",
    "extract_patterns",
    "extract_temporal_clusters",
    "extract_topic_cooccurrences",
    "filter_cluster_topics",
    "filter_event_topics",
    "focus_label",
]
