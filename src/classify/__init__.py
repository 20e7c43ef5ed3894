"""Classification domain — raw activity records -> structured events.

Public API re-exports for the classification domain.
"""

from daylens.classify.models import (
    ActivityType,
    AssistantTaskType,
    ClassificationResult,
    EventSource,
    IntentType,
    RawActivityEvent,
    StructuredEvent,
)
from daylens.classify.normalize import normalize_events
from daylens.classify.rules import (
    ENTITY_EXTRACTION_SKIP_DOMAINS,
    ENTITY_STOPWORDS,
    classify_assistant_task_type,
    extract_assistant_topics,
    extract_entities,
    infer_intent,
    rule_classify,
)
from daylens.classify.services import (
    EventClassifier,
    LLMClassifier,
    RuleClassifier,
    build_classifier,
    classify_events,
    classify_events_rule_only,
    parse_classification_response,
)

__all__ = [
    # models
    "ActivityType",
    "AssistantTaskType",
    "ClassificationResult",
    "EventSource",
    "IntentType",
    "RawActivityEvent",
    "StructuredEvent",
    # normalization
    "normalize_events",
    # rules
    "ENTITY_EXTRACTION_SKIP_DOMAINS",
    "ENTITY_STOPWORDS",
    "classify_assistant_task_type",
    "extract_assistant_topics",
    "extract_entities",
    "infer_intent",
    "rule_classify",
    # strategies
    "EventClassifier",
    "LLMClassifier",
    "RuleClassifier",
    "build_classifier",
    "classify_events",
    "classify_events_rule_only",
    "parse_classification_response",
]
