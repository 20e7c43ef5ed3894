"""Classification services — rule and LLM-assisted classifiers.

Two strategies share one interface. ``RuleClassifier`` is deterministic and
always available. ``LLMClassifier`` sends batches to a model and falls back
to the rules for any batch whose call or response is unusable, so a run
always ends fully classified regardless of model availability.
"""

from __future__ import annotations

import logging
import math
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from daylens.classify.models import (
    MAX_ENTITIES,
    MAX_SUMMARY_CHARS,
    MAX_TOPICS,
    ActivityType,
    ClassificationResult,
    IntentType,
    RawActivityEvent,
    StructuredEvent,
)
from daylens.classify.normalize import normalize_events
from daylens.classify.prompts import CLASSIFICATION_SYSTEM_PROMPT, build_classification_prompt
from daylens.classify.rules import rule_classify
from daylens.config import ClassificationConfig
from daylens.llm import LLMError, call_llm, parse_json_response
from daylens.models import AssistantSession, BrowserVisit, GitCommit, SearchQuery

logger = logging.getLogger(__name__)

_DEFAULT_LLM_CONFIDENCE = 0.5
_MAX_RESPONSE_TOKENS = 1500


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 1)


class EventClassifier(ABC):
    """Base class for event classification strategies."""

    @abstractmethod
    async def classify(self, events: list[RawActivityEvent]) -> ClassificationResult:
        """Classify *events*, preserving their order."""


class RuleClassifier(EventClassifier):
    """Pure rule-based classification. No I/O."""

    def classify_sync(self, events: list[RawActivityEvent]) -> ClassificationResult:
        start = time.perf_counter()
        structured = [rule_classify(e) for e in events]
        return ClassificationResult(
            events=structured,
            total_processed=len(events),
            llm_classified=0,
            rule_classified=len(events),
            processing_time_ms=_elapsed_ms(start),
        )

    async def classify(self, events: list[RawActivityEvent]) -> ClassificationResult:
        return self.classify_sync(events)


# ---------------------------------------------------------------------------
# LLM response handling
# ---------------------------------------------------------------------------


def _is_valid_classification(raw: Any) -> bool:
    if not isinstance(raw, dict):
        return False
    activity = raw.get("activityType")
    if not isinstance(activity, str) or not activity:
        return False
    return isinstance(raw.get("topics"), list) and isinstance(raw.get("entities"), list)


def _unwrap_elements(parsed: Any) -> list[Any] | None:
    """Coerce a decoded response into a list of classification candidates.

    Accepts a bare array, a single classification object (one-item
    batches), or a JSON-mode wrapper object holding one array.
    """
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        if "activityType" in parsed:
            return [parsed]
        lists = [v for v in parsed.values() if isinstance(v, list)]
        if len(lists) == 1:
            return lists[0]
    return None


def _to_structured(raw_event: RawActivityEvent, data: dict[str, Any]) -> StructuredEvent:
    try:
        activity = ActivityType(data["activityType"])
    except ValueError:
        activity = ActivityType.UNKNOWN
    try:
        intent = IntentType(data.get("intent"))
    except ValueError:
        intent = IntentType.UNKNOWN

    confidence = data.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        confidence = _DEFAULT_LLM_CONFIDENCE
    try:
        confidence = float(confidence)
    except OverflowError:
        confidence = _DEFAULT_LLM_CONFIDENCE
    if not math.isfinite(confidence):
        confidence = _DEFAULT_LLM_CONFIDENCE
    confidence = max(0.0, min(1.0, confidence))

    summary = data.get("summary") or raw_event.text
    return StructuredEvent(
        timestamp=raw_event.timestamp,
        source=raw_event.source,
        activity_type=activity,
        topics=[str(t) for t in data["topics"][:MAX_TOPICS]],
        entities=[str(e) for e in data["entities"][:MAX_ENTITIES]],
        intent=intent,
        confidence=confidence,
        category=raw_event.category,
        summary=str(summary)[:MAX_SUMMARY_CHARS],
    )


def parse_classification_response(
    response: str, batch: list[RawActivityEvent]
) -> list[StructuredEvent] | None:
    """Map an LLM reply onto *batch*.

    Returns ``None`` when the reply cannot be used for the whole batch:
    unparseable JSON, too few elements, or any element failing validation.
    """
    elements = _unwrap_elements(parse_json_response(response))
    if elements is None:
        logger.debug("Classification response is not a JSON array: %.200s", response)
        return None
    if len(elements) < len(batch):
        logger.debug(
            "Classification response has %d elements for a batch of %d",
            len(elements),
            len(batch),
        )
        return None

    elements = elements[: len(batch)]
    if not all(_is_valid_classification(el) for el in elements):
        logger.debug("Classification response has invalid elements: %.200s", response)
        return None

    return [_to_structured(ev, el) for ev, el in zip(batch, elements)]


class LLMClassifier(EventClassifier):
    """Batch LLM classification with per-batch rule fallback."""

    def __init__(self, config: ClassificationConfig) -> None:
        self._config = config
        self._rules = RuleClassifier()

    async def _classify_batch(
        self, batch: list[RawActivityEvent], batch_start: int
    ) -> list[StructuredEvent] | None:
        prompt = build_classification_prompt(batch)
        try:
            response = await call_llm(
                CLASSIFICATION_SYSTEM_PROMPT,
                prompt,
                provider=self._config.provider,
                endpoint=self._config.endpoint,
                model=self._config.model,
                max_tokens=_MAX_RESPONSE_TOKENS,
                timeout=self._config.timeout,
                label=f"classification batch {batch_start}",
            )
        except LLMError as exc:
            logger.warning(
                "LLM classification failed for batch at %d, falling back to rules: %s",
                batch_start,
                exc,
            )
            return None

        classified = parse_classification_response(response, batch)
        if classified is None:
            logger.warning(
                "Malformed LLM classification for batch at %d (%d events), falling back to rules",
                batch_start,
                len(batch),
            )
        return classified

    async def classify(self, events: list[RawActivityEvent]) -> ClassificationResult:
        start = time.perf_counter()
        structured: list[StructuredEvent] = []
        llm_count = 0
        rule_count = 0
        size = self._config.batch_size

        for batch_start in range(0, len(events), size):
            batch = events[batch_start : batch_start + size]
            classified = await self._classify_batch(batch, batch_start)
            if classified is None:
                structured.extend(self._rules.classify_sync(batch).events)
                rule_count += len(batch)
            else:
                structured.extend(classified)
                llm_count += len(batch)

        if rule_count:
            logger.info(
                "Classified %d events (%d LLM, %d rule)",
                len(events),
                llm_count,
                rule_count,
            )

        return ClassificationResult(
            events=structured,
            total_processed=len(events),
            llm_classified=llm_count,
            rule_classified=rule_count,
            processing_time_ms=_elapsed_ms(start),
        )


def build_classifier(config: ClassificationConfig | None = None) -> EventClassifier:
    """Pick the classification strategy for *config*."""
    if config is not None and config.enabled:
        return LLMClassifier(config)
    return RuleClassifier()


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


async def classify_events(
    visits: Iterable[BrowserVisit] = (),
    searches: Iterable[SearchQuery] = (),
    sessions: Iterable[AssistantSession] = (),
    commits: Iterable[GitCommit] = (),
    config: ClassificationConfig | None = None,
) -> ClassificationResult:
    """Normalize and classify every record.

    Uses the LLM path when ``config.enabled`` is set; never raises because
    a model call or response failed.
    """
    raw_events = normalize_events(visits, searches, sessions, commits)
    if not raw_events:
        return ClassificationResult()
    return await build_classifier(config).classify(raw_events)


def classify_events_rule_only(
    visits: Iterable[BrowserVisit] = (),
    searches: Iterable[SearchQuery] = (),
    sessions: Iterable[AssistantSession] = (),
    commits: Iterable[GitCommit] = (),
) -> ClassificationResult:
    """Classify every record with the rules only. Synchronous."""
    raw_events = normalize_events(visits, searches, sessions, commits)
    return RuleClassifier().classify_sync(raw_events)
