"""Tests for daylens.classify.services — strategies and LLM fallback."""

import asyncio
import json
from unittest.mock import AsyncMock, patch

from daylens.classify.models import ActivityType, EventSource, IntentType, RawActivityEvent
from daylens.classify.services import (
    LLMClassifier,
    RuleClassifier,
    build_classifier,
    classify_events,
    classify_events_rule_only,
    parse_classification_response,
)
from daylens.config import ClassificationConfig
from daylens.llm import LLMError
from daylens.models import SearchQuery

_LLM_CONFIG = ClassificationConfig(enabled=True, endpoint="http://llm.test", batch_size=2)


def _searches(n: int) -> list[SearchQuery]:
    return [SearchQuery(query=f"query number {i}", engine="google") for i in range(n)]


def _raw(n: int) -> list[RawActivityEvent]:
    return [
        RawActivityEvent(source=EventSource.SEARCH, text=f'"query number {i}" (google)')
        for i in range(n)
    ]


def _element(activity: str = "research", **overrides) -> dict:
    element = {
        "activityType": activity,
        "topics": ["vector databases"],
        "entities": ["Postgres"],
        "intent": "evaluate",
        "confidence": 0.9,
        "summary": "Comparing vector stores",
    }
    element.update(overrides)
    return element


class TestRuleOnly:
    def test_deterministic(self):
        first = classify_events_rule_only(searches=_searches(4))
        second = classify_events_rule_only(searches=_searches(4))
        assert first.events == second.events

    def test_counts(self):
        result = classify_events_rule_only(searches=_searches(3))
        assert result.total_processed == 3
        assert result.rule_classified == 3
        assert result.llm_classified == 0

    def test_empty(self):
        result = asyncio.run(classify_events())
        assert result.events == []
        assert result.total_processed == 0


class TestBuildClassifier:
    def test_disabled_uses_rules(self):
        assert isinstance(build_classifier(ClassificationConfig()), RuleClassifier)

    def test_none_uses_rules(self):
        assert isinstance(build_classifier(None), RuleClassifier)

    def test_enabled_uses_llm(self):
        assert isinstance(build_classifier(_LLM_CONFIG), LLMClassifier)


class TestParseClassificationResponse:
    def test_valid_array(self):
        batch = _raw(2)
        parsed = parse_classification_response(json.dumps([_element(), _element("writing")]), batch)
        assert parsed is not None
        assert [e.activity_type for e in parsed] == [ActivityType.RESEARCH, ActivityType.WRITING]
        assert parsed[0].intent == IntentType.EVALUATE
        assert parsed[0].timestamp == batch[0].timestamp

    def test_fenced_with_preamble(self):
        response = "Here you go:\n```json\n" + json.dumps([_element()]) + "\n```"
        assert parse_classification_response(response, _raw(1)) is not None

    def test_single_object_for_batch_of_one(self):
        parsed = parse_classification_response(json.dumps(_element()), _raw(1))
        assert parsed is not None and len(parsed) == 1

    def test_wrapper_object(self):
        response = json.dumps({"classifications": [_element(), _element()]})
        assert parse_classification_response(response, _raw(2)) is not None

    def test_too_few_elements(self):
        assert parse_classification_response(json.dumps([_element()]), _raw(2)) is None

    def test_any_invalid_element_rejects_batch(self):
        bad = {"activityType": "", "topics": [], "entities": []}
        assert parse_classification_response(json.dumps([_element(), bad]), _raw(2)) is None

    def test_missing_lists_rejected(self):
        bad = {"activityType": "research", "topics": "not a list", "entities": []}
        assert parse_classification_response(json.dumps([bad]), _raw(1)) is None

    def test_garbage(self):
        assert parse_classification_response("I cannot help with that", _raw(1)) is None

    def test_unknown_values_and_clamping(self):
        element = _element("daydreaming", intent="wander", confidence=1.7)
        [event] = parse_classification_response(json.dumps([element]), _raw(1))
        assert event.activity_type == ActivityType.UNKNOWN
        assert event.intent == IntentType.UNKNOWN
        assert event.confidence == 1.0

    def test_non_finite_confidence_defaults(self):
        response = '[{"activityType": "research", "topics": [], "entities": [], "confidence": NaN}]'
        [event] = parse_classification_response(response, _raw(1))
        assert event.confidence == 0.5

    def test_missing_confidence_defaults(self):
        element = _element()
        del element["confidence"]
        [event] = parse_classification_response(json.dumps([element]), _raw(1))
        assert event.confidence == 0.5

    def test_limits_applied(self):
        element = _element(
            topics=["a", "b", "c", "d"],
            entities=["1", "2", "3", "4", "5", "6"],
            summary="s" * 300,
        )
        [event] = parse_classification_response(json.dumps([element]), _raw(1))
        assert event.topics == ["a", "b", "c"]
        assert len(event.entities) == 5
        assert len(event.summary) == 120


class TestLLMClassification:
    @patch("daylens.classify.services.call_llm", new_callable=AsyncMock)
    def test_all_batches_succeed(self, mock_llm):
        mock_llm.side_effect = [
            json.dumps([_element(), _element()]),
            json.dumps([_element("writing")]),
        ]
        result = asyncio.run(classify_events(searches=_searches(3), config=_LLM_CONFIG))

        assert mock_llm.await_count == 2
        assert result.llm_classified == 3
        assert result.rule_classified == 0
        assert result.events[2].activity_type == ActivityType.WRITING

    @patch("daylens.classify.services.call_llm", new_callable=AsyncMock)
    def test_failed_batch_falls_back_alone(self, mock_llm):
        mock_llm.side_effect = [
            json.dumps([_element(), _element()]),
            LLMError("connection refused"),
        ]
        result = asyncio.run(classify_events(searches=_searches(3), config=_LLM_CONFIG))

        assert result.llm_classified == 2
        assert result.rule_classified == 1
        assert result.total_processed == 3
        assert result.events[0].confidence == 0.9
        assert result.events[2].confidence == 0.3

    @patch("daylens.classify.services.call_llm", new_callable=AsyncMock)
    def test_invalid_element_falls_back_for_batch(self, mock_llm):
        mock_llm.side_effect = [
            json.dumps([_element(), {"activityType": "research"}]),
            json.dumps([_element()]),
        ]
        result = asyncio.run(classify_events(searches=_searches(3), config=_LLM_CONFIG))

        assert result.rule_classified == 2
        assert result.llm_classified == 1
        assert [e.confidence for e in result.events] == [0.3, 0.3, 0.9]

    @patch("daylens.classify.services.call_llm", new_callable=AsyncMock)
    def test_order_preserved(self, mock_llm):
        mock_llm.side_effect = LLMError("down")
        searches = _searches(5)
        result = asyncio.run(classify_events(searches=searches, config=_LLM_CONFIG))

        assert [e.summary for e in result.events] == [f'"{s.query}" (google)' for s in searches]
        assert result.llm_classified + result.rule_classified == result.total_processed

    @patch("daylens.classify.services.call_llm", new_callable=AsyncMock)
    def test_passes_config_to_transport(self, mock_llm):
        mock_llm.return_value = json.dumps([_element()])
        asyncio.run(classify_events(searches=_searches(1), config=_LLM_CONFIG))

        kwargs = mock_llm.call_args.kwargs
        assert kwargs["provider"] == "local"
        assert kwargs["endpoint"] == "http://llm.test"
        assert kwargs["timeout"] == 60

    @patch("daylens.classify.services.call_llm", new_callable=AsyncMock)
    def test_disabled_never_calls_llm(self, mock_llm):
        asyncio.run(classify_events(searches=_searches(2), config=ClassificationConfig()))
        mock_llm.assert_not_awaited()

    @patch("daylens.classify.services.call_llm", new_callable=AsyncMock)
    def test_oversized_integer_reply_falls_back(self, mock_llm):
        huge = "1" + "0" * 5000
        mock_llm.return_value = (
            '[{"activityType": "research", "topics": [], "entities": [], "confidence": ' + huge + "}]"
        )
        result = asyncio.run(classify_events(searches=_searches(1), config=_LLM_CONFIG))

        assert result.rule_classified == 1
        assert result.llm_classified == 0
        assert result.events[0].confidence == 0.3

    @patch("daylens.classify.services.call_llm", new_callable=AsyncMock)
    def test_deeply_nested_reply_falls_back(self, mock_llm):
        mock_llm.return_value = "[" * 100_000 + "]" * 100_000
        result = asyncio.run(classify_events(searches=_searches(2), config=_LLM_CONFIG))

        assert result.rule_classified == 2
        assert result.llm_classified == 0

    @patch("daylens.classify.services.call_llm", new_callable=AsyncMock)
    def test_confidence_too_large_for_float_defaults(self, mock_llm):
        huge = "1" + "0" * 400
        mock_llm.return_value = (
            '[{"activityType": "research", "topics": [], "entities": [], "confidence": ' + huge + "}]"
        )
        result = asyncio.run(classify_events(searches=_searches(1), config=_LLM_CONFIG))

        assert result.llm_classified == 1
        assert result.events[0].activity_type == ActivityType.RESEARCH
        assert result.events[0].confidence == 0.5
