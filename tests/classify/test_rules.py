"""Tests for daylens.classify.rules — the deterministic rule classifier."""

from daylens.classify.models import (
    ActivityType,
    AssistantTaskType,
    EventSource,
    IntentType,
    RawActivityEvent,
)
from daylens.classify.rules import (
    classify_assistant_task_type,
    extract_assistant_topics,
    extract_entities,
    infer_intent,
    leading_words,
    rule_classify,
)


def _raw(source: EventSource, text: str, **kwargs) -> RawActivityEvent:
    defaults = dict(timestamp="2026-03-10T09:00:00", source=source, text=text)
    defaults.update(kwargs)
    return RawActivityEvent(**defaults)


class TestAssistantTaskType:
    """Ordered decision tree over assistant prompts."""

    def test_debugging(self):
        assert classify_assistant_task_type("Why does my build fail on CI?") == AssistantTaskType.DEBUGGING

    def test_review(self):
        assert classify_assistant_task_type("Review this pull request") == AssistantTaskType.REVIEW

    def test_learning(self):
        assert classify_assistant_task_type("Explain how closures work") == AssistantTaskType.LEARNING

    def test_architecture(self):
        assert classify_assistant_task_type("Design the storage layer") == AssistantTaskType.ARCHITECTURE

    def test_implementation(self):
        assert (
            classify_assistant_task_type("Add pagination to the list view")
            == AssistantTaskType.IMPLEMENTATION
        )

    def test_default_is_implementation(self):
        assert classify_assistant_task_type("hello there") == AssistantTaskType.IMPLEMENTATION

    def test_debugging_wins_over_later_rules(self):
        # "fix" (debugging) and "add" (implementation) both match; order decides
        assert classify_assistant_task_type("Fix and add logging") == AssistantTaskType.DEBUGGING

    def test_only_first_200_chars_considered(self):
        prompt = "a " * 150 + "fix the crash"
        assert classify_assistant_task_type(prompt) == AssistantTaskType.IMPLEMENTATION


class TestTopics:
    def test_vocabulary_match(self):
        assert extract_assistant_topics("Set up OAuth login for the dashboard") == ["authentication"]

    def test_vocabulary_first_match_wins(self):
        # Both "jwt" (authentication) and "docker" (infrastructure) match
        assert extract_assistant_topics("Move jwt secrets into docker") == ["authentication"]

    def test_fallback_to_leading_words(self):
        assert extract_assistant_topics("Summarize quarterly numbers") == ["Summarize quarterly numbers"]

    def test_leading_words_skip_short_words(self):
        assert leading_words("how to use the great pydantic library well") == [
            "great",
            "pydantic",
            "library",
        ]

    def test_no_words_yields_no_topic(self):
        assert extract_assistant_topics("a b c") == []


class TestIntent:
    def test_compare(self):
        assert infer_intent("react vs vue", EventSource.SEARCH) == IntentType.COMPARE

    def test_implement_before_configure(self):
        assert infer_intent("how to install docker", EventSource.SEARCH) == IntentType.IMPLEMENT

    def test_troubleshoot(self):
        assert infer_intent("segfault error in loop", EventSource.BROWSER) == IntentType.TROUBLESHOOT

    def test_commit_and_assistant_implement(self):
        assert infer_intent("anything", EventSource.COMMIT) == IntentType.IMPLEMENT
        assert infer_intent("what is a monad", EventSource.AI_ASSISTANT) == IntentType.IMPLEMENT

    def test_default_explore(self):
        assert infer_intent("github.com - Home", EventSource.BROWSER) == IntentType.EXPLORE


class TestEntities:
    def test_domain_token(self):
        entities = extract_entities("github.com - Pull requests in daylens", "github.com")
        assert entities == ["Github"]

    def test_skip_domain_returns_nothing(self):
        assert extract_entities("amazon.com - Fancy Kettle", "amazon.com") == []

    def test_capitalized_and_kebab_case(self):
        entities = extract_entities("Using pydantic-settings with FastAPI")
        assert "FastAPI" in entities
        assert "pydantic-settings" in entities

    def test_stopwords_filtered(self):
        entities = extract_entities("Fix Update Review Postgres")
        assert entities == ["Postgres"]

    def test_capped_at_five(self):
        entities = extract_entities("Alpha Bravo Charlie Delta Echo Foxtrot Golf")
        assert len(entities) == 5

    def test_deduplicated(self):
        assert extract_entities("Redis then Redis again") == ["Redis"]


class TestRuleClassify:
    def test_browser_uses_category_table(self):
        event = _raw(
            EventSource.BROWSER,
            "github.com - Authentication middleware rewrite",
            category="dev",
            metadata={"domain": "github.com"},
        )
        result = rule_classify(event)
        assert result.activity_type == ActivityType.IMPLEMENTATION
        assert result.topics == ["github Authentication middleware"]
        assert result.confidence == 0.3
        assert result.summary == event.text
        assert result.category == "dev"

    def test_unmapped_category_is_unknown(self):
        event = _raw(EventSource.BROWSER, "example.org - Stuff", category="not-a-category")
        assert rule_classify(event).activity_type == ActivityType.UNKNOWN

    def test_missing_category_is_unknown(self):
        event = _raw(EventSource.BROWSER, "example.org - Stuff")
        assert rule_classify(event).activity_type == ActivityType.UNKNOWN

    def test_search_is_research(self):
        event = _raw(EventSource.SEARCH, '"python asyncio timeout" (google)')
        assert rule_classify(event).activity_type == ActivityType.RESEARCH

    def test_commit_is_implementation(self):
        event = _raw(EventSource.COMMIT, "daylens: fix parser (+3/-1)")
        result = rule_classify(event)
        assert result.activity_type == ActivityType.IMPLEMENTATION
        assert result.intent == IntentType.IMPLEMENT

    def test_assistant_task_type_mapping(self):
        debugging = rule_classify(_raw(EventSource.AI_ASSISTANT, "Fix the crash in the parser"))
        planning = rule_classify(_raw(EventSource.AI_ASSISTANT, "Design the storage layer"))
        review = rule_classify(_raw(EventSource.AI_ASSISTANT, "Review this pull request"))
        assert debugging.activity_type == ActivityType.DEBUGGING
        assert planning.activity_type == ActivityType.PLANNING
        assert review.activity_type == ActivityType.IMPLEMENTATION

    def test_summary_truncated(self):
        result = rule_classify(_raw(EventSource.AI_ASSISTANT, "word " * 60))
        assert len(result.summary) == 120

    def test_limits_hold(self):
        event = _raw(
            EventSource.BROWSER,
            "example.org - Alpha Bravo Charlie Delta Echo Foxtrot Golf Hotel",
            category="research",
            metadata={"domain": "example.org"},
        )
        result = rule_classify(event)
        assert len(result.topics) <= 3
        assert len(result.entities) <= 5
        assert 0.0 <= result.confidence <= 1.0
