"""Deterministic rule-based classification.

Every table here is an ordered sequence of ``(pattern, result)`` pairs
evaluated first-match-wins. Tables are module constants, built once and
never mutated, so concurrent callers can share them.
"""

from __future__ import annotations

import re

from daylens.classify.models import (
    MAX_ENTITIES,
    MAX_SUMMARY_CHARS,
    RULE_CONFIDENCE,
    ActivityType,
    AssistantTaskType,
    EventSource,
    IntentType,
    RawActivityEvent,
    StructuredEvent,
)

# ---------------------------------------------------------------------------
# Entity extraction tables
# ---------------------------------------------------------------------------

# Domains whose page titles only ever yield noise (maps, travel, mail, shopping).
ENTITY_EXTRACTION_SKIP_DOMAINS: frozenset[str] = frozenset(
    {
        "google.com",
        "maps.google.com",
        "maps.apple.com",
        "airbnb.com",
        "booking.com",
        "vrbo.com",
        "expedia.com",
        "tripadvisor.com",
        "mail.google.com",
        "outlook.live.com",
        "outlook.office.com",
        "mail.yahoo.com",
        "amazon.com",
        "adobe.com",
        "app.hubspot.com",
        "app.salesforce.com",
    }
)

# Capitalized words that pass the length check but carry no specificity.
ENTITY_STOPWORDS: frozenset[str] = frozenset(
    {
        # Common English
        "The", "This", "That", "How", "What", "Why", "When",
        "From", "With", "Here", "There", "Your", "About", "After", "Before",
        "Into", "Over", "Just", "Also", "More", "Some", "Such", "Each",
        # Imperative commit verbs
        "Fix", "Add", "Remove", "Update", "Refactor", "Revert", "Merge", "Bump",
        "Move", "Rename", "Delete", "Change", "Enable", "Disable", "Clean",
        "Init", "Create", "Build", "Test", "Deploy", "Release", "Improve",
        "Handle", "Pull", "Push", "Commit", "Branch", "Issue", "Draft",
        "Review", "Resolve", "Conflict", "Sync",
        # Mail / notification chrome
        "Inbox", "Unread", "Reply", "Forward", "Sent", "Subject", "Thread",
        "Notification", "Alert",
        # Navigation / UI chrome
        "Home", "Settings", "Profile", "Dashboard", "Overview", "Summary",
        "Details", "Results", "Loading", "Untitled",
        # Generic tech acronyms
        "HTML", "CSS", "API", "URL", "SDK", "CLI", "GUI", "IDE",
    }
)

_CAPITALIZED_WORD_RE = re.compile(r"\b[A-Z][a-zA-Z0-9]+(?:\.[a-zA-Z]+)?\b")
_KEBAB_TOOL_RE = re.compile(r"\b[a-z]+-[a-z]+(?:-[a-z]+)?\b")
_TLD_RE = re.compile(r"\.\w{2,4}$")

# ---------------------------------------------------------------------------
# Activity and intent tables
# ---------------------------------------------------------------------------

CATEGORY_TO_ACTIVITY: dict[str, ActivityType] = {
    "dev": ActivityType.IMPLEMENTATION,
    "work": ActivityType.ADMIN,
    "research": ActivityType.RESEARCH,
    "news": ActivityType.BROWSING,
    "social": ActivityType.COMMUNICATION,
    "media": ActivityType.BROWSING,
    "shopping": ActivityType.BROWSING,
    "finance": ActivityType.ADMIN,
    "ai_tools": ActivityType.IMPLEMENTATION,
    "personal": ActivityType.BROWSING,
    "education": ActivityType.LEARNING,
    "gaming": ActivityType.BROWSING,
    "writing": ActivityType.WRITING,
    "pkm": ActivityType.WRITING,
    "other": ActivityType.UNKNOWN,
}

_I = re.IGNORECASE

# Applied to the first 200 chars of an assistant prompt.
ASSISTANT_TASK_PATTERNS: tuple[tuple[re.Pattern[str], AssistantTaskType], ...] = (
    (
        re.compile(r"\b(fix|debug|why\s+(does|is|isn'?t)|not\s+work|error|crash|bug|broken|fail)\b", _I),
        AssistantTaskType.DEBUGGING,
    ),
    (
        re.compile(r"\b(review|check|audit|is\s+this\s+(correct|right|good)|critique|look\s+at)\b", _I),
        AssistantTaskType.REVIEW,
    ),
    (
        re.compile(
            r"\b(explain|describe|what\s+is|what\s+are|how\s+does|help\s+me\s+understand|teach|clarify)\b",
            _I,
        ),
        AssistantTaskType.LEARNING,
    ),
    (
        re.compile(
            r"\b(design|plan|should\s+i|what\s+approach|architecture|structure"
            r"|how\s+should\s+i\s+(design|structure|organize))\b",
            _I,
        ),
        AssistantTaskType.ARCHITECTURE,
    ),
    (
        re.compile(r"\b(add|build|create|implement|write|refactor|update|generate|set\s+up|migrate)\b", _I),
        AssistantTaskType.IMPLEMENTATION,
    ),
)

_ASSISTANT_TASK_CHARS = 200

TASK_TYPE_TO_ACTIVITY: dict[AssistantTaskType, ActivityType] = {
    AssistantTaskType.IMPLEMENTATION: ActivityType.IMPLEMENTATION,
    AssistantTaskType.DEBUGGING: ActivityType.DEBUGGING,
    AssistantTaskType.REVIEW: ActivityType.IMPLEMENTATION,
    AssistantTaskType.LEARNING: ActivityType.LEARNING,
    AssistantTaskType.ARCHITECTURE: ActivityType.PLANNING,
}

# Topic clusters for assistant prompts, first match wins.
ASSISTANT_TOPIC_VOCABULARY: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\b(oauth|auth|jwt|token|session|login|password|credential|permission|role|access)\b", _I), "authentication"),
    (re.compile(r"\b(react|vue|angular|svelte|next\.?js|remix|component|hook|state|props|jsx|tsx)\b", _I), "frontend"),
    (re.compile(r"\b(api|rest|graphql|endpoint|route|http|request|response|fetch|axios|webhook)\b", _I), "api-design"),
    (re.compile(r"\b(docker|kubernetes|k8s|terraform|aws|cloud|deploy|ci|cd|pipeline|helm|ecs)\b", _I), "infrastructure"),
    (re.compile(r"\b(test|spec|mock|vitest|jest|coverage|unit|integration|e2e|assert|expect)\b", _I), "testing"),
    (re.compile(r"\b(sql|database|postgres|mysql|sqlite|query|schema|migration|index|orm|prisma)\b", _I), "database"),
    (re.compile(r"\b(typescript|type|interface|generic|infer|narrowing|zod|validation)\b", _I), "typescript"),
    (re.compile(r"\b(performance|optimize|slow|latency|memory|cache|cdn|bundle|profil)\b", _I), "performance"),
    (re.compile(r"\b(security|vuln|xss|csrf|injection|sanitize|escape|encrypt|hash)\b", _I), "security"),
    (re.compile(r"\b(git|commit|branch|merge|rebase|conflict|pr|pull\s+request|review)\b", _I), "version-control"),
    (re.compile(r"\b(algorithm|data\s+structure|complexity|sort|search|tree|graph|dynamic\s+programming)\b", _I), "algorithms"),
    (re.compile(r"\b(machine\s+learning|llm|ai|model|embedding|vector|neural|gpt|claude|anthropic)\b", _I), "ai-ml"),
    (re.compile(r"\b(refactor|clean|solid|pattern|architecture|design|monolith|microservice|domain)\b", _I), "software-design"),
    (re.compile(r"\b(error|exception|crash|stack\s+trace|debug|log|monitor|alert|incident)\b", _I), "debugging"),
    (re.compile(r"\b(doc|readme|comment|jsdoc|api\s+spec|openapi|swagger|markdown)\b", _I), "documentation"),
)

SEARCH_INTENT_PATTERNS: tuple[tuple[re.Pattern[str], IntentType], ...] = (
    (re.compile(r"\bvs\b|\bcompare\b|\bdifference\b|\bversus\b|\balternative", _I), IntentType.COMPARE),
    (re.compile(r"\bhow\s+to\b|\bexample\b|\btutorial\b|\bguide\b", _I), IntentType.IMPLEMENT),
    (re.compile(r"\bbest\b|\breview\b|\brecommend\b|\bpros\b|\bcons\b", _I), IntentType.EVALUATE),
    (re.compile(r"\bwhat\s+is\b|\bwho\s+is\b|\bdefin", _I), IntentType.READ),
    (re.compile(r"\berror\b|\bfix\b|\bdebug\b|\bnot\s+work", _I), IntentType.TROUBLESHOOT),
    (re.compile(r"\bconfig\b|\bsetup\b|\binstall\b|\benable\b|\bconfigure\b", _I), IntentType.CONFIGURE),
)

_NON_WORD_RE = re.compile(r"[^\w\s-]")


# ---------------------------------------------------------------------------
# Rule functions
# ---------------------------------------------------------------------------


def leading_words(text: str, limit: int = 3) -> list[str]:
    """First *limit* words longer than three characters, punctuation dropped."""
    words = [w for w in _NON_WORD_RE.sub(" ", text).split() if len(w) > 3]
    return words[:limit]


def _leading_words_topic(text: str) -> list[str]:
    words = leading_words(text)
    return [" ".join(words)] if words else []


def classify_assistant_task_type(prompt: str) -> AssistantTaskType:
    """Classify an assistant prompt by its verbs. Defaults to implementation."""
    text = prompt[:_ASSISTANT_TASK_CHARS]
    for pattern, task_type in ASSISTANT_TASK_PATTERNS:
        if pattern.search(text):
            return task_type
    return AssistantTaskType.IMPLEMENTATION


def match_topic_vocabulary(text: str) -> str | None:
    """Return the first vocabulary label matching *text*, if any."""
    for pattern, label in ASSISTANT_TOPIC_VOCABULARY:
        if pattern.search(text):
            return label
    return None


def extract_assistant_topics(text: str) -> list[str]:
    """Vocabulary topic for a prompt, falling back to its leading words."""
    label = match_topic_vocabulary(text)
    if label:
        return [label]
    return _leading_words_topic(text)


def infer_intent(text: str, source: EventSource) -> IntentType:
    if source in (EventSource.SEARCH, EventSource.BROWSER):
        for pattern, intent in SEARCH_INTENT_PATTERNS:
            if pattern.search(text):
                return intent
    if source in (EventSource.AI_ASSISTANT, EventSource.COMMIT):
        return IntentType.IMPLEMENT
    return IntentType.EXPLORE


def extract_entities(text: str, domain: str | None = None) -> list[str]:
    """Extract tool, library and company names from event text.

    Uses the site name for browser events, capitalized words outside
    ``ENTITY_STOPWORDS`` and kebab-case tool names. Noisy domains yield
    nothing. At most five entities are returned.
    """
    if domain and domain in ENTITY_EXTRACTION_SKIP_DOMAINS:
        return []

    entities: list[str] = []

    if domain:
        base = _TLD_RE.sub("", domain).split(".")[-1]
        if len(base) > 2:
            entities.append(base[0].upper() + base[1:])

    for word in _CAPITALIZED_WORD_RE.findall(text):
        if len(word) > 2 and word not in ENTITY_STOPWORDS and word not in entities:
            entities.append(word)

    for tool in _KEBAB_TOOL_RE.findall(text):
        if len(tool) > 4 and tool not in entities:
            entities.append(tool)

    return entities[:MAX_ENTITIES]


def rule_classify(event: RawActivityEvent) -> StructuredEvent:
    """Classify one event with the rule tables. Deterministic."""
    if event.source == EventSource.BROWSER:
        activity = CATEGORY_TO_ACTIVITY.get(event.category or "other", ActivityType.UNKNOWN)
        topics = _leading_words_topic(event.text)
    elif event.source == EventSource.SEARCH:
        activity = ActivityType.RESEARCH
        topics = _leading_words_topic(event.text)
    elif event.source == EventSource.AI_ASSISTANT:
        activity = TASK_TYPE_TO_ACTIVITY[classify_assistant_task_type(event.text)]
        topics = extract_assistant_topics(event.text)
    else:
        activity = ActivityType.IMPLEMENTATION
        topics = _leading_words_topic(event.text)

    return StructuredEvent(
        timestamp=event.timestamp,
        source=event.source,
        activity_type=activity,
        topics=topics,
        entities=extract_entities(event.text, event.metadata.get("domain")),
        intent=infer_intent(event.text, event.source),
        confidence=RULE_CONFIDENCE,
        category=event.category,
        summary=event.text[:MAX_SUMMARY_CHARS],
    )
