"""Task sessions: AI-assistant conversations and search missions.

Conversations are grouped by their transcript file, the strongest session
boundary available. Search queries are chained into missions when they
follow each other closely and keep to the opener's subject.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from datetime import timedelta

from daylens.classify.models import AssistantTaskType
from daylens.classify.rules import classify_assistant_task_type, leading_words, match_topic_vocabulary
from daylens.models import AssistantSession, BrowserVisit, SearchQuery, TimeRange
from daylens.sessions.models import (
    AssistantTaskSession,
    InteractionMode,
    SearchIntent,
    SearchMission,
)
from daylens.timestamps import sort_key, to_local

logger = logging.getLogger(__name__)

MAX_TITLE_CHARS = 80
DEEP_LEARNING_MIN_TURNS = 5
DEFAULT_MISSION_WINDOW_MINUTES = 10

# ---------------------------------------------------------------------------
# Assistant task sessions
# ---------------------------------------------------------------------------

_FIRST_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+|\n")
_QUESTION_PREFIX_RE = re.compile(
    r"^(what\s+is|what\s+are|how\s+does|how\s+do\s+i|how\s+do\s+you|how\s+to"
    r"|why\s+does|why\s+is|can\s+you|could\s+you|please)\s+",
    re.IGNORECASE,
)
_IMPERATIVE_PREFIX_RE = re.compile(
    r"^(fix|implement|add|create|build|write|update|refactor|debug|explain|review"
    r"|help\s+me\s+with|help\s+me)\s+",
    re.IGNORECASE,
)

_EXPLORATION_TASKS = frozenset({AssistantTaskType.LEARNING, AssistantTaskType.ARCHITECTURE})


def extract_task_title(prompt: str) -> str:
    """Short title from an opener prompt.

    Takes the first sentence or line, drops a leading question phrase or
    imperative verb and caps the result at 80 characters.
    """
    stripped = prompt.strip()
    sentence = _FIRST_SENTENCE_RE.split(stripped, maxsplit=1)[0]
    title = _QUESTION_PREFIX_RE.sub("", sentence)
    title = _IMPERATIVE_PREFIX_RE.sub("", title)
    title = title.rstrip(" .!?")
    if not title:
        title = sentence
    title = title[:MAX_TITLE_CHARS].rstrip()
    return title[:1].upper() + title[1:]


def extract_topic_cluster(text: str) -> str:
    """Vocabulary topic of a prompt, else its first three words, else ``general``."""
    label = match_topic_vocabulary(text)
    if label:
        return label
    words = leading_words(text)
    return " ".join(words) if words else "general"


def interaction_mode(task_type: AssistantTaskType) -> InteractionMode:
    if task_type in _EXPLORATION_TASKS:
        return InteractionMode.EXPLORATION
    return InteractionMode.ACCELERATION


def group_assistant_sessions_into_tasks(
    sessions: Iterable[AssistantSession],
) -> list[AssistantTaskSession]:
    """Group prompts by conversation file into task sessions, most recent first."""
    by_file: dict[str, list[AssistantSession]] = {}
    for session in sessions:
        by_file.setdefault(session.conversation_file or "unknown", []).append(session)

    tasks: list[AssistantTaskSession] = []
    for conversation_file, prompts in by_file.items():
        ordered = sorted(prompts, key=lambda s: sort_key(s.time))
        opener = next((s for s in ordered if s.is_conversation_opener), ordered[0])

        task_type = classify_assistant_task_type(opener.prompt)
        mode = interaction_mode(task_type)
        turn_count = opener.conversation_turn_count or len(ordered)

        tasks.append(
            AssistantTaskSession(
                task_title=extract_task_title(opener.prompt),
                task_type=task_type,
                topic_cluster=extract_topic_cluster(opener.prompt),
                prompts=ordered,
                time_range=TimeRange.spanning(s.time for s in ordered),
                project=opener.project,
                conversation_file=conversation_file,
                turn_count=turn_count,
                interaction_mode=mode,
                is_deep_learning=(
                    mode == InteractionMode.EXPLORATION and turn_count >= DEEP_LEARNING_MIN_TURNS
                ),
            )
        )

    tasks.sort(key=lambda t: sort_key(t.time_range.start), reverse=True)
    return tasks


# ---------------------------------------------------------------------------
# Search missions
# ---------------------------------------------------------------------------

_NAV_QUERY_RE = re.compile(
    r"\b(site:|docs|github|npm|official|login|sign\s+in|download)\b", re.IGNORECASE
)
_INFO_QUERY_RE = re.compile(
    r"^(how|what|why|when|where|who|which|can|is|does|difference\s+between|vs\.?|versus|explain)",
    re.IGNORECASE,
)

QUERY_STOPWORDS: frozenset[str] = frozenset(
    {
        "the", "and", "for", "are", "but", "not", "you", "all", "can",
        "was", "will", "had", "has", "is", "it", "its", "of", "to",
        "in", "on", "at", "an", "a", "be", "do",
    }
)

_QUERY_PUNCT_RE = re.compile(r"[^\w\s]")


def classify_search_intent(query: str) -> SearchIntent:
    if _NAV_QUERY_RE.search(query):
        return SearchIntent.NAVIGATIONAL
    if _INFO_QUERY_RE.match(query):
        return SearchIntent.INFORMATIONAL
    return SearchIntent.TRANSACTIONAL


def query_content_words(query: str) -> set[str]:
    """Lowercased words of three or more characters, stopwords removed."""
    return {
        w
        for w in _QUERY_PUNCT_RE.sub(" ", query.lower()).split()
        if len(w) > 2 and w not in QUERY_STOPWORDS
    }


def _chains(
    earlier: SearchQuery, later: SearchQuery, opener_words: set[str], window: timedelta
) -> bool:
    # Queries without a time never chain.
    if earlier.time is None or later.time is None:
        return False
    if to_local(later.time) - to_local(earlier.time) > window:
        return False
    return bool(opener_words & query_content_words(later.query))


def detect_search_missions(
    searches: Iterable[SearchQuery],
    visits: Iterable[BrowserVisit] = (),
    window_minutes: int = DEFAULT_MISSION_WINDOW_MINUTES,
) -> list[SearchMission]:
    """Chain consecutive related queries into search missions.

    A query joins the current chain when it follows the previous query by
    at most *window_minutes* and shares a content word with the chain's
    first query. Visits between the first query and the last query plus
    the window are attached. Single-query missions are kept.
    """
    ordered = sorted(searches, key=lambda q: sort_key(q.time))
    all_visits = list(visits)
    window = timedelta(minutes=window_minutes)
    missions: list[SearchMission] = []

    start = 0
    while start < len(ordered):
        opener = ordered[start]
        opener_words = query_content_words(opener.query)
        end = start
        while end + 1 < len(ordered) and _chains(ordered[end], ordered[end + 1], opener_words, window):
            end += 1

        chain = ordered[start : end + 1]
        first_time = chain[0].time
        last_time = chain[-1].time
        mission_visits: list[BrowserVisit] = []
        if first_time is not None and last_time is not None:
            lower = to_local(first_time)
            upper = to_local(last_time) + window
            mission_visits = [
                v for v in all_visits if v.time is not None and lower <= to_local(v.time) <= upper
            ]

        missions.append(
            SearchMission(
                label=opener.query,
                queries=chain,
                visits=mission_visits,
                time_range=TimeRange(start=first_time, end=last_time),
                intent_type=classify_search_intent(opener.query),
            )
        )
        start = end + 1

    logger.debug("Detected %d search missions from %d queries", len(missions), len(ordered))
    return missions
