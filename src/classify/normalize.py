"""Normalize source records into ``RawActivityEvent`` objects."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from urllib.parse import urlparse

from daylens.classify.models import EventSource, RawActivityEvent
from daylens.models import AssistantSession, BrowserVisit, GitCommit, SearchQuery

_TITLE_CHARS = 80
_PROMPT_CHARS = 150

DEFAULT_CATEGORY = "other"


def _iso(ts: datetime | None) -> str:
    return ts.isoformat() if ts else ""


def visit_domain(visit: BrowserVisit) -> str:
    """Hostname of a visit without a leading ``www.``."""
    host = ""
    try:
        host = urlparse(visit.url).hostname or ""
    except ValueError:
        host = ""
    if not host:
        host = visit.domain.lower()
    return host.removeprefix("www.")


def normalize_browser_visits(visits: Iterable[BrowserVisit]) -> list[RawActivityEvent]:
    events: list[RawActivityEvent] = []
    for v in visits:
        domain = visit_domain(v)
        title = (v.title or "")[:_TITLE_CHARS]
        events.append(
            RawActivityEvent(
                timestamp=_iso(v.time),
                source=EventSource.BROWSER,
                text=f"{domain} - {title}",
                category=v.category or DEFAULT_CATEGORY,
                metadata={"domain": domain},
            )
        )
    return events


def normalize_search_queries(searches: Iterable[SearchQuery]) -> list[RawActivityEvent]:
    return [
        RawActivityEvent(
            timestamp=_iso(s.time),
            source=EventSource.SEARCH,
            text=f'"{s.query}" ({s.engine})',
            metadata={"engine": s.engine},
        )
        for s in searches
    ]


def normalize_assistant_sessions(
    sessions: Iterable[AssistantSession],
) -> list[RawActivityEvent]:
    return [
        RawActivityEvent(
            timestamp=_iso(s.time),
            source=EventSource.AI_ASSISTANT,
            text=s.prompt[:_PROMPT_CHARS],
            metadata={"project": s.project},
        )
        for s in sessions
    ]


def normalize_git_commits(commits: Iterable[GitCommit]) -> list[RawActivityEvent]:
    return [
        RawActivityEvent(
            timestamp=_iso(c.time),
            source=EventSource.COMMIT,
            text=f"{c.repo}: {c.message} (+{c.insertions}/-{c.deletions})",
            metadata={"repo": c.repo},
        )
        for c in commits
    ]


def normalize_events(
    visits: Iterable[BrowserVisit] = (),
    searches: Iterable[SearchQuery] = (),
    sessions: Iterable[AssistantSession] = (),
    commits: Iterable[GitCommit] = (),
) -> list[RawActivityEvent]:
    """Normalize every source into one list, in source order.

    Browser visits come first, then searches, assistant prompts and commits.
    """
    return [
        *normalize_browser_visits(visits),
        *normalize_search_queries(searches),
        *normalize_assistant_sessions(sessions),
        *normalize_git_commits(commits),
    ]
