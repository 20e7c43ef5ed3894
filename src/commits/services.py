"""Commit work-unit extraction.

Parses conventional-commit messages, classifies each commit's work mode,
splits the day into coding sessions and groups each session's commits
into labeled work units. No LLM calls, no I/O.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta

from daylens.commits.models import CommitWorkMode, CommitWorkUnit, ParsedCommit
from daylens.models import GitCommit, TimeRange
from daylens.timestamps import sort_key, to_local

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Conventional commit parsing
# ---------------------------------------------------------------------------

_CONVENTIONAL_COMMIT_RE = re.compile(
    r"^(feat|fix|refactor|docs|test|chore|build|ci|perf|revert|style)"
    r"(?:\(([^)]+)\))?(!)?\s*:\s*(.+)$",
    re.IGNORECASE,
)


def parse_conventional_commit(message: str) -> ParsedCommit:
    """Split ``type(scope)!: description``. Unmatched messages get an empty type."""
    m = _CONVENTIONAL_COMMIT_RE.match(message.strip())
    if m:
        return ParsedCommit(
            type=m.group(1).lower(),
            scope=m.group(2),
            breaking=m.group(3) == "!",
            description=m.group(4).strip(),
            raw=message,
        )
    return ParsedCommit(description=message.strip(), raw=message)


# ---------------------------------------------------------------------------
# Work mode classification
# ---------------------------------------------------------------------------

CONVENTIONAL_TYPE_TO_WORK_MODE: dict[str, CommitWorkMode] = {
    "feat": CommitWorkMode.BUILDING,
    "fix": CommitWorkMode.DEBUGGING,
    "refactor": CommitWorkMode.RESTRUCTURING,
    "test": CommitWorkMode.TESTING,
    "docs": CommitWorkMode.DOCUMENTING,
    "chore": CommitWorkMode.INFRASTRUCTURE,
    "build": CommitWorkMode.INFRASTRUCTURE,
    "ci": CommitWorkMode.INFRASTRUCTURE,
    "perf": CommitWorkMode.OPTIMIZING,
    "revert": CommitWorkMode.REVERTING,
    "style": CommitWorkMode.RESTRUCTURING,
}

_I = re.IGNORECASE

# Keyword fallback for messages without a conventional prefix, in priority order.
WORK_MODE_KEYWORDS: tuple[tuple[re.Pattern[str], CommitWorkMode], ...] = (
    (re.compile(r"\b(revert|rollback|undo)\b", _I), CommitWorkMode.REVERTING),
    (re.compile(r"\b(test|spec|coverage|assert|mock|fixture)\b", _I), CommitWorkMode.TESTING),
    (
        re.compile(r"\b(doc|readme|comment|documentation|changelog|license)\b", _I),
        CommitWorkMode.DOCUMENTING,
    ),
    (
        re.compile(
            r"\b(fix(es|ed|ing)?|bug|defect|error|fault|issue|problem|crash(es|ed)?"
            r"|fail(s|ed|ure)?|wrong|incorrect|broken|repair|patch|resolve[sd]?)\b",
            _I,
        ),
        CommitWorkMode.DEBUGGING,
    ),
    (
        re.compile(r"\b(add|implement|introduce|create|new|support|enable|allow|feature)\b", _I),
        CommitWorkMode.BUILDING,
    ),
    (
        re.compile(
            r"\b(refactor|clean|cleanup|reorganize|restructure|rename|move|extract"
            r"|simplify|improve|optimize)\b",
            _I,
        ),
        CommitWorkMode.RESTRUCTURING,
    ),
)


def classify_work_mode(commit: ParsedCommit, insertions: int = 0, deletions: int = 0) -> CommitWorkMode:
    """Work mode by conventional type, then keywords, then the change ratio.

    Falls back to ``tweaking`` when nothing else applies.
    """
    if commit.type in CONVENTIONAL_TYPE_TO_WORK_MODE:
        return CONVENTIONAL_TYPE_TO_WORK_MODE[commit.type]

    text = f"{commit.description} {commit.raw}"
    for pattern, mode in WORK_MODE_KEYWORDS:
        if pattern.search(text):
            return mode

    if insertions + deletions > 0:
        if deletions == 0:
            return CommitWorkMode.BUILDING
        if insertions == 0:
            return CommitWorkMode.RESTRUCTURING
        ratio = insertions / deletions
        if ratio > 3:
            return CommitWorkMode.BUILDING
        if ratio < 0.33:
            return CommitWorkMode.RESTRUCTURING

    return CommitWorkMode.TWEAKING


# ---------------------------------------------------------------------------
# Why clauses and generic messages
# ---------------------------------------------------------------------------

MAX_WHY_CHARS = 120

WHY_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bso\s+that\b", _I),
    # "so" followed by a non-causal adverb or adjective does not count
    re.compile(r"\bso\s+(?!far|long|much|many|good|bad|great|well|often|little|few)\w", _I),
    re.compile(r"\bbecause\b", _I),
    re.compile(r"\bsince\b", _I),
    re.compile(r"\bin\s+order\s+to\b", _I),
    re.compile(r"\bto\s+avoid\b", _I),
    re.compile(r"\bprevents?\b", _I),
    re.compile(r"\bfixes?\s+#\d+", _I),
    re.compile(r"\bcloses?\s+#\d+", _I),
    re.compile(r"\baddresses\b", _I),
    re.compile(r"\bensures?\b", _I),
    re.compile(r"\bhandles?\b", _I),
    re.compile(r"\botherwise\b", _I),
)

GENERIC_COMMIT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^(wip|work in progress)$", _I),
    re.compile(r"^(update|updates)$", _I),
    re.compile(r"^(fix|fixes|fixed)$", _I),
    re.compile(r"^(cleanup|clean\s+up|clean)$", _I),
    re.compile(r"^(misc|various|minor|small|quick|tiny)(\s+(fix|change|update|tweak))?$", _I),
    re.compile(r"^(temp|tmp|temporary)$", _I),
    re.compile(r"^(changes?|changes made)$", _I),
)


def extract_why_clause(message: str) -> str | None:
    """Return the message from its first causal marker, at most 120 chars."""
    for pattern in WHY_PATTERNS:
        m = pattern.search(message)
        if m:
            return message[m.start() : m.start() + MAX_WHY_CHARS].strip()
    return None


def is_generic_message(message: str) -> bool:
    """True for WIP or trivial messages such as ``wip`` or ``minor fix``."""
    trimmed = message.strip()
    return any(p.match(trimmed) for p in GENERIC_COMMIT_PATTERNS)


# ---------------------------------------------------------------------------
# Sessions and work units
# ---------------------------------------------------------------------------

SESSION_GAP = timedelta(minutes=90)

LABEL_STOPWORDS: frozenset[str] = frozenset(
    {
        "with", "from", "that", "this", "into", "when", "then", "also",
        "some", "have", "more", "each", "such", "just", "very", "only",
    }
)

_LABEL_PUNCT_RE = re.compile(r"[^\w\s-]")


def is_session_boundary(earlier: datetime, later: datetime) -> bool:
    """A new session starts after a gap over 90 minutes or at midnight."""
    earlier_local = to_local(earlier)
    later_local = to_local(later)
    if later_local - earlier_local > SESSION_GAP:
        return True
    return earlier_local.date() != later_local.date()


def _split_sessions(commits: list[GitCommit]) -> list[list[GitCommit]]:
    sessions: list[list[GitCommit]] = []
    current = [commits[0]]
    for prev, curr in zip(commits, commits[1:]):
        if prev.time and curr.time and is_session_boundary(prev.time, curr.time):
            sessions.append(current)
            current = [curr]
        else:
            current.append(curr)
    sessions.append(current)
    return sessions


def dominant_work_mode(modes: Sequence[CommitWorkMode]) -> CommitWorkMode:
    """Most frequent mode, ignoring ``tweaking`` whenever anything else is present."""
    counts = Counter(m for m in modes if m != CommitWorkMode.TWEAKING)
    if not counts:
        return CommitWorkMode.TWEAKING
    return counts.most_common(1)[0][0]


def build_work_unit_label(
    commits: Sequence[GitCommit],
    parsed: Sequence[ParsedCommit],
    work_mode: CommitWorkMode,
) -> str:
    """Label by most common scope, then repo, then frequent words, then mode."""
    scopes = Counter(p.scope for p in parsed if p.scope and p.scope.strip())
    if scopes:
        return f"Feature work: {scopes.most_common(1)[0][0]}"

    repos = list(dict.fromkeys(c.repo for c in commits))
    if len(repos) == 1 and repos[0]:
        return f"{repos[0]}: {work_mode}"

    words: Counter[str] = Counter()
    for p in parsed:
        words.update(
            w
            for w in _LABEL_PUNCT_RE.sub(" ", p.description.lower()).split()
            if len(w) > 3 and w not in LABEL_STOPWORDS
        )
    if words:
        return " ".join(w for w, _ in words.most_common(3))

    return str(work_mode)


def _build_work_unit(group: list[tuple[GitCommit, ParsedCommit, CommitWorkMode]]) -> CommitWorkUnit:
    commits = [c for c, _, _ in group]
    parsed = [p for _, p, _ in group]
    mode = dominant_work_mode([m for _, _, m in group])
    why_clauses = [w for w in (extract_why_clause(c.message) for c in commits) if w]

    return CommitWorkUnit(
        label=build_work_unit_label(commits, parsed, mode),
        work_mode=mode,
        commits=commits,
        repos=list(dict.fromkeys(c.repo for c in commits)),
        time_range=TimeRange.spanning(c.time for c in commits),
        has_why_information=bool(why_clauses),
        why_clause=why_clauses[0] if why_clauses else None,
        is_generic=all(is_generic_message(c.message) for c in commits),
    )


def _unit_sort_key(unit: CommitWorkUnit) -> datetime:
    start = unit.time_range.start
    return to_local(start) if start is not None else datetime.min


def group_commits_into_work_units(commits: Iterable[GitCommit]) -> list[CommitWorkUnit]:
    """Group commits into work units, most recent first.

    Commits are split into sessions (90-minute gap or a new calendar day).
    Within a session they are grouped by repository, and debugging commits
    are kept apart from everything else in the same repository.
    """
    ordered = sorted(commits, key=lambda c: sort_key(c.time))
    if not ordered:
        return []

    units: list[CommitWorkUnit] = []
    sessions = _split_sessions(ordered)

    for session in sessions:
        by_repo: dict[str, list[tuple[GitCommit, ParsedCommit, CommitWorkMode]]] = {}
        for commit in session:
            parsed = parse_conventional_commit(commit.message)
            mode = classify_work_mode(parsed, commit.insertions, commit.deletions)
            by_repo.setdefault(commit.repo or "unknown", []).append((commit, parsed, mode))

        for items in by_repo.values():
            others = [x for x in items if x[2] != CommitWorkMode.DEBUGGING]
            debugging = [x for x in items if x[2] == CommitWorkMode.DEBUGGING]
            for group in (others, debugging):
                if group:
                    units.append(_build_work_unit(group))

    logger.debug(
        "Grouped %d commits into %d work units across %d sessions",
        len(ordered),
        len(units),
        len(sessions),
    )
    units.sort(key=_unit_sort_key, reverse=True)
    return units
