"""Commit domain — conventional-commit parsing and work-unit grouping."""

from daylens.commits.models import CommitWorkMode, CommitWorkUnit, ParsedCommit
from daylens.commits.services import (
    classify_work_mode,
    extract_why_clause,
    group_commits_into_work_units,
    is_generic_message,
    is_session_boundary,
    parse_conventional_commit,
)

__all__ = [
    "CommitWorkMode",
    "CommitWorkUnit",
    "ParsedCommit",
    "classify_work_mode",
    "extract_why_clause",
    "group_commits_into_work_units",
    "is_generic_message",
    "is_session_boundary",
    "parse_conventional_commit",
]
