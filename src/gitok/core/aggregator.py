"""
Summaries, categories and orderings over project statuses.

Everything here is a pure function of the statuses passed in, so a
consumer can derive any view of the latest scan without re-scanning.
"""

from enum import Enum
from typing import Callable, Iterable

from gitok.models.status import AttentionSummary, ProjectStatus


class StatusFilter(str, Enum):
    """Categories a consumer can filter the project list by."""

    ALL = "all"
    NOT_REPO = "not_repo"
    HAS_CHANGES = "has_changes"
    PENDING_PUSH = "pending_push"
    BEHIND = "behind"
    SYNCED = "synced"


class SortKey(str, Enum):
    """Orderings offered for the project list."""

    NAME = "name"
    LAST_UPDATE = "last_update"
    STATUS = "status"


def is_not_repo(status: ProjectStatus) -> bool:
    return not status.is_repo


def has_changes(status: ProjectStatus) -> bool:
    return status.is_repo and status.has_uncommitted_changes


def is_pending_push(status: ProjectStatus) -> bool:
    return status.is_repo and status.ahead_count > 0


def is_behind(status: ProjectStatus) -> bool:
    return status.is_repo and status.behind_count > 0


def is_fully_synced(status: ProjectStatus) -> bool:
    return status.is_repo and not status.has_uncommitted_changes and status.is_synced


def needs_attention(status: ProjectStatus) -> bool:
    """Uncommitted changes, unpushed commits or commits to pull."""
    return status.is_repo and (status.has_uncommitted_changes or not status.is_synced)


FILTER_PREDICATES: dict[StatusFilter, Callable[[ProjectStatus], bool]] = {
    StatusFilter.ALL: lambda status: True,
    StatusFilter.NOT_REPO: is_not_repo,
    StatusFilter.HAS_CHANGES: has_changes,
    StatusFilter.PENDING_PUSH: is_pending_push,
    StatusFilter.BEHIND: is_behind,
    StatusFilter.SYNCED: is_fully_synced,
}


def summarize(statuses: Iterable[ProjectStatus]) -> AttentionSummary:
    """
    Count the projects that need attention.

    Args:
        statuses: Project statuses from one scan

    Returns:
        AttentionSummary with the attention count and total
    """
    summary = AttentionSummary()

    for status in statuses:
        summary.total += 1
        if needs_attention(status):
            summary.attention_count += 1

    return summary


def filter_statuses(
    statuses: Iterable[ProjectStatus],
    status_filter: StatusFilter = StatusFilter.ALL,
) -> list[ProjectStatus]:
    """Keep the statuses in the given category, preserving order."""
    predicate = FILTER_PREDICATES[StatusFilter(status_filter)]
    return [status for status in statuses if predicate(status)]


def count_by_filter(statuses: Iterable[ProjectStatus]) -> dict[StatusFilter, int]:
    """Number of projects in each category."""
    statuses = list(statuses)
    return {
        status_filter: sum(1 for status in statuses if predicate(status))
        for status_filter, predicate in FILTER_PREDICATES.items()
    }


def status_priority(status: ProjectStatus) -> int:
    """Higher means more urgent: changes > pending push > behind > synced > not a repo."""
    if not status.is_repo:
        return 0
    if status.has_uncommitted_changes:
        return 4
    if status.ahead_count > 0:
        return 3
    if status.behind_count > 0:
        return 2
    return 1


def sort_statuses(
    statuses: Iterable[ProjectStatus],
    key: SortKey = SortKey.LAST_UPDATE,
    descending: bool = True,
) -> list[ProjectStatus]:
    """
    Order statuses for display.

    Descending means Z to A for names, newest first for last update and most
    urgent first for status. Directories that are not repositories always
    come last when sorting by last update.
    """
    key = SortKey(key)
    statuses = list(statuses)

    if key == SortKey.NAME:
        return sorted(statuses, key=lambda s: s.name.casefold(), reverse=descending)

    if key == SortKey.STATUS:
        return sorted(statuses, key=status_priority, reverse=descending)

    repos = [s for s in statuses if s.is_repo]
    others = [s for s in statuses if not s.is_repo]
    repos.sort(
        key=lambda s: s.last_commit_timestamp.timestamp() if s.last_commit_timestamp else 0.0,
        reverse=descending,
    )
    return repos + others


def _commits(count: int) -> str:
    return f"{count} commit" if count == 1 else f"{count} commits"


def describe(status: ProjectStatus) -> str:
    """One-line human description of a project's state."""
    if not status.is_repo:
        return "not a git repository"

    parts = []

    if status.has_uncommitted_changes:
        parts.append("uncommitted changes")
    if status.ahead_count > 0:
        parts.append(f"{_commits(status.ahead_count)} ahead of remote")
    if status.behind_count > 0:
        parts.append(f"{_commits(status.behind_count)} behind remote")

    if not parts:
        return "synced"

    return ", ".join(parts)
