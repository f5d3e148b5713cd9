"""
Core modules for GitOK.

This package contains the core business logic for:
- Running git commands
- Resolving the status of one directory
- Enumerating the directories under a root
- Scanning and summarizing a root
- Polling on a local and a remote cadence
"""

from gitok.core.aggregator import (
    SortKey,
    StatusFilter,
    count_by_filter,
    describe,
    filter_statuses,
    needs_attention,
    sort_statuses,
    summarize,
)
from gitok.core.cadence import Rearm, RepeatingTask
from gitok.core.enumerator import (
    DirectoryEnumerator,
    DirectoryListing,
    EnumerationError,
    normalize_root,
)
from gitok.core.executor import CommandExecutor, ExecutionCancelled, ExecutionError
from gitok.core.resolver import ParseError, RepositoryStatusResolver
from gitok.core.scanner import StatusScanner
from gitok.core.scheduler import PollingScheduler

__all__ = [
    "SortKey",
    "StatusFilter",
    "count_by_filter",
    "describe",
    "filter_statuses",
    "needs_attention",
    "sort_statuses",
    "summarize",
    "Rearm",
    "RepeatingTask",
    "DirectoryEnumerator",
    "DirectoryListing",
    "EnumerationError",
    "normalize_root",
    "CommandExecutor",
    "ExecutionCancelled",
    "ExecutionError",
    "ParseError",
    "RepositoryStatusResolver",
    "StatusScanner",
    "PollingScheduler",
]
