"""
Pydantic models for GitOK.

This package contains data models for:
- Directory entries and per-directory repository status
- Scan results and attention summaries
- Polling scheduler state
"""

from gitok.models.schedule import ScanKind, ScheduleState, SchedulerPhase
from gitok.models.status import (
    AttentionSummary,
    DirectoryEntry,
    ProjectStatus,
    RepositoryStatus,
    ScanResult,
)

__all__ = [
    "AttentionSummary",
    "DirectoryEntry",
    "ProjectStatus",
    "RepositoryStatus",
    "ScanResult",
    "ScanKind",
    "ScheduleState",
    "SchedulerPhase",
]
