"""Pydantic models for the polling scheduler state."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ScanKind(str, Enum):
    """Which cadence a scan belongs to."""

    LOCAL = "local"
    FULL = "full"

    @property
    def include_remote(self) -> bool:
        return self is ScanKind.FULL


class SchedulerPhase(str, Enum):
    """Lifecycle phase of the polling scheduler."""

    IDLE = "idle"
    ARMED = "armed"
    RUNNING_LOCAL = "running_local"
    RUNNING_FULL = "running_full"
    STOPPED = "stopped"


class ScheduleState(BaseModel):
    """Snapshot of the scheduler's timing state, for display."""

    root_path: str | None = Field(default=None, description="Root currently being polled")
    cadence_enabled: bool = Field(default=False, description="Whether the cadences are armed")
    phase: SchedulerPhase = Field(default=SchedulerPhase.IDLE)
    last_check_at: datetime | None = Field(
        default=None,
        description="When the last scan of either kind was applied"
    )
    last_full_check_at: datetime | None = Field(
        default=None,
        description="When the last scan including remote counts was applied"
    )
    next_check_at: datetime | None = Field(
        default=None,
        description="Earliest upcoming cadence firing"
    )
