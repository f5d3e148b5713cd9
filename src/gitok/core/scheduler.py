"""
Dual-cadence polling scheduler.

This module provides functionality to:
- Run cheap local-only scans on a short fixed-rate cadence
- Run full scans (with remote comparison) on a long cadence re-armed
  after each completion
- Coalesce ticks that fire while a scan is still running
- Discard results belonging to a superseded root or schedule
"""

import logging
import threading
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

from gitok.config import PollingConfig
from gitok.core.cadence import Rearm, RepeatingTask
from gitok.core.enumerator import normalize_root
from gitok.core.scanner import StatusScanner
from gitok.models.schedule import ScanKind, ScheduleState, SchedulerPhase
from gitok.models.status import ScanResult

logger = logging.getLogger(__name__)

ResultListener = Callable[[ScanResult], None]


class PollingScheduler:
    """
    Owns the two polling cadences for one root directory.

    Every start, stop or root change begins a new generation. Commands
    still running for an older generation are killed, and any result that
    arrives for it is dropped. Only the completion of a scan from the
    current generation writes the schedule state, under a single lock.
    """

    def __init__(
        self,
        scanner: Optional[StatusScanner] = None,
        config: Optional[PollingConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.config = config or PollingConfig()
        self.scanner = scanner or StatusScanner(max_workers=self.config.resolved_max_workers())
        self._clock = clock
        self._monotonic = monotonic
        self._lock = threading.Lock()
        self._state = ScheduleState()
        self._generation = 0
        self._cancel_event = threading.Event()
        self._in_flight: set[ScanKind] = set()
        self._local_task: Optional[RepeatingTask] = None
        self._remote_task: Optional[RepeatingTask] = None
        self._latest: Optional[ScanResult] = None
        self._listeners: list[ResultListener] = []

    @property
    def state(self) -> ScheduleState:
        """Copy of the current schedule state."""
        with self._lock:
            return self._state.model_copy(update={"phase": self._phase_locked()})

    @property
    def latest_result(self) -> Optional[ScanResult]:
        with self._lock:
            return self._latest

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def add_listener(self, listener: ResultListener) -> None:
        """Register a callback invoked with every applied scan result."""
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: ResultListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def start(self, root_path: str | Path, initial_scan: bool = True) -> None:
        """
        Start polling root_path.

        Any previous cadences are torn down first. A full scan is started
        immediately in the background unless initial_scan is False.
        """
        root = normalize_root(root_path)

        with self._lock:
            old_tasks = self._detach_tasks_locked()
            generation = self._begin_generation_locked()

            if self._latest is not None and self._latest.root_path != root:
                self._latest = None

            self._state = ScheduleState(
                root_path=root,
                cadence_enabled=True,
                phase=SchedulerPhase.ARMED,
            )

            self._local_task = RepeatingTask(
                self.config.local_interval_seconds,
                lambda: self._run(ScanKind.LOCAL, generation),
                rearm=Rearm.FIXED_RATE,
                name="gitok-local-cadence",
                monotonic=self._monotonic,
            )
            self._remote_task = RepeatingTask(
                self.config.remote_interval_seconds,
                lambda: self._run(ScanKind.FULL, generation),
                rearm=Rearm.AFTER_COMPLETION,
                name="gitok-remote-cadence",
                monotonic=self._monotonic,
            )
            self._local_task.start()
            self._remote_task.start()
            self._state.next_check_at = self._next_check_at_locked(self._clock())

        self._cancel_tasks(old_tasks)
        logger.info(
            f"Polling {root}: local every {self.config.local_interval_seconds:g}s, "
            f"remote every {self.config.remote_interval_seconds:g}s"
        )

        if initial_scan:
            threading.Thread(
                target=self._run,
                args=(ScanKind.FULL, generation),
                name="gitok-initial-scan",
                daemon=True,
            ).start()

    def stop(self) -> None:
        """Cancel both cadences and any running commands."""
        with self._lock:
            old_tasks = self._detach_tasks_locked()
            self._begin_generation_locked()
            self._state = ScheduleState(
                root_path=self._state.root_path,
                cadence_enabled=False,
                phase=SchedulerPhase.STOPPED,
            )

        self._cancel_tasks(old_tasks)
        logger.info("Polling stopped")

    def reconfigure(self, new_root_path: str | Path | None) -> bool:
        """
        Point the scheduler at a new root.

        An empty root stops polling. When the cadences are running they are
        restarted against the new root. Returns False if nothing changed.
        """
        if not new_root_path:
            self.stop()
            with self._lock:
                self._state.root_path = None
                self._latest = None
            return True

        root = normalize_root(new_root_path)

        with self._lock:
            if root == self._state.root_path:
                return False
            enabled = self._state.cadence_enabled

        if enabled:
            self.start(root)
            return True

        with self._lock:
            self._begin_generation_locked()
            self._state.root_path = root
            self._state.last_check_at = None
            self._state.last_full_check_at = None
            self._latest = None

        logger.info(f"Root changed to {root}")
        return True

    def trigger(self, kind: ScanKind) -> bool:
        """
        Run one scan of the given kind on the calling thread.

        Returns True if the scan ran and its result was applied, False if
        it was coalesced with a scan already in flight or discarded.
        """
        with self._lock:
            generation = self._generation
        return self._run(ScanKind(kind), generation)

    def refresh(self) -> bool:
        """Run a full scan now, as the tray's refresh action does."""
        return self.trigger(ScanKind.FULL)

    def _run(self, kind: ScanKind, generation: int) -> bool:
        with self._lock:
            if generation != self._generation or self._state.root_path is None:
                return False

            if self._should_coalesce_locked(kind):
                logger.debug(f"Skipping {kind.value} tick: scan already in flight")
                return False

            self._in_flight.add(kind)
            root = self._state.root_path
            previous = self._latest
            cancel_event = self._cancel_event

        result = None
        try:
            result = self.scanner.scan(
                root,
                include_remote=kind.include_remote,
                previous=previous,
                cancel_event=cancel_event,
            )
        except Exception:
            logger.exception(f"{kind.value} scan of {root} failed")
        finally:
            with self._lock:
                if generation == self._generation:
                    self._in_flight.discard(kind)

        if result is None:
            return False

        return self._apply(kind, generation, result)

    def _apply(self, kind: ScanKind, generation: int, result: ScanResult) -> bool:
        with self._lock:
            if generation != self._generation or result.root_path != self._state.root_path:
                logger.info(f"Discarding {kind.value} scan of {result.root_path}: schedule changed")
                return False

            if self._latest is not None and result.started_at < self._latest.started_at:
                logger.debug(f"Discarding {kind.value} scan that finished after a newer one")
                return False

            self._latest = result
            now = self._clock()
            self._state.last_check_at = now
            if kind == ScanKind.FULL:
                self._state.last_full_check_at = now
            if self._state.cadence_enabled:
                self._state.next_check_at = self._next_check_at_locked(now)

            listeners = list(self._listeners)

        if result.warning:
            logger.warning(result.warning)

        for listener in listeners:
            try:
                listener(result)
            except Exception:
                logger.exception("Scan result listener failed")

        return True

    def _should_coalesce_locked(self, kind: ScanKind) -> bool:
        # A full scan refreshes local state too, so local ticks yield to it.
        if kind == ScanKind.FULL:
            return ScanKind.FULL in self._in_flight
        return bool(self._in_flight)

    def _phase_locked(self) -> SchedulerPhase:
        if ScanKind.FULL in self._in_flight:
            return SchedulerPhase.RUNNING_FULL
        if ScanKind.LOCAL in self._in_flight:
            return SchedulerPhase.RUNNING_LOCAL
        return self._state.phase

    def _next_check_at_locked(self, now: datetime) -> Optional[datetime]:
        # The remote cadence re-arms from its own completion only, never from
        # a manual refresh.
        delays = [
            task.seconds_until_next()
            for task in (self._local_task, self._remote_task)
            if task is not None
        ]
        delays = [delay for delay in delays if delay is not None]
        if not delays:
            return None
        return now + timedelta(seconds=min(delays))

    def _begin_generation_locked(self) -> int:
        self._cancel_event.set()
        self._cancel_event = threading.Event()
        self._in_flight = set()
        self._generation += 1
        return self._generation

    def _detach_tasks_locked(self) -> list[RepeatingTask]:
        tasks = [task for task in (self._local_task, self._remote_task) if task is not None]
        self._local_task = None
        self._remote_task = None
        return tasks

    def _cancel_tasks(self, tasks: list[RepeatingTask]) -> None:
        for task in tasks:
            task.cancel(wait=False)
