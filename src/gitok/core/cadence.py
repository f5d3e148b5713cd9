"""Cancellable repeating task used for the polling cadences."""

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Rearm(str, Enum):
    """How the next firing is computed after a callback returns."""

    # Next firing one interval after the previous deadline; deadlines that
    # passed while the callback ran are skipped, not replayed.
    FIXED_RATE = "fixed_rate"
    # Next firing one interval after the callback completed.
    AFTER_COMPLETION = "after_completion"


class RepeatingTask:
    """
    Runs a callback repeatedly on a background thread.

    The first firing happens one interval after start(). The callback runs
    on the task's own thread, so a slow callback can never overlap itself.
    Exceptions raised by the callback are logged and the task keeps going.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], object],
        rearm: Rearm = Rearm.AFTER_COMPLETION,
        name: str = "gitok-cadence",
        monotonic: Callable[[], float] = time.monotonic,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")

        self.interval = interval
        self.rearm = rearm
        self.name = name
        self._callback = callback
        self._monotonic = monotonic
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._deadline: Optional[float] = None
        self._in_callback = False
        self.skipped_ticks = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stopped.is_set()

    def seconds_until_next(self) -> Optional[float]:
        """
        Seconds until the next firing, None when not running.

        While the callback runs, the answer is the deadline the task will
        re-arm to if the callback returned now.
        """
        if not self.running or self._deadline is None:
            return None
        now = self._monotonic()
        deadline = self._following_deadline(now)[0] if self._in_callback else self._deadline
        return max(0.0, deadline - now)

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError(f"{self.name} already started")

        self._deadline = self._monotonic() + self.interval
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def cancel(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """Stop firing. A callback already running is allowed to finish."""
        self._stopped.set()
        thread = self._thread
        if wait and thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _run(self) -> None:
        while not self._stopped.wait(max(0.0, self._deadline - self._monotonic())):
            self._in_callback = True
            try:
                self._callback()
            except Exception:
                logger.exception(f"{self.name} callback failed")
            finally:
                self._in_callback = False

            self._deadline, missed = self._following_deadline(self._monotonic())
            if missed:
                self.skipped_ticks += missed
                logger.debug(f"{self.name}: skipped {missed} tick(s) while the previous run was busy")

    def _following_deadline(self, now: float) -> tuple[float, int]:
        """Deadline after the current one, and how many ticks it skips."""
        if self.rearm == Rearm.AFTER_COMPLETION:
            return now + self.interval, 0

        deadline = self._deadline + self.interval
        missed = 0
        if deadline <= now:
            missed = int((now - deadline) // self.interval) + 1
            deadline += missed * self.interval
        return deadline, missed
