"""Run external version-control commands and capture their output."""

import logging
import subprocess
import threading
import time
from pathlib import Path
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


class ExecutionError(Exception):
    """Raised when an external command fails or cannot be started."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ExecutionCancelled(ExecutionError):
    """Raised when a running command was killed because its scan was superseded."""


class CommandExecutor:
    """
    Runs a command-line tool bound to a working directory.

    Standard output and standard error are collected in memory. A non-zero
    exit status is reported as an ExecutionError carrying the stderr text.
    No retries are attempted and, unless a timeout is configured, no time
    limit is imposed.
    """

    POLL_INTERVAL_SECONDS = 0.05

    def __init__(self, binary: str = "git", timeout: Optional[float] = None):
        self.binary = binary
        self.timeout = timeout

    def run(
        self,
        working_dir: str | Path,
        args: Sequence[str],
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """
        Run the command and return its standard output.

        Args:
            working_dir: Directory the process runs in
            args: Arguments passed after the binary name
            cancel_event: When set while the process runs, the process is killed

        Returns:
            Captured standard output

        Raises:
            ExecutionCancelled: If cancel_event was set before the process exited
            ExecutionError: If the process could not start, timed out or exited non-zero
        """
        command = [self.binary, *args]

        if cancel_event is not None and cancel_event.is_set():
            raise ExecutionCancelled(f"Cancelled before start: {' '.join(command)}")

        try:
            proc = subprocess.Popen(
                command,
                cwd=str(working_dir),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise ExecutionError(f"Could not run {self.binary}: {e}", stderr=str(e)) from e

        stdout, stderr = self._wait(proc, command, cancel_event)

        if proc.returncode != 0:
            logger.debug(f"{' '.join(command)} exited {proc.returncode} in {working_dir}: {stderr.strip()}")
            raise ExecutionError(
                f"Command failed ({proc.returncode}): {' '.join(command)}: {stderr.strip()}",
                returncode=proc.returncode,
                stderr=stderr,
            )

        return stdout

    def _wait(
        self,
        proc: subprocess.Popen,
        command: list[str],
        cancel_event: Optional[threading.Event],
    ) -> tuple[str, str]:
        """Wait for the process, killing it on cancellation or timeout."""
        deadline = None if self.timeout is None else time.monotonic() + self.timeout

        if cancel_event is None and deadline is None:
            return proc.communicate()

        while True:
            try:
                return proc.communicate(timeout=self.POLL_INTERVAL_SECONDS)
            except subprocess.TimeoutExpired:
                pass

            if cancel_event is not None and cancel_event.is_set():
                self._kill(proc)
                raise ExecutionCancelled(f"Cancelled: {' '.join(command)}")

            if deadline is not None and time.monotonic() >= deadline:
                self._kill(proc)
                raise ExecutionError(f"Timed out after {self.timeout}s: {' '.join(command)}")

    def _kill(self, proc: subprocess.Popen) -> None:
        proc.kill()
        proc.communicate()
