"""
The engine a host process builds once and drives.

GitOkEngine wires the scanner, the polling scheduler, the config store,
the notifier and the directory picker together and exposes the host
surface: select_root, scan, start_polling and stop_polling.
"""

import logging
from pathlib import Path
from typing import Optional

from gitok.config import Config
from gitok.core.enumerator import DirectoryEnumerator, normalize_root
from gitok.core.executor import CommandExecutor
from gitok.core.resolver import RepositoryStatusResolver
from gitok.core.scanner import StatusScanner
from gitok.core.scheduler import PollingScheduler
from gitok.models.schedule import ScheduleState
from gitok.models.status import ScanResult
from gitok.notifier import Notifier, NullNotifier
from gitok.picker import DirectoryPicker
from gitok.store import (
    POLLING_ENABLED_KEY,
    ROOT_PATH_KEY,
    ConfigStore,
    ConfigStoreError,
    MemoryConfigStore,
)

logger = logging.getLogger(__name__)


def build_scanner(config: Config) -> StatusScanner:
    """Build a scanner from configuration."""
    executor = CommandExecutor(
        binary=config.git.binary,
        timeout=config.git.command_timeout_seconds,
    )
    return StatusScanner(
        resolver=RepositoryStatusResolver(executor, remote=config.git.remote),
        enumerator=DirectoryEnumerator(),
        max_workers=config.polling.resolved_max_workers(),
    )


class GitOkEngine:
    """
    Owns the scheduler and persists the user's choices.

    Example:
        >>> engine = GitOkEngine(store=TomlConfigStore(path), notifier=ConsoleNotifier())
        >>> engine.restore()
        >>> engine.start_polling("~/projects")
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        store: Optional[ConfigStore] = None,
        notifier: Optional[Notifier] = None,
        picker: Optional[DirectoryPicker] = None,
        scanner: Optional[StatusScanner] = None,
        scheduler: Optional[PollingScheduler] = None,
    ):
        self.config = config or Config()
        self.store = store or MemoryConfigStore()
        self.notifier = notifier or NullNotifier()
        self.picker = picker
        self.scanner = scanner or build_scanner(self.config)
        self.scheduler = scheduler or PollingScheduler(self.scanner, self.config.polling)
        self._last_result: Optional[ScanResult] = None
        self.scheduler.add_listener(self._publish)

    @property
    def root_path(self) -> Optional[str]:
        return self.store.get(ROOT_PATH_KEY, "") or None

    @property
    def polling_enabled(self) -> bool:
        return self.store.get(POLLING_ENABLED_KEY, "false") == "true"

    @property
    def schedule(self) -> ScheduleState:
        return self.scheduler.state

    @property
    def latest_result(self) -> Optional[ScanResult]:
        return self.scheduler.latest_result

    def restore(self) -> Optional[ScanResult]:
        """
        Resume from the saved root and polling flag.

        With polling enabled the cadences are restarted (which scans
        immediately in the background); otherwise one full scan is run.
        """
        root = self.root_path
        if not root:
            return None

        if self.polling_enabled:
            self.scheduler.start(root)
            return None

        return self.scan(root, include_remote=True)

    def select_root(self) -> Optional[str]:
        """Ask the picker for a root. A cancelled pick changes nothing."""
        if self.picker is None:
            raise RuntimeError("No directory picker configured")

        chosen = self.picker.pick()
        if not chosen:
            logger.debug("Root selection cancelled")
            return None

        self.change_root(chosen)
        return normalize_root(chosen)

    def change_root(self, root_path: str | Path | None) -> Optional[ScanResult]:
        """Persist a new root, rescan it and move polling over to it."""
        if not root_path:
            self._save(ROOT_PATH_KEY, "")
            self.scheduler.reconfigure(None)
            self._save(POLLING_ENABLED_KEY, "false")
            return None

        root = normalize_root(root_path)
        self._save(ROOT_PATH_KEY, root)

        polling = self.scheduler.state.cadence_enabled
        self.scheduler.reconfigure(root)

        if polling:
            # The restarted cadences run their own initial full scan
            return None
        return self.scan(root, include_remote=True)

    def scan(self, root_path: str | Path, include_remote: bool = True) -> ScanResult:
        """
        Scan a root once and notify, outside of the cadences.

        A local-only scan keeps the ahead/behind counts of the last result
        published for the same root.
        """
        result = self.scanner.scan(
            root_path,
            include_remote=include_remote,
            previous=self._last_result,
        )
        self._publish(result)
        return result

    def refresh(self) -> Optional[ScanResult]:
        """Full scan of the current root now."""
        if self.scheduler.state.cadence_enabled:
            self.scheduler.refresh()
            return self.scheduler.latest_result

        root = self.root_path
        if not root:
            return None
        return self.scan(root, include_remote=True)

    def start_polling(self, root_path: str | Path | None = None) -> None:
        """Start both cadences for root_path (default: the saved root)."""
        root = normalize_root(root_path) if root_path else self.root_path
        if not root:
            raise ValueError("No root directory selected")

        if root != self.root_path:
            self._save(ROOT_PATH_KEY, root)

        self.scheduler.start(root)
        self._save(POLLING_ENABLED_KEY, "true")

    def stop_polling(self) -> None:
        """Stop both cadences and remember that polling is off."""
        self.scheduler.stop()
        self._save(POLLING_ENABLED_KEY, "false")

    def shutdown(self) -> None:
        """Stop polling without changing the saved polling flag."""
        self.scheduler.stop()

    def _publish(self, result: ScanResult) -> None:
        self._last_result = result
        self.notifier.show_scan(result)
        self.notifier.show_attention(result.attention_count)

    def _save(self, key: str, value: str) -> None:
        try:
            self.store.set(key, value)
        except ConfigStoreError as e:
            logger.warning(f"Could not persist {key}: {e}")
