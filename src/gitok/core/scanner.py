"""
Scan every first-level subdirectory of a root and resolve its git status.

Resolutions within one scan run concurrently on a bounded thread pool;
results keep the enumerator's order regardless of completion order.
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from gitok.core.aggregator import summarize
from gitok.core.enumerator import DirectoryEnumerator
from gitok.core.resolver import RepositoryStatusResolver
from gitok.models.status import DirectoryEntry, ProjectStatus, RepositoryStatus, ScanResult

logger = logging.getLogger(__name__)


class StatusScanner:
    """Produces a ScanResult for a root directory."""

    def __init__(
        self,
        resolver: Optional[RepositoryStatusResolver] = None,
        enumerator: Optional[DirectoryEnumerator] = None,
        max_workers: Optional[int] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.resolver = resolver or RepositoryStatusResolver()
        self.enumerator = enumerator or DirectoryEnumerator()
        self.max_workers = max_workers or os.cpu_count() or 4
        self._clock = clock

    def scan(
        self,
        root_path: str | Path,
        include_remote: bool = True,
        previous: Optional[ScanResult] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ScanResult:
        """
        Scan the root directory.

        Args:
            root_path: Directory whose children are inspected
            include_remote: Compute ahead/behind counts against the remote
            previous: Earlier result for the same root; its remote counts are
                      carried over when include_remote is False
            cancel_event: Aborts running git commands when set

        Returns:
            ScanResult; when the root is unreadable it has no projects and
            a warning
        """
        started_at = self._clock()
        listing = self.enumerator.list_directories(root_path)

        if not listing.ok:
            return ScanResult(
                root_path=listing.root_path,
                include_remote=include_remote,
                started_at=started_at,
                finished_at=self._clock(),
                warning=str(listing.error),
            )

        known = self._known_statuses(previous, listing.root_path)

        def resolve(entry: DirectoryEntry) -> ProjectStatus:
            status = self.resolver.resolve(
                entry.path,
                include_remote=include_remote,
                known=known.get(entry.path),
                cancel_event=cancel_event,
            )
            return ProjectStatus.from_parts(entry, status)

        projects: list[ProjectStatus] = []

        if listing.entries:
            workers = min(self.max_workers, len(listing.entries))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="gitok-resolve") as executor:
                projects = list(executor.map(resolve, listing.entries))

        summary = summarize(projects)
        finished_at = self._clock()

        logger.info(
            f"Scanned {summary.total} directories in {listing.root_path} "
            f"({'full' if include_remote else 'local'}): "
            f"{summary.attention_count} need attention"
        )

        return ScanResult(
            root_path=listing.root_path,
            include_remote=include_remote,
            started_at=started_at,
            finished_at=finished_at,
            projects=projects,
            attention_count=summary.attention_count,
        )

    def _known_statuses(
        self,
        previous: Optional[ScanResult],
        root_path: str,
    ) -> dict[str, RepositoryStatus]:
        if previous is None or previous.root_path != root_path:
            return {}
        return {project.path: project.repository_status() for project in previous.projects}
