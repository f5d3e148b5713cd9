"""
Repository status resolution for a single directory.

This module provides functionality to:
- Detect whether a directory is a git repository
- Read working-tree, branch and last-commit information
- Count commits ahead of and behind the remote branch
"""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from gitok.core.executor import CommandExecutor, ExecutionError
from gitok.models.status import RepositoryStatus

logger = logging.getLogger(__name__)

GIT_MARKER = ".git"
COMMIT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %z"


class ParseError(ValueError):
    """Raised when command output cannot be interpreted."""


def parse_count(output: str) -> int:
    """Parse the output of `git rev-list --count`."""
    text = output.strip()
    try:
        value = int(text)
    except ValueError as e:
        raise ParseError(f"Not a commit count: {text!r}") from e
    if value < 0:
        raise ParseError(f"Negative commit count: {value}")
    return value


def parse_commit_timestamp(raw: str) -> datetime:
    """Parse git's `%ci` format, e.g. '2024-03-01 14:22:05 +0100'."""
    try:
        return datetime.strptime(raw.strip(), COMMIT_TIMESTAMP_FORMAT)
    except ValueError as e:
        raise ParseError(f"Not a commit timestamp: {raw!r}") from e


class RepositoryStatusResolver:
    """
    Resolves the git status of one directory.

    Resolution never raises: a missing marker, a failing command or
    unparsable output degrades to a default value so that one broken
    project cannot abort a whole scan. The resolver keeps no state
    between calls; previously known remote counts are passed in.
    """

    def __init__(
        self,
        executor: Optional[CommandExecutor] = None,
        remote: str = "origin",
    ):
        self.executor = executor or CommandExecutor()
        self.remote = remote

    def resolve(
        self,
        path: str | Path,
        include_remote: bool = True,
        known: Optional[RepositoryStatus] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> RepositoryStatus:
        """
        Resolve the status of a directory.

        Args:
            path: Directory to inspect
            include_remote: Compare against the remote branch
            known: Previous status of the same directory; its ahead/behind
                   counts are reused when include_remote is False
            cancel_event: Passed to the executor to abort running commands

        Returns:
            RepositoryStatus for the directory
        """
        path = Path(path)

        if not self.is_repository(path):
            return RepositoryStatus.not_a_repository()

        try:
            return self._resolve_repository(path, include_remote, known, cancel_event)
        except Exception:
            logger.exception(f"Unexpected failure resolving status of {path}")
            return RepositoryStatus.not_a_repository()

    def is_repository(self, path: Path) -> bool:
        """Check for the git metadata marker (directory or worktree file)."""
        try:
            return (path / GIT_MARKER).exists()
        except OSError:
            return False

    def _resolve_repository(
        self,
        path: Path,
        include_remote: bool,
        known: Optional[RepositoryStatus],
        cancel_event: Optional[threading.Event],
    ) -> RepositoryStatus:
        has_changes = self._has_uncommitted_changes(path, cancel_event)
        branch = self._get_current_branch(path, cancel_event)
        message, timestamp = self._get_last_commit(path, cancel_event)

        if include_remote:
            if branch:
                behind, ahead = self._get_commit_counts(path, branch, cancel_event)
            else:
                behind, ahead = 0, 0
        else:
            behind, ahead = self._known_counts(known, branch)

        return RepositoryStatus(
            is_repo=True,
            has_uncommitted_changes=has_changes,
            ahead_count=ahead,
            behind_count=behind,
            branch=branch,
            last_commit_message=message,
            last_commit_timestamp=timestamp,
        )

    def _run_git_command(
        self,
        path: Path,
        args: list[str],
        cancel_event: Optional[threading.Event],
    ) -> str:
        """Run a git command in the directory."""
        return self.executor.run(path, args, cancel_event=cancel_event)

    def _has_uncommitted_changes(
        self,
        path: Path,
        cancel_event: Optional[threading.Event],
    ) -> bool:
        """Check if the working tree has uncommitted changes."""
        try:
            output = self._run_git_command(path, ["status", "--porcelain"], cancel_event)
        except ExecutionError as e:
            logger.debug(f"git status failed in {path}: {e}")
            return False
        return bool(output.strip())

    def _get_current_branch(
        self,
        path: Path,
        cancel_event: Optional[threading.Event],
    ) -> str | None:
        """Get the current branch name, None when detached."""
        try:
            output = self._run_git_command(path, ["branch", "--show-current"], cancel_event)
        except ExecutionError as e:
            logger.debug(f"git branch failed in {path}: {e}")
            return None
        return output.strip() or None

    def _get_last_commit(
        self,
        path: Path,
        cancel_event: Optional[threading.Event],
    ) -> tuple[str | None, datetime | None]:
        """Get the subject and commit time of the most recent commit."""
        try:
            output = self._run_git_command(
                path,
                ["log", "-1", "--pretty=format:%ci|%s"],
                cancel_event,
            )
        except ExecutionError as e:
            # Fails on repositories without commits
            logger.debug(f"git log failed in {path}: {e}")
            return None, None

        line = output.strip()
        if not line:
            return None, None

        raw_timestamp, _, message = line.partition("|")

        try:
            timestamp = parse_commit_timestamp(raw_timestamp)
        except ParseError as e:
            logger.debug(f"{path}: {e}")
            timestamp = None

        return message or None, timestamp

    def _get_commit_counts(
        self,
        path: Path,
        branch: str,
        cancel_event: Optional[threading.Event],
    ) -> tuple[int, int]:
        """Get the number of commits behind and ahead of the remote branch."""
        remote_ref = f"{self.remote}/{branch}"
        behind = self._count_commits(path, f"HEAD..{remote_ref}", cancel_event)
        ahead = self._count_commits(path, f"{remote_ref}..HEAD", cancel_event)
        return behind, ahead

    def _count_commits(
        self,
        path: Path,
        revision_range: str,
        cancel_event: Optional[threading.Event],
    ) -> int:
        try:
            output = self._run_git_command(
                path,
                ["rev-list", "--count", revision_range],
                cancel_event,
            )
            return parse_count(output)
        except (ExecutionError, ParseError) as e:
            logger.debug(f"Could not count {revision_range} in {path}: {e}")
            return 0

    def _known_counts(
        self,
        known: Optional[RepositoryStatus],
        branch: str | None,
    ) -> tuple[int, int]:
        """Reuse remote counts from a previous status of the same branch."""
        if known is None or not known.is_repo or known.branch != branch:
            return 0, 0
        return known.behind_count, known.ahead_count
