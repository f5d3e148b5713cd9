"""
Pytest configuration and shared fixtures for GitOK tests.
"""

import subprocess
import tempfile
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Generator, Optional

import pytest

from gitok.models.status import ProjectStatus, ScanResult

GIT_ENV_CONFIG = [
    "-c", "user.email=test@example.com",
    "-c", "user.name=Test User",
    "-c", "commit.gpgsign=false",
    "-c", "init.defaultBranch=main",
]


def git(cwd: Path, *args: str) -> subprocess.CompletedProcess:
    """Run git in cwd with a fixed identity, failing the test on error."""
    return subprocess.run(
        ["git", *GIT_ENV_CONFIG, *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )


def init_repo(path: Path) -> Path:
    """Create a repository on branch main with one commit."""
    path.mkdir(parents=True, exist_ok=True)
    git(path, "init")
    git(path, "symbolic-ref", "HEAD", "refs/heads/main")
    (path / "README.md").write_text(f"# {path.name}\n")
    git(path, "add", ".")
    git(path, "commit", "-m", "Initial commit")
    return path


def wait_until(predicate, timeout: float = 3.0) -> bool:
    """Poll predicate until it holds or timeout seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def commit_file(repo: Path, name: str, message: str) -> None:
    (repo / name).write_text(f"{message}\n")
    git(repo, "add", name)
    git(repo, "commit", "-m", message)


@pytest.fixture
def temp_directory() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def temp_dir(temp_directory: Path) -> Path:
    """Alias for temp_directory."""
    return temp_directory


@pytest.fixture
def git_repo(temp_directory: Path) -> Path:
    """Create a temporary git repository for tests."""
    return init_repo(temp_directory / "test-repo")


@pytest.fixture
def tracked_repo(temp_directory: Path) -> Path:
    """A clone of a bare remote, with main pushed and tracking origin/main."""
    seed = init_repo(temp_directory / "seed")
    remote = temp_directory / "remote.git"
    git(temp_directory, "clone", "--bare", str(seed), str(remote))

    clone = temp_directory / "clone"
    git(temp_directory, "clone", str(remote), str(clone))
    git(clone, "checkout", "-B", "main", "origin/main")
    return clone


@pytest.fixture
def projects_root(temp_directory: Path) -> Path:
    """
    Root folder with:
    - proj1: clean repository
    - proj2: repository with an uncommitted change
    - notes: plain folder
    - a regular file, which is not a project
    """
    root = temp_directory / "projects"
    root.mkdir()

    init_repo(root / "proj1")

    proj2 = init_repo(root / "proj2")
    (proj2 / "README.md").write_text("# changed\n")

    (root / "notes").mkdir()
    (root / "notes" / "todo.txt").write_text("nothing\n")
    (root / "readme.txt").write_text("not a directory\n")

    return root


@pytest.fixture
def projects_root_with_remote(temp_directory: Path) -> Path:
    """Root folder whose proj3 has two commits not pushed to origin."""
    root = temp_directory / "projects"
    root.mkdir()

    seed = init_repo(temp_directory / "seed")
    remote = temp_directory / "remote.git"
    git(temp_directory, "clone", "--bare", str(seed), str(remote))

    proj3 = root / "proj3"
    git(temp_directory, "clone", str(remote), str(proj3))
    git(proj3, "checkout", "-B", "main", "origin/main")
    commit_file(proj3, "a.txt", "First local commit")
    commit_file(proj3, "b.txt", "Second local commit")

    return root


def make_project(
    name: str = "proj",
    is_repo: bool = True,
    changes: bool = False,
    ahead: int = 0,
    behind: int = 0,
    branch: Optional[str] = "main",
    committed_at: Optional[datetime] = None,
) -> ProjectStatus:
    """Build a ProjectStatus without touching the filesystem."""
    if not is_repo:
        return ProjectStatus(path=f"/root/{name}", name=name)
    return ProjectStatus(
        path=f"/root/{name}",
        name=name,
        is_repo=True,
        has_uncommitted_changes=changes,
        ahead_count=ahead,
        behind_count=behind,
        branch=branch,
        last_commit_message="Initial commit",
        last_commit_timestamp=committed_at,
    )


class FakeScanner:
    """
    Scanner double that records calls and can block until released.

    Each call returns a ScanResult for the requested root. When block is
    set, scan() waits for release() so tests can hold a scan in flight.
    """

    def __init__(self, block: bool = False):
        self.block = block
        self.calls: list[tuple[str, bool]] = []
        self.cancel_events: list = []
        self.previous: list[Optional[ScanResult]] = []
        self.entered = threading.Event()
        self._release = threading.Event()
        self._lock = threading.Lock()
        self.projects_factory: Callable[[str], list[ProjectStatus]] = lambda root: []

    def release(self) -> None:
        self._release.set()

    def scan(self, root_path, include_remote=True, previous=None, cancel_event=None) -> ScanResult:
        started_at = datetime.now()
        with self._lock:
            self.calls.append((str(root_path), include_remote))
            self.cancel_events.append(cancel_event)
            self.previous.append(previous)
        self.entered.set()

        if self.block:
            self._release.wait(timeout=5)

        projects = self.projects_factory(str(root_path))
        return ScanResult(
            root_path=str(root_path),
            include_remote=include_remote,
            started_at=started_at,
            projects=projects,
            attention_count=sum(
                1 for p in projects if p.is_repo and (p.has_uncommitted_changes or not p.is_synced)
            ),
        )


@pytest.fixture
def fake_scanner() -> FakeScanner:
    return FakeScanner()


@pytest.fixture
def blocking_scanner() -> Generator[FakeScanner, None, None]:
    scanner = FakeScanner(block=True)
    yield scanner
    scanner.release()
