"""
Pydantic models for repository status reporting.

This module provides data models for:
- Directories discovered under the watched root
- The git status resolved for each directory
- The result of one scan across all directories
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field


class DirectoryEntry(BaseModel):
    """A first-level subdirectory of the watched root."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Absolute path to the directory")
    name: str = Field(..., description="Leaf directory name")


class RepositoryStatus(BaseModel):
    """Git status of a single directory."""

    model_config = ConfigDict(frozen=True)

    is_repo: bool = Field(default=False, description="Whether the directory is a git repository")
    has_uncommitted_changes: bool = Field(
        default=False,
        description="Whether the working tree has staged, unstaged or untracked changes"
    )
    ahead_count: int = Field(
        default=0,
        ge=0,
        description="Local commits not yet on the remote branch"
    )
    behind_count: int = Field(
        default=0,
        ge=0,
        description="Remote commits not yet in the local branch"
    )
    branch: str | None = Field(
        default=None,
        description="Current branch name (None when HEAD is detached)"
    )
    last_commit_message: str | None = Field(
        default=None,
        description="Subject line of the most recent commit"
    )
    last_commit_timestamp: datetime | None = Field(
        default=None,
        description="Commit time of the most recent commit"
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_synced(self) -> bool:
        """True when the branch is neither ahead of nor behind its remote."""
        return self.ahead_count == 0 and self.behind_count == 0

    @classmethod
    def not_a_repository(cls) -> "RepositoryStatus":
        """The all-default status reported for plain directories."""
        return cls()


class ProjectStatus(RepositoryStatus):
    """A directory entry merged with its repository status."""

    path: str = Field(..., description="Absolute path to the directory")
    name: str = Field(..., description="Leaf directory name")

    @classmethod
    def from_parts(cls, entry: DirectoryEntry, status: RepositoryStatus) -> "ProjectStatus":
        """Merge a directory entry with the status resolved for it."""
        return cls(
            path=entry.path,
            name=entry.name,
            **status.model_dump(exclude={"is_synced"}),
        )

    @property
    def entry(self) -> DirectoryEntry:
        return DirectoryEntry(path=self.path, name=self.name)

    def repository_status(self) -> RepositoryStatus:
        """Strip the directory fields off again."""
        return RepositoryStatus(**self.model_dump(exclude={"path", "name", "is_synced"}))


class AttentionSummary(BaseModel):
    """Summary of how many projects need the user's attention."""

    attention_count: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)


class ScanResult(BaseModel):
    """Statuses of every directory under a root, from one scan."""

    root_path: str = Field(..., description="Root directory that was scanned")
    include_remote: bool = Field(
        default=True,
        description="Whether ahead/behind counts were freshly computed"
    )
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: datetime = Field(default_factory=datetime.now)
    projects: list[ProjectStatus] = Field(
        default_factory=list,
        description="Per-directory statuses in enumeration order"
    )
    attention_count: int = Field(default=0, ge=0)
    warning: str | None = Field(
        default=None,
        description="Set when the root could not be read"
    )

    @property
    def ok(self) -> bool:
        return self.warning is None

    def get_project(self, path: str) -> ProjectStatus | None:
        """Get the status for a directory path."""
        for project in self.projects:
            if project.path == path:
                return project
        return None
