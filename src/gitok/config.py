"""
Configuration management for gitok.

Loads configuration from TOML files in the following priority:
1. Path specified via --config flag
2. .gitokrc in current directory
3. .gitokrc.toml in current directory
4. ~/.config/gitok/config.toml
5. ~/.gitokrc
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional

import toml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class PollingConfig(BaseModel):
    """Configuration for the two polling cadences."""

    local_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Interval between local-only checks (no remote comparison)",
    )
    remote_interval_seconds: float = Field(
        default=600.0,
        gt=0,
        description="Delay between the end of one remote check and the next",
    )
    max_workers: int | None = Field(
        default=None,
        ge=1,
        description="Concurrent status resolutions per scan (default: CPU count)",
    )

    def resolved_max_workers(self) -> int:
        """Worker limit, falling back to the number of CPU cores."""
        return self.max_workers or os.cpu_count() or 4


class GitConfig(BaseModel):
    """Configuration for invoking git."""

    binary: str = Field(
        default="git",
        description="git executable name or path",
    )
    remote: str = Field(
        default="origin",
        description="Remote whose branch is compared for ahead/behind counts",
    )
    command_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Kill a git command running longer than this (default: no limit)",
    )

    def is_installed(self) -> bool:
        """Check if the configured git binary can be found."""
        return shutil.which(self.binary) is not None


class StoreConfig(BaseModel):
    """Configuration for persisting the chosen root and polling flag."""

    path: str | None = Field(
        default=None,
        description="State file path (default: ~/.config/gitok/state.toml)",
    )

    def resolved_path(self) -> Path:
        if self.path:
            return Path(self.path).expanduser()
        return Path.home() / ".config" / "gitok" / "state.toml"


class Config(BaseModel):
    """Main configuration model for gitok."""

    polling: PollingConfig = Field(default_factory=PollingConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from file or use defaults.

    Args:
        config_path: Optional explicit path to config file.

    Returns:
        Config instance with loaded or default values.
    """
    search_paths = [
        Path(config_path) if config_path else None,
        Path.cwd() / ".gitokrc",
        Path.cwd() / ".gitokrc.toml",
        Path.home() / ".config" / "gitok" / "config.toml",
        Path.home() / ".gitokrc",
    ]

    for path in search_paths:
        if path and path.exists():
            try:
                data = toml.load(path)
                return Config(**data)
            except Exception as e:
                logger.warning(f"Ignoring invalid config file {path}: {e}")
                continue

    return Config()


def save_config(config: Config, path: Path) -> None:
    """
    Save configuration to a TOML file.

    Args:
        config: Configuration to save.
        path: Path to save the config file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        toml.dump(config.model_dump(exclude_none=True), f)
