"""
Key/value persistence for the chosen root and the polling flag.

Values are opaque strings. The keys used by gitok are ROOT_PATH_KEY and
POLLING_ENABLED_KEY ("true" or "false").
"""

import logging
import threading
from pathlib import Path
from typing import Protocol

import toml

from gitok.utils.io import atomic_write_text

logger = logging.getLogger(__name__)

ROOT_PATH_KEY = "rootPath"
POLLING_ENABLED_KEY = "pollingEnabled"


class ConfigStoreError(Exception):
    """Raised when a value cannot be persisted."""


class ConfigStore(Protocol):
    """Interface of a persistent string key/value store."""

    def get(self, key: str, default: str = "") -> str:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryConfigStore:
    """Store kept in memory only, for tests and one-shot commands."""

    def __init__(self, values: dict[str, str] | None = None):
        self._values = dict(values or {})

    def get(self, key: str, default: str = "") -> str:
        return self._values.get(key) or default

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class TomlConfigStore:
    """
    Store persisted as a flat [state] table in a TOML file.

    Unreadable files are treated as empty. Writes replace the file
    atomically with owner-only permissions.
    """

    SECTION = "state"

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def get(self, key: str, default: str = "") -> str:
        with self._lock:
            values = self._load()
        value = values.get(key)
        return str(value) if value else default

    def set(self, key: str, value: str) -> None:
        with self._lock:
            values = self._load()
            values[key] = str(value)
            try:
                atomic_write_text(self.path, toml.dumps({self.SECTION: values}))
            except OSError as e:
                raise ConfigStoreError(f"Could not save {key} to {self.path}: {e}") from e

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = toml.load(self.path)
        except (OSError, toml.TomlDecodeError) as e:
            logger.warning(f"Ignoring unreadable state file {self.path}: {e}")
            return {}
        section = data.get(self.SECTION, {})
        if not isinstance(section, dict):
            return {}
        return {str(k): str(v) for k, v in section.items()}
