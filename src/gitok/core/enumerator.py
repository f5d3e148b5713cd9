"""List the first-level subdirectories of a root folder."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from gitok.models.status import DirectoryEntry

logger = logging.getLogger(__name__)


class EnumerationError(Exception):
    """Raised when the root directory cannot be read."""

    def __init__(self, root_path: str, reason: str):
        super().__init__(f"Cannot read directory {root_path}: {reason}")
        self.root_path = root_path
        self.reason = reason


@dataclass
class DirectoryListing:
    """Directories found under a root, or the reason none could be listed."""

    root_path: str
    entries: list[DirectoryEntry] = field(default_factory=list)
    error: Optional[EnumerationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def normalize_root(root_path: str | Path) -> str:
    """Expand ~ and make a root path absolute without resolving symlinks."""
    return str(Path(root_path).expanduser().absolute())


class DirectoryEnumerator:
    """
    Enumerates immediate child directories of a root path.

    Only directories are returned; regular files, symlinks to files and
    broken symlinks are skipped. Symlinks to directories count as
    directories, as reported by stat. Nothing is recursed into.
    """

    def list_directories(self, root_path: str | Path) -> DirectoryListing:
        """
        List the child directories of root_path, sorted by name.

        An unreadable root yields an empty listing with the error attached
        instead of raising.
        """
        root = normalize_root(root_path)
        listing = DirectoryListing(root_path=root)

        try:
            with os.scandir(root) as it:
                children = list(it)
        except FileNotFoundError:
            listing.error = EnumerationError(root, "directory does not exist")
        except NotADirectoryError:
            listing.error = EnumerationError(root, "not a directory")
        except PermissionError:
            listing.error = EnumerationError(root, "permission denied")
        except OSError as e:
            listing.error = EnumerationError(root, e.strerror or str(e))
        else:
            listing.entries = self._directories(children)

        if listing.error is not None:
            logger.warning(str(listing.error))

        return listing

    def _directories(self, children: list[os.DirEntry]) -> list[DirectoryEntry]:
        entries = []

        for child in children:
            try:
                is_dir = child.is_dir()
            except OSError as e:
                logger.debug(f"Skipping {child.path}: {e}")
                continue

            if is_dir:
                entries.append(DirectoryEntry(path=child.path, name=child.name))

        entries.sort(key=lambda entry: entry.name)
        return entries
