"""Interactive choice of the root directory to watch."""

import logging
from pathlib import Path
from typing import Optional, Protocol

import click

logger = logging.getLogger(__name__)


class DirectoryPicker(Protocol):
    """Returns an absolute directory path, or None when the user cancels."""

    def pick(self) -> Optional[str]:
        ...


class PromptDirectoryPicker:
    """Asks for a directory on the terminal."""

    def __init__(self, default: Optional[str] = None):
        self.default = default or str(Path.home())

    def pick(self) -> Optional[str]:
        try:
            value = click.prompt(
                "Directory to watch",
                default=self.default,
                type=click.Path(exists=True, file_okay=False, resolve_path=True),
            )
        except click.Abort:
            logger.debug("Directory selection cancelled")
            return None
        return str(value) if value else None
