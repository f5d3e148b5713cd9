"""Crash-safe replacement of the small state file."""

import os
import tempfile
from pathlib import Path

STATE_FILE_MODE = 0o600


def atomic_write_text(path: str | Path, data: str, perms: int = STATE_FILE_MODE) -> None:
    """
    Replace path with data.

    The new content is written to a sibling temp file that already carries
    perms, so readers see either the old file or the complete new one and
    the saved directory is never world-readable, not even briefly.

    Raises:
        OSError: If the directory cannot be created or the file written.
                 No temp file is left behind.
    """
    dest = Path(path)
    dest.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=dest.parent, prefix=f".{dest.name}.", suffix=".tmp")
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp.chmod(perms)
        tmp.replace(dest)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
