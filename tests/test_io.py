"""Tests for atomic state-file writes."""

import os
import stat
import sys
from pathlib import Path

import pytest

from gitok.utils.io import atomic_write_text


class TestAtomicWriteText:
    """Tests for atomic_write_text."""

    def test_creates_parents_and_writes(self, temp_dir: Path):
        path = temp_dir / "a" / "b" / "state.toml"

        atomic_write_text(path, "[state]\n")

        assert path.read_text() == "[state]\n"

    def test_replaces_existing_content(self, temp_dir: Path):
        path = temp_dir / "state.toml"
        path.write_text("old")

        atomic_write_text(path, "new")

        assert path.read_text() == "new"
        assert [p.name for p in temp_dir.iterdir()] == ["state.toml"]

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_custom_permissions(self, temp_dir: Path):
        path = temp_dir / "state.toml"

        atomic_write_text(path, "x", perms=0o640)

        assert stat.S_IMODE(os.stat(path).st_mode) == 0o640

    def test_failed_replace_keeps_old_file_and_cleans_up(self, monkeypatch, temp_dir: Path):
        path = temp_dir / "state.toml"
        path.write_text("old")

        def refuse(self, target):
            raise OSError("disk full")

        monkeypatch.setattr(Path, "replace", refuse)

        with pytest.raises(OSError, match="disk full"):
            atomic_write_text(path, "new")

        assert path.read_text() == "old"
        assert [p.name for p in temp_dir.iterdir()] == ["state.toml"]
