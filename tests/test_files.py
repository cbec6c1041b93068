"""Tests for the file boundary helpers."""

import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from talos_imagegen.errors import MissingBaselineError
from talos_imagegen.files import atomic_write_text, backup_file, read_baseline


class TestReadBaseline:
    """Tests for read_baseline."""

    def test_reads_content(self, tmp_path: Path):
        """Existing files are read as text."""
        path = tmp_path / "config"
        path.write_text("CONFIG_A=y\n")
        assert read_baseline(path) == "CONFIG_A=y\n"

    def test_missing_file(self, tmp_path: Path):
        """A missing file raises MissingBaselineError with its path."""
        path = tmp_path / "missing"
        with pytest.raises(MissingBaselineError) as exc_info:
            read_baseline(path)

        assert exc_info.value.path == path
        assert exc_info.value.code == "missing_baseline"

    def test_directory_is_not_a_baseline(self, tmp_path: Path):
        """A directory is not accepted as a baseline file."""
        with pytest.raises(MissingBaselineError):
            read_baseline(tmp_path)


class TestAtomicWriteText:
    """Tests for atomic_write_text."""

    def test_creates_file(self, tmp_path: Path):
        """New files are created along with missing parents."""
        path = tmp_path / "nested" / "out.txt"
        atomic_write_text(path, "hello\n")
        assert path.read_text() == "hello\n"

    def test_replaces_content(self, tmp_path: Path):
        """Existing content is replaced."""
        path = tmp_path / "out.txt"
        path.write_text("old\n")
        atomic_write_text(path, "new\n")
        assert path.read_text() == "new\n"

    def test_preserves_mode(self, tmp_path: Path):
        """The mode of an existing target is kept."""
        path = tmp_path / "script.sh"
        path.write_text("old\n")
        os.chmod(path, 0o750)

        atomic_write_text(path, "new\n")

        assert stat.S_IMODE(path.stat().st_mode) == 0o750

    def test_new_file_respects_umask(self, tmp_path: Path):
        """A new target gets the default mode for the umask, not 0600."""
        path = tmp_path / "out.config"
        old_umask = os.umask(0o022)
        try:
            atomic_write_text(path, "CONFIG_A=y\n")
        finally:
            os.umask(old_umask)

        assert stat.S_IMODE(path.stat().st_mode) == 0o644

    def test_no_temp_files_left(self, tmp_path: Path):
        """Only the target remains after a successful write."""
        path = tmp_path / "out.txt"
        atomic_write_text(path, "data\n")
        assert [p.name for p in tmp_path.iterdir()] == ["out.txt"]

    def test_failure_leaves_target_untouched(self, tmp_path: Path):
        """If the replace fails, the target and directory are unchanged."""
        path = tmp_path / "out.txt"
        path.write_text("original\n")

        with patch("talos_imagegen.files.os.replace", side_effect=OSError("boom")):
            with pytest.raises(OSError):
                atomic_write_text(path, "new\n")

        assert path.read_text() == "original\n"
        assert [p.name for p in tmp_path.iterdir()] == ["out.txt"]


class TestBackupFile:
    """Tests for backup_file."""

    def test_creates_backup(self, tmp_path: Path):
        """A .bak copy is written next to the file."""
        path = tmp_path / "Pkgfile"
        path.write_text("content\n")

        backup = backup_file(path)

        assert backup == tmp_path / "Pkgfile.bak"
        assert backup.read_text() == "content\n"
