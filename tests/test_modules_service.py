"""Tests for module manifest file operations."""

from pathlib import Path

import pytest

from talos_imagegen.errors import MissingBaselineError, MissingOverrideSourceError
from talos_imagegen.modules.service import apply_module_file

MANIFEST = """\
kernel/drivers/a.ko
kernel/drivers/b.ko
modules.builtin
modules.order
"""


@pytest.fixture
def modules_path(tmp_path: Path) -> Path:
    path = tmp_path / "modules-arm64.txt"
    path.write_text(MANIFEST)
    return path


@pytest.fixture
def changes_path(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        "modules:\n"
        "  add:\n"
        "    - kernel/drivers/d.ko\n"
        "    - kernel/drivers/c.ko\n"
        "  remove:\n"
        "    - kernel/drivers/a.ko\n"
        "    - kernel/drivers/missing.ko\n"
    )
    return path


class TestApplyModuleFile:
    """Tests for apply_module_file."""

    def test_applies_changes(self, modules_path: Path, changes_path: Path):
        """Removals apply and additions land before the footer."""
        result = apply_module_file(modules_path, changes_path)

        assert modules_path.read_text() == (
            "kernel/drivers/b.ko\n"
            "kernel/drivers/c.ko\n"
            "kernel/drivers/d.ko\n"
            "modules.builtin\n"
            "modules.order\n"
        )
        assert result.added == ["kernel/drivers/c.ko", "kernel/drivers/d.ko"]
        assert result.removed == ["kernel/drivers/a.ko"]
        assert result.total == 5

    def test_idempotent_file(self, modules_path: Path, changes_path: Path):
        """A second apply leaves the file byte-identical."""
        apply_module_file(modules_path, changes_path)
        first = modules_path.read_bytes()

        result = apply_module_file(modules_path, changes_path)

        assert modules_path.read_bytes() == first
        assert result.added == []
        assert result.removed == []

    def test_dry_run_does_not_write(self, modules_path: Path, changes_path: Path):
        """Dry runs report counts without touching the file."""
        result = apply_module_file(modules_path, changes_path, dry_run=True)

        assert len(result.added) == 2
        assert modules_path.read_text() == MANIFEST

    def test_missing_manifest(self, tmp_path: Path, changes_path: Path):
        """A missing manifest raises MissingBaselineError."""
        with pytest.raises(MissingBaselineError):
            apply_module_file(tmp_path / "missing.txt", changes_path)

    def test_missing_changes(self, tmp_path: Path, modules_path: Path):
        """A missing change document raises MissingOverrideSourceError."""
        with pytest.raises(MissingOverrideSourceError):
            apply_module_file(modules_path, tmp_path / "missing.yaml")

    def test_custom_footer_prefix(self, tmp_path: Path):
        """The footer prefix controls where additions are inserted."""
        modules = tmp_path / "modules.txt"
        modules.write_text("a.ko\nzz.footer\n")
        changes = tmp_path / "config.yaml"
        changes.write_text("modules:\n  add: [b.ko]\n")

        apply_module_file(modules, changes, footer_prefix="zz.")

        assert modules.read_text() == "a.ko\nb.ko\nzz.footer\n"
