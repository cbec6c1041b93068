"""File boundary helpers for in-place rewrites.

Baselines are read fully into memory, transformed, and written back via a
temporary file in the same directory followed by ``os.replace``, so the
original is only replaced once the new content is complete.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

from talos_imagegen.errors import MissingBaselineError

logger = logging.getLogger(__name__)


def read_baseline(path: Path) -> str:
    """Read a baseline text file.

    Args:
        path: Path to the baseline file.

    Returns:
        File content.

    Raises:
        MissingBaselineError: If the file does not exist.
    """
    if not path.is_file():
        raise MissingBaselineError(path)
    return path.read_text(encoding="utf-8")


def atomic_write_text(path: Path, text: str) -> None:
    """Replace a file's content atomically.

    The file mode of an existing target is preserved; a new file gets
    the default mode for the current umask.

    Args:
        path: Destination path.
        text: New file content.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as tmp_file:
        tmp_path = Path(tmp_file.name)

    try:
        tmp_path.write_text(text, encoding="utf-8")
        if path.exists():
            shutil.copymode(path, tmp_path)
        else:
            os.chmod(tmp_path, 0o666 & ~_current_umask())
        os.replace(tmp_path, path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise

    logger.debug("Wrote %s (%d bytes)", path, len(text.encode("utf-8")))


def _current_umask() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return umask


def backup_file(path: Path, suffix: str = ".bak") -> Path:
    """Copy a file next to itself with a backup suffix.

    Args:
        path: File to back up.
        suffix: Suffix appended to the file name.

    Returns:
        Path to the backup copy.
    """
    backup_path = path.with_name(path.name + suffix)
    shutil.copy2(path, backup_path)
    logger.debug("Backed up %s to %s", path, backup_path)
    return backup_path


__all__ = ["atomic_write_text", "backup_file", "read_baseline"]
