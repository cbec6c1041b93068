"""Module manifest file operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from talos_imagegen.files import atomic_write_text, read_baseline
from talos_imagegen.modules.manifest import (
    DEFAULT_FOOTER_PREFIX,
    ModuleManifest,
    format_manifest,
    parse_manifest,
)
from talos_imagegen.modules.merge import merge_modules
from talos_imagegen.profiles.io import load_kernel_changes

logger = logging.getLogger(__name__)


@dataclass
class ModuleApplyResult:
    """Result of applying module changes to a manifest file.

    Attributes:
        added: Entries inserted before the footer.
        removed: Entries that existed and were removed.
        total: Entry count of the resulting manifest.
        manifest: The resulting manifest.
    """

    added: list[str]
    removed: list[str]
    total: int
    manifest: ModuleManifest


def apply_module_file(
    modules_path: Path,
    changes_path: Path,
    footer_prefix: str = DEFAULT_FOOTER_PREFIX,
    dry_run: bool = False,
) -> ModuleApplyResult:
    """Apply the ``modules`` section of a change document to a manifest file.

    Args:
        modules_path: Manifest file to rewrite in place.
        changes_path: YAML change document.
        footer_prefix: Prefix identifying footer lines.
        dry_run: Compute the result without writing.

    Returns:
        ModuleApplyResult with counts and the merged manifest.

    Raises:
        MissingBaselineError: If the manifest does not exist.
        MissingOverrideSourceError: If the change document does not exist.
    """
    baseline = parse_manifest(read_baseline(modules_path), footer_prefix)
    changes = load_kernel_changes(changes_path).modules

    logger.info("Applying module changes from %s to %s", changes_path, modules_path)
    merged = merge_modules(baseline, changes.add, changes.remove)

    before = set(baseline.entries)
    after = set(merged.entries)
    added = [entry for entry in merged.body if entry not in before]
    removed = sorted(before - after)

    for entry in removed:
        logger.info("Removed module %s", entry)
    for entry in added:
        logger.info("Added module %s", entry)

    if dry_run:
        logger.info("Dry run, not writing %s", modules_path)
    else:
        atomic_write_text(modules_path, format_manifest(merged))
        logger.info(
            "Applied module changes to %s (+%d/-%d, %d total)",
            modules_path,
            len(added),
            len(removed),
            len(merged),
        )

    return ModuleApplyResult(
        added=added, removed=removed, total=len(merged), manifest=merged
    )


__all__ = ["ModuleApplyResult", "apply_module_file"]
