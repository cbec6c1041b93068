"""Kernel config file operations.

This module wires the pure merge engine to the filesystem: read the
baseline, load the change document, merge in memory, then replace the
file atomically. Nothing is written unless every step succeeds.
"""

from __future__ import annotations

import logging
from pathlib import Path

from talos_imagegen.files import atomic_write_text, read_baseline
from talos_imagegen.kconfig.merge import ConfigApplyResult, apply_config_changes
from talos_imagegen.kconfig.models import describe_entry
from talos_imagegen.kconfig.parser import (
    clean_kernel_config,
    format_kernel_config,
    parse_kernel_config,
)
from talos_imagegen.profiles.io import load_kernel_changes

logger = logging.getLogger(__name__)


def apply_config_file(
    config_path: Path,
    changes_path: Path,
    dry_run: bool = False,
) -> ConfigApplyResult:
    """Apply the ``configs`` section of a change document to a config file.

    Args:
        config_path: Kernel config file to rewrite in place.
        changes_path: YAML change document.
        dry_run: Compute the result without writing.

    Returns:
        ConfigApplyResult describing the merge.

    Raises:
        MissingBaselineError: If the config file does not exist.
        MissingOverrideSourceError: If the change document does not exist.
        MalformedOverrideError: If an override entry is malformed.
    """
    baseline_text = read_baseline(config_path)
    changes = load_kernel_changes(changes_path)

    if changes.configs.is_empty():
        logger.info(
            "No config changes in %s, leaving %s as is", changes_path, config_path
        )
        return ConfigApplyResult(config=parse_kernel_config(baseline_text))

    logger.info("Applying config changes from %s to %s", changes_path, config_path)
    result = apply_config_changes(parse_kernel_config(baseline_text), changes.configs)

    for change in result.changes:
        logger.info(
            "%s %s: %s -> %s",
            change.action.value,
            change.key,
            describe_entry(change.before),
            describe_entry(change.after),
        )

    if dry_run:
        logger.info("Dry run, not writing %s", config_path)
    else:
        atomic_write_text(config_path, format_kernel_config(result.config))
        logger.info(
            "Applied %d config change(s) to %s", result.change_count, config_path
        )

    return result


def clean_config_file(input_path: Path, output_path: Path | None = None) -> Path:
    """Remove informational comments from a kernel config file.

    Args:
        input_path: Config file to clean.
        output_path: Destination; overwrites ``input_path`` if not given.

    Returns:
        Path the cleaned config was written to.

    Raises:
        MissingBaselineError: If the input file does not exist.
    """
    destination = output_path or input_path
    cleaned = clean_kernel_config(read_baseline(input_path))
    atomic_write_text(destination, cleaned)
    logger.info("Cleaned config written to %s", destination)
    return destination


__all__ = ["apply_config_file", "clean_config_file"]
