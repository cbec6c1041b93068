"""Kernel config text parsing and formatting.

The on-disk format is a list of ``KEY=value`` assignments and
``# KEY is not set`` markers, plus free-form comment lines. Formatting
normalizes ordering (comments first, then entries sorted by key), so
``parse(format(config)) == config`` holds while byte identity does not.
"""

from __future__ import annotations

import logging
import re

from talos_imagegen.kconfig.models import (
    ConfigEntry,
    Disabled,
    Enabled,
    KernelConfig,
    entry_from_value,
)

logger = logging.getLogger(__name__)

ASSIGNMENT_PATTERN = re.compile(r"^\s*(CONFIG_[A-Z0-9_]+)\s*=(.*)$")
NOT_SET_PATTERN = re.compile(r"^#\s*(CONFIG_[A-Z0-9_]+) is not set\s*$")
NOT_SET_SUFFIX = "is not set"


def parse_kernel_config(text: str) -> KernelConfig:
    """Parse kernel config text into a tri-state snapshot.

    Args:
        text: Kernel config file content.

    Returns:
        KernelConfig with entries and informational comments.
    """
    config = KernelConfig()

    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.rstrip()
        if not line.strip():
            continue

        not_set = NOT_SET_PATTERN.match(line)
        if not_set:
            config.entries[not_set.group(1)] = Disabled()
            continue

        if line.lstrip().startswith("#"):
            config.comments.append(line)
            continue

        assignment = ASSIGNMENT_PATTERN.match(line)
        if assignment:
            key, value = assignment.group(1), assignment.group(2).strip()
            config.entries[key] = entry_from_value(value)
            continue

        logger.debug("Skipping unrecognized config line %d: %s", lineno, line)

    return config


def format_entry(key: str, entry: ConfigEntry) -> str:
    """Format a single entry as a config line."""
    if isinstance(entry, Enabled):
        return f"{key}={entry.value}"
    return f"# {key} {NOT_SET_SUFFIX}"


def format_kernel_config(config: KernelConfig) -> str:
    """Format a snapshot as kernel config text.

    Args:
        config: KernelConfig to format.

    Returns:
        Config text with a trailing newline.
    """
    lines: list[str] = []
    if config.comments:
        lines.extend(config.comments)
        lines.append("")
    lines.extend(
        format_entry(key, config.entries[key]) for key in sorted(config.entries)
    )
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def clean_kernel_config(text: str) -> str:
    """Strip informational comments, keeping ``is not set`` markers.

    Non-comment lines are kept verbatim.

    Args:
        text: Kernel config file content.

    Returns:
        Cleaned config text.
    """
    kept = [
        line
        for line in text.splitlines()
        if not line.startswith("#") or line.rstrip().endswith(NOT_SET_SUFFIX)
    ]
    if not kept:
        return ""
    return "\n".join(kept) + "\n"


__all__ = [
    "clean_kernel_config",
    "format_entry",
    "format_kernel_config",
    "parse_kernel_config",
]
