"""Tri-state kernel config data model.

A config key is either ``Enabled`` with an explicit value, ``Disabled``
(``# KEY is not set`` on disk), or absent from the mapping entirely.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import NamedTuple, Union

CONFIG_KEY_PATTERN = re.compile(r"^CONFIG_[A-Z0-9_]+$")

# Kernel config treats an explicit "=n" the same as "is not set"
DISABLED_VALUE = "n"


@dataclass(frozen=True)
class Enabled:
    """Key set to an explicit value (``KEY=value``)."""

    value: str

    def __post_init__(self) -> None:
        if self.value == DISABLED_VALUE:
            raise ValueError("Enabled value cannot be 'n'; use Disabled()")


@dataclass(frozen=True)
class Disabled:
    """Key explicitly turned off (``# KEY is not set``)."""


ConfigEntry = Union[Enabled, Disabled]


class ConfigOverride(NamedTuple):
    """A single (key, desired state) override pair."""

    key: str
    state: ConfigEntry


@dataclass
class KernelConfig:
    """Parsed kernel config snapshot.

    Attributes:
        entries: Mapping of config key to its tri-state entry.
        comments: Informational comment lines, in original order.
    """

    entries: dict[str, ConfigEntry] = field(default_factory=dict)
    comments: list[str] = field(default_factory=list)


def is_valid_key(key: str) -> bool:
    """Check a key against the kernel config identifier syntax.

    Bare symbol names such as ``FOO`` are rejected; keys must carry the
    ``CONFIG_`` prefix as they appear in a .config file.
    """
    return bool(CONFIG_KEY_PATTERN.fullmatch(key))


def is_single_line(value: str) -> bool:
    """Return True if a value holds no line breaks."""
    return "\n" not in value and "\r" not in value


def entry_from_value(value: str) -> ConfigEntry:
    """Map a raw assignment value to its entry, treating ``n`` as disabled."""
    if value == DISABLED_VALUE:
        return Disabled()
    return Enabled(value)


def describe_entry(entry: ConfigEntry | None) -> str:
    """Render an entry for human-readable change logs."""
    if entry is None:
        return "(absent)"
    if isinstance(entry, Disabled):
        return "is not set"
    return f"={entry.value}"


__all__ = [
    "CONFIG_KEY_PATTERN",
    "DISABLED_VALUE",
    "ConfigEntry",
    "ConfigOverride",
    "Disabled",
    "Enabled",
    "KernelConfig",
    "describe_entry",
    "entry_from_value",
    "is_single_line",
    "is_valid_key",
]
