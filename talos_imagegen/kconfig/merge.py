"""Kernel config merge engine.

This module handles:
- Merging an ordered override set into a baseline config mapping
- Converting change documents (flat mapping or add/disable/remove form)
  into override sets
- Applying a full change document to a snapshot with a per-key change log

All functions are pure; file I/O lives in kconfig.service.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from talos_imagegen.errors import MalformedOverrideError
from talos_imagegen.kconfig.models import (
    ConfigEntry,
    ConfigOverride,
    Disabled,
    Enabled,
    KernelConfig,
    entry_from_value,
    is_single_line,
    is_valid_key,
)
from talos_imagegen.profiles.schema import ConfigChangesSchema, ConfigValue
from talos_imagegen.types import ChangeAction

logger = logging.getLogger(__name__)


@dataclass
class ConfigChange:
    """A single applied change to a config key."""

    key: str
    action: ChangeAction
    before: ConfigEntry | None
    after: ConfigEntry | None


@dataclass
class ConfigApplyResult:
    """Result of applying a change document to a kernel config.

    Attributes:
        config: The merged snapshot.
        changes: Keys whose state actually changed, in key order.
    """

    config: KernelConfig
    changes: list[ConfigChange] = field(default_factory=list)

    @property
    def change_count(self) -> int:
        """Number of keys whose state changed."""
        return len(self.changes)


def validate_overrides(overrides: Iterable[ConfigOverride]) -> list[ConfigOverride]:
    """Validate every override key before anything is applied.

    Args:
        overrides: Override pairs to validate.

    Returns:
        The overrides as a list, in the given order.

    Raises:
        MalformedOverrideError: On the first key failing identifier syntax
            or a value spanning more than one line.
    """
    validated = list(overrides)
    for override in validated:
        if not isinstance(override.key, str) or not is_valid_key(override.key):
            raise MalformedOverrideError(
                str(override.key),
                f"{override.key}: {override.state}",
                reason="key must match CONFIG_[A-Z0-9_]+",
            )
        if not isinstance(override.state, (Enabled, Disabled)):
            raise MalformedOverrideError(
                override.key,
                f"{override.key}: {override.state!r}",
                reason="state must be Enabled or Disabled",
            )
        if isinstance(override.state, Enabled) and not is_single_line(
            override.state.value
        ):
            raise MalformedOverrideError(
                override.key,
                f"{override.key}: {override.state.value!r}",
                reason="value must be a single line",
            )
    return validated


def merge_config(
    baseline: Mapping[str, ConfigEntry],
    overrides: Iterable[ConfigOverride],
) -> dict[str, ConfigEntry]:
    """Merge an ordered override set into a baseline mapping.

    Overrides are applied in order, so a repeated key takes its last value.
    Keys not mentioned keep their baseline state. The baseline is never
    mutated, and a malformed override aborts before any change is made.

    Args:
        baseline: Baseline key to entry mapping (keys assumed unique).
        overrides: Ordered override pairs.

    Returns:
        New mapping sorted by key.

    Raises:
        MalformedOverrideError: If any override key is malformed.
    """
    validated = validate_overrides(overrides)

    merged: dict[str, ConfigEntry] = dict(baseline)
    for key, state in validated:
        merged[key] = state

    return {key: merged[key] for key in sorted(merged)}


def merge_kernel_config(
    config: KernelConfig,
    overrides: Iterable[ConfigOverride],
) -> KernelConfig:
    """Merge overrides into a full snapshot, keeping its comments."""
    return KernelConfig(
        entries=merge_config(config.entries, overrides),
        comments=list(config.comments),
    )


def override_from_value(key: str, value: ConfigValue) -> ConfigOverride:
    """Build an override from a mapping-form YAML value.

    ``n``, ``false`` and null disable the key, ``true`` means ``y``; any
    other scalar is used as the string value.
    """
    if value is None or value is False:
        return ConfigOverride(key, Disabled())
    if value is True:
        return ConfigOverride(key, Enabled("y"))
    return ConfigOverride(key, entry_from_value(str(value).strip()))


def split_assignment(line: str) -> tuple[str, str]:
    """Split a ``CONFIG_X=value`` line into key and value.

    Raises:
        MalformedOverrideError: If the line has no '=' or a malformed key
            or value.
    """
    key, sep, value = line.strip().partition("=")
    key = key.strip()
    if not sep:
        raise MalformedOverrideError(key, line, reason="expected KEY=value")
    if not is_valid_key(key):
        raise MalformedOverrideError(
            key, line, reason="key must match CONFIG_[A-Z0-9_]+"
        )
    value = value.strip()
    if not is_single_line(value):
        raise MalformedOverrideError(key, line, reason="value must be a single line")
    return key, value


def build_overrides(changes: ConfigChangesSchema) -> list[ConfigOverride]:
    """Convert a ``configs`` section into an ordered override set.

    Order is: mapping entries, then ``add`` lines, then ``disable`` names.
    ``remove`` lines are not overrides and are handled by
    :func:`apply_config_changes`.

    Args:
        changes: Parsed ``configs`` section.

    Returns:
        Validated override list.

    Raises:
        MalformedOverrideError: On the first malformed entry.
    """
    overrides: list[ConfigOverride] = [
        override_from_value(key, value) for key, value in changes.overrides.items()
    ]

    for line in changes.add:
        key, value = split_assignment(line)
        overrides.append(ConfigOverride(key, entry_from_value(value)))

    for name in changes.disable:
        overrides.append(ConfigOverride(name.strip(), Disabled()))

    return validate_overrides(overrides)


def _build_removals(
    changes: ConfigChangesSchema, overridden: set[str]
) -> dict[str, str]:
    removals: dict[str, str] = {}
    for line in changes.remove:
        key, value = split_assignment(line)
        if key in overridden:
            logger.debug("Skipping removal of %s, handled by add/disable", key)
            continue
        removals[key] = value
    return removals


def apply_config_changes(
    config: KernelConfig,
    changes: ConfigChangesSchema,
) -> ConfigApplyResult:
    """Apply a full ``configs`` section to a snapshot.

    Removal lines only drop a key whose current value matches exactly;
    a removal target that is absent or differs is left alone.

    Args:
        config: Baseline snapshot.
        changes: Parsed ``configs`` section.

    Returns:
        ConfigApplyResult with the merged snapshot and change log.

    Raises:
        MalformedOverrideError: If any entry is malformed. Nothing is
            applied in that case.
    """
    overrides = build_overrides(changes)
    removals = _build_removals(changes, {o.key for o in overrides})

    merged = merge_kernel_config(config, overrides)

    for key, value in removals.items():
        current = merged.entries.get(key)
        if current == entry_from_value(value):
            del merged.entries[key]
        else:
            logger.debug("Removal target %s=%s not present, skipping", key, value)

    result = ConfigApplyResult(config=merged)
    for key in sorted(set(config.entries) | set(merged.entries)):
        before = config.entries.get(key)
        after = merged.entries.get(key)
        if before == after:
            continue
        if after is None:
            action = ChangeAction.REMOVE
        elif isinstance(after, Disabled):
            action = ChangeAction.DISABLE
        else:
            action = ChangeAction.ENABLE
        result.changes.append(ConfigChange(key, action, before, after))

    return result


__all__ = [
    "ConfigApplyResult",
    "ConfigChange",
    "apply_config_changes",
    "build_overrides",
    "merge_config",
    "merge_kernel_config",
    "override_from_value",
    "split_assignment",
    "validate_overrides",
]
