"""Kernel config management module.

This module handles:
- The tri-state config model (enabled with value, disabled, absent)
- Parsing and formatting kernel config text
- Merging override sets and change documents into a baseline
- Applying changes to config files in place
"""

from talos_imagegen.kconfig.merge import (
    ConfigApplyResult,
    ConfigChange,
    apply_config_changes,
    build_overrides,
    merge_config,
    merge_kernel_config,
)
from talos_imagegen.kconfig.models import (
    CONFIG_KEY_PATTERN,
    ConfigEntry,
    ConfigOverride,
    Disabled,
    Enabled,
    KernelConfig,
)
from talos_imagegen.kconfig.parser import (
    clean_kernel_config,
    format_kernel_config,
    parse_kernel_config,
)

__all__ = [
    # Models
    "CONFIG_KEY_PATTERN",
    "ConfigEntry",
    "ConfigOverride",
    "Disabled",
    "Enabled",
    "KernelConfig",
    # Parser
    "clean_kernel_config",
    "format_kernel_config",
    "parse_kernel_config",
    # Merge
    "ConfigApplyResult",
    "ConfigChange",
    "apply_config_changes",
    "build_overrides",
    "merge_config",
    "merge_kernel_config",
]

# Service functions live in talos_imagegen.kconfig.service
