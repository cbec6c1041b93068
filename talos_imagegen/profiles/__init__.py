"""Profile management module.

This module handles:
- Validation of build profiles and kernel change documents
- Loading profiles from the profiles directory
- Rendering profiles back to YAML
"""

from talos_imagegen.profiles.io import (
    ProfileNotFoundError,
    find_profile_path,
    list_profile_names,
    load_kernel_changes,
    load_profile,
    load_profile_by_name,
    profile_to_yaml_string,
)
from talos_imagegen.profiles.schema import (
    BuildProfileSchema,
    ConfigChangesSchema,
    ImagerSchema,
    InputSchema,
    KernelChangesSchema,
    ModuleChangesSchema,
    OutputSchema,
    OverlaySchema,
)

__all__ = [
    # Schema
    "BuildProfileSchema",
    "ConfigChangesSchema",
    "ImagerSchema",
    "InputSchema",
    "KernelChangesSchema",
    "ModuleChangesSchema",
    "OutputSchema",
    "OverlaySchema",
    # IO functions
    "ProfileNotFoundError",
    "find_profile_path",
    "list_profile_names",
    "load_kernel_changes",
    "load_profile",
    "load_profile_by_name",
    "profile_to_yaml_string",
]
