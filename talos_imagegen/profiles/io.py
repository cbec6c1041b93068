"""Profile and change document loading.

This module provides helpers for loading build profiles and kernel change
documents from YAML files, and for rendering profiles back to YAML.
"""

from pathlib import Path
from typing import Any

import yaml

from talos_imagegen.errors import MissingOverrideSourceError, TalosImagegenError
from talos_imagegen.profiles.schema import BuildProfileSchema, KernelChangesSchema

PROFILE_SUFFIXES = (".yaml", ".yml")


class ProfileNotFoundError(TalosImagegenError):
    """Raised when a named build profile does not exist."""

    def __init__(self, name: str, profiles_dir: Path) -> None:
        super().__init__(
            f"Profile not found: {name} (in {profiles_dir})", code="profile_not_found"
        )
        self.name = name
        self.profiles_dir = profiles_dir


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dict.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content as a dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the YAML document is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping, got {type(data).__name__}")
    return data


def load_profile(path: Path) -> BuildProfileSchema:
    """Load and validate a build profile from a YAML file.

    The profile name defaults to the file stem.

    Args:
        path: Path to the profile file.

    Returns:
        Validated BuildProfileSchema instance.

    Raises:
        ValueError: If the file extension is not supported.
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If data does not match schema.
    """
    if path.suffix.lower() not in PROFILE_SUFFIXES:
        raise ValueError(
            f"Unsupported file extension '{path.suffix}'. Use .yaml or .yml"
        )
    data = load_yaml(path)
    data.setdefault("name", path.stem)
    return BuildProfileSchema.model_validate(data)


def list_profile_names(profiles_dir: Path) -> list[str]:
    """List build profile names available in a directory.

    Args:
        profiles_dir: Directory to scan.

    Returns:
        Sorted profile names (file stems); empty if the directory is missing.
    """
    if not profiles_dir.is_dir():
        return []
    return sorted(
        path.stem
        for path in profiles_dir.iterdir()
        if path.is_file() and path.suffix.lower() in PROFILE_SUFFIXES
    )


def find_profile_path(profiles_dir: Path, name: str) -> Path:
    """Resolve a profile name to its file path.

    Raises:
        ProfileNotFoundError: If no matching file exists.
    """
    for suffix in PROFILE_SUFFIXES:
        candidate = profiles_dir / f"{name}{suffix}"
        if candidate.is_file():
            return candidate
    raise ProfileNotFoundError(name, profiles_dir)


def load_profile_by_name(profiles_dir: Path, name: str) -> BuildProfileSchema:
    """Load a build profile by name from the profiles directory.

    Raises:
        ProfileNotFoundError: If no matching file exists.
        pydantic.ValidationError: If data does not match schema.
    """
    return load_profile(find_profile_path(profiles_dir, name))


def profile_to_yaml_string(profile: BuildProfileSchema) -> str:
    """Convert a profile to a YAML string.

    Args:
        profile: BuildProfileSchema instance to convert.

    Returns:
        YAML string representation.
    """
    data = profile.model_dump(mode="json", exclude_none=True)
    result: str = yaml.dump(
        data, default_flow_style=False, allow_unicode=True, sort_keys=False
    )
    return result


def load_kernel_changes(path: Path) -> KernelChangesSchema:
    """Load and validate a kernel change document.

    Missing ``configs`` or ``modules`` sections are treated as empty.

    Args:
        path: Path to the change document.

    Returns:
        Validated KernelChangesSchema instance.

    Raises:
        MissingOverrideSourceError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        pydantic.ValidationError: If data does not match schema.
    """
    if not path.is_file():
        raise MissingOverrideSourceError(path)
    return KernelChangesSchema.model_validate(load_yaml(path))


__all__ = [
    "ProfileNotFoundError",
    "find_profile_path",
    "list_profile_names",
    "load_kernel_changes",
    "load_profile",
    "load_profile_by_name",
    "load_yaml",
    "profile_to_yaml_string",
]
