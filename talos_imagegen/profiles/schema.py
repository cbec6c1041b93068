"""Pydantic models for build profiles and kernel change documents.

Build profiles describe a single imager run (architecture, platform,
overlay, system extensions, output format). Change documents describe
kernel config overrides and module additions/removals applied to the
vendored kernel packages before the imager runs.
"""

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from talos_imagegen.types import Compression

PROFILE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_.\-]+$")
IMAGER_VERSION_PATTERN = re.compile(r"^v\d+\.\d+")

# Source prefixes accepted for imager inputs, see imager.compose
SOURCE_PREFIXES = ("tarball:", "oci:")

STRUCTURED_CONFIG_KEYS = {"add", "remove", "disable"}

ConfigValue = str | int | float | bool | None


def _validate_source(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("image sources must be non-empty strings")
    for prefix in SOURCE_PREFIXES:
        if v.startswith(prefix) and not v[len(prefix) :].strip():
            raise ValueError(f"'{prefix}' source requires a path, got '{v}'")
    return v


class ImagerSchema(BaseModel):
    """Schema for the imager container reference.

    Attributes:
        image: Imager image repository (settings default if unset).
        version: Imager image tag, i.e. the Talos version (settings default
            if unset).
    """

    model_config = ConfigDict(extra="forbid")

    image: str | None = Field(default=None, min_length=1)
    version: str | None = Field(default=None, min_length=2)

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str | None) -> str | None:
        """Validate version looks like a Talos release tag."""
        if v is None:
            return v
        if not IMAGER_VERSION_PATTERN.match(v):
            raise ValueError(f"version must look like 'v1.12.1', got '{v}'")
        return v


class OverlaySchema(BaseModel):
    """Schema for an SBC overlay.

    Attributes:
        name: Overlay name (e.g., 'rpi_generic').
        image: Overlay image reference, 'tarball:<path>' or 'oci:<path>'.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    image: str = Field(min_length=1)

    @field_validator("image")
    @classmethod
    def validate_image(cls, v: str) -> str:
        """Validate overlay image source."""
        return _validate_source(v)


class InputSchema(BaseModel):
    """Schema for optional imager inputs.

    Attributes:
        kernel: Host path to a kernel image.
        initramfs: Host path to an initramfs.
        base_installer: Base installer image, 'tarball:<path>' or 'oci:<path>'.
    """

    model_config = ConfigDict(extra="forbid")

    kernel: str | None = None
    initramfs: str | None = None
    base_installer: str | None = None

    @field_validator("base_installer")
    @classmethod
    def validate_base_installer(cls, v: str | None) -> str | None:
        """Validate base installer source."""
        if v is None:
            return v
        return _validate_source(v)


class OutputSchema(BaseModel):
    """Schema for imager output options.

    Attributes:
        kind: Output kind.
        disk_format: Disk format (raw, qcow2, vhd, ova, ...).
        disk_size: Disk size in bytes.
        compression: Output compression.
    """

    model_config = ConfigDict(extra="forbid")

    kind: str = "image"
    disk_format: str = "raw"
    disk_size: int = Field(default=1306902528, gt=0)
    compression: Compression = Compression.XZ


class BuildProfileSchema(BaseModel):
    """Complete build profile for one imager run."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, description="Profile name")
    description: str | None = None
    imager: ImagerSchema = Field(default_factory=ImagerSchema)
    arch: Literal["amd64", "arm64"] = "arm64"
    platform: str = Field(default="nocloud", min_length=1)
    secureboot: bool = False
    overlay: OverlaySchema | None = None
    system_extensions: list[str] = Field(default_factory=list)
    input: InputSchema | None = None
    output: OutputSchema = Field(default_factory=OutputSchema)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        """Validate profile name matches safe pattern."""
        if v is None:
            return v
        if not PROFILE_NAME_PATTERN.match(v):
            raise ValueError(
                f"name must match pattern {PROFILE_NAME_PATTERN.pattern}, got '{v}'"
            )
        return v

    @field_validator("system_extensions")
    @classmethod
    def validate_system_extensions(cls, v: list[str]) -> list[str]:
        """Validate system extension sources."""
        for item in v:
            _validate_source(item)
        return v


class ConfigChangesSchema(BaseModel):
    """Schema for the ``configs`` section of a change document.

    Attributes:
        overrides: Mapping form, ``CONFIG_X: value``.
        add: ``CONFIG_X=value`` lines to enable.
        disable: Config names to mark as not set.
        remove: ``CONFIG_X=value`` lines to drop when present verbatim.
    """

    model_config = ConfigDict(extra="forbid")

    overrides: dict[str, ConfigValue] = Field(default_factory=dict)
    add: list[str] = Field(default_factory=list)
    disable: list[str] = Field(default_factory=list)
    remove: list[str] = Field(default_factory=list)

    @field_validator("add", "disable", "remove", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        """Treat an empty YAML section as an empty list."""
        return [] if v is None else v

    def is_empty(self) -> bool:
        """Return True if the section requests no changes."""
        return not (self.overrides or self.add or self.disable or self.remove)


class ModuleChangesSchema(BaseModel):
    """Schema for the ``modules`` section of a change document."""

    model_config = ConfigDict(extra="forbid")

    add: list[str] = Field(default_factory=list)
    remove: list[str] = Field(default_factory=list)

    @field_validator("add", "remove", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        """Treat an empty YAML section as an empty list."""
        return [] if v is None else v

    @field_validator("add", "remove")
    @classmethod
    def validate_entries(cls, v: list[str]) -> list[str]:
        """Validate module entries are non-empty single-line strings."""
        for item in v:
            if not item or not item.strip():
                raise ValueError("module entries must be non-empty strings")
            if "\n" in item:
                raise ValueError(f"module entries must be single lines, got '{item}'")
        return [item.strip() for item in v]


class KernelChangesSchema(BaseModel):
    """Complete kernel change document.

    The ``configs`` section accepts either a flat ``CONFIG_X: value``
    mapping or a structured ``add``/``disable``/``remove`` form.
    """

    model_config = ConfigDict(extra="forbid")

    configs: ConfigChangesSchema = Field(default_factory=ConfigChangesSchema)
    modules: ModuleChangesSchema = Field(default_factory=ModuleChangesSchema)

    @model_validator(mode="before")
    @classmethod
    def normalize_sections(cls, data: Any) -> Any:
        """Map the flat override form onto ConfigChangesSchema."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for section in ("configs", "modules"):
            if section in data and data[section] is None:
                data.pop(section)
        configs = data.get("configs")
        if isinstance(configs, dict) and not (
            configs.keys() <= STRUCTURED_CONFIG_KEYS | {"overrides"}
        ):
            data["configs"] = {"overrides": configs}
        return data


__all__ = [
    "BuildProfileSchema",
    "ConfigChangesSchema",
    "ImagerSchema",
    "InputSchema",
    "KernelChangesSchema",
    "ModuleChangesSchema",
    "OutputSchema",
    "OverlaySchema",
]
