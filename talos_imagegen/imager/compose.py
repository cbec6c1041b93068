"""Imager profile document composition.

Translates a BuildProfileSchema into the YAML document the Talos imager
reads on stdin.
"""

from __future__ import annotations

from typing import Any

import yaml

from talos_imagegen.profiles.schema import BuildProfileSchema
from talos_imagegen.types import Compression, ImageSourceKind

DEFAULT_IMAGER_IMAGE = "ghcr.io/siderolabs/imager"
DEFAULT_IMAGER_VERSION = "v1.12.1"

# Compression to imager outFormat
OUT_FORMATS: dict[Compression, str] = {
    Compression.XZ: ".xz",
    Compression.GZIP: ".gz",
    Compression.ZSTD: ".zst",
    Compression.NONE: "raw",
}

_SOURCE_PREFIXES: dict[str, ImageSourceKind] = {
    "tarball:": ImageSourceKind.TARBALL,
    "oci:": ImageSourceKind.OCI,
}


def parse_image_source(ref: str) -> dict[str, str]:
    """Map a source reference onto the imager's image source keys.

    ``tarball:<path>`` and ``oci:<path>`` select a local path; anything
    else is treated as a registry image reference.

    Args:
        ref: Source reference.

    Returns:
        Single-key dict, e.g. ``{"imageRef": "ghcr.io/..."}``.
    """
    for prefix, kind in _SOURCE_PREFIXES.items():
        if ref.startswith(prefix):
            return {kind.value: ref[len(prefix) :]}
    return {ImageSourceKind.IMAGE_REF.value: ref}


def effective_imager_image(
    profile: BuildProfileSchema,
    default_image: str = DEFAULT_IMAGER_IMAGE,
    default_version: str = DEFAULT_IMAGER_VERSION,
) -> tuple[str, str]:
    """Return the imager image and version, falling back to defaults."""
    return (
        profile.imager.image or default_image,
        profile.imager.version or default_version,
    )


def _compose_input(profile: BuildProfileSchema) -> dict[str, Any]:
    data: dict[str, Any] = {}
    if profile.input is not None:
        if profile.input.kernel:
            data["kernel"] = {"path": profile.input.kernel}
        if profile.input.initramfs:
            data["initramfs"] = {"path": profile.input.initramfs}
        if profile.input.base_installer:
            data["baseInstaller"] = parse_image_source(profile.input.base_installer)
    if profile.system_extensions:
        data["systemExtensions"] = [
            parse_image_source(ext) for ext in profile.system_extensions
        ]
    return data


def compose_imager_config(
    profile: BuildProfileSchema,
    default_version: str = DEFAULT_IMAGER_VERSION,
) -> dict[str, Any]:
    """Render the imager profile document for a build profile.

    Args:
        profile: Validated build profile.
        default_version: Talos version used when the profile sets none.

    Returns:
        Imager profile as a plain dict, ready for YAML serialization.
    """
    config: dict[str, Any] = {
        "arch": profile.arch,
        "platform": profile.platform,
        "secureboot": profile.secureboot,
        "version": profile.imager.version or default_version,
    }

    input_data = _compose_input(profile)
    if input_data:
        config["input"] = input_data

    if profile.overlay is not None:
        config["overlay"] = {
            "name": profile.overlay.name,
            "image": parse_image_source(profile.overlay.image),
        }

    config["output"] = {
        "kind": profile.output.kind,
        "imageOptions": {
            "diskFormat": profile.output.disk_format,
            "diskSize": profile.output.disk_size,
        },
        "outFormat": OUT_FORMATS[profile.output.compression],
    }

    return config


def imager_config_to_yaml(config: dict[str, Any]) -> str:
    """Serialize an imager profile document to YAML."""
    result: str = yaml.dump(config, default_flow_style=False, sort_keys=False)
    return result


__all__ = [
    "DEFAULT_IMAGER_IMAGE",
    "DEFAULT_IMAGER_VERSION",
    "OUT_FORMATS",
    "compose_imager_config",
    "effective_imager_image",
    "imager_config_to_yaml",
    "parse_image_source",
]
