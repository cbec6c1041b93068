"""Shared type definitions for talos_imagegen.

This module contains enums and type aliases shared across subpackages
to avoid circular imports.
"""

from enum import Enum


class ChangeAction(str, Enum):
    """Kind of change applied to a kernel config key."""

    ENABLE = "enable"
    DISABLE = "disable"
    REMOVE = "remove"


class ImageSourceKind(str, Enum):
    """How an imager input (extension, overlay, installer) is referenced."""

    IMAGE_REF = "imageRef"
    TARBALL = "tarballPath"
    OCI = "ociPath"


class Compression(str, Enum):
    """Output compression requested from the imager."""

    XZ = "xz"
    GZIP = "gzip"
    ZSTD = "zstd"
    NONE = "none"


__all__ = [
    "ChangeAction",
    "Compression",
    "ImageSourceKind",
]
