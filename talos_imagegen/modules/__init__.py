"""Module manifest management.

This module handles:
- Parsing manifests into a body and a fixed trailing footer
- Merging additions and removals while keeping the footer last
- Applying change documents to manifest files in place
"""

from talos_imagegen.modules.manifest import (
    DEFAULT_FOOTER_PREFIX,
    ModuleManifest,
    format_manifest,
    parse_manifest,
)
from talos_imagegen.modules.merge import merge_modules

__all__ = [
    "DEFAULT_FOOTER_PREFIX",
    "ModuleManifest",
    "format_manifest",
    "merge_modules",
    "parse_manifest",
]
