"""Kernel source management.

This module handles:
- Pinning the kernel package to a commit of the kernel repository
"""

from talos_imagegen.kernel.update import (
    DownloadError,
    KernelRefNotFoundError,
    KernelUpdateResult,
    TarballChecksums,
    update_kernel,
)

__all__ = [
    "DownloadError",
    "KernelRefNotFoundError",
    "KernelUpdateResult",
    "TarballChecksums",
    "update_kernel",
]
