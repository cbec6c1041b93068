"""Talos Image Generator - profile-driven tooling around the Talos imager.

This package provides orchestration around the official Talos imager
container and the vendored kernel packages: kernel config and module list
reconciliation, build profiles, imager runs, and kernel ref updates.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
