"""Error taxonomy shared by the merge engines and their I/O boundary.

Each error carries a stable ``code`` for structured handling by callers.
"""

from __future__ import annotations

from pathlib import Path

MALFORMED_OVERRIDE = "malformed_override"
MISSING_BASELINE = "missing_baseline"
MISSING_OVERRIDE_SOURCE = "missing_override_source"


class TalosImagegenError(Exception):
    """Base class for talos_imagegen errors."""

    def __init__(self, message: str, code: str = "error") -> None:
        super().__init__(message)
        self.code = code


class MalformedOverrideError(TalosImagegenError):
    """Raised when an override entry fails identifier validation.

    Attributes:
        key: The offending key (may be empty if it could not be extracted).
        entry: The raw override entry as supplied by the caller.
    """

    def __init__(self, key: str, entry: str, reason: str | None = None) -> None:
        message = f"Malformed override entry {entry!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, code=MALFORMED_OVERRIDE)
        self.key = key
        self.entry = entry


class MissingBaselineError(TalosImagegenError):
    """Raised when a baseline file (config, manifest, package file) is absent."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Baseline file not found: {path}", code=MISSING_BASELINE)
        self.path = path


class MissingOverrideSourceError(TalosImagegenError):
    """Raised when the change document is absent."""

    def __init__(self, path: Path) -> None:
        super().__init__(
            f"Change document not found: {path}", code=MISSING_OVERRIDE_SOURCE
        )
        self.path = path


__all__ = [
    "MALFORMED_OVERRIDE",
    "MISSING_BASELINE",
    "MISSING_OVERRIDE_SOURCE",
    "MalformedOverrideError",
    "MissingBaselineError",
    "MissingOverrideSourceError",
    "TalosImagegenError",
]
