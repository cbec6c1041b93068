"""Module manifest text format.

A manifest lists one module path per line. The trailing run of lines
starting with the footer prefix (``modules.order``, ``modules.builtin``,
...) is kept separate so new entries can be inserted before it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_FOOTER_PREFIX = "modules."


@dataclass
class ModuleManifest:
    """Parsed module manifest.

    Attributes:
        body: Module entries before the footer, in file order.
        footer: Trailing footer entries, fixed at parse time.
    """

    body: list[str] = field(default_factory=list)
    footer: list[str] = field(default_factory=list)

    @property
    def entries(self) -> list[str]:
        """All entries in file order."""
        return self.body + self.footer

    def __contains__(self, entry: object) -> bool:
        return entry in self.body or entry in self.footer

    def __len__(self) -> int:
        return len(self.body) + len(self.footer)


def parse_manifest(
    text: str, footer_prefix: str = DEFAULT_FOOTER_PREFIX
) -> ModuleManifest:
    """Parse manifest text.

    Blank lines are dropped. The footer is the maximal trailing run of
    lines starting with ``footer_prefix``; a prefixed line followed by a
    regular entry stays in the body.

    Args:
        text: Manifest file content.
        footer_prefix: Prefix identifying footer lines.

    Returns:
        ModuleManifest with body and footer split.
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]

    split = len(lines)
    while split > 0 and lines[split - 1].startswith(footer_prefix):
        split -= 1

    return ModuleManifest(body=lines[:split], footer=lines[split:])


def format_manifest(manifest: ModuleManifest) -> str:
    """Format a manifest, one entry per line with a trailing newline."""
    entries = manifest.entries
    if not entries:
        return ""
    return "\n".join(entries) + "\n"


__all__ = [
    "DEFAULT_FOOTER_PREFIX",
    "ModuleManifest",
    "format_manifest",
    "parse_manifest",
]
