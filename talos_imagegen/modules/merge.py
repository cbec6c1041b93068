"""Module manifest merge engine."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from talos_imagegen.modules.manifest import ModuleManifest

logger = logging.getLogger(__name__)


def _dedupe(entries: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for entry in entries:
        if entry in seen:
            logger.warning("Duplicate module entry collapsed: %s", entry)
            continue
        seen.add(entry)
        result.append(entry)
    return result


def merge_modules(
    baseline: ModuleManifest,
    additions: Iterable[str],
    removals: Iterable[str],
) -> ModuleManifest:
    """Merge module additions and removals into a manifest.

    Removals are applied first to both body and footer. Additions are then
    inserted in sorted order at the end of the body, i.e. immediately
    before the footer. An addition already present anywhere in the
    manifest is skipped, so reapplying the same changes is a no-op.

    Args:
        baseline: Parsed manifest; not mutated.
        additions: Entries to add.
        removals: Entries to remove; absent entries are ignored.

    Returns:
        New ModuleManifest. The footer keeps its order and never grows.
    """
    removal_set = set(removals)

    body = [entry for entry in _dedupe(baseline.body) if entry not in removal_set]
    footer = [entry for entry in baseline.footer if entry not in removal_set]

    present = set(body) | set(footer)
    for entry in sorted(set(additions)):
        if entry in present:
            logger.debug("Module %s already present, skipping", entry)
            continue
        body.append(entry)
        present.add(entry)

    return ModuleManifest(body=body, footer=footer)


__all__ = ["merge_modules"]
