"""Tests for the module manifest merge engine."""

import logging

from talos_imagegen.modules.manifest import ModuleManifest
from talos_imagegen.modules.merge import merge_modules


class TestMergeModules:
    """Tests for merge_modules."""

    def test_remove_then_add_before_footer(self):
        """Removals apply first and additions land before the footer."""
        baseline = ModuleManifest(body=["a.ko", "b.ko"], footer=["modules.order"])

        merged = merge_modules(baseline, additions=["c.ko"], removals=["a.ko"])

        assert merged.entries == ["b.ko", "c.ko", "modules.order"]

    def test_remove_absent_is_noop(self):
        """Removing an entry that is not present changes nothing."""
        baseline = ModuleManifest(body=["a.ko"], footer=["modules.order"])

        merged = merge_modules(baseline, additions=[], removals=["missing.ko"])

        assert merged == baseline

    def test_additions_sorted(self):
        """Additions are inserted in lexicographic order."""
        baseline = ModuleManifest(body=["x.ko"], footer=["modules.order"])

        merged = merge_modules(
            baseline, additions=["z.ko", "b.ko", "m.ko"], removals=[]
        )

        assert merged.body == ["x.ko", "b.ko", "m.ko", "z.ko"]
        assert merged.footer == ["modules.order"]

    def test_existing_addition_skipped(self):
        """An addition already in the body is not duplicated."""
        baseline = ModuleManifest(body=["a.ko"], footer=["modules.order"])

        merged = merge_modules(baseline, additions=["a.ko", "a.ko"], removals=[])

        assert merged.entries == ["a.ko", "modules.order"]

    def test_footer_entry_never_added_to_body(self):
        """Adding a footer entry does not duplicate it into the body."""
        baseline = ModuleManifest(body=["a.ko"], footer=["modules.order"])

        merged = merge_modules(baseline, additions=["modules.order"], removals=[])

        assert merged.body == ["a.ko"]
        assert merged.footer == ["modules.order"]

    def test_footer_entries_can_be_removed(self):
        """Removals apply to the footer too, keeping its order."""
        baseline = ModuleManifest(
            body=["a.ko"],
            footer=["modules.builtin", "modules.builtin.modinfo", "modules.order"],
        )

        merged = merge_modules(
            baseline, additions=[], removals=["modules.builtin.modinfo"]
        )

        assert merged.footer == ["modules.builtin", "modules.order"]

    def test_empty_footer_appends_at_end(self):
        """Without a footer, additions go to the very end."""
        baseline = ModuleManifest(body=["a.ko"])

        merged = merge_modules(baseline, additions=["b.ko"], removals=[])

        assert merged.entries == ["a.ko", "b.ko"]

    def test_add_and_remove_same_entry(self):
        """An entry both removed and added ends up before the footer."""
        baseline = ModuleManifest(body=["a.ko", "b.ko"], footer=["modules.order"])

        merged = merge_modules(baseline, additions=["a.ko"], removals=["a.ko"])

        assert merged.entries == ["b.ko", "a.ko", "modules.order"]

    def test_length_postcondition(self):
        """Length changes by new additions minus existing removals."""
        baseline = ModuleManifest(
            body=["a.ko", "b.ko", "c.ko"], footer=["modules.builtin", "modules.order"]
        )

        merged = merge_modules(
            baseline,
            additions=["b.ko", "d.ko", "e.ko"],
            removals=["c.ko", "missing.ko"],
        )

        assert len(merged) == len(baseline) - 1 + 2

    def test_idempotent(self):
        """Reapplying the same changes is a no-op."""
        baseline = ModuleManifest(body=["a.ko", "b.ko"], footer=["modules.order"])
        additions = ["d.ko", "c.ko"]
        removals = ["a.ko"]

        once = merge_modules(baseline, additions, removals)
        twice = merge_modules(once, additions, removals)

        assert twice == once

    def test_baseline_not_mutated(self):
        """The input manifest is left untouched."""
        baseline = ModuleManifest(body=["a.ko"], footer=["modules.order"])

        merge_modules(baseline, additions=["b.ko"], removals=["a.ko"])

        assert baseline == ModuleManifest(body=["a.ko"], footer=["modules.order"])

    def test_duplicate_body_entries_collapsed(self, caplog):
        """Duplicates in the baseline body collapse with a warning."""
        baseline = ModuleManifest(body=["a.ko", "b.ko", "a.ko"], footer=[])

        with caplog.at_level(logging.WARNING):
            merged = merge_modules(baseline, additions=[], removals=[])

        assert merged.body == ["a.ko", "b.ko"]
        assert "Duplicate module entry" in caplog.text
