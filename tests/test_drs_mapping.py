"""
tests/test_drs_mapping.py

Tests for drs.json parsing, snapshot diffing and the diff notification.

Coverage
--------
- Shape validation of decoded drs.json documents
- Snapshot immutability
- compare_mappings ordering and exactly-once reporting
- DrMapStore swap semantics
- Slack rendering of the diff
"""

from __future__ import annotations

import pytest

from lists_sync.domain.drs import (
    DataResourceMap,
    DrMapChange,
    DrMapChangeKind,
    compare_mappings,
    parse_dr_map,
)
from lists_sync.services.config_resolver import DrMapStore
from lists_sync.services.notifications import format_dr_map_changes


# ---------------------------------------------------------------------------
# parse_dr_map
# ---------------------------------------------------------------------------


class TestParseDrMap:
    def test_parses_both_partitions(self) -> None:
        dr_map = parse_dr_map({"prod": {"Foo": "dr1"}, "test": {"Foo": "dr9", "Bar": "dr10"}})
        assert dict(dr_map.prod) == {"Foo": "dr1"}
        assert dict(dr_map.test) == {"Foo": "dr9", "Bar": "dr10"}

    def test_missing_partition_is_empty(self) -> None:
        dr_map = parse_dr_map({"prod": {"Foo": "dr1"}})
        assert dict(dr_map.test) == {}

    def test_null_partition_is_empty(self) -> None:
        assert dict(parse_dr_map({"prod": None}).prod) == {}

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            "not-an-object",
            {"prod": ["dr1"]},
            {"test": {"Foo": 12}},
        ],
    )
    def test_rejects_bad_shapes(self, payload: object) -> None:
        with pytest.raises(ValueError):
            parse_dr_map(payload)

    def test_snapshot_is_read_only(self) -> None:
        dr_map = parse_dr_map({"prod": {"Foo": "dr1"}})
        with pytest.raises(TypeError):
            dr_map.prod["Bar"] = "dr2"  # type: ignore[index]

    def test_snapshot_does_not_alias_source_dict(self) -> None:
        source = {"Foo": "dr1"}
        dr_map = DataResourceMap(prod=source)
        source["Bar"] = "dr2"
        assert "Bar" not in dr_map.prod

    def test_unknown_partition_name_raises(self) -> None:
        with pytest.raises(ValueError):
            DataResourceMap().partition("staging")


# ---------------------------------------------------------------------------
# compare_mappings
# ---------------------------------------------------------------------------


class TestCompareMappings:
    def test_identical_maps_have_no_changes(self) -> None:
        dr_map = parse_dr_map({"prod": {"Foo": "dr1"}, "test": {"Bar": "dr2"}})
        assert compare_mappings(dr_map, dr_map) == []

    def test_single_changed_value(self) -> None:
        old = parse_dr_map({"prod": {"Foo": "A"}, "test": {"Foo": "T"}})
        new = parse_dr_map({"prod": {"Foo": "B"}, "test": {"Foo": "T"}})

        assert compare_mappings(old, new) == [
            DrMapChange("prod", DrMapChangeKind.CHANGED, "Foo", old_value="A", new_value="B")
        ]

    def test_ordering_additions_and_changes_then_removals(self) -> None:
        old = parse_dr_map({"prod": {"Gone": "g", "Same": "s", "Moved": "m1"}})
        new = parse_dr_map({"prod": {"New": "n", "Moved": "m2", "Same": "s"}})

        changes = compare_mappings(old, new)

        assert [(change.kind, change.key) for change in changes] == [
            (DrMapChangeKind.ADDED, "New"),
            (DrMapChangeKind.CHANGED, "Moved"),
            (DrMapChangeKind.REMOVED, "Gone"),
        ]

    def test_prod_changes_precede_test_changes(self) -> None:
        old = DataResourceMap()
        new = parse_dr_map({"test": {"T": "t"}, "prod": {"P": "p"}})
        assert [change.partition for change in compare_mappings(old, new)] == ["prod", "test"]

    def test_each_key_reported_once(self) -> None:
        old = parse_dr_map({"prod": {"A": "1", "B": "2"}})
        new = parse_dr_map({"prod": {"B": "3", "C": "4"}})
        keys = [change.key for change in compare_mappings(old, new)]
        assert sorted(keys) == ["A", "B", "C"]


# ---------------------------------------------------------------------------
# DrMapStore
# ---------------------------------------------------------------------------


class TestDrMapStore:
    def test_starts_empty(self) -> None:
        store = DrMapStore()
        assert dict(store.current().prod) == {}
        assert dict(store.current().test) == {}

    def test_replace_returns_previous_and_keeps_captured_reference(self) -> None:
        first = parse_dr_map({"prod": {"Foo": "dr1"}})
        second = parse_dr_map({"prod": {"Foo": "dr2"}})
        store = DrMapStore(first)

        captured = store.current()
        previous = store.replace(second)

        assert previous is first
        assert store.current() is second
        assert captured.prod["Foo"] == "dr1"


# ---------------------------------------------------------------------------
# Notification text
# ---------------------------------------------------------------------------


class TestFormatDrMapChanges:
    def test_no_changes_in_either_partition(self) -> None:
        text = format_dr_map_changes([])
        assert "DRS Configuration Updated" in text
        assert text.count("• No changes") == 2

    def test_lists_changes_under_their_partition(self) -> None:
        changes = [
            DrMapChange("prod", DrMapChangeKind.CHANGED, "Foo", old_value="A", new_value="B"),
            DrMapChange("test", DrMapChangeKind.REMOVED, "Bar", old_value="dr7"),
        ]

        text = format_dr_map_changes(changes)
        production, testing = text.split("*Testing*")

        assert "• Changed: `Foo` → `A` to `B`" in production
        assert "• Removed: `Bar` (was `dr7`)" in testing
        assert "No changes" not in text
