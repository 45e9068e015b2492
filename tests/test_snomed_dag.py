"""Tests for the is-a hierarchy index and descendant traversal."""

from snomed_dag import (
    build_from_file,
    build_hierarchy_index,
    children,
    compute_stats,
    descendants,
    resolve_relationships,
)
from rf2 import RELATIONSHIP_COLUMNS
from tests.conftest import FINDING_SITE, rel_row, write_rf2


class TestHierarchyIndex:
    """Tests for resolving relationships into the parent -> children index."""

    def test_inactive_revision_removes_link(self) -> None:
        rels = resolve_relationships([
            rel_row("9", "20200101", "200", "100", active=True),
            rel_row("9", "20210101", "200", "100", active=False),
        ])
        index = build_hierarchy_index(rels)
        assert "200" not in index.get("100", set())

    def test_order_of_revisions_does_not_matter(self) -> None:
        rels = resolve_relationships([
            rel_row("9", "20210101", "200", "100", active=False),
            rel_row("9", "20200101", "200", "100", active=True),
        ])
        assert build_hierarchy_index(rels) == {}

    def test_reactivated_link_is_kept(self) -> None:
        rels = resolve_relationships([
            rel_row("9", "20200101", "200", "100", active=False),
            rel_row("9", "20210101", "200", "100", active=True),
        ])
        assert build_hierarchy_index(rels) == {"100": {"200"}}

    def test_other_relationship_types_are_dropped(self) -> None:
        rels = resolve_relationships([
            rel_row("9", "20200101", "200", "100"),
            rel_row("10", "20200101", "200", "300", type_id=FINDING_SITE),
        ])
        assert set(rels) == {"9"}
        assert build_hierarchy_index(rels) == {"100": {"200"}}

    def test_duplicate_links_are_listed_once(self) -> None:
        rels = resolve_relationships([
            rel_row("9", "20200101", "200", "100"),
            rel_row("10", "20200101", "200", "100"),
        ])
        assert build_hierarchy_index(rels) == {"100": {"200"}}

    def test_build_from_file(self, tmp_path) -> None:
        path = write_rf2(tmp_path / "rel.txt", RELATIONSHIP_COLUMNS, [
            rel_row("9", "20200101", "200", "100"),
            rel_row("10", "20200101", "201", "100"),
            rel_row("11", "20200101", "300", "200"),
        ])
        assert build_from_file(path) == {"100": {"200", "201"}, "200": {"300"}}


class TestDescendants:
    """Tests for descendant traversal."""

    INDEX = {"100": {"200", "201"}, "200": {"300"}}

    def test_visits_every_descendant_once(self) -> None:
        found = descendants("100", self.INDEX)
        assert sorted(code for code, _ in found) == ["100", "200", "201", "300"]

    def test_pre_order_with_sorted_siblings(self) -> None:
        assert descendants("100", self.INDEX) == [("100", 0), ("200", 1), ("300", 2), ("201", 1)]

    def test_leaf_returns_itself(self) -> None:
        assert descendants("300", self.INDEX) == [("300", 0)]

    def test_unknown_root_is_empty(self) -> None:
        assert descendants("999", self.INDEX) == []

    def test_shared_child_is_listed_once(self) -> None:
        index = {"100": {"200", "201"}, "200": {"300"}, "201": {"300"}}
        found = descendants("100", index)
        assert [code for code, _ in found].count("300") == 1

    def test_cycle_terminates(self) -> None:
        index = {"100": {"200"}, "200": {"100"}}
        assert descendants("100", index) == [("100", 0), ("200", 1)]

    def test_children_sorted_numerically(self) -> None:
        assert children({"1": {"10", "9", "100"}}, "1") == ["9", "10", "100"]
        assert children({}, "1") == []


class TestComputeStats:
    """Tests for compute_stats."""

    def test_counts(self) -> None:
        stats = compute_stats({"100": {"200", "201"}, "200": {"300"}})
        assert stats.num_nodes == 4
        assert stats.num_edges == 3
        assert stats.num_parents == 2
        assert stats.num_leaves == 2
        assert stats.num_roots == 1
