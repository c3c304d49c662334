"""
Tests for moving nodes between folders.

Covers the ambiguous cases explicitly: self-move, move into a descendant,
move of the root, move onto the current parent, and unloaded targets.
"""

import pytest

from dazzletreestore.core import (
    find_by_id,
    move_node,
    check_invariants,
    InvalidTargetError,
    FolderNotLoadedError,
    CycleDetectedError,
)
from dazzletreestore.testing import build_sample_tree


def child_ids(tree, node_id):
    return [child.id for child in find_by_id(tree, node_id).child_nodes]


class TestMoveRelocates:

    def test_move_folder_to_other_folder(self, sample_tree):
        result = move_node(sample_tree, "5", "4")

        assert child_ids(result, "3") == ["6"]
        assert child_ids(result, "4") == ["7", "5"]
        moved = find_by_id(result, "5")
        assert moved.parent_id == "4"
        assert check_invariants(result) == []

    def test_moved_subtree_is_untouched(self, sample_tree):
        original = find_by_id(sample_tree, "5")
        result = move_node(sample_tree, "5", "4")
        moved = find_by_id(result, "5")

        assert moved.children is original.children
        assert find_by_id(result, "8").parent_id == "5"

    def test_move_leaf_to_root(self, sample_tree):
        result = move_node(sample_tree, "8", "1")
        assert find_by_id(result, "5").children == ()
        assert child_ids(result, "1") == ["2", "3", "4", "9", "8"]
        assert find_by_id(result, "8").parent_id == "1"

    def test_move_into_empty_folder(self, sample_tree):
        result = move_node(sample_tree, "2", "7")
        assert child_ids(result, "7") == ["2"]
        assert find_by_id(result, "2").parent_id == "7"

    def test_move_onto_current_parent_appends_last(self, sample_tree):
        result = move_node(sample_tree, "2", "1")
        assert child_ids(result, "1") == ["3", "4", "9", "2"]
        assert check_invariants(result) == []

    def test_input_untouched(self, sample_tree):
        move_node(sample_tree, "5", "4")
        assert sample_tree == build_sample_tree()

    def test_unrelated_branches_shared(self, sample_tree):
        result = move_node(sample_tree, "8", "7")
        assert result.children[0] is sample_tree.children[0]   # "2"
        assert result.children[3] is sample_tree.children[3]   # "9"


class TestMoveNoops:

    def test_move_onto_itself(self, sample_tree):
        assert move_node(sample_tree, "4", "4") is sample_tree

    def test_move_missing_source(self, sample_tree):
        assert move_node(sample_tree, "404", "4") is sample_tree


class TestMoveRejected:

    def test_move_into_child_is_cycle(self, sample_tree):
        with pytest.raises(CycleDetectedError) as exc_info:
            move_node(sample_tree, "4", "7")
        assert exc_info.value.source_id == "4"
        assert exc_info.value.target_id == "7"
        assert sample_tree == build_sample_tree()

    def test_move_into_grandchild_is_cycle(self, sample_tree):
        from dazzletreestore.core import insert_node, SequentialIdGenerator
        tree = insert_node(sample_tree, "5", "deep", True,
                           id_generator=SequentialIdGenerator(start=50))
        with pytest.raises(CycleDetectedError):
            move_node(tree, "3", "50")

    def test_move_root_is_cycle(self, sample_tree):
        with pytest.raises(CycleDetectedError):
            move_node(sample_tree, "1", "4")

    def test_target_missing(self, sample_tree):
        with pytest.raises(InvalidTargetError):
            move_node(sample_tree, "2", "404")

    def test_target_is_leaf(self, sample_tree):
        with pytest.raises(InvalidTargetError) as exc_info:
            move_node(sample_tree, "2", "6")
        assert "not a folder" in str(exc_info.value)

    def test_target_not_loaded(self, sample_tree):
        with pytest.raises(FolderNotLoadedError):
            move_node(sample_tree, "2", "9")

    def test_invalid_target_checked_before_missing_source(self, sample_tree):
        with pytest.raises(InvalidTargetError):
            move_node(sample_tree, "404", "2")

    def test_cycle_reported_before_unloaded_target(self, sample_tree):
        with pytest.raises(CycleDetectedError):
            move_node(sample_tree, "1", "9")

    def test_missing_source_onto_unloaded_target_is_noop(self, sample_tree):
        assert move_node(sample_tree, "404", "9") is sample_tree
