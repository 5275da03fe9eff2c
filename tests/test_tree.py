import math

import pytest

from cladeview.errors import NoAncestor, TreeStructureError
from cladeview.tree import Internal, Leaf, Tree


def test_build_keeps_children_in_index_order(nested_tree):
    assert nested_tree.root == 0
    assert nested_tree.children_of(0) == (1, 4)
    assert nested_tree.children_of(1) == (2, 3)
    assert isinstance(nested_tree.node(1).kind, Internal)
    assert nested_tree.node(2).kind == Leaf("A")


def test_leaves_and_labels(nested_tree):
    assert nested_tree.leaves() == (2, 3, 4)
    assert nested_tree.leaf_labels() == ["A", "B", "C"]
    assert nested_tree.leaves_below(1) == (2, 3)
    assert nested_tree.leaves_below(4) == (4,)
    assert nested_tree.leaf_id("B") == 3
    assert nested_tree.has_leaf("C")
    assert not nested_tree.has_leaf("Z")
    with pytest.raises(TreeStructureError):
        nested_tree.leaf_id("Z")


def test_traversals(nested_tree):
    assert nested_tree.descendants_of(0) == (0, 1, 2, 3, 4)
    assert nested_tree.descendants_of(1) == (1, 2, 3)
    post = nested_tree.postorder()
    assert post == (2, 3, 1, 4, 0)
    for node in nested_tree.nodes:
        if node.parent is not None:
            assert post.index(node.id) < post.index(node.parent)


def test_ancestor_of(nested_tree):
    assert nested_tree.ancestor_of(2) == 1
    assert nested_tree.ancestor_of(1) == 0
    with pytest.raises(NoAncestor):
        nested_tree.ancestor_of(0)


def test_is_leaf_and_unknown_node(nested_tree):
    assert nested_tree.is_leaf(4)
    assert not nested_tree.is_leaf(1)
    with pytest.raises(TreeStructureError):
        nested_tree.node(17)


def test_missing_lengths_default_to_one_and_warn_once():
    logs = []
    tree = Tree.build([None, 0, 0, 0], [None, None, float("nan"), 0.5],
                      [None, "A", "B", "C"], on_log=logs.append)
    assert tree.has_missing_length
    assert tree.branch_length(1) == 1.0
    assert tree.branch_length(2) == 1.0
    assert tree.branch_length(3) == 0.5
    assert len(logs) == 1


def test_root_length_is_never_missing(three_leaf_tree):
    assert not three_leaf_tree.has_missing_length
    assert three_leaf_tree.branch_length(0) == 0.0


def test_negative_lengths_are_clamped_quietly():
    logs = []
    tree = Tree.build([None, 0, 0], [None, -0.3, 0.2], [None, "A", "B"], on_log=logs.append)
    assert tree.branch_length(1) == 0.0
    assert not tree.has_missing_length
    assert logs == []


def test_single_leaf_tree():
    tree = Tree.build([None], None, ["only"])
    assert tree.leaves() == (0,)
    assert len(tree) == 1


@pytest.mark.parametrize("parents, labels, message", [
    ([], [], "no nodes"),
    ([1, 0], ["A", "B"], "no root"),
    ([None, None], ["A", "B"], "multiple roots"),
    ([None, 5], [None, "A"], "not a node"),
    ([None, 1], [None, "A"], "own parent"),
    ([None, 0, 3, 2], [None, "A", "B", "C"], "Cycle"),
    ([None, 0, 0], [None, "A", None], "no label"),
    ([None, 0, 0], [None, "A", "A"], "Leaf label"),
])
def test_invalid_structures(parents, labels, message):
    with pytest.raises(TreeStructureError, match=message):
        Tree.build(parents, None, labels)


def test_structure_errors_are_value_errors():
    with pytest.raises(ValueError):
        Tree.build([None, None], None, ["A", "B"])


def test_nan_is_detected_as_missing():
    tree = Tree.build([None, 0], [None, math.nan], [None, "A"], on_log=lambda m: None)
    assert tree.has_missing_length
