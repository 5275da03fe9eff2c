import pytest

from cladeview.alignment import Alignment, AlignmentIndex
from cladeview.tree import Tree


@pytest.fixture
def three_leaf_tree():
    # root(0) -> A:0.1, B:0.2, C:0.3
    return Tree.build(
        [None, 0, 0, 0],
        [None, 0.1, 0.2, 0.3],
        [None, "A", "B", "C"],
    )


@pytest.fixture
def nested_tree():
    # root(0) -> (1 -> A(2), B(3)), C(4)
    return Tree.build(
        [None, 0, 1, 1, 0],
        [None, 1.0, 1.0, 1.0, 1.0],
        [None, None, "A", "B", "C"],
    )


@pytest.fixture
def nested_alignment():
    return Alignment({
        "A": "MKV-",
        "B": "MKL-",
        "C": "MRLG",
    })


@pytest.fixture
def nested_index(nested_alignment):
    return AlignmentIndex(nested_alignment)
