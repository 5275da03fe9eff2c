import random

from cladeview.alignment import Alignment, AlignmentIndex
from cladeview.conservation import clade_title, collapse_column, conserved_states
from cladeview.layout import compute_layout
from cladeview.tree import Tree


def layout_of(tree, **kw):
    return compute_layout(tree, row_height=10, tree_width=100, top_padding=0, **kw)


def test_conserved_states(nested_tree):
    residues = {"A": "K", "B": "K", "C": "R"}
    assert conserved_states(nested_tree, 0, residues) == {2: "K", 3: "K", 1: "K", 4: "R", 0: ""}


def test_whole_tree_conserved(nested_tree, nested_index):
    col = collapse_column(nested_tree, layout_of(nested_tree), nested_index, 0, min_height=12)
    assert [c.node for c in col.clades] == [0]
    clade = col.clades[0]
    assert clade.char == "M"
    assert clade.n_leaves == 3
    assert clade.representative == 2
    assert clade.title == "M in 3 sequences (e.g. A M1)"
    assert clade.visible


def test_clades_in_display_order(nested_tree, nested_index):
    col = collapse_column(nested_tree, layout_of(nested_tree), nested_index, 1, min_height=12)
    assert [(c.node, c.char) for c in col.clades] == [(1, "K"), (4, "R")]
    assert col.clades[1].title == "C: R2"
    # a single row (10px) is shorter than the 12px minimum
    assert [c.node for c in col.labels] == [1]


def test_split_below_non_uniform_node(nested_tree, nested_index):
    col = collapse_column(nested_tree, layout_of(nested_tree), nested_index, 2, min_height=0)
    assert [(c.node, c.char) for c in col.clades] == [(2, "V"), (3, "L"), (4, "L")]
    assert all(c.visible for c in col.clades)


def test_gaps_are_characters(nested_tree, nested_index):
    col = collapse_column(nested_tree, layout_of(nested_tree), nested_index, 3, min_height=0)
    assert [(c.node, c.char) for c in col.clades] == [(1, "-"), (4, "G")]
    assert col.clades[0].title == "gap in 2 sequences (e.g. A)"
    assert col.clades[1].title == "C: G4"


def test_annotation_is_appended(nested_tree, nested_index):
    notes = {"A": {2: "catalytic lysine"}}
    col = collapse_column(nested_tree, layout_of(nested_tree), nested_index, 1, 12, annotations=notes)
    assert col.clades[0].title == "K in 2 sequences (e.g. A K2) - catalytic lysine"


def test_representative_follows_display_order(nested_tree, nested_index):
    lay = layout_of(nested_tree, leaf_order=["C", "B", "A"])
    col = collapse_column(nested_tree, lay, nested_index, 0, 12)
    assert col.clades[0].representative == 4
    assert col.clades[0].title == "M in 3 sequences (e.g. C M1)"


def test_zoomed_layout_only_sees_subtree(nested_tree, nested_index):
    lay = compute_layout(nested_tree, 1, row_height=10, tree_width=100, top_padding=0)
    col = collapse_column(nested_tree, lay, nested_index, 1, 0)
    assert [(c.node, c.char) for c in col.clades] == [(1, "K")]


def test_case_is_significant():
    tree = Tree.build([None, 0, 0], None, [None, "a", "b"], on_log=lambda m: None)
    index = AlignmentIndex(Alignment({"a": "k", "b": "K"}))
    col = collapse_column(tree, layout_of(tree), index, 0, 0)
    assert [c.char for c in col.clades] == ["k", "K"]


def test_clade_title_single_gap(nested_tree, nested_index):
    assert clade_title(nested_tree, nested_index, 3, "-", 2, 1) == "A: gap"


def test_random_conservation_is_correct_and_maximal():
    rng = random.Random(42)
    for n in [3, 10, 40, 120]:
        parents = [None] + [rng.randrange(i) for i in range(1, n)]
        tree = Tree.build(parents, [None] + [1.0] * (n - 1), [f"s{i}" for i in range(n)])
        width = 6
        seqs = {tree.label_of(leaf): "".join(rng.choice("AC-") for _ in range(width))
                for leaf in tree.leaves()}
        if len(seqs) < 2:
            continue
        index = AlignmentIndex(Alignment(seqs))
        lay = layout_of(tree)
        for column in range(width):
            col = collapse_column(tree, lay, index, column, 0)
            reported = {c.node for c in col.clades}
            for node in tree.nodes:
                chars = {seqs[tree.label_of(leaf)][column] for leaf in tree.leaves_below(node.id)}
                assert (col.conserved[node.id] != "") == (len(chars) == 1)
            for node_id in reported:
                parent = tree.node(node_id).parent
                while parent is not None:
                    assert parent not in reported
                    parent = tree.node(parent).parent
            # every leaf is covered by exactly one reported clade
            covered = [leaf for node_id in reported for leaf in tree.leaves_below(node_id)]
            assert sorted(covered) == sorted(tree.leaves())
