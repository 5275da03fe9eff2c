import pytest
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord

from cladeview.errors import AlignmentError, TreeStructureError
from cladeview.io_helpers import (
    alignment_from_records,
    annotations_for_alignment,
    read_alignment,
    read_alignment_text,
    read_site_annotations,
    read_tree,
    read_tree_text,
)


def test_read_fasta_alignment(tmp_path):
    f = tmp_path / "test.fa"
    f.write_text(">a desc\nMK-V\nLA\n>b\nMKLVLA\n")
    aln = read_alignment(str(f))
    assert aln.ids == ["a", "b"]
    assert aln["a"] == "MK-VLA"
    assert aln.length == 6


def test_read_alignment_rejects_ragged_input():
    with pytest.raises(AlignmentError):
        read_alignment_text(">a\nMKV\n>b\nMK\n")


def test_read_alignment_rejects_empty_input():
    with pytest.raises(AlignmentError):
        read_alignment_text("")


def test_records_dots_become_gaps():
    aln = alignment_from_records([SeqRecord(Seq("MK.V"), id="a"), SeqRecord(Seq("MKLV"), id="b")])
    assert aln["a"] == "MK-V"


def test_records_duplicate_ids():
    with pytest.raises(AlignmentError, match="Duplicate"):
        alignment_from_records([SeqRecord(Seq("MK"), id="a"), SeqRecord(Seq("MK"), id="a")])


def test_read_newick(tmp_path):
    f = tmp_path / "tree.nwk"
    f.write_text("((A:0.1,B:0.2):0.05,C:0.3);\n")
    tree = read_tree(str(f))
    assert tree.root == 0
    assert tree.children_of(0) == (1, 4)
    assert tree.leaf_labels() == ["A", "B", "C"]
    assert tree.branch_length(3) == pytest.approx(0.2)
    assert tree.branch_length(1) == pytest.approx(0.05)
    assert not tree.has_missing_length


def test_read_newick_without_lengths():
    logs = []
    tree = read_tree_text("((A,B),C);", on_log=logs.append)
    assert tree.has_missing_length
    assert tree.branch_length(2) == 1.0
    assert len(logs) == 1


def test_read_newick_multifurcation():
    tree = read_tree_text("(A:1,B:1,C:1,D:1);")
    assert tree.children_of(tree.root) == (1, 2, 3, 4)


def test_bad_newick():
    with pytest.raises(TreeStructureError):
        read_tree_text("((A,B);")


def test_duplicate_leaves_in_newick():
    with pytest.raises(TreeStructureError, match="Leaf label"):
        read_tree_text("(A:1,A:1);")


def test_site_annotations(tmp_path):
    f = tmp_path / "sites.tsv"
    f.write_text("# id\tpos\tdesc\nA\t2\tcatalytic\nA\t2\tbinding\nB\t5\tsite\nZ\t1\telsewhere\n")
    sites = read_site_annotations(str(f))
    assert sites["A"] == {2: "catalytic; binding"}
    assert sites["B"] == {5: "site"}
    kept = annotations_for_alignment(sites, read_alignment_text(">A\nMK\n>B\nMK\n"))
    assert set(kept) == {"A", "B"}


@pytest.mark.parametrize("line", ["A\tsecond\tcatalytic\n", "A\t0\tcatalytic\n", "A\t2.5\tcatalytic\n"])
def test_site_annotations_bad_position(tmp_path, line):
    f = tmp_path / "sites.tsv"
    f.write_text("B\t5\tsite\n" + line)
    with pytest.raises(AlignmentError, match="invalid position"):
        read_site_annotations(str(f))
