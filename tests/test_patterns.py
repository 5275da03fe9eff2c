import pytest

from cladeview.alignment import Alignment, AlignmentIndex
from cladeview.errors import InvalidPattern
from cladeview.patterns import find_in_sequence, find_matches, match_columns, matched_columns, normalize_pattern


def test_normalize_pattern():
    assert normalize_pattern(" v.a\n") == "V.A"
    with pytest.raises(InvalidPattern):
        normalize_pattern("V*A")
    with pytest.raises(InvalidPattern):
        normalize_pattern("   ")


def test_wildcard_match():
    assert find_in_sequence("V.A", "MKVLAAS") == [3]


def test_matches_do_not_overlap():
    assert find_in_sequence("AA", "AAAAA") == [1, 3]


def test_lowercase_sequence_matches():
    assert find_in_sequence("kv", "mkvl") == [2]


def test_find_matches_uses_ungapped_sequences():
    aln = Alignment({"s1": "MK-VLAAS", "s2": "MKAL--AS", "s3": "V-LA-VQA"})
    hits = find_matches("V.A", aln)
    assert hits == {"s1": [3], "s3": [1, 4]}


def test_matched_columns():
    index = AlignmentIndex(Alignment({"s1": "MK-VLAAS", "s2": "MKAL--AS"}))
    assert match_columns(index, "s1", 3, 3) == [3, 4, 5]
    covered = matched_columns(index, "v.a", {"s1": [3]})
    assert covered == {"s1": [3, 4, 5]}


def test_no_hits():
    aln = Alignment({"s1": "MKV", "s2": "MKL"})
    assert find_matches("WW", aln) == {}


def test_pattern_with_embedded_dash_is_rejected():
    with pytest.raises(InvalidPattern):
        normalize_pattern("V-A")
