# patterns.py
"""Find motif occurrences in ungapped sequences and map them to alignment columns."""
from __future__ import annotations

import re
from typing import Dict, List

from cladeview.alignment import Alignment, AlignmentIndex
from cladeview.errors import InvalidPattern

_PATTERN_RE = re.compile(r"[A-Z.]+")


def normalize_pattern(pattern: str) -> str:
    """Uppercase and strip whitespace. Only A-Z and '.' (any residue) survive."""
    p = re.sub(r"\s+", "", pattern or "").upper()
    if not p:
        raise InvalidPattern("Pattern is empty.")
    if not _PATTERN_RE.fullmatch(p):
        bad = sorted({c for c in p if not ("A" <= c <= "Z" or c == ".")})
        raise InvalidPattern(f"Pattern {pattern!r} has invalid characters: {''.join(bad)}")
    return p


def find_in_sequence(pattern: str, sequence: str) -> List[int]:
    """
    1-based starts of non-overlapping matches, scanning left to right.
    Each match consumes its full width before the scan resumes.
    """
    regex = re.compile(normalize_pattern(pattern))
    return [m.start() + 1 for m in regex.finditer(sequence.upper())]


def find_matches(pattern: str, alignment: Alignment) -> Dict[str, List[int]]:
    """Matches per sequence, in alignment order; sequences without a hit are left out."""
    regex = re.compile(normalize_pattern(pattern))
    hits: Dict[str, List[int]] = {}
    for seq_id, aligned in alignment.items():
        starts = [m.start() + 1 for m in regex.finditer(aligned.replace("-", "").upper())]
        if starts:
            hits[seq_id] = starts
    return hits


def match_columns(index: AlignmentIndex, seq_id: str, start: int, width: int) -> List[int]:
    """Alignment columns covered by a match starting at 1-based position start."""
    return [index.column_of(seq_id, p) for p in range(start - 1, start - 1 + width)]


def matched_columns(index: AlignmentIndex, pattern: str, hits: Dict[str, List[int]]) -> Dict[str, List[int]]:
    """All columns covered by each sequence's matches, sorted."""
    width = len(normalize_pattern(pattern))
    covered: Dict[str, List[int]] = {}
    for seq_id, starts in hits.items():
        cols = set()
        for start in starts:
            cols.update(match_columns(index, seq_id, start, width))
        covered[seq_id] = sorted(cols)
    return covered
