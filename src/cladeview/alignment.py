# alignment.py
"""
Alignment container and the per-sequence mapping between ungapped residue
positions and alignment columns.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from cladeview.errors import AlignmentError, PositionOutOfRange, UnknownSequence

if TYPE_CHECKING:
    from cladeview.tree import Tree

logger = logging.getLogger(__name__)

GAP = "-"
_ALIGNED_RE = re.compile(r"[A-Za-z-]+")
_BAD_ID_CHARS = set(":(),;")

LogCB = Callable[[str], None]


def validate_alignment(sequences: Mapping[str, str]) -> Tuple[bool, str]:
    """Check ids, alphabet and lengths. Returns (ok, message)."""
    if len(sequences) < 2:
        return False, f"Alignment needs at least two sequences, got {len(sequences)}."
    lengths = set()
    for seq_id, aligned in sequences.items():
        if not seq_id or not seq_id.strip():
            return False, "Empty sequence identifier."
        bad = sorted(_BAD_ID_CHARS.intersection(seq_id))
        if bad:
            return False, f"Sequence id {seq_id!r} contains invalid characters: {''.join(bad)}"
        if not aligned:
            return False, f"Sequence {seq_id!r} is empty."
        if not _ALIGNED_RE.fullmatch(aligned):
            bad_chars = sorted({c for c in aligned if not (c.isascii() and c.isalpha()) and c != GAP})
            return False, f"Sequence {seq_id!r} has invalid characters: {''.join(bad_chars)}"
        lengths.add(len(aligned))
    if len(lengths) > 1:
        return False, f"Aligned sequences have different lengths: {sorted(lengths)}"
    return True, ""


class Alignment:
    """Ordered mapping of sequence id to aligned string, validated on construction."""

    def __init__(self, sequences: Mapping[str, str]):
        seqs = dict(sequences)
        ok, msg = validate_alignment(seqs)
        if not ok:
            raise AlignmentError(msg)
        self._seqs: Dict[str, str] = seqs
        self.length: int = len(next(iter(seqs.values())))

    def __len__(self) -> int:
        return len(self._seqs)

    def __contains__(self, seq_id: object) -> bool:
        return seq_id in self._seqs

    def __iter__(self) -> Iterator[str]:
        return iter(self._seqs)

    def __getitem__(self, seq_id: str) -> str:
        try:
            return self._seqs[seq_id]
        except KeyError:
            raise UnknownSequence(f"Sequence {seq_id!r} is not in the alignment.") from None

    @property
    def ids(self) -> List[str]:
        return list(self._seqs)

    def items(self):
        return self._seqs.items()


@dataclass(frozen=True, eq=False)
class AlignmentColumnMap:
    """
    Both directions of the position mapping for one sequence, 0-based.

    to_column[p] is the column holding ungapped residue p; to_position[c] is the
    ungapped position at column c, or -1 where the sequence has a gap.
    """
    seq_id: str
    ungapped: str
    to_column: np.ndarray
    to_position: np.ndarray

    @classmethod
    def from_aligned(cls, seq_id: str, aligned: str) -> AlignmentColumnMap:
        is_residue = np.fromiter((c != GAP for c in aligned), dtype=bool, count=len(aligned))
        to_column = np.flatnonzero(is_residue)
        to_position = np.full(len(aligned), -1, dtype=np.int64)
        to_position[to_column] = np.arange(len(to_column))
        to_column.flags.writeable = False
        to_position.flags.writeable = False
        return cls(seq_id, aligned.replace(GAP, ""), to_column, to_position)

    def __len__(self) -> int:
        return len(self.to_column)

    def column(self, position: int) -> int:
        if not 0 <= position < len(self.to_column):
            raise PositionOutOfRange(
                f"Position {position} is outside {self.seq_id!r} (ungapped length {len(self.to_column)})."
            )
        return int(self.to_column[position])

    def position(self, column: int) -> int:
        if not 0 <= column < len(self.to_position):
            raise PositionOutOfRange(
                f"Column {column} is outside the alignment (length {len(self.to_position)})."
            )
        pos = int(self.to_position[column])
        if pos < 0:
            raise PositionOutOfRange(f"Column {column} is a gap in {self.seq_id!r}.")
        return pos


class AlignmentIndex:
    """Column maps for every sequence of one alignment, built once."""

    def __init__(self, alignment: Alignment):
        self.alignment = alignment
        self._maps: Dict[str, AlignmentColumnMap] = {
            seq_id: AlignmentColumnMap.from_aligned(seq_id, aligned)
            for seq_id, aligned in alignment.items()
        }

    @property
    def length(self) -> int:
        return self.alignment.length

    def column_map(self, seq_id: str) -> AlignmentColumnMap:
        try:
            return self._maps[seq_id]
        except KeyError:
            raise UnknownSequence(f"Sequence {seq_id!r} is not in the alignment.") from None

    def column_of(self, seq_id: str, position: int) -> int:
        """Alignment column of a 0-based ungapped position."""
        return self.column_map(seq_id).column(position)

    def position_of(self, seq_id: str, column: int) -> int:
        """0-based ungapped position at an alignment column; gaps raise."""
        return self.column_map(seq_id).position(column)

    def residue(self, seq_id: str, column: int) -> str:
        if not 0 <= column < self.length:
            raise PositionOutOfRange(f"Column {column} is outside the alignment (length {self.length}).")
        return self.alignment[seq_id][column]

    def ungapped(self, seq_id: str) -> str:
        return self.column_map(seq_id).ungapped

    def ungapped_length(self, seq_id: str) -> int:
        return len(self.column_map(seq_id))

    def anchor_columns(self, anchor_id: str, positions: Sequence[int]) -> List[int]:
        """
        Translate 1-based positions in the gap-stripped anchor sequence to
        alignment columns, keeping the caller's order.
        """
        cmap = self.column_map(anchor_id)
        columns: List[int] = []
        for p in positions:
            if int(p) < 1:
                raise PositionOutOfRange(f"Positions in {anchor_id!r} start at 1, got {p}.")
            columns.append(cmap.column(int(p) - 1))
        return columns


def check_tree_alignment(tree: Tree, alignment: Alignment, on_log: Optional[LogCB] = None) -> List[str]:
    """
    Every leaf must have a sequence. Sequences without a leaf are reported once
    each and returned in alignment order.
    """
    def log(msg: str) -> None:
        if on_log:
            on_log(msg)
        else:
            logger.warning(msg)

    labels = tree.leaf_labels()
    missing = [label for label in labels if label not in alignment]
    if missing:
        shown = ", ".join(missing[:5]) + (" ..." if len(missing) > 5 else "")
        raise UnknownSequence(f"{len(missing)} tree leaves have no sequence in the alignment: {shown}")

    in_tree = set(labels)
    absent = [seq_id for seq_id in alignment.ids if seq_id not in in_tree]
    for seq_id in absent:
        log(f"Sequence {seq_id} is in the alignment but not in the tree.")
    return absent
