# microservices.py
"""Pure helpers for the viewer app (no Streamlit inside)."""
from __future__ import annotations

import re
from typing import Dict, List, Sequence

import pandas as pd

from cladeview.alignment import AlignmentIndex
from cladeview.conservation import ColumnConservation
from cladeview.tree import Tree

_RANGE_RE = re.compile(r"^(\d+)\s*-\s*(\d+)$")


def parse_positions(text: str) -> List[int]:
    """
    "3, 7 10-12" -> [3, 7, 10, 11, 12]. Numbers are kept as typed (1-based);
    order is preserved and repeats are dropped.
    """
    out: List[int] = []
    for token in re.split(r"[,\s]+", (text or "").strip()):
        if not token:
            continue
        m = _RANGE_RE.match(token)
        if m:
            lo, hi = int(m.group(1)), int(m.group(2))
            if lo > hi:
                raise ValueError(f"Range {token!r} runs backwards.")
            out.extend(range(lo, hi + 1))
        elif token.isdigit():
            out.append(int(token))
        else:
            raise ValueError(f"Not a position or range: {token!r}")
    return list(dict.fromkeys(out))


def preview(seq: str, head: int = 60, tail: int = 60) -> str:
    """Compact preview string of a long sequence."""
    if len(seq) <= head + tail:
        return seq
    return f"{seq[:head]} … {seq[-tail:]}"


def alignment_summary(index: AlignmentIndex) -> pd.DataFrame:
    """One row per sequence: aligned length, residues and gap fraction."""
    rows = []
    for seq_id in index.alignment.ids:
        n = index.ungapped_length(seq_id)
        rows.append({
            "sequence": seq_id,
            "residues": n,
            "gap_fraction": round(1 - n / index.length, 3),
            "preview": preview(index.ungapped(seq_id), 20, 10),
        })
    return pd.DataFrame(rows)


def clade_table(tree: Tree, conservation: Sequence[ColumnConservation]) -> pd.DataFrame:
    """Collapsed clades per displayed column (columns reported 1-based)."""
    rows = []
    for col in conservation:
        for clade in col.clades:
            rows.append({
                "column": col.column + 1,
                "node": clade.node,
                "residue": clade.char,
                "leaves": clade.n_leaves,
                "representative": tree.label_of(clade.representative),
                "labeled": clade.visible,
                "title": clade.title,
            })
    return pd.DataFrame(rows, columns=["column", "node", "residue", "leaves", "representative", "labeled", "title"])


def matches_table(index: AlignmentIndex, pattern: str, matches: Dict[str, List[int]]) -> pd.DataFrame:
    """One row per motif hit: sequence, 1-based start/end, matched text and columns."""
    width = len(pattern)
    rows = []
    for seq_id, starts in matches.items():
        seq = index.ungapped(seq_id)
        for start in starts:
            rows.append({
                "sequence": seq_id,
                "start": start,
                "end": start + width - 1,
                "match": seq[start - 1:start - 1 + width],
                "first_column": index.column_of(seq_id, start - 1) + 1,
                "last_column": index.column_of(seq_id, start + width - 2) + 1,
            })
    return pd.DataFrame(rows, columns=["sequence", "start", "end", "match", "first_column", "last_column"])
