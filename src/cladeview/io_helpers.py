# io_helpers.py
"""
Readers that turn alignment and tree files into the core's ``Alignment`` and
``Tree``. Parsing itself is left to Biopython (Bio.AlignIO / Bio.Phylo).
"""
from __future__ import annotations

from io import StringIO
from typing import Callable, Dict, Iterable, Mapping, Optional, TextIO, Union

import pandas as pd
from Bio import AlignIO, Phylo
from Bio.Phylo.NewickIO import NewickError
from Bio.SeqRecord import SeqRecord

from cladeview.alignment import Alignment
from cladeview.errors import AlignmentError, TreeStructureError
from cladeview.tree import Tree

LogCB = Callable[[str], None]
PathOrHandle = Union[str, TextIO]


def alignment_from_records(records: Iterable[SeqRecord]) -> Alignment:
    """Build an Alignment from SeqRecords; Stockholm/A2M '.' gaps become '-'."""
    seqs: Dict[str, str] = {}
    for rec in records:
        if rec.id in seqs:
            raise AlignmentError(f"Duplicate sequence id {rec.id!r}")
        seqs[rec.id] = str(rec.seq).replace(".", "-")
    return Alignment(seqs)


def read_alignment(source: PathOrHandle, fmt: str = "fasta") -> Alignment:
    """Read one alignment (fasta, clustal, stockholm, ...) from a path or handle."""
    try:
        msa = AlignIO.read(source, fmt)
    except ValueError as e:
        raise AlignmentError(f"Error reading {fmt} alignment: {e}") from e
    return alignment_from_records(msa)


def read_alignment_text(text: str, fmt: str = "fasta") -> Alignment:
    return read_alignment(StringIO(text), fmt)


def tree_from_phylo(bio_tree, on_log: Optional[LogCB] = None) -> Tree:
    """
    Convert a Bio.Phylo tree to the arena form. Nodes are numbered in pre-order,
    so every node's children keep their file order.
    """
    parents, lengths, labels = [], [], []
    stack = [(bio_tree.root, None)]
    while stack:
        clade, parent = stack.pop()
        idx = len(parents)
        parents.append(parent)
        lengths.append(clade.branch_length)
        labels.append(clade.name if clade.is_terminal() else None)
        for child in reversed(clade.clades):
            stack.append((child, idx))
    return Tree.build(parents, lengths, labels, on_log=on_log)


def read_tree(source: PathOrHandle, fmt: str = "newick", on_log: Optional[LogCB] = None) -> Tree:
    try:
        bio_tree = Phylo.read(source, fmt)
    except (ValueError, NewickError) as e:
        raise TreeStructureError(f"Error reading {fmt} tree: {e}") from e
    return tree_from_phylo(bio_tree, on_log=on_log)


def read_tree_text(text: str, fmt: str = "newick", on_log: Optional[LogCB] = None) -> Tree:
    return read_tree(StringIO(text.strip()), fmt, on_log=on_log)


def read_site_annotations(source: PathOrHandle) -> Dict[str, Dict[int, str]]:
    """
    Functional-site table (tab separated: sequence id, 1-based position,
    description) -> {seq_id: {position: description}}. Rows for the same site
    are joined with '; '.

    Raises:
      AlignmentError if the table cannot be parsed or a position is not a
      positive integer.
    """
    try:
        df = pd.read_csv(source, sep="\t", header=None, names=["seq_id", "position", "description"],
                         dtype={"seq_id": str, "description": str}, comment="#")
    except ValueError as e:
        raise AlignmentError(f"Error reading site annotations: {e}") from e
    df = df.dropna(subset=["seq_id", "position"])
    positions = pd.to_numeric(df["position"], errors="coerce")
    bad = df[positions.isna() | (positions % 1 != 0) | (positions < 1)]
    if not bad.empty:
        row = bad.iloc[0]
        raise AlignmentError(f"Site annotation for {row['seq_id']!r} has an invalid position: {row['position']!r}")
    df = df.assign(position=positions.astype(int))
    sites: Dict[str, Dict[int, str]] = {}
    for row in df.itertuples(index=False):
        per_seq = sites.setdefault(row.seq_id, {})
        pos = int(row.position)
        desc = "" if pd.isna(row.description) else str(row.description)
        per_seq[pos] = f"{per_seq[pos]}; {desc}" if pos in per_seq else desc
    return sites


def annotations_for_alignment(sites: Mapping[str, Mapping[int, str]], alignment: Alignment) -> Dict[str, Dict[int, str]]:
    """Keep only annotations whose sequence is in the alignment."""
    return {seq_id: dict(per_seq) for seq_id, per_seq in sites.items() if seq_id in alignment}
