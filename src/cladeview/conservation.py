# conservation.py
"""
Collapse residues shared by whole clades at one alignment column.

A clade whose leaves all carry the same character is drawn once, at the
topmost node of that monomorphic run, instead of once per leaf.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from cladeview.alignment import GAP, AlignmentIndex
from cladeview.layout import LayoutResult
from cladeview.tree import Leaf, Tree

# seq id -> {1-based ungapped position -> description}
Annotations = Mapping[str, Mapping[int, str]]


@dataclass(frozen=True)
class CollapsedClade:
    node: int
    char: str
    representative: int
    n_leaves: int
    top: float
    bottom: float
    visible: bool
    title: str


@dataclass(frozen=True)
class ColumnConservation:
    column: int
    conserved: Mapping[int, str]
    clades: Tuple[CollapsedClade, ...]

    @property
    def labels(self) -> Tuple[CollapsedClade, ...]:
        """Clades tall enough to carry a label."""
        return tuple(c for c in self.clades if c.visible)


def conserved_states(tree: Tree, root: int, residues: Mapping[str, str]) -> Dict[int, str]:
    """
    conservedAt for every node below root: a leaf's own residue, or for an
    internal node the character all children share ("" when they differ).
    """
    state: Dict[int, str] = {}
    for node_id in tree.postorder(root):
        kind = tree.node(node_id).kind
        if isinstance(kind, Leaf):
            state[node_id] = residues[kind.label]
            continue
        first = state[kind.children[0]]
        if first and all(state[c] == first for c in kind.children[1:]):
            state[node_id] = first
        else:
            state[node_id] = ""
    return state


def clade_title(
    tree: Tree,
    index: AlignmentIndex,
    column: int,
    char: str,
    representative: int,
    n_leaves: int,
    annotations: Optional[Annotations] = None,
) -> str:
    label = tree.label_of(representative)
    if char == GAP:
        return f"{label}: gap" if n_leaves == 1 else f"gap in {n_leaves} sequences (e.g. {label})"

    pos = index.position_of(label, column) + 1
    if n_leaves == 1:
        title = f"{label}: {char}{pos}"
    else:
        title = f"{char} in {n_leaves} sequences (e.g. {label} {char}{pos})"
    note = (annotations or {}).get(label, {}).get(pos)
    if note:
        title += f" - {note}"
    return title


def collapse_column(
    tree: Tree,
    layout: LayoutResult,
    index: AlignmentIndex,
    column: int,
    min_height: float,
    annotations: Optional[Annotations] = None,
) -> ColumnConservation:
    """
    Maximal monomorphic clades at one column, in display order.

    A node is listed when it is conserved and is either the layout root or
    has a non-conserved parent. It is visible when
    row_height + (max leaf Y - min leaf Y) >= min_height; invisible clades
    stay collapsed, so nothing below them is drawn for this column.
    """
    residues = {}
    for leaf in layout.leaves:
        label = tree.label_of(leaf)
        residues[label] = index.residue(label, column)
    state = conserved_states(tree, layout.root, residues)
    rank = {leaf: i for i, leaf in enumerate(layout.leaves)}

    clades: List[CollapsedClade] = []
    for node_id in tree.descendants_of(layout.root):
        char = state[node_id]
        if not char:
            continue
        if node_id != layout.root and state[tree.node(node_id).parent]:
            continue
        leaves = tree.leaves_below(node_id)
        representative = min(leaves, key=rank.__getitem__)
        top, bottom = layout.leaf_span(tree, node_id)
        clades.append(CollapsedClade(
            node=node_id,
            char=char,
            representative=representative,
            n_leaves=len(leaves),
            top=top,
            bottom=bottom,
            visible=layout.row_height + (bottom - top) >= min_height,
            title=clade_title(tree, index, column, char, representative, len(leaves), annotations),
        ))
    clades.sort(key=lambda c: rank[c.representative])
    return ColumnConservation(column=column, conserved=MappingProxyType(state), clades=tuple(clades))
