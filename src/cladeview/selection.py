# selection.py
"""
Caller-side choices: which alignment columns to show and which subtree to zoom to.
The core never decides the column set itself; it only validates and translates it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from cladeview.alignment import AlignmentIndex
from cladeview.errors import InvalidZoomTarget, PositionOutOfRange, TreeStructureError
from cladeview.tree import Tree

POLICIES = ("functional", "filtered", "all")


@dataclass(frozen=True)
class Selection:
    """
    Either explicit 0-based ``columns`` or an ``anchor`` id plus 1-based
    ``positions`` in that sequence. ``policy`` names the rule a collaborator
    used to pick the columns (display only).
    """
    columns: List[int] = field(default_factory=list)
    anchor: Optional[str] = None
    positions: List[int] = field(default_factory=list)
    policy: Optional[str] = None

    def __post_init__(self):
        if self.policy is not None and self.policy not in POLICIES:
            raise ValueError(f"Unknown selection policy {self.policy!r}; expected one of {POLICIES}")
        if self.anchor is None and self.positions:
            raise ValueError("Anchor positions were given without an anchor sequence.")


def resolve_columns(selection: Selection, index: AlignmentIndex) -> List[int]:
    """
    Alignment columns to display, in the caller's order with repeats dropped.

    Raises:
      PositionOutOfRange for a column outside the alignment or an anchor
      position beyond the anchor's length.
      UnknownSequence if the anchor is not in the alignment.
    """
    if selection.anchor is not None:
        columns = index.anchor_columns(selection.anchor, selection.positions)
    else:
        columns = [int(c) for c in selection.columns]
        for c in columns:
            if not 0 <= c < index.length:
                raise PositionOutOfRange(f"Column {c} is outside the alignment (length {index.length}).")
    return list(dict.fromkeys(columns))


def resolve_zoom(tree: Tree, node_id: Optional[int]) -> int:
    """Layout root for a zoom request: an internal node that is not the root."""
    if node_id is None:
        return tree.root
    try:
        node = tree.node(node_id)
    except TreeStructureError:
        raise InvalidZoomTarget(f"Cannot zoom to unknown node {node_id!r}.") from None
    if node.parent is None:
        raise InvalidZoomTarget(f"Node {node_id} is the root; it has no ancestor to zoom out from.")
    if node.is_leaf:
        raise InvalidZoomTarget(f"Node {node_id} ({node.label}) is a leaf and cannot be zoomed to.")
    return node_id


def column_label(index: AlignmentIndex, column: int, anchor: Optional[str] = None) -> str:
    """Header text: anchor residue and 1-based position, else the 1-based column."""
    if anchor is None:
        return f"#{column + 1}"
    char = index.residue(anchor, column)
    if char == "-":
        return f"#{column + 1}"
    return f"{char}{index.position_of(anchor, column) + 1}"
