# layout.py
"""
Rectangular (dendrogram) layout of a tree or of a zoomed subtree.

Leaves get one row each in display order. An internal node sits at the plain
arithmetic mean of its immediate children's rows, not at a leaf-count weighted
centroid. X is the cumulative branch length from the layout root, scaled to
the requested tree width.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Sequence, Tuple, Union

from cladeview.errors import EmptySubtree
from cladeview.tree import Internal, Tree

LeafKey = Union[int, str]


@dataclass(frozen=True)
class LayoutResult:
    """Coordinates for every node below ``root``. Never mutated once produced."""
    root: int
    leaves: Tuple[int, ...]
    coords: Mapping[int, Tuple[float, float]]
    max_depth: float
    row_height: float
    tree_left: float
    tree_width: float
    top_padding: float

    def x(self, node_id: int) -> float:
        return self.coords[node_id][0]

    def y(self, node_id: int) -> float:
        return self.coords[node_id][1]

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.coords

    @property
    def n_leaves(self) -> int:
        return len(self.leaves)

    @property
    def bottom(self) -> float:
        """Y just below the last leaf row."""
        return self.top_padding + self.row_height * len(self.leaves)

    def leaf_span(self, tree: Tree, node_id: int) -> Tuple[float, float]:
        """(min, max) leaf Y below node_id."""
        ys = [self.coords[leaf][1] for leaf in tree.leaves_below(node_id)]
        return min(ys), max(ys)


def order_leaves(tree: Tree, root: int, leaf_order: Optional[Sequence[LeafKey]] = None) -> Tuple[int, ...]:
    """
    Leaves below root in display order.

    leaf_order ranks leaves by label or node id; keys that are not leaves of
    this tree are ignored, but every leaf below root must be ranked.
    """
    leaves = tree.leaves_below(root)
    if leaf_order is None:
        return leaves

    rank: Dict[int, int] = {}
    for i, key in enumerate(leaf_order):
        if isinstance(key, str):
            if not tree.has_leaf(key):
                continue
            leaf = tree.leaf_id(key)
        else:
            leaf = int(key)
        rank.setdefault(leaf, i)

    unranked = [tree.label_of(leaf) for leaf in leaves if leaf not in rank]
    if unranked:
        raise ValueError(f"Display order is missing {len(unranked)} leaves, e.g. {unranked[0]!r}.")
    return tuple(sorted(leaves, key=rank.__getitem__))


def compute_layout(
    tree: Tree,
    root: Optional[int] = None,
    *,
    row_height: float,
    tree_width: float,
    top_padding: float,
    tree_left: float = 0.0,
    leaf_order: Optional[Sequence[LeafKey]] = None,
) -> LayoutResult:
    """
    Assign (x, y) to every node of the subtree rooted at ``root`` (default: the
    tree's root).

    Y = top_padding + row_height * (0.5 + (L - 1) * rawY / maxRawY)
    X = tree_left + tree_width * rawX / max_depth

    Raises:
      EmptySubtree if no leaves lie below root.
      ValueError if leaf_order does not rank every leaf below root.
    """
    root = tree.root if root is None else root
    leaves = order_leaves(tree, root, leaf_order)
    if not leaves:
        raise EmptySubtree(f"Node {root} has no leaves below it.")

    raw_y: Dict[int, float] = {leaf: float(i) for i, leaf in enumerate(leaves)}
    for node_id in tree.postorder(root):
        kind = tree.node(node_id).kind
        if isinstance(kind, Internal):
            raw_y[node_id] = sum(raw_y[c] for c in kind.children) / len(kind.children)
    max_raw_y = max(raw_y.values()) or 1.0

    raw_x: Dict[int, float] = {}
    for node_id in tree.descendants_of(root):
        if node_id == root:
            raw_x[node_id] = 0.0
        else:
            node = tree.node(node_id)
            raw_x[node_id] = raw_x[node.parent] + node.branch_length
    max_depth = max(raw_x.values()) or 0.5

    n = len(leaves)
    coords = {
        node_id: (
            tree_left + tree_width * raw_x[node_id] / max_depth,
            top_padding + row_height * (0.5 + (n - 1) * raw_y[node_id] / max_raw_y),
        )
        for node_id in raw_x
    }
    return LayoutResult(
        root=root,
        leaves=leaves,
        coords=MappingProxyType(coords),
        max_depth=max_depth,
        row_height=row_height,
        tree_left=tree_left,
        tree_width=tree_width,
        top_padding=top_padding,
    )
