# tree.py
"""
Immutable rooted multifurcating tree stored as an arena of integer-indexed nodes.

Each node keeps the index of its parent and a tagged kind: ``Leaf(label)`` or
``Internal(children)``. Nothing here holds a reference cycle, so zooming to a
subtree is only a walk over indices.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from cladeview.errors import NoAncestor, TreeStructureError

logger = logging.getLogger(__name__)

LogCB = Callable[[str], None]

MISSING_LENGTH_WARNING = "Tree has missing branch lengths; they are set to 1 and the scale bar is hidden."


@dataclass(frozen=True)
class Leaf:
    label: str


@dataclass(frozen=True)
class Internal:
    children: Tuple[int, ...]


NodeKind = Union[Leaf, Internal]


@dataclass(frozen=True)
class Node:
    """One node of the arena. ``branch_length`` is the distance to the parent."""
    id: int
    parent: Optional[int]
    branch_length: float
    kind: NodeKind

    @property
    def is_leaf(self) -> bool:
        return isinstance(self.kind, Leaf)

    @property
    def label(self) -> Optional[str]:
        return self.kind.label if isinstance(self.kind, Leaf) else None

    @property
    def children(self) -> Tuple[int, ...]:
        return self.kind.children if isinstance(self.kind, Internal) else ()


class Tree:
    """
    Rooted tree over an arena of ``Node`` objects.

    Use ``Tree.build`` to construct one from parent indices; it validates the
    structure and normalises branch lengths.
    """

    def __init__(self, nodes: Sequence[Node], root: int, has_missing_length: bool = False):
        self._nodes: Tuple[Node, ...] = tuple(nodes)
        self.root = root
        self.has_missing_length = has_missing_length
        self._leaf_ids: Dict[str, int] = {
            n.kind.label: n.id for n in self._nodes if isinstance(n.kind, Leaf)
        }

    @classmethod
    def build(
        cls,
        parents: Sequence[Optional[int]],
        branch_lengths: Optional[Sequence[Optional[float]]] = None,
        labels: Optional[Sequence[Optional[str]]] = None,
        on_log: Optional[LogCB] = None,
    ) -> Tree:
        """
        Build and validate a tree.

        Parameters:
          parents: parents[i] is the index of node i's parent, None for the root.
          branch_lengths: distance of each node to its parent; None (or NaN) marks
            a missing length, which becomes 1 and raises ``has_missing_length``.
            Negative lengths are clamped to 0.
          labels: leaf labels; labels of internal nodes are ignored.
          on_log: receives warning messages; defaults to the module logger.

        Raises:
          TreeStructureError for a missing/multiple root, bad parent index,
          cycle, unlabeled leaf or duplicate leaf label.
        """
        def log(msg: str) -> None:
            if on_log:
                on_log(msg)
            else:
                logger.warning(msg)

        n = len(parents)
        if n == 0:
            raise TreeStructureError("Tree has no nodes.")
        if branch_lengths is None:
            branch_lengths = [None] * n
        if labels is None:
            labels = [None] * n
        if len(branch_lengths) != n or len(labels) != n:
            raise TreeStructureError(
                f"Expected {n} branch lengths and labels, got {len(branch_lengths)} and {len(labels)}."
            )

        roots = [i for i, p in enumerate(parents) if p is None]
        if not roots:
            raise TreeStructureError("Tree has no root: every node has a parent.")
        if len(roots) > 1:
            raise TreeStructureError(f"Tree has multiple roots: nodes {roots}.")
        root = roots[0]

        children: List[List[int]] = [[] for _ in range(n)]
        for i, p in enumerate(parents):
            if p is None:
                continue
            if not 0 <= p < n:
                raise TreeStructureError(f"Node {i} has parent {p}, which is not a node of this tree.")
            if p == i:
                raise TreeStructureError(f"Node {i} is its own parent.")
            children[p].append(i)

        # With a single root, anything the root cannot reach sits on a parent cycle.
        reached = [False] * n
        stack = [root]
        while stack:
            cur = stack.pop()
            reached[cur] = True
            stack.extend(children[cur])
        unreached = [i for i in range(n) if not reached[i]]
        if unreached:
            raise TreeStructureError(
                f"Cycle detected: nodes {unreached[:10]} are not reachable from the root."
            )

        lengths: List[float] = []
        missing = False
        clamped = 0
        for i, bl in enumerate(branch_lengths):
            absent = bl is None or math.isnan(bl)
            if i == root:
                lengths.append(0.0 if absent else max(0.0, float(bl)))
            elif absent:
                missing = True
                lengths.append(1.0)
            elif bl < 0:
                clamped += 1
                lengths.append(0.0)
            else:
                lengths.append(float(bl))
        if missing:
            log(MISSING_LENGTH_WARNING)
        if clamped:
            logger.debug("Clamped %d negative branch lengths to 0", clamped)

        nodes: List[Node] = []
        seen_labels: Dict[str, int] = {}
        for i in range(n):
            if children[i]:
                kind: NodeKind = Internal(tuple(children[i]))
            else:
                label = labels[i]
                if label is None or not str(label).strip():
                    raise TreeStructureError(f"Leaf node {i} has no label.")
                label = str(label).strip()
                if label in seen_labels:
                    raise TreeStructureError(
                        f"Leaf label {label!r} is used by nodes {seen_labels[label]} and {i}."
                    )
                seen_labels[label] = i
                kind = Leaf(label)
            nodes.append(Node(id=i, parent=parents[i], branch_length=lengths[i], kind=kind))

        return cls(nodes, root, has_missing_length=missing)

    # ---- access ----

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return self._nodes

    def node(self, node_id: int) -> Node:
        if not isinstance(node_id, int) or not 0 <= node_id < len(self._nodes):
            raise TreeStructureError(f"Unknown node id: {node_id!r}")
        return self._nodes[node_id]

    def is_leaf(self, node_id: int) -> bool:
        return self.node(node_id).is_leaf

    def children_of(self, node_id: int) -> Tuple[int, ...]:
        return self.node(node_id).children

    def branch_length(self, node_id: int) -> float:
        return self.node(node_id).branch_length

    def label_of(self, node_id: int) -> Optional[str]:
        return self.node(node_id).label

    def has_leaf(self, label: str) -> bool:
        return label in self._leaf_ids

    def leaf_id(self, label: str) -> int:
        try:
            return self._leaf_ids[label]
        except KeyError:
            raise TreeStructureError(f"No leaf labeled {label!r}") from None

    def ancestor_of(self, node_id: int) -> int:
        parent = self.node(node_id).parent
        if parent is None:
            raise NoAncestor(f"Node {node_id} is the root and has no ancestor.")
        return parent

    # ---- traversal ----

    def descendants_of(self, node_id: int) -> Tuple[int, ...]:
        """Pre-order ids of the subtree rooted at node_id, node_id first."""
        return tuple(self._preorder(node_id))

    def postorder(self, node_id: Optional[int] = None) -> Tuple[int, ...]:
        """Post-order ids of the subtree (children before parents)."""
        start = self.root if node_id is None else node_id
        self.node(start)
        out: List[int] = []
        stack: List[Tuple[int, bool]] = [(start, False)]
        while stack:
            cur, expanded = stack.pop()
            if expanded:
                out.append(cur)
                continue
            stack.append((cur, True))
            for child in reversed(self._nodes[cur].children):
                stack.append((child, False))
        return tuple(out)

    def leaves_below(self, node_id: int) -> Tuple[int, ...]:
        """Leaves of the subtree in tree enumeration order; a leaf yields itself."""
        return tuple(i for i in self._preorder(node_id) if self._nodes[i].is_leaf)

    def leaves(self) -> Tuple[int, ...]:
        return self.leaves_below(self.root)

    def leaf_labels(self) -> List[str]:
        return [self._nodes[i].label for i in self.leaves()]

    def _preorder(self, node_id: int) -> Iterator[int]:
        self.node(node_id)
        stack = [node_id]
        while stack:
            cur = stack.pop()
            yield cur
            stack.extend(reversed(self._nodes[cur].children))
