# scene.py
"""
Drawing primitives and the builder that turns a layout, collapsed columns and
motif hits into an ordered list of them.

The scene is passive data. Turning it into pixels or markup is the job of a
renderer such as ``cladeview.visualization``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from cladeview.alignment import GAP, AlignmentIndex
from cladeview.config import RenderSettings, residue_color
from cladeview.conservation import Annotations, ColumnConservation
from cladeview.layout import LayoutResult
from cladeview.scale_bar import scale_bar_for
from cladeview.selection import column_label
from cladeview.tree import Internal, Tree


@dataclass(frozen=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str = "#000000"
    width: float = 1.0


@dataclass(frozen=True)
class Circle:
    cx: float
    cy: float
    r: float
    fill: Optional[str] = None


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: float
    style: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Text:
    """anchor is start/middle/end; rotation is in degrees counter-clockwise."""
    x: float
    y: float
    content: str
    anchor: str = "start"
    rotation: Optional[float] = None
    size: float = 11.0
    color: str = "#000000"


@dataclass(frozen=True)
class Group:
    children: Tuple["Primitive", ...]
    name: Optional[str] = None


@dataclass(frozen=True)
class Tooltip:
    attached_to: "Primitive"
    text: str


@dataclass(frozen=True)
class Hyperlink:
    attached_to: "Primitive"
    url: str
    target: str = "_blank"


Primitive = Union[Line, Circle, Rect, Text, Group, Tooltip, Hyperlink]


@dataclass(frozen=True)
class Scene:
    width: float
    height: float
    primitives: Tuple[Primitive, ...]

    def walk(self) -> Iterator[Primitive]:
        """Every primitive, depth-first, wrappers before what they wrap."""
        stack: List[Primitive] = list(reversed(self.primitives))
        while stack:
            item = stack.pop()
            yield item
            if isinstance(item, Group):
                stack.extend(reversed(item.children))
            elif isinstance(item, (Tooltip, Hyperlink)):
                stack.append(item.attached_to)

    def find(self, kind: type) -> List[Primitive]:
        return [p for p in self.walk() if isinstance(p, kind)]

    def group(self, name: str) -> Optional[Group]:
        for p in self.primitives:
            if isinstance(p, Group) and p.name == name:
                return p
        return None


def _headers(index: AlignmentIndex, columns: Sequence[int], settings: RenderSettings,
             anchor: Optional[str], annotations: Optional[Annotations]) -> Group:
    items: List[Primitive] = []
    for i, column in enumerate(columns):
        text = Text(
            x=settings.column_x(i) + settings.column_width / 2,
            y=settings.top_padding - 4,
            content=column_label(index, column, anchor),
            anchor="start",
            rotation=90.0,
            size=settings.font_size,
        )
        tip = f"Alignment column {column + 1}"
        if anchor is not None and index.residue(anchor, column) != GAP:
            note = (annotations or {}).get(anchor, {}).get(index.position_of(anchor, column) + 1)
            if note:
                tip += f": {note}"
        items.append(Tooltip(text, tip))
    return Group(tuple(items), name="headers")


def _edges(tree: Tree, layout: LayoutResult, settings: RenderSettings) -> Group:
    lines: List[Primitive] = []
    for node_id in tree.descendants_of(layout.root):
        x, y = layout.coords[node_id]
        if node_id != layout.root:
            parent_x = layout.x(tree.node(node_id).parent)
            lines.append(Line(parent_x, y, x, y, color=settings.line_color))
        kind = tree.node(node_id).kind
        if isinstance(kind, Internal):
            ys = [layout.y(c) for c in kind.children]
            lines.append(Line(x, min(ys), x, max(ys), color=settings.line_color))
    return Group(tuple(lines), name="tree")


def _internal_nodes(tree: Tree, layout: LayoutResult, settings: RenderSettings,
                    zoom_url: Optional[Callable[[Optional[int]], Optional[str]]]) -> Group:
    items: List[Primitive] = []
    for node_id in tree.descendants_of(layout.root):
        if tree.is_leaf(node_id):
            continue
        x, y = layout.coords[node_id]
        n_leaves = len(tree.leaves_below(node_id))
        marker: Primitive = Tooltip(
            Circle(x, y, settings.node_radius, fill=settings.line_color),
            f"{n_leaves} leaves",
        )
        url = None
        if zoom_url and node_id != layout.root:
            url = zoom_url(node_id)
        elif zoom_url and node_id != tree.root:
            # the zoomed root links one level up; None stands for the whole tree
            parent = tree.ancestor_of(node_id)
            url = zoom_url(None if parent == tree.root else parent)
        if url:
            marker = Hyperlink(marker, url, target="_self")
        items.append(marker)
    return Group(tuple(items), name="nodes")


def _leaf_labels(tree: Tree, layout: LayoutResult, settings: RenderSettings,
                 leaf_url: Optional[Callable[[str], Optional[str]]],
                 leaf_titles: Optional[Mapping[str, str]]) -> Group:
    items: List[Primitive] = []
    for leaf in layout.leaves:
        label = tree.label_of(leaf)
        item: Primitive = Text(
            x=settings.labels_left,
            y=layout.y(leaf) + settings.font_size * 0.35,
            content=label,
            size=settings.font_size,
        )
        title = (leaf_titles or {}).get(label)
        if title:
            item = Tooltip(item, title)
        url = leaf_url(label) if leaf_url else None
        if url:
            item = Hyperlink(item, url)
        items.append(item)
    return Group(tuple(items), name="leaves")


def _highlights(tree: Tree, layout: LayoutResult, columns: Sequence[int], settings: RenderSettings,
                matched: Mapping[str, Sequence[int]], pattern: Optional[str]) -> Group:
    items: List[Primitive] = []
    position_of = {column: i for i, column in enumerate(columns)}
    half = settings.row_height / 2
    for leaf in layout.leaves:
        label = tree.label_of(leaf)
        for column in matched.get(label, ()):
            if column not in position_of:
                continue
            rect = Rect(
                settings.column_x(position_of[column]), layout.y(leaf) - half,
                settings.column_width, settings.row_height,
                style={"fill": settings.highlight_color, "stroke": "none"},
            )
            items.append(Tooltip(rect, f"{label}: matches {pattern}" if pattern else label))
    return Group(tuple(items), name="matches")


def _residues(conservation: Sequence[ColumnConservation], settings: RenderSettings) -> Group:
    items: List[Primitive] = []
    half = settings.row_height / 2
    for i, col in enumerate(conservation):
        x = settings.column_x(i)
        for clade in col.labels:
            parts: List[Primitive] = []
            if clade.char != GAP:
                parts.append(Rect(
                    x, clade.top - half, settings.column_width, clade.bottom - clade.top + settings.row_height,
                    style={"fill": residue_color(clade.char), "stroke": "none", "opacity": "0.6"},
                ))
            parts.append(Text(
                x + settings.column_width / 2,
                (clade.top + clade.bottom) / 2 + settings.font_size * 0.35,
                clade.char,
                anchor="middle",
                size=settings.font_size,
            ))
            items.append(Tooltip(Group(tuple(parts)), clade.title))
    return Group(tuple(items), name="residues")


def _scale_bar(layout: LayoutResult, settings: RenderSettings) -> Group:
    bar = scale_bar_for(layout.max_depth, layout.tree_width)
    y = layout.bottom + settings.row_height
    line = Line(layout.tree_left, y, layout.tree_left + bar.pixel_length, y, color=settings.line_color, width=2.0)
    label = Text(layout.tree_left + bar.pixel_length / 2, y + settings.font_size + 2, bar.label,
                 anchor="middle", size=settings.font_size)
    return Group((line, label), name="scale")


def build_scene(
    tree: Tree,
    layout: LayoutResult,
    index: AlignmentIndex,
    columns: Sequence[int],
    conservation: Sequence[ColumnConservation],
    settings: Optional[RenderSettings] = None,
    *,
    anchor: Optional[str] = None,
    matched: Optional[Mapping[str, Sequence[int]]] = None,
    pattern: Optional[str] = None,
    annotations: Optional[Annotations] = None,
    leaf_url: Optional[Callable[[str], Optional[str]]] = None,
    leaf_titles: Optional[Mapping[str, str]] = None,
    zoom_url: Optional[Callable[[Optional[int]], Optional[str]]] = None,
) -> Scene:
    """
    Compose headers, branches, node markers, leaf labels, motif highlights,
    collapsed residues and the scale bar, in that drawing order.

    conservation must hold one ColumnConservation per entry of columns, in the
    same order. The scale bar is left out when the tree had missing branch
    lengths.

    zoom_url(node) links internal node markers; in a zoomed layout the
    zoomed root links to its ancestor instead, with None for the tree root.
    """
    settings = settings or RenderSettings()
    if len(conservation) != len(columns):
        raise ValueError(f"Got {len(conservation)} conservation results for {len(columns)} columns.")

    primitives: List[Primitive] = [
        _headers(index, columns, settings, anchor, annotations),
        _edges(tree, layout, settings),
        _internal_nodes(tree, layout, settings, zoom_url),
        _leaf_labels(tree, layout, settings, leaf_url, leaf_titles),
        _highlights(tree, layout, columns, settings, matched or {}, pattern),
        _residues(conservation, settings),
    ]
    height = layout.bottom + settings.bottom_padding
    if not tree.has_missing_length:
        primitives.append(_scale_bar(layout, settings))

    width = settings.columns_left + len(columns) * settings.column_width + settings.right_padding
    return Scene(width=width, height=height, primitives=tuple(primitives))


def leaf_titles_from(descriptions: Mapping[str, str]) -> Dict[str, str]:
    """Tooltip text per leaf label, e.g. curated gene descriptions from a lookup."""
    return {label: f"{label}: {desc}" for label, desc in descriptions.items() if desc}
