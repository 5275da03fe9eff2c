# src/cladeview/pipeline/__init__.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from tqdm import tqdm

from cladeview.alignment import Alignment, AlignmentIndex, check_tree_alignment
from cladeview.config import RenderSettings
from cladeview.conservation import Annotations, ColumnConservation, collapse_column
from cladeview.layout import compute_layout
from cladeview.patterns import find_matches, matched_columns, normalize_pattern
from cladeview.scale_bar import scale_bar_for
from cladeview.scene import build_scene, leaf_titles_from
from cladeview.selection import Selection, resolve_columns, resolve_zoom
from cladeview.tree import MISSING_LENGTH_WARNING, Tree

logger = logging.getLogger(__name__)

ProgressCB = Callable[[str, int, int], None]  # phase, i, total
LogCB = Callable[[str], None]


class TqdmToCallback:
    """
    Wraps a tqdm progress bar but also calls a callback with (phase, n, total)
    every time the bar updates.
    """
    def __init__(self, phase: str, total: int, cb: Optional[ProgressCB], **tqdm_kwargs):
        self.phase = phase
        self.cb = cb
        self.total = int(total) if total else 1
        self.n = 0
        self._tqdm = tqdm(
            total=self.total,
            desc=tqdm_kwargs.get("desc", phase),
            leave=False,
            disable=tqdm_kwargs.get("disable", False),
        )

    def update(self, n: int = 1) -> None:
        self.n += int(n)
        self._tqdm.update(n)
        if self.cb:
            self.cb(self.phase, self.n, self.total)

    def close(self) -> None:
        self._tqdm.close()
        # ensure final tick is shown
        if self.cb and self.n < self.total:
            self.cb(self.phase, self.total, self.total)


def run_pipeline(
    tree: Tree,
    alignment: Alignment,
    selection: Selection,
    *,
    zoom: Optional[int] = None,
    pattern: Optional[str] = None,
    annotations: Optional[Annotations] = None,
    descriptions: Optional[Mapping[str, str]] = None,
    leaf_order: Optional[Sequence[Union[int, str]]] = None,
    settings: Optional[RenderSettings] = None,
    leaf_url: Optional[Callable[[str], Optional[str]]] = None,
    zoom_url: Optional[Callable[[Optional[int]], Optional[str]]] = None,
    on_progress: Optional[ProgressCB] = None,
    on_log: Optional[LogCB] = None,
    show_progress: bool = False,
) -> Dict[str, Any]:
    """
    Pure pipeline. No Streamlit. Returns data only.

    Steps: check the tree against the alignment, resolve the column selection
    and zoom target, lay out the (sub)tree, collapse each column, find motif
    hits, pick the scale bar and compose the scene.

    Any CladeViewError propagates to the caller; non-fatal findings are
    returned under "warnings" and also sent to on_log.
    """
    settings = settings or RenderSettings()
    warnings: List[str] = []

    def warn(msg: str) -> None:
        warnings.append(msg)
        if on_log:
            on_log(msg)
        else:
            logger.warning(msg)

    def info(msg: str) -> None:
        if on_log:
            on_log(msg)
        logger.info(msg)

    # 1) Inputs
    index = AlignmentIndex(alignment)
    missing_from_tree = check_tree_alignment(tree, alignment, on_log=warn)
    if tree.has_missing_length:
        # already reported by Tree.build; only recorded here
        warnings.append(MISSING_LENGTH_WARNING)
    columns = resolve_columns(selection, index)
    root = resolve_zoom(tree, zoom)

    # 2) Layout
    layout = compute_layout(
        tree,
        root,
        row_height=settings.row_height,
        tree_width=settings.tree_width,
        top_padding=settings.top_padding,
        tree_left=settings.tree_left,
        leaf_order=leaf_order,
    )
    info(f"Layout: {layout.n_leaves} leaves, max depth {layout.max_depth:.4g}")

    # 3) Motif hits
    matches: Dict[str, List[int]] = {}
    covered: Dict[str, List[int]] = {}
    if pattern:
        pattern = normalize_pattern(pattern)
        matches = find_matches(pattern, alignment)
        covered = matched_columns(index, pattern, matches)
        info(f"Pattern {pattern}: {sum(len(v) for v in matches.values())} hits in {len(matches)} sequences")

    # 4) Per-column collapsing
    conservation: List[ColumnConservation] = []
    bar = TqdmToCallback("conservation", len(columns), on_progress,
                         desc="Collapsing columns", disable=not show_progress)
    try:
        for column in columns:
            conservation.append(collapse_column(
                tree, layout, index, column, settings.min_label_height, annotations=annotations,
            ))
            bar.update(1)
    finally:
        bar.close()

    # 5) Scene
    scale_bar = None if tree.has_missing_length else scale_bar_for(layout.max_depth, layout.tree_width)
    scene = build_scene(
        tree, layout, index, columns, conservation, settings,
        anchor=selection.anchor,
        matched=covered,
        pattern=pattern,
        annotations=annotations,
        leaf_url=leaf_url,
        leaf_titles=leaf_titles_from(descriptions) if descriptions else None,
        zoom_url=zoom_url,
    )

    return {
        "scene": scene,
        "layout": layout,
        "index": index,
        "columns": columns,
        "conservation": conservation,
        "matches": matches,
        "matched_columns": covered,
        "scale_bar": scale_bar,
        "missing_from_tree": missing_from_tree,
        "warnings": warnings,
    }
