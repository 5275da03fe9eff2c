# src/cladeview/visualization.py
# Streamlit-safe plotting (no tkinter, no plt.show)
from __future__ import annotations

import io
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
from matplotlib.artist import Artist
from matplotlib.figure import Figure
from matplotlib.patches import Circle as CirclePatch
from matplotlib.patches import Rectangle

from cladeview.scene import Circle, Group, Hyperlink, Line, Primitive, Rect, Scene, Text, Tooltip

SVG_NS = "http://www.w3.org/2000/svg"
# Scene units are pixels; at 72 dpi one point is one pixel, so font sizes carry over.
DPI = 72

_HA = {"start": "left", "middle": "center", "end": "right"}


def _artists(ax, item: Primitive) -> List[Artist]:
    if isinstance(item, Line):
        return ax.plot([item.x1, item.x2], [item.y1, item.y2], color=item.color,
                       linewidth=item.width, solid_capstyle="butt")
    if isinstance(item, Circle):
        fill = item.fill or "none"
        patch = CirclePatch((item.cx, item.cy), item.r, facecolor=fill,
                            edgecolor=item.fill or "#000000", linewidth=0.5)
        ax.add_patch(patch)
        return [patch]
    if isinstance(item, Rect):
        style = item.style
        patch = Rectangle((item.x, item.y), item.w, item.h,
                          facecolor=style.get("fill", "none"),
                          edgecolor=style.get("stroke", "none"),
                          alpha=float(style.get("opacity", 1.0)),
                          linewidth=0.5)
        ax.add_patch(patch)
        return [patch]
    if isinstance(item, Text):
        return [ax.text(item.x, item.y, item.content, ha=_HA.get(item.anchor, "left"), va="baseline",
                        rotation=item.rotation or 0.0, rotation_mode="anchor",
                        fontsize=item.size, color=item.color)]
    raise TypeError(f"Not a drawable primitive: {type(item).__name__}")


def _draw(ax, item: Primitive, tips: Dict[str, str], url: Optional[str] = None,
          tip: Optional[str] = None) -> None:
    if isinstance(item, Hyperlink):
        _draw(ax, item.attached_to, tips, item.url, tip)
        return
    if isinstance(item, Tooltip):
        _draw(ax, item.attached_to, tips, url, item.text)
        return
    if isinstance(item, Group):
        for child in item.children:
            _draw(ax, child, tips, url, tip)
        return
    for artist in _artists(ax, item):
        if url:
            artist.set_url(url)
        if tip is not None:
            gid = f"tip{len(tips)}"
            artist.set_gid(gid)
            tips[gid] = tip


def _render(scene: Scene) -> Tuple[Figure, Dict[str, str]]:
    fig, ax = plt.subplots(figsize=(scene.width / DPI, scene.height / DPI), dpi=DPI)
    ax.set_position([0, 0, 1, 1])
    ax.set_xlim(0, scene.width)
    ax.set_ylim(scene.height, 0)  # screen coordinates: y grows downwards
    ax.axis("off")
    tips: Dict[str, str] = {}
    for item in scene.primitives:
        _draw(ax, item, tips)
    return fig, tips


def plot_scene(scene: Scene) -> Figure:
    """
    Draw a scene with matplotlib.
    - No plt.show()
    - Returns a Matplotlib Figure (call st.pyplot(fig) in Streamlit)
    """
    fig, _ = _render(scene)
    return fig


def scene_to_svg(scene: Scene) -> str:
    """
    SVG markup for a scene. Hyperlinks become <a> elements through the artists'
    URLs; tooltips are added as <title> children of the artists' groups.
    """
    fig, tips = _render(scene)
    buf = io.BytesIO()
    try:
        fig.savefig(buf, format="svg")
    finally:
        plt.close(fig)

    ET.register_namespace("", SVG_NS)
    ET.register_namespace("xlink", "http://www.w3.org/1999/xlink")
    root, ids = ET.XMLID(buf.getvalue())
    for gid, text in tips.items():
        el = ids.get(gid)
        if el is None:
            continue
        title = ET.Element(f"{{{SVG_NS}}}title")
        title.text = text
        el.insert(0, title)
    return ET.tostring(root, encoding="unicode")
