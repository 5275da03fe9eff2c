# scale_bar.py
from __future__ import annotations

from dataclasses import dataclass

SCALE_CANDIDATES = (1, 0.5, 0.2, 0.1, 0.05, 0.02, 0.01, 0.005, 0.002, 0.001)


@dataclass(frozen=True)
class ScaleBar:
    scale: float
    pixel_length: float

    @property
    def label(self) -> str:
        return f"{self.scale:g}"


def select_scale(max_depth: float) -> float:
    """
    Largest candidate not exceeding 0.8 * max_depth; the smallest candidate
    when every one is too long.
    """
    bound = 0.8 * max_depth
    for value in SCALE_CANDIDATES:
        if value <= bound:
            return value
    return SCALE_CANDIDATES[-1]


def scale_bar_for(max_depth: float, tree_width: float) -> ScaleBar:
    scale = select_scale(max_depth)
    return ScaleBar(scale=scale, pixel_length=tree_width * scale / max_depth)
