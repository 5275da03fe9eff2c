"""
Configuration
=============
Pixel geometry and colours used when turning a tree + alignment into a scene.

Defaults live on ``RenderSettings``; ``RenderSettings.from_env()`` lets a
deployment override any numeric field through ``CLADEVIEW_<FIELD>``
environment variables (a local ``.env`` file is honoured).

Exports:
    RenderSettings: geometry/colour settings for one rendering request.
    RESIDUE_COLORS: background colour per residue letter.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Dict, Optional

from dotenv import load_dotenv

ENV_PREFIX = "CLADEVIEW_"

# Clustal-like groups for amino acids; nucleotides fall back to grey.
RESIDUE_COLORS: Dict[str, str] = {
    **dict.fromkeys("AILMFWV", "#80a0f0"),
    **dict.fromkeys("KR", "#f01505"),
    **dict.fromkeys("DE", "#c048c0"),
    **dict.fromkeys("NQST", "#15c015"),
    "C": "#f08080",
    "G": "#f09048",
    "P": "#c0c000",
    **dict.fromkeys("HY", "#15a4a4"),
}
DEFAULT_RESIDUE_COLOR = "#dddddd"


@dataclass(frozen=True)
class RenderSettings:
    row_height: float = 16.0
    tree_left: float = 10.0
    tree_width: float = 300.0
    top_padding: float = 60.0
    label_width: float = 220.0
    column_width: float = 16.0
    min_label_height: float = 12.0
    bottom_padding: float = 40.0
    right_padding: float = 20.0
    font_size: float = 11.0
    node_radius: float = 3.0
    line_color: str = "#000000"
    highlight_color: str = "#ffd54f"

    @property
    def labels_left(self) -> float:
        return self.tree_left + self.tree_width + 8.0

    @property
    def columns_left(self) -> float:
        return self.tree_left + self.tree_width + self.label_width

    def column_x(self, i: int) -> float:
        """Left edge of the i-th displayed column."""
        return self.columns_left + i * self.column_width

    @classmethod
    def from_env(cls, env: Optional[Dict[str, str]] = None) -> RenderSettings:
        """Defaults overridden by CLADEVIEW_* variables (e.g. CLADEVIEW_ROW_HEIGHT=20)."""
        if env is None:
            load_dotenv()
            env = dict(os.environ)
        overrides = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            if isinstance(f.default, float):
                try:
                    overrides[f.name] = float(raw)
                except ValueError:
                    raise ValueError(f"{ENV_PREFIX}{f.name.upper()} must be a number, got {raw!r}") from None
            else:
                overrides[f.name] = raw
        return replace(cls(), **overrides)


def residue_color(char: str) -> str:
    return RESIDUE_COLORS.get(char.upper(), DEFAULT_RESIDUE_COLOR)
