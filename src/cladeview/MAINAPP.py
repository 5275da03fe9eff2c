# MAINAPP.py
# run the app:
#   python -m streamlit run src/cladeview/MAINAPP.py
from __future__ import annotations

import os
os.environ.setdefault("MPLBACKEND", "Agg")  # force headless BEFORE pyplot

from dataclasses import replace
from typing import List, Optional

import streamlit as st
import streamlit.components.v1 as components

from cladeview import microservices as ms  # pure helpers (no Streamlit inside)
from cladeview.config import RenderSettings
from cladeview.errors import CladeViewError
from cladeview.io_helpers import annotations_for_alignment, read_alignment_text, read_site_annotations, read_tree_text
from cladeview.logging_config import setup_logging
from cladeview.patterns import normalize_pattern
from cladeview.pipeline import run_pipeline
from cladeview.selection import Selection
from cladeview.visualization import scene_to_svg

log_lines: List[str] = []
setup_logging(on_log=log_lines.append)  # level from CLADEVIEW_LOG_LEVEL, INFO by default

st.set_page_config(page_title="Clade Viewer", layout="wide")
st.title("🌳 Tree + alignment viewer")


@st.cache_data(show_spinner=False)
def _read_uploaded_text(file) -> str:
    return file.getvalue().decode("utf-8", errors="replace") if file else ""


# ---------------- Sidebar ----------------
with st.sidebar:
    st.header("Inputs")
    aln_fmt = st.selectbox("Alignment format", ["fasta", "clustal", "stockholm"])
    aln_file = st.file_uploader("Alignment file", type=["fa", "fasta", "faa", "aln", "sto", "txt"])
    tree_file = st.file_uploader("Tree file (Newick)", type=["nwk", "newick", "tree", "txt"])
    sites_file = st.file_uploader("Functional sites (TSV: id, position, text)", type=["tsv", "txt"])
    st.divider()
    row_height = st.slider("Row height (px)", 8, 40, int(RenderSettings.from_env().row_height))

aln_text = _read_uploaded_text(aln_file) or st.text_area("…or paste the alignment", height=160)
tree_text = _read_uploaded_text(tree_file) or st.text_area("…or paste the Newick tree", height=80)

if not (aln_text.strip() and tree_text.strip()):
    st.info("Provide an alignment and a tree to begin.")
    st.stop()

messages: List[str] = []
try:
    alignment = read_alignment_text(aln_text, aln_fmt)
    tree = read_tree_text(tree_text, on_log=messages.append)
    annotations = None
    if sites_file:
        annotations = annotations_for_alignment(
            read_site_annotations(sites_file), alignment
        )
except CladeViewError as err:
    st.error(str(err))
    st.stop()

# ---------------- Selection ----------------
mode = st.radio("Columns to show", ["Positions in a sequence", "Alignment columns", "All columns"],
                horizontal=True)
try:
    if mode == "Positions in a sequence":
        col1, col2 = st.columns([1, 2])
        anchor = col1.selectbox("Anchor sequence", alignment.ids)
        positions = ms.parse_positions(col2.text_input("Positions (e.g. 10, 42, 100-105)", "1-20"))
        selection = Selection(anchor=anchor, positions=positions)
    elif mode == "Alignment columns":
        cols = ms.parse_positions(st.text_input("Columns (1-based, e.g. 1-30)", "1-30"))
        selection = Selection(columns=[c - 1 for c in cols])
    else:
        selection = Selection(columns=list(range(alignment.length)), policy="all")
except ValueError as err:
    st.error(str(err))
    st.stop()

internal = [n.id for n in tree.nodes if not n.is_leaf and n.parent is not None]
zoom: Optional[int] = st.selectbox(
    "Zoom to clade",
    [None] + internal,
    format_func=lambda n: "whole tree" if n is None else f"node {n} ({len(tree.leaves_below(n))} leaves)",
)
pattern = st.text_input("Motif to highlight (A-Z, '.' matches anything)", "")

# ---------------- Run ----------------
progress = st.progress(0, text="Collapsing columns…")


def _on_progress(phase: str, i: int, total: int) -> None:
    progress.progress(min(1.0, i / max(1, total)), text=f"{phase}: {i}/{total}")


try:
    result = run_pipeline(
        tree, alignment, selection,
        zoom=zoom,
        pattern=pattern or None,
        annotations=annotations,
        settings=replace(RenderSettings.from_env(), row_height=float(row_height)),
        on_progress=_on_progress,
    )
except CladeViewError as err:
    st.error(str(err))
    st.stop()

for msg in dict.fromkeys(messages + result["warnings"]):
    st.warning(msg)

scene = result["scene"]
svg = scene_to_svg(scene)
components.html(svg, height=int(scene.height) + 20, scrolling=True)
st.download_button("Download SVG", svg, file_name="tree_alignment.svg", mime="image/svg+xml")

tab1, tab2, tab3 = st.tabs(["Collapsed clades", "Motif hits", "Sequences"])
with tab1:
    st.dataframe(ms.clade_table(tree, result["conservation"]), use_container_width=True, hide_index=True)
with tab2:
    if pattern:
        st.dataframe(ms.matches_table(result["index"], normalize_pattern(pattern), result["matches"]),
                     use_container_width=True, hide_index=True)
    else:
        st.caption("No motif given.")
with tab3:
    st.dataframe(ms.alignment_summary(result["index"]), use_container_width=True, hide_index=True)
    if result["missing_from_tree"]:
        st.caption(f"{len(result['missing_from_tree'])} sequences are not in the tree.")

with st.expander("Log"):
    st.code("\n".join(log_lines) or "(empty)", language="text")
