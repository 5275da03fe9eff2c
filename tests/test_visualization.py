import matplotlib
matplotlib.use("Agg")

from matplotlib.figure import Figure

from cladeview.pipeline import run_pipeline
from cladeview.selection import Selection
from cladeview.visualization import plot_scene, scene_to_svg


def _scene(tree, alignment, **kw):
    return run_pipeline(tree, alignment, Selection(columns=[0, 1, 2]), **kw)["scene"]


def test_plot_scene_returns_figure(nested_tree, nested_alignment):
    scene = _scene(nested_tree, nested_alignment)
    fig = plot_scene(scene)
    assert isinstance(fig, Figure)
    w, h = fig.get_size_inches() * fig.dpi
    assert round(w) == round(scene.width)
    assert round(h) == round(scene.height)


def test_svg_has_tooltips_and_links(nested_tree, nested_alignment):
    scene = _scene(nested_tree, nested_alignment,
                   leaf_url=lambda label: f"https://example.org/{label}")
    svg = scene_to_svg(scene)
    assert "<svg" in svg
    assert "<title>3 leaves</title>" in svg
    assert "M in 3 sequences (e.g. A M1)" in svg
    assert 'href="https://example.org/A"' in svg
