import pytest

from cladeview.config import DEFAULT_RESIDUE_COLOR, RESIDUE_COLORS, RenderSettings, residue_color


def test_from_env_defaults():
    assert RenderSettings.from_env({}) == RenderSettings()


def test_from_env_overrides():
    settings = RenderSettings.from_env({
        "CLADEVIEW_ROW_HEIGHT": "20",
        "CLADEVIEW_LINE_COLOR": "#333333",
        "UNRELATED": "1",
    })
    assert settings.row_height == 20.0
    assert settings.line_color == "#333333"
    assert settings.tree_width == RenderSettings().tree_width


def test_from_env_rejects_non_numbers():
    with pytest.raises(ValueError, match="CLADEVIEW_TREE_WIDTH"):
        RenderSettings.from_env({"CLADEVIEW_TREE_WIDTH": "wide"})


def test_from_env_reads_process_environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CLADEVIEW_COLUMN_WIDTH", "9")
    assert RenderSettings.from_env().column_width == 9.0


def test_derived_geometry():
    s = RenderSettings(tree_left=10, tree_width=100, label_width=50, column_width=5)
    assert s.labels_left == 118
    assert s.columns_left == 160
    assert s.column_x(3) == 175


def test_residue_color():
    assert residue_color("k") == RESIDUE_COLORS["K"]
    assert residue_color("X") == DEFAULT_RESIDUE_COLOR
