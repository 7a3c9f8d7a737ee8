import json
import pytest
from pathlib import Path

from runtime.config import EditorConfig, ValidationLimits


def test_defaults():
    config = EditorConfig()
    assert config.content_dir == Path("content/dialog-trees")
    assert config.debounce_seconds == 0.3
    assert config.validation_limits() == ValidationLimits(200, 1000, 4)


def test_dict_round_trip():
    config = EditorConfig(content_dir="trees", column_width=400, max_responses=6)
    loaded = EditorConfig.from_dict(config.to_dict())

    assert loaded.content_dir == Path("trees")
    assert loaded.column_width == 400.0
    assert loaded.validation_limits().max_responses == 6


def test_from_dict_ignores_unknown_keys(caplog):
    config = EditorConfig.from_dict({"row_spacing": 90, "theme": "dark"})
    assert config.row_spacing == 90.0
    assert "theme" in caplog.text


def test_from_file(tmp_path):
    path = tmp_path / "editor.json"
    path.write_text(json.dumps({"debounce_seconds": 0.5, "json_indent": 4}), encoding="utf-8")

    config = EditorConfig.from_file(path)
    assert config.debounce_seconds == 0.5
    assert config.json_indent == 4


def test_from_file_errors(tmp_path):
    with pytest.raises(ValueError):
        EditorConfig.from_file(tmp_path / "missing.json")

    bad = tmp_path / "bad.json"
    bad.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        EditorConfig.from_file(bad)
