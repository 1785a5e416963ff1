from __future__ import annotations

import json
from pathlib import Path

import pytest

from scenemap.core.paths import default_schema
from scenemap.errors import PresetError
from scenemap.io.presets import load_preset, save_preset


def test_nested_preset_round_trip(tmp_path: Path, scene_tree) -> None:
    destination = save_preset(tmp_path / "presets" / "calm.json", scene_tree)

    assert destination.parent.is_dir()
    assert load_preset(destination, schema=default_schema()) == scene_tree


def test_flat_presets_load_as_nested_tree(tmp_path: Path, scene_tree) -> None:
    destination = save_preset(tmp_path / "flat.json", scene_tree, flat=True)

    stored = json.loads(destination.read_text(encoding="utf8"))
    assert stored["camera.distance"] == 25.0
    assert load_preset(destination) == scene_tree


def test_schema_rejects_unknown_leaves(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"camera.zoom": 2.0}), encoding="utf8")

    assert load_preset(path) == {"camera": {"zoom": 2.0}}
    with pytest.raises(PresetError):
        load_preset(path, schema=default_schema())


@pytest.mark.parametrize("contents", ["{not json", "[1, 2, 3]"])
def test_unreadable_presets_raise_preset_error(tmp_path: Path, contents: str) -> None:
    path = tmp_path / "broken.json"
    path.write_text(contents, encoding="utf8")

    with pytest.raises(PresetError):
        load_preset(path)


def test_missing_preset_raises_file_not_found(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_preset(tmp_path / "absent.json")


def test_non_utf8_preset_raises_preset_error(tmp_path: Path) -> None:
    path = tmp_path / "binary.json"
    path.write_bytes(b"\xff\xfe{}")

    with pytest.raises(PresetError):
        load_preset(path)
