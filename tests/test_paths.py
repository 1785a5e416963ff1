from __future__ import annotations

import pytest

from scenemap.core.paths import (
    ParameterSchema,
    default_schema,
    flatten_tree,
    split_path,
    unflatten_tree,
    write_updates,
)
from scenemap.core.types import ParameterUpdate
from scenemap.errors import ScenemapError, UnknownParameterPath


def test_default_schema_covers_nested_groups() -> None:
    schema = default_schema()

    assert "camera.distance" in schema
    assert "globalEffects.chromatic.rainbow.speed" in schema
    assert schema.default("camera.distance") == 25.0
    assert schema.default("backgroundConfig.enabled") is False
    assert "camera" not in schema
    assert list(schema.paths) == sorted(schema.paths)


@pytest.mark.parametrize("path", ["", "camera..distance", ".camera", "camera."])
def test_split_path_rejects_empty_segments(path: str) -> None:
    with pytest.raises(UnknownParameterPath):
        split_path(path)


def test_unknown_path_is_a_key_error_with_readable_message() -> None:
    schema = default_schema()

    with pytest.raises(KeyError) as excinfo:
        schema.validate("camera.zoom")

    assert isinstance(excinfo.value, ScenemapError)
    assert str(excinfo.value) == "Unknown parameter path 'camera.zoom'"


def test_read_returns_none_for_missing_branches(scene_tree) -> None:
    schema = default_schema()
    del scene_tree["camera"]

    assert schema.read(scene_tree, "camera.fov") is None
    assert schema.read(None, "camera.fov") is None
    assert schema.read(scene_tree, "particles.count") == 200


def test_flatten_and_unflatten_are_inverse(scene_tree) -> None:
    flat = flatten_tree(scene_tree)

    assert flat["globalEffects.shapeGlow.radius"] == 20.0
    assert unflatten_tree(flat) == scene_tree


def test_write_updates_returns_a_copy(scene_tree) -> None:
    updates = [
        ParameterUpdate("camera.fov", 70.0, "hybrid", 9, "test", 0.5),
        ("particles.count", 300),
    ]

    result = write_updates(scene_tree, updates, default_schema())

    assert result["camera"]["fov"] == 70.0
    assert result["particles"]["count"] == 300
    assert scene_tree["camera"]["fov"] == 60.0


def test_write_updates_rejects_unknown_paths(scene_tree) -> None:
    with pytest.raises(UnknownParameterPath):
        write_updates(scene_tree, [("camera.zoom", 2.0)], default_schema())


def test_write_updates_refuses_to_descend_into_leaves() -> None:
    with pytest.raises(UnknownParameterPath):
        write_updates({"camera": 3}, [("camera.fov", 70.0)])


def test_extend_adds_paths_without_prefix_conflicts() -> None:
    schema = default_schema().extend({"audio.volume": 0.5})

    assert "audio.volume" in schema
    assert schema.default_tree()["audio"] == {"volume": 0.5}
    with pytest.raises(UnknownParameterPath):
        schema.extend({"camera.distance.near": 1.0})
    with pytest.raises(UnknownParameterPath):
        schema.extend({"camera": 1.0})


def test_schema_from_tree_freezes_defaults() -> None:
    schema = ParameterSchema.from_tree({"a": {"b": 1}})

    with pytest.raises(TypeError):
        schema.defaults["a.b"] = 2  # type: ignore[index]
    assert len(schema) == 1
