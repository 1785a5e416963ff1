from __future__ import annotations

import logging
from pathlib import Path
from textwrap import dedent

import pytest

from scenemap.config.loader import apply_mapping_config, load_mapping_config, resolve_profile
from scenemap.errors import MappingConfigError


def _write(path: Path, contents: str) -> Path:
    path.write_text(dedent(contents).lstrip(), encoding="utf8")
    return path


def test_packaged_mapping_config_has_profiles() -> None:
    config = load_mapping_config()

    assert set(config["profiles"]) >= {"performance", "background", "showcase"}


def test_explicit_path_must_exist(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_mapping_config(tmp_path / "missing.yaml")


def test_search_paths_resolve_directories(tmp_path: Path) -> None:
    site = tmp_path / "site"
    site.mkdir()
    _write(site / "mapping.yaml", "rules:\n  camera.fov:\n    priority: 1\n")

    config = load_mapping_config(search_paths=[tmp_path / "absent", site])

    assert config["rules"]["camera.fov"]["priority"] == 1


@pytest.mark.parametrize("contents", ["rules: [unclosed", "- just\n- a list\n"])
def test_invalid_documents_raise_mapping_config_error(tmp_path: Path, contents: str) -> None:
    path = _write(tmp_path / "mapping.yaml", contents)

    with pytest.raises(MappingConfigError):
        load_mapping_config(path)


def test_empty_document_is_an_empty_mapping(tmp_path: Path) -> None:
    assert dict(load_mapping_config(_write(tmp_path / "mapping.yaml", ""))) == {}


def test_resolve_profile_merges_defaults_and_profile() -> None:
    config = {
        "defaults": {"rules": {"camera.fov": {"priority": 2, "sensitivity": 0.3}}},
        "profiles": {
            "Night Mode": {"rules": {"camera.fov": {"priority": 4}}, "locks": ["camera.distance"]},
        },
    }

    merged = resolve_profile(config, "night-mode")

    assert merged["rules"]["camera.fov"] == {"priority": 4, "sensitivity": 0.3}
    assert merged["locks"] == ["camera.distance"]
    assert resolve_profile(config)["rules"]["camera.fov"]["priority"] == 2


def test_resolve_profile_rejects_unknown_profiles_and_sections() -> None:
    with pytest.raises(MappingConfigError):
        resolve_profile({"profiles": {}}, "missing")
    with pytest.raises(MappingConfigError):
        resolve_profile({"colours": {}})


def test_apply_mapping_config_updates_engine(engine) -> None:
    config = {
        "rules": {
            "camera.fov": {"priority": 3, "sensitivity": 0.9, "max": 100, "safe_zone": [50, 80]},
        },
        "locks": {"camera.distance": "pinned by host"},
        "safety_limits": {"particles.count": [10, 300]},
        "evolution": {"phase": "peak", "mood": "energetic", "intensity": 0.9},
    }

    apply_mapping_config(engine, config)

    rule = engine.get_rule("camera.fov")
    assert (rule.priority, rule.sensitivity) == (3, 0.9)
    assert rule.constraints.max == 100
    assert rule.constraints.min == 30
    assert rule.constraints.safe_zone == (50, 80)
    assert engine.locks.reason("camera.distance") == "pinned by host"
    assert engine.get_safety_limits()["particles.count"] == (10, 300)
    assert engine.evolution_state.mood == "energetic"


def test_apply_packaged_profile(engine) -> None:
    apply_mapping_config(engine, load_mapping_config(), profile="background")

    assert engine.get_locked_parameters() == ["camera.distance", "camera.fov"]
    assert engine.get_rule("backgroundConfig.timeScale").sensitivity == 0.2


def test_unknown_rule_paths_are_reported_but_ignored(engine, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="scenemap.config.loader"):
        apply_mapping_config(engine, {"rules": {"geometric.blobs.count": {"priority": 2}}})

    assert any(
        getattr(record, "event", None) == "mapping.config_unknown_rule" for record in caplog.records
    )


@pytest.mark.parametrize(
    "config",
    [
        {"rules": {"camera.fov": {"colour": "red"}}},
        {"rules": {"camera.fov": {"min": 200}}},
        {"rules": ["camera.fov"]},
        {"locks": ["camera.zoom"]},
        {"locks": "camera.fov"},
        {"safety_limits": {"camera.zoom": [0, 1]}},
        {"safety_limits": {"camera.fov": [90, 10]}},
        {"evolution": {"mood": "grumpy"}},
    ],
)
def test_malformed_sections_raise(engine, config) -> None:
    with pytest.raises(MappingConfigError):
        apply_mapping_config(engine, config)


def test_rule_override_with_safe_zone_beyond_bounds_is_rejected(engine) -> None:
    config = {"rules": {"effects.vignette": {"safe_zone": [1.5, 2.0]}}}

    with pytest.raises(MappingConfigError):
        apply_mapping_config(engine, config)

    assert engine.get_rule("effects.vignette").constraints.safe_zone is None


def test_overrides_section_pins_manual_values(engine) -> None:
    config = {
        "overrides": {
            "particles.count": 42,
            "effects.vignette": {"value": 0.2, "reason": "low light"},
        }
    }

    apply_mapping_config(engine, config)

    assert dict(engine.locks.overrides()) == {"particles.count": 42, "effects.vignette": 0.2}
    assert engine.locks.reason("effects.vignette") == "low light"
    assert [update.variable for update in engine.override_updates()] == [
        "effects.vignette",
        "particles.count",
    ]


@pytest.mark.parametrize(
    "overrides",
    [
        ["particles.count"],
        {"camera.zoom": 2.0},
        {"effects.vignette": {"reason": "no value"}},
    ],
)
def test_invalid_overrides_are_rejected(engine, overrides) -> None:
    with pytest.raises(MappingConfigError):
        apply_mapping_config(engine, {"overrides": overrides})
