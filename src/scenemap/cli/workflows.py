"""Command handlers for the scenemap CLI.

Every handler receives the parsed namespace plus the loaded configuration and
returns the JSON document to print.
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Mapping

from scenemap.analysis.replay import replay
from scenemap.cli.errors import CliError
from scenemap.cli.io import read_frames, read_json_mapping
from scenemap.config.loader import apply_mapping_config, load_mapping_config
from scenemap.core.paths import write_updates
from scenemap.core.types import EvolutionState, ThemeAnalysis, WeatherData, updates_as_dicts
from scenemap.errors import MappingConfigError, PresetError, UnknownStrategyError
from scenemap.io.presets import load_preset, save_preset
from scenemap.mapping.engine import DEFAULT_UPDATE_EPSILON, ParameterMappingEngine
from scenemap.mapping.strategies import derive_characteristics, validate_characteristics

__all__ = [
    "build_engine",
    "handle_derive",
    "handle_limits",
    "handle_map",
    "handle_replay",
    "handle_rules",
]

logger = logging.getLogger(__name__)


def _render(payload: Any) -> str:
    return json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False, default=str)


def _engine_config(config: Mapping[str, Any]) -> Dict[str, Any]:
    engine_cfg = config.get("engine", {})
    return dict(engine_cfg) if isinstance(engine_cfg, Mapping) else {}


def _config_relative(path_value: str | Path, config: Mapping[str, Any]) -> Path:
    path = Path(path_value).expanduser()
    source = config.get("_config_path")
    if not path.is_absolute() and source:
        return Path(source).parent / path
    return path


def build_engine(namespace: argparse.Namespace, config: Mapping[str, Any]) -> ParameterMappingEngine:
    """Create an engine honouring ``[tool.scenemap.engine]`` and CLI overrides."""

    engine_cfg = _engine_config(config)
    epsilon = getattr(namespace, "update_epsilon", None)
    if epsilon is None:
        epsilon = engine_cfg.get("update_epsilon", DEFAULT_UPDATE_EPSILON)
    try:
        engine = ParameterMappingEngine(update_epsilon=float(epsilon))
    except (TypeError, ValueError) as exc:
        raise CliError(
            f"Invalid update epsilon {epsilon!r}",
            category="usage",
            context={"update_epsilon": epsilon},
        ) from exc

    mapping_path = getattr(namespace, "mapping_config", None)
    if mapping_path is None and engine_cfg.get("mapping_config"):
        mapping_path = _config_relative(engine_cfg["mapping_config"], config)
    profile = getattr(namespace, "profile", None) or engine_cfg.get("profile")
    if mapping_path is None and profile is None:
        return engine

    try:
        overrides = load_mapping_config(mapping_path)
        apply_mapping_config(engine, overrides, profile=profile)
    except (FileNotFoundError, MappingConfigError) as exc:
        raise CliError.from_exception(
            "Unable to apply mapping configuration",
            exc,
            context={"path": mapping_path, "profile": profile},
        ) from exc
    logger.debug(
        "Engine configured from %s",
        mapping_path or "packaged mapping overrides",
        extra={"event": "cli.engine_config", "profile": profile},
    )
    return engine


def _load_inputs(namespace: argparse.Namespace) -> tuple[ThemeAnalysis, WeatherData, EvolutionState | None]:
    ai_payload = read_json_mapping(namespace.ai, "theme analysis")
    weather_payload = read_json_mapping(namespace.weather, "weather")
    evolution_path = getattr(namespace, "evolution", None)
    try:
        ai = ThemeAnalysis.from_payload(ai_payload)
        weather = WeatherData.from_payload(weather_payload)
        evolution = (
            EvolutionState.from_payload(read_json_mapping(evolution_path, "evolution"))
            if evolution_path is not None
            else None
        )
    except (UnknownStrategyError, ValueError, TypeError, KeyError) as exc:
        raise CliError.from_exception("Invalid mapping inputs", exc) from exc
    return ai, weather, evolution


def _load_scene(namespace: argparse.Namespace, engine: ParameterMappingEngine) -> Dict[str, Any]:
    scene_path = getattr(namespace, "scene", None)
    if scene_path is None:
        return engine.schema.default_tree()
    try:
        return load_preset(scene_path, schema=engine.schema)
    except (FileNotFoundError, PresetError) as exc:
        raise CliError.from_exception(
            "Unable to load scene preset", exc, context={"path": scene_path}
        ) from exc


def handle_map(namespace: argparse.Namespace, *, config: Mapping[str, Any]) -> str:
    """Evaluate a single mapping pass."""

    engine = build_engine(namespace, config)
    ai, weather, evolution = _load_inputs(namespace)
    tree = _load_scene(namespace, engine)
    updates = engine.map_parameters(ai, weather, tree, evolution)
    if namespace.include_overrides:
        updates = updates + engine.override_updates()

    payload: Dict[str, Any] = {
        "updates": updates_as_dicts(updates),
        "locked": engine.get_locked_parameters(),
    }
    if namespace.apply is not None:
        destination = save_preset(
            namespace.apply,
            write_updates(tree, updates, engine.schema),
            flat=namespace.flat,
        )
        payload["preset"] = str(destination)
    return _render(payload)


def handle_rules(namespace: argparse.Namespace, *, config: Mapping[str, Any]) -> str:
    """List the registered rules."""

    engine = build_engine(namespace, config)
    locked = set(engine.get_locked_parameters())
    rows = []
    for rule in engine.get_all_rules():
        if namespace.source and rule.source != namespace.source:
            continue
        rows.append(
            {
                "variable": rule.variable,
                "source": rule.source,
                "priority": rule.priority,
                "sensitivity": rule.sensitivity,
                "min": rule.constraints.min,
                "max": rule.constraints.max,
                "safe_zone": list(rule.constraints.safe_zone) if rule.constraints.safe_zone else None,
                "lock_when_active": list(rule.constraints.lock_when_active),
                "description": rule.description,
                "locked": rule.variable in locked,
            }
        )
    return _render(rows)


def handle_limits(namespace: argparse.Namespace, *, config: Mapping[str, Any]) -> str:
    """Show the absolute safety limits."""

    engine = build_engine(namespace, config)
    limits = {path: list(limit) for path, limit in sorted(engine.get_safety_limits().items())}
    return _render(limits)


def handle_derive(namespace: argparse.Namespace, *, config: Mapping[str, Any]) -> str:
    """Blend theme characteristics with weather and validate the result."""

    ai, weather, _ = _load_inputs(namespace)
    try:
        derived = derive_characteristics(ai, weather)
    except UnknownStrategyError as exc:
        raise CliError.from_exception("Unable to derive characteristics", exc) from exc
    report = validate_characteristics(derived, weather)
    validation = asdict(report)
    validation["issues"] = list(report.issues)
    validation["suggestions"] = list(report.suggestions)
    return _render({"characteristics": derived.as_dict(), "validation": validation})


def handle_replay(namespace: argparse.Namespace, *, config: Mapping[str, Any]) -> str:
    """Replay recorded frames and summarise parameter movement."""

    engine = build_engine(namespace, config)
    frames = read_frames(namespace.frames)
    tree = _load_scene(namespace, engine)
    try:
        result = replay(engine, frames, tree)
    except (UnknownStrategyError, ValueError, TypeError, KeyError) as exc:
        raise CliError.from_exception(
            "Invalid replay frame", exc, context={"path": namespace.frames}
        ) from exc

    payload = result.as_dict()
    if not namespace.include_tree:
        payload.pop("tree")
    if namespace.output is not None:
        payload["preset"] = str(save_preset(namespace.output, result.tree))
    return _render(payload)
