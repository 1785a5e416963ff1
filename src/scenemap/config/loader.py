"""Load and apply YAML mapping overrides.

An override file tweaks the registered rules without touching code::

    defaults:
      rules:
        camera.fov:
          sensitivity: 0.2
    profiles:
      performance:
        safety_limits:
          particles.count: [10, 400]
        locks:
          camera.distance: pinned by host
        overrides:
          effects.vignette: {value: 0.2, reason: low light}

Files without ``defaults``/``profiles`` are treated as a single flat profile.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping as MappingABC
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Mapping

import yaml

from scenemap.core.types import EvolutionState
from scenemap.errors import MappingConfigError, UnknownParameterPath

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from scenemap.mapping.engine import ParameterMappingEngine

__all__ = ["apply_mapping_config", "load_mapping_config", "resolve_profile"]

logger = logging.getLogger(__name__)

_MAPPING_RESOURCE_PACKAGE = "scenemap.data"
_MAPPING_RESOURCE_NAME = "mapping.yaml"

_SECTIONS = frozenset({"rules", "locks", "overrides", "safety_limits", "evolution"})
_RULE_FIELDS = frozenset({"priority", "sensitivity", "description", "source", "evolution_rate"})
_CONSTRAINT_FIELDS = frozenset({"min", "max", "safe_zone", "lock_when_active"})


def load_mapping_config(
    path: str | Path | None = None,
    *,
    search_paths: Iterable[str | Path] | None = None,
) -> Mapping[str, Any]:
    """Load a mapping override table.

    Parameters
    ----------
    path:
        YAML file to read directly. A missing file raises
        :class:`FileNotFoundError`.
    search_paths:
        Directories or files inspected in order when ``path`` is omitted.
        Directories are resolved against ``mapping.yaml``. When nothing
        matches, the packaged overrides are used.
    """

    if path is not None:
        candidate = Path(path).expanduser()
        if not candidate.is_file():
            raise FileNotFoundError(candidate)
        return _load_mapping_payload(candidate)

    for entry in search_paths or ():
        entry_path = Path(entry).expanduser()
        candidate = entry_path / _MAPPING_RESOURCE_NAME if entry_path.is_dir() else entry_path
        if candidate.is_file():
            return _load_mapping_payload(candidate)

    resource = resources.files(_MAPPING_RESOURCE_PACKAGE).joinpath(_MAPPING_RESOURCE_NAME)
    payload = resource.read_text(encoding="utf-8")
    return _load_mapping_from_text(payload, source=str(resource))


def resolve_profile(
    config: Mapping[str, Any], profile: str | None = None
) -> Mapping[str, Any]:
    """Merge ``defaults``, top-level sections and the named ``profile``."""

    result: Dict[str, Any] = {}
    defaults = config.get("defaults")
    if isinstance(defaults, MappingABC):
        _deep_merge(result, defaults)
    _deep_merge(
        result,
        {key: value for key, value in config.items() if key not in {"defaults", "profiles"}},
    )

    if profile is not None:
        section = _lookup_section(config.get("profiles"), profile)
        if section is None:
            raise MappingConfigError(f"Unknown mapping profile '{profile}'")
        _deep_merge(result, section)

    unknown = sorted(set(result) - _SECTIONS)
    if unknown:
        raise MappingConfigError(f"Unknown mapping sections: {', '.join(unknown)}")
    return MappingProxyType(result)


def apply_mapping_config(
    engine: "ParameterMappingEngine",
    config: Mapping[str, Any],
    *,
    profile: str | None = None,
) -> None:
    """Apply rule tweaks, locks, overrides, safety limits and evolution state to ``engine``."""

    sections = resolve_profile(config, profile)
    _apply_rules(engine, sections.get("rules"))
    _apply_safety_limits(engine, sections.get("safety_limits"))
    _apply_locks(engine, sections.get("locks"))
    _apply_overrides(engine, sections.get("overrides"))
    evolution = sections.get("evolution")
    if evolution:
        if not isinstance(evolution, MappingABC):
            raise MappingConfigError("'evolution' must be a mapping")
        try:
            engine.evolution_state = EvolutionState.from_payload(evolution)
        except ValueError as exc:
            raise MappingConfigError(str(exc)) from exc
    logger.info(
        "Applied mapping overrides",
        extra={"event": "mapping.config_applied", "profile": profile},
    )


def _apply_rules(engine: "ParameterMappingEngine", rules: Any) -> None:
    if not rules:
        return
    if not isinstance(rules, MappingABC):
        raise MappingConfigError("'rules' must map parameter paths to overrides")
    for path, entry in rules.items():
        if not isinstance(entry, MappingABC):
            raise MappingConfigError(f"Override for rule '{path}' must be a mapping")
        unknown = sorted(set(entry) - _RULE_FIELDS - _CONSTRAINT_FIELDS)
        if unknown:
            raise MappingConfigError(
                f"Unknown fields for rule '{path}': {', '.join(unknown)}"
            )
        changes: Dict[str, Any] = {key: entry[key] for key in _RULE_FIELDS if key in entry}
        constraints = {key: entry[key] for key in _CONSTRAINT_FIELDS if key in entry}
        if constraints:
            changes["constraints"] = constraints
        try:
            applied = engine.update_rule(str(path), **changes)
        except (UnknownParameterPath, TypeError, ValueError) as exc:
            raise MappingConfigError(f"Invalid override for rule '{path}': {exc}") from exc
        if not applied:
            logger.warning(
                "Ignoring override for unregistered rule %s",
                path,
                extra={"event": "mapping.config_unknown_rule", "parameter": str(path)},
            )


def _apply_safety_limits(engine: "ParameterMappingEngine", limits: Any) -> None:
    if not limits:
        return
    if not isinstance(limits, MappingABC):
        raise MappingConfigError("'safety_limits' must map parameter paths to [min, max]")
    for path, limit in limits.items():
        try:
            engine.set_safety_limit(str(path), limit)
        except (UnknownParameterPath, TypeError, ValueError) as exc:
            raise MappingConfigError(f"Invalid safety limit for '{path}': {exc}") from exc


def _apply_locks(engine: "ParameterMappingEngine", locks: Any) -> None:
    if not locks:
        return
    if isinstance(locks, MappingABC):
        entries = [(str(path), None if reason is None else str(reason)) for path, reason in locks.items()]
    elif isinstance(locks, (list, tuple)):
        entries = [(str(path), None) for path in locks]
    else:
        raise MappingConfigError("'locks' must be a list of paths or a path → reason mapping")
    for path, reason in entries:
        try:
            engine.schema.validate(path)
        except UnknownParameterPath as exc:
            raise MappingConfigError(f"Cannot lock '{path}': {exc}") from exc
        engine.lock_parameter(path, reason)


def _apply_overrides(engine: "ParameterMappingEngine", overrides: Any) -> None:
    if not overrides:
        return
    if not isinstance(overrides, MappingABC):
        raise MappingConfigError("'overrides' must map parameter paths to values")
    for path, entry in overrides.items():
        reason = None
        if isinstance(entry, MappingABC):
            if "value" not in entry:
                raise MappingConfigError(f"Override for '{path}' needs a 'value'")
            reason = entry.get("reason")
            entry = entry["value"]
        try:
            engine.set_override(str(path), entry, None if reason is None else str(reason))
        except UnknownParameterPath as exc:
            raise MappingConfigError(f"Cannot override '{path}': {exc}") from exc


def _deep_merge(target: dict[str, Any], source: Mapping[str, Any]) -> None:
    for key, value in source.items():
        key_str = str(key)
        existing = target.get(key_str)
        if isinstance(existing, MappingABC) and isinstance(value, MappingABC):
            merged = dict(existing)
            _deep_merge(merged, value)
            target[key_str] = merged
        elif isinstance(value, MappingABC):
            target[key_str] = _deep_copy_mapping(value)
        else:
            target[key_str] = value


def _deep_copy_mapping(source: Mapping[str, Any]) -> dict[str, Any]:
    copied: dict[str, Any] = {}
    for key, value in source.items():
        key_str = str(key)
        if isinstance(value, MappingABC):
            copied[key_str] = _deep_copy_mapping(value)
        else:
            copied[key_str] = value
    return copied


def _load_mapping_payload(path: Path) -> Mapping[str, Any]:
    with path.open("r", encoding="utf-8") as buffer:
        payload = buffer.read()
    return _load_mapping_from_text(payload, source=str(path))


def _load_mapping_from_text(payload: str, *, source: str) -> Mapping[str, Any]:
    try:
        data = yaml.safe_load(payload)
    except yaml.YAMLError as exc:
        raise MappingConfigError(f"Invalid YAML in mapping configuration: {source}") from exc

    if data is None:
        return MappingProxyType({})
    if not isinstance(data, MappingABC):
        raise MappingConfigError(f"Mapping configuration in {source!s} must decode to a mapping")
    return MappingProxyType(_deep_copy_mapping(data))


def _lookup_section(
    table: Mapping[str, Any] | None, key: str | None
) -> Mapping[str, Any] | None:
    if not isinstance(table, MappingABC) or key is None:
        return None
    candidate = table.get(key)
    if isinstance(candidate, MappingABC):
        return candidate
    normalised = _normalise_identifier(key)
    if normalised is None:
        return None
    for raw_key, value in table.items():
        if not isinstance(value, MappingABC):
            continue
        if _normalise_identifier(raw_key) == normalised:
            return value
    return None


def _normalise_identifier(value: str | None) -> str | None:
    if value is None:
        return None
    filtered = [char for char in str(value).lower() if char.isalnum() or char == "_"]
    cleaned = "".join(filtered).strip("_")
    return cleaned or None
