"""Configuration and JSON input helpers for the scenemap CLI."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from scenemap.cli.errors import CliError
from scenemap.configuration import load_config_file, load_project_config

__all__ = [
    "CONFIG_ENV_VAR",
    "load_cli_config",
    "read_frames",
    "read_json_mapping",
]

CONFIG_ENV_VAR = "SCENEMAP_CONFIG"
PROJECT_CONFIG_FILENAME = "pyproject.toml"


def _iter_unique_paths(candidates: List[Path]) -> List[Path]:
    seen: Dict[Path, None] = {}
    ordered: List[Path] = []
    for candidate in candidates:
        resolved = candidate.expanduser().resolve(strict=False)
        if resolved in seen:
            continue
        seen[resolved] = None
        ordered.append(resolved)
    return ordered


def _with_source(payload: Mapping[str, Any], source: Path | None) -> Dict[str, Any]:
    data = {str(key): value for key, value in payload.items()}
    data["_config_path"] = str(source) if source is not None else None
    return data


def load_cli_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load CLI defaults.

    ``path`` (or ``$SCENEMAP_CONFIG``) may point at a ``pyproject.toml``, a
    directory holding one, or a standalone TOML file.  Without either, the
    current directory's ``pyproject.toml`` is consulted.
    """

    env_config = os.environ.get(CONFIG_ENV_VAR)
    explicit: List[Path] = []
    if path is not None:
        explicit.append(Path(path))
    if env_config:
        explicit.append(Path(env_config))

    for base in _iter_unique_paths(explicit):
        if base.is_file() and base.name != PROJECT_CONFIG_FILENAME:
            try:
                return _with_source(load_config_file(base), base)
            except (OSError, ValueError) as exc:
                raise CliError(
                    f"Unable to read configuration {base}: {exc}",
                    category="usage",
                    context={"path": base},
                ) from exc
        loaded = load_project_config(base)
        if loaded:
            payload, resolved = loaded
            return _with_source(payload, resolved)

    loaded = load_project_config(Path.cwd())
    if loaded:
        payload, resolved = loaded
        return _with_source(payload, resolved)
    return {"_config_path": None}


def _read_text(path: Path, label: str) -> str:
    try:
        return Path(path).expanduser().read_text(encoding="utf8")
    except FileNotFoundError as exc:
        raise CliError(
            f"{label} file not found: {path}",
            category="not_found",
            context={"path": path},
        ) from exc
    except UnicodeDecodeError as exc:
        raise CliError(
            f"{label} file {path} is not valid UTF-8: {exc}",
            category="usage",
            context={"path": path},
        ) from exc
    except OSError as exc:
        raise CliError(
            f"Unable to read {label} file {path}: {exc}",
            category="io",
            context={"path": path},
        ) from exc


def read_json_mapping(path: Path, label: str) -> Dict[str, Any]:
    """Read a JSON object from ``path``."""

    text = _read_text(path, label)
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CliError(
            f"Invalid JSON in {label} file {path}: {exc}",
            category="usage",
            context={"path": path},
        ) from exc
    if not isinstance(payload, Mapping):
        raise CliError(
            f"{label} file {path} must contain a JSON object",
            category="usage",
            context={"path": path},
        )
    return dict(payload)


def read_frames(path: Path) -> List[Mapping[str, Any]]:
    """Read replay frames from a JSON array or a JSON Lines file."""

    text = _read_text(path, "frames")
    stripped = text.lstrip()
    try:
        if stripped.startswith("["):
            frames = json.loads(text)
        else:
            frames = [json.loads(line) for line in text.splitlines() if line.strip()]
    except json.JSONDecodeError as exc:
        raise CliError(
            f"Invalid JSON in frames file {path}: {exc}",
            category="usage",
            context={"path": path},
        ) from exc
    if not all(isinstance(frame, Mapping) for frame in frames):
        raise CliError(
            f"Every frame in {path} must be a JSON object",
            category="usage",
            context={"path": path},
        )
    return list(frames)
