"""Read and write scene presets as JSON.

A preset is either the nested parameter tree or its flattened
``{"camera.distance": 25.0, ...}`` form; both load to the nested tree.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping as MappingABC
from pathlib import Path
from typing import Any, Dict, Mapping

from scenemap.core.paths import (
    PATH_SEPARATOR,
    ParameterSchema,
    flatten_tree,
    unflatten_tree,
)
from scenemap.errors import PresetError, UnknownParameterPath

__all__ = ["load_preset", "save_preset"]

logger = logging.getLogger(__name__)


def _is_flat(payload: Mapping[str, Any]) -> bool:
    return any(PATH_SEPARATOR in str(key) for key in payload) and not any(
        isinstance(value, MappingABC) for value in payload.values()
    )


def load_preset(
    path: str | Path, *, schema: ParameterSchema | None = None
) -> Dict[str, Any]:
    """Return the nested parameter tree stored at ``path``.

    When ``schema`` is given every leaf must be a known parameter path.
    """

    source = Path(path).expanduser()
    try:
        with source.open("r", encoding="utf8") as handle:
            payload = json.load(handle)
    except FileNotFoundError:
        raise
    except (OSError, ValueError) as exc:
        raise PresetError(f"Unable to read preset {source}: {exc}") from exc

    if not isinstance(payload, MappingABC):
        raise PresetError(f"Preset {source} must contain a JSON object")

    try:
        tree = unflatten_tree(payload) if _is_flat(payload) else dict(payload)
        if schema is not None:
            for leaf in flatten_tree(tree):
                schema.validate(leaf)
    except UnknownParameterPath as exc:
        raise PresetError(f"Preset {source} is invalid: {exc}") from exc

    logger.debug("Loaded preset %s", source, extra={"event": "preset.load", "path": str(source)})
    return tree


def save_preset(
    path: str | Path,
    tree: Mapping[str, Any],
    *,
    flat: bool = False,
) -> Path:
    """Write ``tree`` to ``path`` and return the resolved destination."""

    destination = Path(path).expanduser()
    destination.parent.mkdir(parents=True, exist_ok=True)
    payload: Mapping[str, Any] = flatten_tree(tree) if flat else tree
    with destination.open("w", encoding="utf8") as handle:
        json.dump(payload, handle, indent=2, sort_keys=True)
        handle.write("\n")
    logger.info(
        "Saved preset to %s",
        destination,
        extra={"event": "preset.save", "path": str(destination), "flat": flat},
    )
    return destination
