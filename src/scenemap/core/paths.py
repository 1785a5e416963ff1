"""Typed resolution of dot-delimited parameter paths.

Scene parameters live in a nested tree of groups (``camera``,
``globalEffects.distortion`` …) whose leaves are numbers, booleans or colour
strings.  :class:`ParameterSchema` records every leaf of the default scene so
that rule registration and tree writes fail fast on typos instead of silently
creating or reading ``None`` branches.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping as MappingABC
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from types import MappingProxyType
from typing import Any, Dict, Mapping, MutableMapping, Tuple

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - Python < 3.11 fallback
    import tomli as tomllib  # type: ignore

from scenemap.errors import UnknownParameterPath

__all__ = [
    "PATH_SEPARATOR",
    "ParameterSchema",
    "default_scene_tree",
    "default_schema",
    "flatten_tree",
    "split_path",
    "unflatten_tree",
    "write_updates",
]


PATH_SEPARATOR = "."

_DEFAULT_SCENE_RESOURCE = "default_scene.toml"


def split_path(path: str) -> Tuple[str, ...]:
    """Return the segments of ``path`` rejecting empty segments."""

    if not isinstance(path, str) or not path:
        raise UnknownParameterPath(str(path), "path must be a non-empty string")
    segments = tuple(path.split(PATH_SEPARATOR))
    if any(not segment for segment in segments):
        raise UnknownParameterPath(path, "empty path segment")
    return segments


def flatten_tree(tree: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Collapse a nested parameter tree into a ``{path: value}`` mapping."""

    flat: Dict[str, Any] = {}
    for key, value in tree.items():
        path = f"{prefix}{PATH_SEPARATOR}{key}" if prefix else str(key)
        if isinstance(value, MappingABC):
            flat.update(flatten_tree(value, path))
        else:
            flat[path] = value
    return flat


def unflatten_tree(flat: Mapping[str, Any]) -> Dict[str, Any]:
    """Inverse of :func:`flatten_tree`."""

    tree: Dict[str, Any] = {}
    for path, value in flat.items():
        _assign(tree, split_path(path), value, path)
    return tree


def _assign(
    tree: MutableMapping[str, Any],
    segments: Tuple[str, ...],
    value: Any,
    path: str,
) -> None:
    node: MutableMapping[str, Any] = tree
    for segment in segments[:-1]:
        child = node.get(segment)
        if child is None:
            child = {}
            node[segment] = child
        elif not isinstance(child, MutableMapping):
            raise UnknownParameterPath(path, f"'{segment}' is a leaf, not a group")
        node = child
    node[segments[-1]] = value


@dataclass(frozen=True)
class ParameterSchema:
    """Closed set of valid leaf paths together with their default values."""

    defaults: Mapping[str, Any]

    @classmethod
    def from_tree(cls, tree: Mapping[str, Any]) -> "ParameterSchema":
        return cls(defaults=MappingProxyType(flatten_tree(tree)))

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and path in self.defaults

    def __len__(self) -> int:
        return len(self.defaults)

    @property
    def paths(self) -> Tuple[str, ...]:
        return tuple(sorted(self.defaults))

    def validate(self, path: str) -> Tuple[str, ...]:
        """Return the segments of ``path`` or raise :class:`UnknownParameterPath`."""

        segments = split_path(path)
        if path not in self.defaults:
            raise UnknownParameterPath(path)
        return segments

    def default(self, path: str) -> Any:
        self.validate(path)
        return self.defaults[path]

    def extend(self, entries: Mapping[str, Any]) -> "ParameterSchema":
        """Return a schema that also accepts ``entries`` (path → default)."""

        merged = dict(self.defaults)
        for path, value in entries.items():
            split_path(path)
            for existing in merged:
                if existing.startswith(path + PATH_SEPARATOR) or path.startswith(
                    existing + PATH_SEPARATOR
                ):
                    raise UnknownParameterPath(
                        path, f"conflicts with existing path '{existing}'"
                    )
            merged[path] = value
        return ParameterSchema(defaults=MappingProxyType(merged))

    def read(self, tree: Mapping[str, Any] | None, path: str) -> Any:
        """Return the live value at ``path`` or ``None`` when the tree omits it."""

        segments = self.validate(path)
        node: Any = tree
        for segment in segments:
            if not isinstance(node, MappingABC):
                return None
            node = node.get(segment)
            if node is None:
                return None
        return node

    def default_tree(self) -> Dict[str, Any]:
        return unflatten_tree(self.defaults)


def write_updates(
    tree: Mapping[str, Any] | None,
    updates: Iterable[Any],
    schema: ParameterSchema | None = None,
) -> Dict[str, Any]:
    """Return a copy of ``tree`` with every update written at its path.

    ``updates`` may contain :class:`~scenemap.core.types.ParameterUpdate`
    objects or ``(path, value)`` pairs.
    """

    result: Dict[str, Any] = copy.deepcopy(dict(tree or {}))
    for update in updates:
        if isinstance(update, tuple):
            path, value = update
        else:
            path, value = update.variable, update.value
        segments = schema.validate(path) if schema is not None else split_path(path)
        _assign(result, segments, value, path)
    return result


def _load_toml_resource(name: str) -> Dict[str, Any]:
    resource = resources.files("scenemap.data").joinpath(name)
    with resource.open("rb") as handle:
        payload = tomllib.load(handle)
    return dict(payload)


def default_scene_tree() -> Dict[str, Any]:
    """Return a fresh copy of the packaged default scene tree."""

    return copy.deepcopy(_cached_scene_tree())


@lru_cache(maxsize=1)
def _cached_scene_tree() -> Dict[str, Any]:
    return _load_toml_resource(_DEFAULT_SCENE_RESOURCE)


@lru_cache(maxsize=1)
def default_schema() -> ParameterSchema:
    """Schema describing the packaged default scene."""

    return ParameterSchema.from_tree(_cached_scene_tree())
