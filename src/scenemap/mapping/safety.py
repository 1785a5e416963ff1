"""Absolute safety limits applied after every rule evaluation."""

from __future__ import annotations

import math
from collections.abc import Mapping as MappingABC
from importlib import resources
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - Python < 3.11 fallback
    import tomli as tomllib  # type: ignore

from scenemap.mapping.rules import RuleConstraints

__all__ = [
    "SafetyLimiter",
    "is_numeric",
    "load_default_safety_limits",
]


Limit = Tuple[float, float]

_SAFETY_RESOURCE = "safety_limits.toml"


def is_numeric(value: Any) -> bool:
    """``True`` for ints and floats; booleans are flags, not numbers."""

    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def _coerce_limit(path: str, payload: Any) -> Limit:
    try:
        lower, upper = payload
        lower_f, upper_f = float(lower), float(upper)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Safety limit for '{path}' must be a [min, max] pair") from exc
    if not (math.isfinite(lower_f) and math.isfinite(upper_f)) or lower_f > upper_f:
        raise ValueError(f"Safety limit for '{path}' is invalid: {payload!r}")
    return (lower, upper)


def load_default_safety_limits() -> Dict[str, Limit]:
    """Read the packaged ``safety_limits.toml`` table."""

    resource = resources.files("scenemap.data").joinpath(_SAFETY_RESOURCE)
    if not resource.is_file():  # pragma: no cover - broken installation
        return {}
    with resource.open("rb") as handle:
        payload = tomllib.load(handle)
    return {str(path): _coerce_limit(str(path), value) for path, value in payload.items()}


class SafetyLimiter:
    """Clamp rule output into rule bounds, absolute limits and safe zones."""

    def __init__(self, limits: Mapping[str, Any] | None = None) -> None:
        self._limits: Dict[str, Limit] = {}
        if limits is None:
            limits = load_default_safety_limits()
        for path, value in limits.items():
            self.set_limit(path, value)

    def set_limit(self, path: str, limit: Any) -> None:
        self._limits[path] = _coerce_limit(path, limit)

    def limit_for(self, path: str) -> Limit | None:
        return self._limits.get(path)

    @property
    def limits(self) -> Mapping[str, Limit]:
        return MappingProxyType(dict(self._limits))

    def apply(self, path: str, value: Any, constraints: RuleConstraints | MappingABC) -> Any:
        """Return the safe counterpart of ``value`` for ``path``.

        The value is clamped to the rule bounds, then to the absolute limit.
        Outside a rule's safe zone it moves one unit toward the zone without
        overshooting its near edge, so repeated passes converge gradually.
        """

        if not is_numeric(value):
            return value
        constraints = RuleConstraints.coerce(constraints)
        absolute = self._limits.get(path)

        safe = _clamp(value, constraints.min, constraints.max)
        if absolute is not None:
            safe = _clamp(safe, absolute[0], absolute[1])

        if constraints.safe_zone is not None:
            zone_min, zone_max = constraints.safe_zone
            if safe < zone_min:
                safe = min(zone_min, safe + 1)
            elif safe > zone_max:
                safe = max(zone_max, safe - 1)
            if absolute is not None:
                safe = _clamp(safe, absolute[0], absolute[1])

        if isinstance(value, int) and isinstance(safe, float) and safe.is_integer():
            return int(safe)
        return safe
