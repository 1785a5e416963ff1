"""Declarative parameter rules and the registry that owns them."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Tuple

from scenemap.core.paths import ParameterSchema
from scenemap.core.types import RULE_SOURCES, MappingInput

__all__ = [
    "MappingFunction",
    "ParameterRule",
    "RuleConstraints",
    "RuleRegistry",
    "default_rules",
]

logger = logging.getLogger(__name__)

MappingFunction = Callable[[MappingInput], Any]


@dataclass(frozen=True)
class RuleConstraints:
    """Hard bounds of a rule plus an optional preferred sub-range."""

    min: float
    max: float
    safe_zone: Tuple[float, float] | None = None
    lock_when_active: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.min > self.max:
            raise ValueError(f"Constraint min {self.min} exceeds max {self.max}")
        if self.safe_zone is not None:
            lower, upper = self.safe_zone
            if lower > upper:
                raise ValueError(f"Safe zone {self.safe_zone} is inverted")
            if lower < self.min or upper > self.max:
                raise ValueError(
                    f"Safe zone {self.safe_zone} lies outside [{self.min}, {self.max}]"
                )
            object.__setattr__(self, "safe_zone", (lower, upper))
        object.__setattr__(self, "lock_when_active", tuple(self.lock_when_active))

    @classmethod
    def coerce(cls, payload: "RuleConstraints | Mapping[str, Any]") -> "RuleConstraints":
        if isinstance(payload, RuleConstraints):
            return payload
        safe_zone = payload.get("safe_zone", payload.get("safeZone"))
        return cls(
            min=float(payload["min"]),
            max=float(payload["max"]),
            safe_zone=tuple(safe_zone) if safe_zone is not None else None,
            lock_when_active=tuple(
                payload.get("lock_when_active", payload.get("lockWhenActive", ())) or ()
            ),
        )


@dataclass(frozen=True)
class ParameterRule:
    """Maps one snapshot to the value of a single scene parameter."""

    variable: str
    source: str
    priority: int
    constraints: RuleConstraints
    mapping_function: MappingFunction
    sensitivity: float
    evolution_rate: float | None = None
    description: str = ""

    def __post_init__(self) -> None:
        if self.source not in RULE_SOURCES:
            raise ValueError(f"Unknown rule source '{self.source}' for '{self.variable}'")
        if not 0.0 <= self.sensitivity <= 1.0:
            raise ValueError(
                f"Sensitivity for '{self.variable}' must lie in [0, 1], got {self.sensitivity}"
            )
        if not callable(self.mapping_function):
            raise TypeError(f"Mapping function for '{self.variable}' is not callable")
        object.__setattr__(self, "constraints", RuleConstraints.coerce(self.constraints))

    def merged(self, **changes: Any) -> "ParameterRule":
        """Return a copy with ``changes`` applied; the path never changes."""

        changes.pop("variable", None)
        if "constraints" in changes and isinstance(changes["constraints"], Mapping):
            current = self.constraints
            patch = dict(changes["constraints"])
            changes["constraints"] = RuleConstraints.coerce(
                {
                    "min": patch.get("min", current.min),
                    "max": patch.get("max", current.max),
                    "safe_zone": patch.get("safe_zone", patch.get("safeZone", current.safe_zone)),
                    "lock_when_active": patch.get(
                        "lock_when_active",
                        patch.get("lockWhenActive", current.lock_when_active),
                    ),
                }
            )
        return replace(self, **changes)


class RuleRegistry:
    """One rule per parameter path, validated against the scene schema."""

    def __init__(
        self,
        schema: ParameterSchema,
        rules: Iterable[ParameterRule] | None = None,
    ) -> None:
        self.schema = schema
        self._rules: Dict[str, ParameterRule] = {}
        for rule in rules or ():
            self.add(rule)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, path: object) -> bool:
        return path in self._rules

    def add(self, rule: ParameterRule) -> None:
        self.schema.validate(rule.variable)
        for path in rule.constraints.lock_when_active:
            self.schema.validate(path)
        if rule.variable in self._rules:
            logger.debug("Replacing rule for %s", rule.variable)
        self._rules[rule.variable] = rule

    def update(self, path: str, **changes: Any) -> bool:
        rule = self._rules.get(path)
        if rule is None:
            logger.debug("Ignoring update for unregistered rule %s", path)
            return False
        updated = rule.merged(**changes)
        for locking_path in updated.constraints.lock_when_active:
            self.schema.validate(locking_path)
        self._rules[path] = updated
        return True

    def get(self, path: str) -> ParameterRule | None:
        return self._rules.get(path)

    def all(self) -> List[ParameterRule]:
        return [self._rules[path] for path in sorted(self._rules)]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _has(condition: str, needle: str) -> bool:
    return needle in condition.lower()


_RAINBOW_MOOD_SPEED: Mapping[str, float] = MappingProxyType(
    {
        "calm": 0.5,
        "energetic": 2.0,
        "mysterious": 0.8,
        "chaotic": 2.5,
        "peaceful": 0.3,
    }
)


def _particle_count(i: MappingInput) -> int:
    energy_multiplier = i.ai.visual_characteristics.energy * 2
    wind_multiplier = 1.3 if i.weather.wind_speed > 15 else 1.0
    night_multiplier = 0.7 if i.time.hour < 6 or i.time.hour > 22 else 1.0
    return _round_half_up(200 * energy_multiplier * wind_multiplier * night_multiplier)


def _camera_distance(i: MappingInput) -> float:
    current = i.current if _is_number(i.current) else 25.0
    max_change = 2.0
    suggested = 25.0 + (i.ai.visual_characteristics.energy - 0.5) * 10.0
    return max(current - max_change, min(current + max_change, suggested))


def _atmospheric_blur(i: MappingInput) -> float:
    humidity = i.weather.humidity / 100.0
    condition = 2.0 if _has(i.weather.condition, "fog") else 1.0
    wind = 1.5 if i.weather.wind_speed > 20 else 1.0
    return humidity * 5.0 * condition * wind


def _volumetric_fog(i: MappingInput) -> float:
    humidity = i.weather.humidity / 100.0
    condition = 0.8 if _has(i.weather.condition, "fog") else 0.2
    twilight = 0.3 if i.time.period in ("dawn", "dusk") else 0.0
    return min(1.0, humidity * condition + twilight)


def _distortion_wave(i: MappingInput) -> float:
    mood_boost = {"chaotic": 0.3, "energetic": 0.2}.get(i.evolution.mood, 0.0)
    return min(
        1.0,
        i.ai.visual_characteristics.turbulence + mood_boost + i.weather.wind_speed / 30.0,
    )


def _saturation(i: MappingInput) -> float:
    weather = 0.3 if i.weather.condition == "sunny" else 0.0
    daylight = 0.2 if i.time.period == "day" else -0.1
    return max(0.0, min(3.0, i.ai.visual_characteristics.saturation + weather + daylight))


def _brightness(i: MappingInput) -> float:
    weather = {"sunny": 0.3, "cloudy": -0.2}.get(i.weather.condition, 0.0)
    period = {"night": -0.3, "dawn": 0.1}.get(i.time.period, 0.0)
    return max(0.0, min(3.0, 1.0 + weather + period))


def _time_scale(i: MappingInput) -> float:
    mood = {"energetic": 0.3, "calm": -0.2}.get(i.evolution.mood, 0.0)
    return max(0.1, min(3.0, 1.0 + i.ai.visual_characteristics.energy * 0.5 + mood))


def default_rules() -> List[ParameterRule]:
    """Built-in rule set covering colours, shapes, effects, camera and post-processing."""

    def rule(
        variable: str,
        source: str,
        priority: int,
        bounds: Tuple[float, float],
        fn: MappingFunction,
        sensitivity: float,
        description: str,
        *,
        safe_zone: Tuple[float, float] | None = None,
        lock_when_active: Tuple[str, ...] = (),
        evolution_rate: float | None = None,
    ) -> ParameterRule:
        return ParameterRule(
            variable=variable,
            source=source,
            priority=priority,
            constraints=RuleConstraints(
                min=bounds[0],
                max=bounds[1],
                safe_zone=safe_zone,
                lock_when_active=lock_when_active,
            ),
            mapping_function=fn,
            sensitivity=sensitivity,
            evolution_rate=evolution_rate,
            description=description,
        )

    vc = lambda i: i.ai.visual_characteristics  # noqa: E731

    return [
        # colours (AI palette)
        rule("geometric.spheres.color", "ai", 8, (0, 1),
             lambda i: i.ai.color_palette.primary, 0.8,
             "Primary color from AI analysis"),
        rule("geometric.cubes.color", "ai", 8, (0, 1),
             lambda i: i.ai.color_palette.secondary, 0.8,
             "Secondary color from AI analysis"),
        rule("geometric.toruses.color", "ai", 8, (0, 1),
             lambda i: i.ai.color_palette.accent, 0.8,
             "Accent color from AI analysis"),
        rule("particles.color", "hybrid", 7, (0, 1),
             lambda i: i.ai.color_palette.accent if vc(i).energy > 0.7 else i.ai.color_palette.primary,
             0.6, "Dynamic particle color based on energy"),
        # particle system
        rule("particles.count", "hybrid", 7, (50, 800), _particle_count, 0.6,
             "Particle count based on energy, wind, and time", safe_zone=(100, 600)),
        rule("particles.speed", "hybrid", 6, (0.1, 3.0),
             lambda i: min(3.0, vc(i).speed + i.weather.wind_speed / 20.0
                           + (0.3 if i.weather.temperature > 70 else 0.0)),
             0.5, "Particle speed influenced by wind and temperature"),
        rule("particles.spread", "hybrid", 6, (10, 50),
             lambda i: min(50.0, 20.0 + i.weather.wind_speed * 0.5 + vc(i).turbulence * 10.0),
             0.4, "Particle spread based on wind and turbulence"),
        # shapes
        rule("geometric.spheres.count", "hybrid", 6, (0, 20),
             lambda i: _round_half_up(8 * vc(i).density + i.evolution.intensity * 3),
             0.5, "Sphere count based on density and evolution"),
        rule("geometric.spheres.speed", "hybrid", 6, (0.1, 3.0),
             lambda i: min(3.0, vc(i).speed + vc(i).energy * 0.5 + i.evolution.intensity * 0.3),
             0.6, "Sphere speed based on AI speed and energy"),
        rule("geometric.spheres.organicness", "ai", 7, (0, 2),
             lambda i: vc(i).turbulence * 1.5, 0.7,
             "Organic deformation based on turbulence"),
        # weather-driven effects
        rule("globalEffects.atmosphericBlur.intensity", "weather", 6, (0, 10),
             _atmospheric_blur, 0.4,
             "Atmospheric blur based on humidity and conditions", evolution_rate=0.01),
        rule("globalEffects.atmosphericBlur.enabled", "weather", 7, (0, 1),
             lambda i: (i.weather.humidity > 70 or _has(i.weather.condition, "fog")
                        or _has(i.weather.condition, "mist")),
             0.8, "Enable blur in humid/foggy conditions"),
        rule("globalEffects.volumetric.fog", "weather", 6, (0, 1), _volumetric_fog, 0.5,
             "Volumetric fog based on humidity and time"),
        # distortion
        rule("globalEffects.distortion.wave", "hybrid", 7, (0, 1), _distortion_wave, 0.6,
             "Wave distortion based on turbulence, mood, and wind", safe_zone=(0.1, 0.7)),
        rule("globalEffects.distortion.noise", "hybrid", 7, (0, 1),
             lambda i: min(1.0, vc(i).turbulence
                           + (0.3 if i.evolution.mood == "chaotic" else 0.0)
                           + (0.2 if i.weather.wind_speed > 15 else 0.0)),
             0.6, "Noise distortion based on turbulence and chaotic mood", safe_zone=(0.1, 0.7)),
        rule("globalEffects.distortion.ripple", "hybrid", 6, (0, 1),
             lambda i: min(1.0, vc(i).harmony * 0.5 + vc(i).energy * 0.3
                           + (0.2 if i.time.period in ("dawn", "dusk") else 0.0)),
             0.4, "Ripple effect based on harmony and energy"),
        # chromatic
        rule("globalEffects.chromatic.rainbow.speed", "evolution", 5, (0.1, 3),
             lambda i: 1.0 * _RAINBOW_MOOD_SPEED.get(i.evolution.mood, 1.0), 0.3,
             "Rainbow speed based on evolution mood", safe_zone=(0.5, 2.0), evolution_rate=0.005),
        rule("globalEffects.chromatic.rainbow.intensity", "hybrid", 6, (0, 1),
             lambda i: min(1.0, i.evolution.intensity + vc(i).saturation * 0.3 + vc(i).energy * 0.2),
             0.4, "Rainbow intensity based on evolution and saturation"),
        # glow
        rule("globalEffects.shapeGlow.intensity", "hybrid", 6, (0, 3),
             lambda i: min(3.0, vc(i).energy * 1.5
                           + (0.5 if i.time.period == "night" else 0.0)
                           + (0.3 if i.weather.condition == "clear" else 0.0)),
             0.5, "Shape glow based on energy and time"),
        rule("globalEffects.shapeGlow.enabled", "hybrid", 7, (0, 1),
             lambda i: (vc(i).energy > 0.6 or i.time.period == "night"
                        or i.evolution.mood == "mysterious"),
             0.8, "Enable glow for high energy or mysterious moods"),
        # particle interaction
        rule("globalEffects.particleInteraction.turbulence", "hybrid", 6, (0, 1),
             lambda i: min(1.0, vc(i).turbulence + i.weather.wind_speed / 40.0
                           + i.evolution.intensity * 0.3),
             0.5, "Particle turbulence based on wind and evolution"),
        rule("globalEffects.particleInteraction.magnetism", "evolution", 5, (0, 1),
             lambda i: min(1.0, i.evolution.intensity + vc(i).harmony * 0.5),
             0.4, "Particle magnetism based on evolution and harmony"),
        # camera
        rule("camera.distance", "hybrid", 10, (10, 50), _camera_distance, 0.1,
             "Camera distance with minimal changes for stability",
             safe_zone=(15, 35), lock_when_active=("backgroundConfig.enabled",)),
        rule("camera.fov", "hybrid", 9, (30, 120),
             lambda i: max(30.0, min(120.0, 60.0 + (vc(i).energy - 0.5) * 20.0
                                     + (10.0 if i.evolution.mood == "chaotic" else 0.0))),
             0.2, "Camera FOV based on energy and mood", safe_zone=(45, 90)),
        # post-processing
        rule("effects.saturation", "hybrid", 6, (0, 3), _saturation, 0.4,
             "Saturation based on AI analysis and weather"),
        rule("effects.brightness", "hybrid", 6, (0, 3), _brightness, 0.4,
             "Brightness based on weather and time"),
        rule("effects.vignette", "hybrid", 5, (0, 1),
             lambda i: min(1.0, 0.1 + (0.3 if i.evolution.mood == "mysterious" else 0.0)
                           + (0.2 if i.time.period == "night" else 0.0)),
             0.3, "Vignette based on mood and time"),
        # background
        rule("backgroundConfig.timeScale", "hybrid", 8, (0.1, 3.0), _time_scale, 0.3,
             "Time scale based on energy and mood", safe_zone=(0.5, 2.0)),
        # evolution-driven specials
        rule("globalEffects.fireflies.enabled", "evolution", 6, (0, 1),
             lambda i: (i.evolution.mood == "mysterious" or i.time.period == "night"
                        or i.evolution.intensity > 0.7),
             0.7, "Enable fireflies for mysterious moods or night time"),
        rule("globalEffects.fireflies.count", "hybrid", 5, (10, 100),
             lambda i: _round_half_up(min(100.0, 30.0 + i.evolution.intensity * 40.0
                                          + (20.0 if i.time.period == "night" else 0.0))),
             0.4, "Firefly count based on evolution and time"),
        rule("globalEffects.metamorphosis.enabled", "evolution", 7, (0, 1),
             lambda i: (i.evolution.phase == "transition" or i.evolution.mood == "chaotic"
                        or i.evolution.intensity > 0.8),
             0.8, "Enable metamorphosis during transitions or high intensity"),
    ]
