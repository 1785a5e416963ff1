"""Input snapshots and output records exchanged with the mapping engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Literal, Mapping, Sequence, Tuple

__all__ = [
    "CONDITION_MODIFIER_KEYS",
    "DEFAULT_CONDITION_MODIFIERS",
    "EVOLUTION_MOODS",
    "EVOLUTION_PHASES",
    "PERFORMANCE_LEVELS",
    "RULE_SOURCES",
    "TIME_PERIODS",
    "ColorPalette",
    "EvolutionState",
    "MappingInput",
    "ParameterUpdate",
    "SceneState",
    "Source",
    "ThemeAnalysis",
    "TimeData",
    "VisualCharacteristics",
    "WeatherData",
    "WeatherMappings",
    "updates_as_dicts",
]


Source = Literal["ai", "weather", "time", "evolution", "hybrid", "override", "reset"]

RULE_SOURCES: Tuple[str, ...] = (
    "ai",
    "weather",
    "time",
    "evolution",
    "hybrid",
    "override",
    "reset",
)
EVOLUTION_PHASES: Tuple[str, ...] = ("calm", "building", "peak", "declining", "transition")
EVOLUTION_MOODS: Tuple[str, ...] = ("calm", "energetic", "mysterious", "chaotic", "peaceful")
TIME_PERIODS: Tuple[str, ...] = ("dawn", "day", "dusk", "night")
PERFORMANCE_LEVELS: Tuple[str, ...] = ("low", "medium", "high")

CONDITION_MODIFIER_KEYS: Tuple[str, ...] = (
    "saturation",
    "turbulence",
    "harmony",
    "energy",
    "speed",
    "density",
    "brightness",
)

DEFAULT_CONDITION_MODIFIERS: Mapping[str, Mapping[str, float]] = MappingProxyType(
    {
        "sunny": MappingProxyType({"saturation": 1.2, "brightness": 1.0, "energy": 1.1}),
        "cloudy": MappingProxyType({"saturation": 0.8, "brightness": 0.7, "energy": 0.9}),
        "rain": MappingProxyType(
            {"saturation": 0.6, "brightness": 0.5, "turbulence": 1.2, "speed": 0.8}
        ),
        "storm": MappingProxyType(
            {
                "saturation": 0.7,
                "brightness": 0.4,
                "turbulence": 1.5,
                "energy": 1.3,
                "speed": 1.4,
            }
        ),
        "snow": MappingProxyType(
            {"saturation": 0.5, "brightness": 0.9, "turbulence": 0.3, "speed": 0.6}
        ),
    }
)


def _pick(payload: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in payload:
            return payload[key]
    return default


def _float(payload: Mapping[str, Any], *keys: str, default: float = 0.0) -> float:
    value = _pick(payload, *keys, default=default)
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Field '{keys[0]}' must be numeric, got {value!r}") from exc


@dataclass(frozen=True)
class ColorPalette:
    """Three required hex colours plus any number of supporting ones."""

    primary: str
    secondary: str
    accent: str
    supporting: Tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ColorPalette":
        try:
            primary = str(payload["primary"])
            secondary = str(payload["secondary"])
            accent = str(payload["accent"])
        except KeyError as exc:
            raise ValueError(f"Colour palette is missing '{exc.args[0]}'") from exc
        supporting = tuple(str(item) for item in payload.get("supporting", ()) or ())
        return cls(primary=primary, secondary=secondary, accent=accent, supporting=supporting)


@dataclass(frozen=True)
class VisualCharacteristics:
    """Normalised look-and-feel scores produced by the theme analyser.

    ``saturation``, ``turbulence``, ``harmony`` and ``energy`` live in
    ``[0, 1]``; ``speed``, ``density`` and ``brightness`` in ``[0, 2]``.
    """

    saturation: float = 0.8
    turbulence: float = 0.5
    harmony: float = 0.7
    energy: float = 0.6
    speed: float = 1.0
    density: float = 0.8
    brightness: float = 1.0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "VisualCharacteristics":
        defaults = cls()
        return cls(
            **{
                name: _float(payload, name, default=getattr(defaults, name))
                for name in CONDITION_MODIFIER_KEYS
            }
        )


@dataclass(frozen=True)
class WeatherMappings:
    """Named strategies describing how weather bends a theme.

    Each slot holds a strategy tag resolved by
    :mod:`scenemap.mapping.strategies`; ``conditions`` is a plain table of
    multiplicative modifiers keyed by weather condition.
    """

    hue_shift: str = "linear_warmth"
    speed_multiplier: str = "temperature_scaled"
    energy_modifier: str = "comfort_curve"
    turbulence: str = "linear_gust"
    flow_direction: str = "follow_wind"
    density: str = "wind_dispersal"
    conditions: Mapping[str, Mapping[str, float]] = field(
        default_factory=lambda: DEFAULT_CONDITION_MODIFIERS
    )

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> "WeatherMappings":
        from scenemap.mapping.strategies import check_strategy

        payload = payload or {}
        temperature = payload.get("temperature") or {}
        wind = payload.get("wind") or {}
        defaults = cls()
        values = {
            "hue_shift": _pick(temperature, "hueShift", "hue_shift", default=defaults.hue_shift),
            "speed_multiplier": _pick(
                temperature, "speedMultiplier", "speed_multiplier", default=defaults.speed_multiplier
            ),
            "energy_modifier": _pick(
                temperature, "energyModifier", "energy_modifier", default=defaults.energy_modifier
            ),
            "turbulence": _pick(wind, "turbulence", default=defaults.turbulence),
            "flow_direction": _pick(
                wind, "flowDirection", "flow_direction", default=defaults.flow_direction
            ),
            "density": _pick(wind, "density", default=defaults.density),
        }
        for slot, tag in values.items():
            check_strategy(slot, tag)
        conditions_payload = payload.get("conditions")
        if conditions_payload is None:
            conditions_payload = DEFAULT_CONDITION_MODIFIERS
        conditions: Dict[str, Mapping[str, float]] = {}
        for condition, modifiers in conditions_payload.items():
            if not isinstance(modifiers, Mapping):
                raise ValueError(f"Condition modifiers for '{condition}' must be a table")
            conditions[str(condition)] = MappingProxyType(
                {
                    str(key): float(value)
                    for key, value in modifiers.items()
                    if key in CONDITION_MODIFIER_KEYS
                }
            )
        return cls(conditions=MappingProxyType(conditions), **values)


@dataclass(frozen=True)
class ThemeAnalysis:
    """Result of the AI theme/image analysis."""

    theme: str
    color_palette: ColorPalette
    mood: Tuple[str, ...] = ()
    atmosphere: str = ""
    visual_characteristics: VisualCharacteristics = field(default_factory=VisualCharacteristics)
    weather_mappings: WeatherMappings = field(default_factory=WeatherMappings)
    confidence: float = 0.5

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ThemeAnalysis":
        palette = _pick(payload, "colorPalette", "color_palette")
        if not isinstance(palette, Mapping):
            raise ValueError("Theme analysis requires a 'colorPalette' table")
        characteristics = _pick(payload, "visualCharacteristics", "visual_characteristics", default={})
        mood = payload.get("mood") or ()
        if isinstance(mood, str):
            mood = (mood,)
        return cls(
            theme=str(payload.get("theme", "")),
            color_palette=ColorPalette.from_payload(palette),
            mood=tuple(str(item) for item in mood),
            atmosphere=str(payload.get("atmosphere", "")),
            visual_characteristics=VisualCharacteristics.from_payload(characteristics or {}),
            weather_mappings=WeatherMappings.from_payload(
                _pick(payload, "weatherMappings", "weather_mappings")
            ),
            confidence=_float(payload, "confidence", default=0.5),
        )


@dataclass(frozen=True)
class WeatherData:
    """Weather snapshot. Temperature in °F, wind speed in mph."""

    temperature: float
    condition: str
    wind_speed: float
    wind_direction: float = 0.0
    humidity: float = 50.0
    pressure: float = 30.0
    time_of_day: str = "day"
    data_source: str | None = None
    last_updated: str | None = None
    location: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "WeatherData":
        return cls(
            temperature=_float(payload, "temperature", default=65.0),
            condition=str(payload.get("condition", "unknown")),
            wind_speed=_float(payload, "windSpeed", "wind_speed"),
            wind_direction=_float(payload, "windDirection", "wind_direction"),
            humidity=_float(payload, "humidity", default=50.0),
            pressure=_float(payload, "pressure", default=30.0),
            time_of_day=str(_pick(payload, "timeOfDay", "time_of_day", default="day")),
            data_source=_pick(payload, "dataSource", "data_source"),
            last_updated=_pick(payload, "lastUpdated", "last_updated"),
            location=payload.get("location"),
        )


@dataclass(frozen=True)
class TimeData:
    """Wall-clock reading shared by every rule of one evaluation pass."""

    hour: int
    minute: int
    period: str
    timestamp: int


@dataclass(frozen=True)
class EvolutionState:
    """Externally owned narrative state of the scene."""

    phase: str = "calm"
    mood: str = "peaceful"
    intensity: float = 0.5
    duration: float = 0.0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "EvolutionState":
        defaults = cls()
        phase = str(payload.get("phase", defaults.phase))
        mood = str(payload.get("mood", defaults.mood))
        if phase not in EVOLUTION_PHASES:
            raise ValueError(f"Unknown evolution phase '{phase}'")
        if mood not in EVOLUTION_MOODS:
            raise ValueError(f"Unknown evolution mood '{mood}'")
        return cls(
            phase=phase,
            mood=mood,
            intensity=_float(payload, "intensity", default=defaults.intensity),
            duration=_float(payload, "duration", default=defaults.duration),
        )


@dataclass(frozen=True)
class SceneState:
    """Coarse summary of the live tree used by rules for safety decisions."""

    is_background_mode: bool = False
    is_modal_friendly: bool = False
    performance_level: str = "medium"
    active_effects: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MappingInput:
    """Read-only bundle handed to a rule's mapping function."""

    ai: ThemeAnalysis
    weather: WeatherData
    time: TimeData
    evolution: EvolutionState
    current: Any
    scene: SceneState


@dataclass(frozen=True)
class ParameterUpdate:
    """A single value the scene store should write at ``variable``."""

    variable: str
    value: Any
    source: str
    priority: int
    reason: str
    confidence: float

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def updates_as_dicts(updates: Sequence[ParameterUpdate]) -> list[Dict[str, Any]]:
    return [update.as_dict() for update in updates]
