"""Weather strategies applied to a theme's visual characteristics.

Theme analyses arrive from an external service.  Rather than accepting code
from that payload, every weather slot names one of a small closed set of
strategies implemented here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Tuple

from scenemap.core.types import ThemeAnalysis, WeatherData
from scenemap.errors import UnknownStrategyError

__all__ = [
    "DerivedCharacteristics",
    "STRATEGIES",
    "ValidationReport",
    "check_strategy",
    "derive_characteristics",
    "resolve_strategy",
    "validate_characteristics",
]


Strategy = Callable[[float], float]


def _linear_warmth(temperature: float) -> float:
    # warmer shifts toward red/orange, cooler toward blue
    return (temperature - 32.0) / 100.0 * 60.0


def _warm_threshold(temperature: float) -> float:
    if temperature > 70.0:
        return 30.0
    if temperature < 32.0:
        return -30.0
    return 0.0


def _temperature_scaled(temperature: float) -> float:
    return max(0.3, temperature / 80.0)


def _comfort_curve(temperature: float) -> float:
    return max(0.5, 1.0 - abs(temperature - 70.0) / 50.0)


def _linear_gust(speed: float) -> float:
    return min(1.0, speed / 30.0)


def _wind_dispersal(speed: float) -> float:
    return max(0.3, 1.0 - speed / 40.0)


def _zero(_: float) -> float:
    return 0.0


def _one(_: float) -> float:
    return 1.0


def _identity(value: float) -> float:
    return value


STRATEGIES: Mapping[str, Mapping[str, Strategy]] = MappingProxyType(
    {
        "hue_shift": MappingProxyType(
            {"linear_warmth": _linear_warmth, "warm_threshold": _warm_threshold, "none": _zero}
        ),
        "speed_multiplier": MappingProxyType(
            {"temperature_scaled": _temperature_scaled, "constant": _one}
        ),
        "energy_modifier": MappingProxyType({"comfort_curve": _comfort_curve, "constant": _one}),
        "turbulence": MappingProxyType({"linear_gust": _linear_gust, "none": _zero}),
        "flow_direction": MappingProxyType({"follow_wind": _identity, "fixed": _zero}),
        "density": MappingProxyType({"wind_dispersal": _wind_dispersal, "constant": _one}),
    }
)


def check_strategy(slot: str, tag: object) -> str:
    """Return ``tag`` when it names a known strategy for ``slot``."""

    table = STRATEGIES.get(slot)
    if table is None:
        raise UnknownStrategyError(f"Unknown weather mapping slot '{slot}'")
    if not isinstance(tag, str) or tag not in table:
        choices = ", ".join(sorted(table))
        raise UnknownStrategyError(
            f"Unknown strategy {tag!r} for '{slot}' (expected one of: {choices})"
        )
    return tag


def resolve_strategy(slot: str, tag: str) -> Strategy:
    return STRATEGIES[slot][check_strategy(slot, tag)]


@dataclass(frozen=True)
class DerivedCharacteristics:
    """Theme characteristics after weather has been applied."""

    primary_hue: float
    secondary_hue: float
    saturation: float
    turbulence: float
    harmony: float
    energy: float
    speed: float
    density: float
    brightness: float
    flow_direction: float = 0.0
    reasoning: Tuple[str, ...] = ()

    def as_dict(self) -> Dict[str, object]:
        return {
            "primaryHue": self.primary_hue,
            "secondaryHue": self.secondary_hue,
            "saturation": self.saturation,
            "turbulence": self.turbulence,
            "harmony": self.harmony,
            "energy": self.energy,
            "speed": self.speed,
            "density": self.density,
            "brightness": self.brightness,
            "flowDirection": self.flow_direction,
            "reasoning": list(self.reasoning),
        }


@dataclass(frozen=True)
class ValidationReport:
    is_valid: bool
    issues: Tuple[str, ...] = ()
    suggestions: Tuple[str, ...] = field(default_factory=tuple)


def derive_characteristics(ai: ThemeAnalysis, weather: WeatherData) -> DerivedCharacteristics:
    """Blend the theme's characteristics with the current weather."""

    mappings = ai.weather_mappings
    base = ai.visual_characteristics
    hue_shift = resolve_strategy("hue_shift", mappings.hue_shift)(weather.temperature)
    wind_turbulence = resolve_strategy("turbulence", mappings.turbulence)(weather.wind_speed)
    speed_multiplier = resolve_strategy("speed_multiplier", mappings.speed_multiplier)(
        weather.temperature
    )
    density_factor = resolve_strategy("density", mappings.density)(weather.wind_speed)
    flow = resolve_strategy("flow_direction", mappings.flow_direction)(weather.wind_direction)
    modifiers = mappings.conditions.get(weather.condition, {})

    return DerivedCharacteristics(
        primary_hue=(0.0 + hue_shift + 360.0) % 360.0,
        secondary_hue=(240.0 + hue_shift + 360.0) % 360.0,
        saturation=base.saturation * modifiers.get("saturation", 1.0),
        turbulence=min(1.0, base.turbulence + wind_turbulence),
        harmony=base.harmony,
        energy=base.energy * modifiers.get("energy", 1.0),
        speed=base.speed * speed_multiplier,
        density=base.density * density_factor,
        brightness=modifiers.get("brightness", 1.0),
        flow_direction=flow,
        reasoning=(
            f"Applied temperature-based hue shift of {hue_shift:.1f}°",
            f"Wind speed of {weather.wind_speed:g}mph increased turbulence by {wind_turbulence:.2f}",
            f"{weather.condition} conditions modified saturation and brightness",
            f"Temperature of {weather.temperature:g}°F adjusted animation speed",
        ),
    )


_RANGES: Tuple[Tuple[str, str, float, float], ...] = (
    ("saturation", "Saturation", 0.0, 2.0),
    ("turbulence", "Turbulence", 0.0, 1.0),
    ("harmony", "Harmony", 0.0, 1.0),
    ("energy", "Energy", 0.0, 1.0),
    ("speed", "Speed", 0.0, 2.0),
    ("density", "Density", 0.0, 2.0),
    ("brightness", "Brightness", 0.0, 2.0),
    ("primary_hue", "Primary hue", 0.0, 360.0),
    ("secondary_hue", "Secondary hue", 0.0, 360.0),
)


def validate_characteristics(
    derived: DerivedCharacteristics, weather: WeatherData
) -> ValidationReport:
    """Report out-of-range characteristics and weather-driven suggestions."""

    issues: List[str] = []
    for attribute, label, lower, upper in _RANGES:
        value = getattr(derived, attribute)
        if value < lower or value > upper:
            issues.append(
                f"{label} value {value:g} is out of valid range ({lower:g}-{upper:g})"
            )

    suggestions: List[str] = []
    if weather.condition == "storm" and derived.turbulence < 0.8:
        suggestions.append("Consider increasing turbulence for storm conditions")
    if weather.condition == "sunny" and derived.brightness < 1.0:
        suggestions.append("Consider increasing brightness for sunny conditions")
    if weather.wind_speed > 15 and derived.turbulence < 0.6:
        suggestions.append("Consider increasing turbulence for high wind conditions")
    if weather.temperature > 80 and derived.speed < 1.0:
        suggestions.append("Consider increasing speed for high temperature conditions")

    return ValidationReport(
        is_valid=not issues, issues=tuple(issues), suggestions=tuple(suggestions)
    )
