from __future__ import annotations

import pytest

from scenemap.core.types import ThemeAnalysis, WeatherData
from scenemap.errors import UnknownStrategyError
from scenemap.mapping.strategies import (
    STRATEGIES,
    check_strategy,
    derive_characteristics,
    resolve_strategy,
    validate_characteristics,
)

from tests.helpers import build_theme, build_weather, theme_payload, weather_payload


def test_derive_characteristics_blends_weather_into_theme() -> None:
    ai = ThemeAnalysis.from_payload(theme_payload())
    weather = WeatherData.from_payload(weather_payload())

    derived = derive_characteristics(ai, weather)

    assert derived.primary_hue == pytest.approx(24.0)
    assert derived.secondary_hue == pytest.approx(264.0)
    assert derived.turbulence == pytest.approx(0.5 + 8.0 / 30.0)
    assert derived.speed == pytest.approx(0.9)
    assert derived.density == pytest.approx(0.64)
    assert derived.saturation == pytest.approx(0.96)
    assert derived.energy == pytest.approx(0.66)
    assert derived.brightness == pytest.approx(1.0)
    assert derived.flow_direction == 90.0
    assert len(derived.reasoning) == 4
    assert derived.as_dict()["primaryHue"] == pytest.approx(24.0)


def test_hue_wraps_for_freezing_temperatures() -> None:
    derived = derive_characteristics(build_theme(), build_weather(temperature=-20.0))

    # (-52 / 100) * 60 = -31.2
    assert derived.primary_hue == pytest.approx(328.8)
    assert 0.0 <= derived.secondary_hue < 360.0


def test_unknown_condition_leaves_characteristics_untouched() -> None:
    theme = build_theme(saturation=0.5, energy=0.4)
    derived = derive_characteristics(theme, build_weather(condition="haze"))

    assert derived.saturation == pytest.approx(0.5)
    assert derived.energy == pytest.approx(0.4)
    assert derived.brightness == pytest.approx(1.0)


@pytest.mark.parametrize(
    ("slot", "tag", "argument", "expected"),
    [
        ("hue_shift", "warm_threshold", 75.0, 30.0),
        ("hue_shift", "warm_threshold", 50.0, 0.0),
        ("hue_shift", "warm_threshold", 20.0, -30.0),
        ("hue_shift", "none", 75.0, 0.0),
        ("speed_multiplier", "temperature_scaled", 8.0, 0.3),
        ("energy_modifier", "comfort_curve", 70.0, 1.0),
        ("energy_modifier", "comfort_curve", 0.0, 0.5),
        ("turbulence", "linear_gust", 60.0, 1.0),
        ("flow_direction", "fixed", 270.0, 0.0),
        ("density", "wind_dispersal", 100.0, 0.3),
    ],
)
def test_named_strategies(slot: str, tag: str, argument: float, expected: float) -> None:
    assert resolve_strategy(slot, tag)(argument) == pytest.approx(expected)


def test_check_strategy_rejects_unknown_slots_and_tags() -> None:
    assert check_strategy("density", "constant") == "constant"
    with pytest.raises(UnknownStrategyError):
        check_strategy("colour", "linear_warmth")
    with pytest.raises(UnknownStrategyError):
        check_strategy("density", None)
    assert set(STRATEGIES) == {
        "hue_shift",
        "speed_multiplier",
        "energy_modifier",
        "turbulence",
        "flow_direction",
        "density",
    }


def test_validation_reports_ranges_and_weather_suggestions() -> None:
    theme = build_theme(turbulence=0.1, speed=0.5, saturation=2.0)
    weather = build_weather(condition="storm", wind_speed=3.0, temperature=90.0)

    report = validate_characteristics(derive_characteristics(theme, weather), weather)

    assert report.is_valid
    assert "Consider increasing turbulence for storm conditions" in report.suggestions
    assert "Consider increasing speed for high temperature conditions" in report.suggestions


def test_validation_flags_out_of_range_values() -> None:
    theme = build_theme(energy=1.0)
    weather = build_weather(condition="storm")

    report = validate_characteristics(derive_characteristics(theme, weather), weather)

    assert not report.is_valid
    assert any(issue.startswith("Energy value 1.3") for issue in report.issues)
