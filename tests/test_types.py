from __future__ import annotations

import pytest

from scenemap.core.types import (
    DEFAULT_CONDITION_MODIFIERS,
    EvolutionState,
    ParameterUpdate,
    ThemeAnalysis,
    WeatherData,
    updates_as_dicts,
)
from scenemap.errors import UnknownStrategyError

from tests.helpers import theme_payload, weather_payload


def test_theme_analysis_accepts_provider_payload() -> None:
    analysis = ThemeAnalysis.from_payload(theme_payload(energy=0.9))

    assert analysis.theme == "ocean"
    assert analysis.color_palette.accent == "#ffca28"
    assert analysis.color_palette.supporting == ("#e1f5fe",)
    assert analysis.mood == ("serene", "vast")
    assert analysis.visual_characteristics.energy == 0.9
    assert analysis.weather_mappings.hue_shift == "linear_warmth"
    assert analysis.weather_mappings.density == "wind_dispersal"
    assert analysis.weather_mappings.conditions["storm"]["energy"] == pytest.approx(
        DEFAULT_CONDITION_MODIFIERS["storm"]["energy"]
    )
    assert analysis.confidence == 0.9


def test_theme_analysis_requires_palette() -> None:
    payload = theme_payload()
    del payload["colorPalette"]

    with pytest.raises(ValueError):
        ThemeAnalysis.from_payload(payload)


def test_theme_analysis_rejects_unknown_strategy() -> None:
    payload = theme_payload()
    payload["weatherMappings"]["temperature"]["hueShift"] = "lambda t: t * 2"

    with pytest.raises(UnknownStrategyError):
        ThemeAnalysis.from_payload(payload)


def test_weather_data_reads_camel_case_and_defaults() -> None:
    weather = WeatherData.from_payload(weather_payload())
    bare = WeatherData.from_payload({})

    assert weather.wind_speed == 8.0
    assert weather.time_of_day == "day"
    assert weather.data_source == "station"
    assert bare.condition == "unknown"
    assert bare.humidity == 50.0


def test_weather_data_rejects_non_numeric_fields() -> None:
    with pytest.raises(ValueError):
        WeatherData.from_payload({"temperature": "warm"})


@pytest.mark.parametrize(
    "payload",
    [{"phase": "sideways"}, {"mood": "grumpy"}],
)
def test_evolution_state_validates_enumerations(payload) -> None:
    with pytest.raises(ValueError):
        EvolutionState.from_payload(payload)


def test_parameter_update_serialises_to_plain_dicts() -> None:
    update = ParameterUpdate("camera.fov", 65.0, "hybrid", 9, "Hybrid mapping", 0.4)

    assert updates_as_dicts([update]) == [
        {
            "variable": "camera.fov",
            "value": 65.0,
            "source": "hybrid",
            "priority": 9,
            "reason": "Hybrid mapping",
            "confidence": 0.4,
        }
    ]
