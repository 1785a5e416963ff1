"""Builders shared by the scenemap test-suite."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict

from scenemap.core.types import (
    ColorPalette,
    EvolutionState,
    ThemeAnalysis,
    VisualCharacteristics,
    WeatherData,
)

__all__ = [
    "MIDNIGHT",
    "NOON",
    "build_evolution",
    "build_theme",
    "build_weather",
    "fixed_clock",
    "theme_payload",
    "weather_payload",
]

NOON = datetime(2024, 6, 1, 12, 30)
MIDNIGHT = datetime(2024, 6, 1, 0, 15)


def fixed_clock(moment: datetime = NOON) -> Callable[[], datetime]:
    return lambda: moment


def build_theme(**characteristics: float) -> ThemeAnalysis:
    """Theme analysis with default characteristics overridden by keyword."""

    return ThemeAnalysis(
        theme="forest",
        color_palette=ColorPalette(primary="#2e7d32", secondary="#81c784", accent="#ffeb3b"),
        mood=("calm",),
        atmosphere="misty",
        visual_characteristics=replace(VisualCharacteristics(), **characteristics),
        confidence=0.8,
    )


def build_weather(**overrides: Any) -> WeatherData:
    payload: Dict[str, Any] = {
        "temperature": 65.0,
        "condition": "cloudy",
        "wind_speed": 5.0,
        "wind_direction": 180.0,
        "humidity": 50.0,
    }
    payload.update(overrides)
    return WeatherData(**payload)


def build_evolution(**overrides: Any) -> EvolutionState:
    return replace(EvolutionState(), **overrides)


def theme_payload(**characteristics: float) -> Dict[str, Any]:
    """Camel-cased theme analysis as delivered by the analysis service."""

    visual = {
        "saturation": 0.8,
        "turbulence": 0.5,
        "harmony": 0.7,
        "energy": 0.6,
        "speed": 1.0,
        "density": 0.8,
        "brightness": 1.0,
    }
    visual.update(characteristics)
    return {
        "theme": "ocean",
        "colorPalette": {
            "primary": "#0277bd",
            "secondary": "#4fc3f7",
            "accent": "#ffca28",
            "supporting": ["#e1f5fe"],
        },
        "mood": ["serene", "vast"],
        "atmosphere": "breezy",
        "visualCharacteristics": visual,
        "weatherMappings": {
            "temperature": {"hueShift": "linear_warmth", "speedMultiplier": "temperature_scaled"},
            "wind": {"turbulence": "linear_gust", "flowDirection": "follow_wind"},
        },
        "confidence": 0.9,
    }


def weather_payload(**overrides: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "temperature": 72.0,
        "condition": "sunny",
        "windSpeed": 8.0,
        "windDirection": 90.0,
        "humidity": 40.0,
        "pressure": 30.1,
        "timeOfDay": "day",
        "dataSource": "station",
    }
    payload.update(overrides)
    return payload
