"""Core data model: parameter paths and the snapshot/update records."""

from scenemap.core.paths import (
    ParameterSchema,
    default_scene_tree,
    default_schema,
    flatten_tree,
    unflatten_tree,
    write_updates,
)
from scenemap.core.types import (
    ColorPalette,
    EvolutionState,
    MappingInput,
    ParameterUpdate,
    SceneState,
    ThemeAnalysis,
    TimeData,
    VisualCharacteristics,
    WeatherData,
    WeatherMappings,
)

__all__ = [
    "ColorPalette",
    "EvolutionState",
    "MappingInput",
    "ParameterSchema",
    "ParameterUpdate",
    "SceneState",
    "ThemeAnalysis",
    "TimeData",
    "VisualCharacteristics",
    "WeatherData",
    "WeatherMappings",
    "default_scene_tree",
    "default_schema",
    "flatten_tree",
    "unflatten_tree",
    "write_updates",
]
