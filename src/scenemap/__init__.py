"""Parameter mapping and reconciliation engine for generative scenes.

The package turns AI theme analyses, weather readings, the time of day and an
externally owned evolution state into clamped, prioritised updates for a
path-addressable scene parameter tree.
"""

from ._version import __version__
from .core.paths import ParameterSchema, default_schema, write_updates
from .core.types import (
    ColorPalette,
    EvolutionState,
    ParameterUpdate,
    ThemeAnalysis,
    VisualCharacteristics,
    WeatherData,
)
from .errors import ScenemapError, UnknownParameterPath
from .mapping.engine import ParameterMappingEngine
from .mapping.rules import ParameterRule, RuleConstraints

__all__ = [
    "__version__",
    "ColorPalette",
    "EvolutionState",
    "ParameterMappingEngine",
    "ParameterRule",
    "ParameterSchema",
    "ParameterUpdate",
    "RuleConstraints",
    "ScenemapError",
    "ThemeAnalysis",
    "UnknownParameterPath",
    "VisualCharacteristics",
    "WeatherData",
    "default_schema",
    "write_updates",
]
