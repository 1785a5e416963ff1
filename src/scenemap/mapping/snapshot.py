"""Assemble the consistent input bundle shared by one evaluation pass."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Mapping, Tuple

from scenemap.core.paths import ParameterSchema
from scenemap.core.types import (
    PERFORMANCE_LEVELS,
    EvolutionState,
    MappingInput,
    SceneState,
    ThemeAnalysis,
    TimeData,
    WeatherData,
)

__all__ = [
    "OPTIONAL_EFFECTS",
    "PassContext",
    "SnapshotBuilder",
    "period_for_hour",
]


OPTIONAL_EFFECTS: Tuple[str, ...] = (
    "atmosphericBlur",
    "shapeGlow",
    "chromatic",
    "volumetric",
    "distortion",
    "fireflies",
    "metamorphosis",
)

Clock = Callable[[], datetime]


def period_for_hour(hour: int) -> str:
    if 6 <= hour < 12:
        return "dawn"
    if 12 <= hour < 18:
        return "day"
    if 18 <= hour < 22:
        return "dusk"
    return "night"


def _lookup(tree: Mapping[str, Any] | None, *segments: str) -> Any:
    node: Any = tree
    for segment in segments:
        if not isinstance(node, Mapping):
            return None
        node = node.get(segment)
    return node


@dataclass(frozen=True)
class PassContext:
    """Shared part of every :class:`MappingInput` built during one pass."""

    ai: ThemeAnalysis
    weather: WeatherData
    time: TimeData
    evolution: EvolutionState
    scene: SceneState
    tree: Mapping[str, Any]
    schema: ParameterSchema

    def current(self, path: str) -> Any:
        return self.schema.read(self.tree, path)

    def input_for(self, path: str) -> MappingInput:
        return MappingInput(
            ai=self.ai,
            weather=self.weather,
            time=self.time,
            evolution=self.evolution,
            current=self.current(path),
            scene=self.scene,
        )


class SnapshotBuilder:
    """Derive time-of-day and scene summaries from the live tree."""

    def __init__(self, schema: ParameterSchema, clock: Clock | None = None) -> None:
        self.schema = schema
        self.clock: Clock = clock or datetime.now

    def time_data(self) -> TimeData:
        now = self.clock()
        return TimeData(
            hour=now.hour,
            minute=now.minute,
            period=period_for_hour(now.hour),
            timestamp=int(now.timestamp() * 1000),
        )

    def scene_state(self, tree: Mapping[str, Any] | None) -> SceneState:
        performance = _lookup(tree, "performance", "level")
        if performance not in PERFORMANCE_LEVELS:
            performance = "medium"
        return SceneState(
            is_background_mode=bool(_lookup(tree, "backgroundConfig", "enabled")),
            is_modal_friendly=_lookup(tree, "backgroundConfig", "mode") == "modalFriendly",
            performance_level=performance,
            active_effects=self.active_effects(tree),
        )

    def active_effects(self, tree: Mapping[str, Any] | None) -> Tuple[str, ...]:
        effects: List[str] = []
        for name in OPTIONAL_EFFECTS:
            if _lookup(tree, "globalEffects", name, "enabled"):
                effects.append(name)
        return tuple(effects)

    def build(
        self,
        ai: ThemeAnalysis,
        weather: WeatherData,
        evolution: EvolutionState,
        tree: Mapping[str, Any] | None,
    ) -> PassContext:
        live = tree if tree is not None else {}
        return PassContext(
            ai=ai,
            weather=weather,
            time=self.time_data(),
            evolution=evolution,
            scene=self.scene_state(live),
            tree=live,
            schema=self.schema,
        )
