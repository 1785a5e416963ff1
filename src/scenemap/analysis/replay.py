"""Replay a sequence of input snapshots through an engine.

Each frame is mapped against the tree produced by the previous frame so the
sensitivity gate and the camera's bounded drift behave as they would in a
live host.  The result summarises how often and how far every parameter
moved.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Tuple

import numpy as np

from scenemap.core.paths import write_updates
from scenemap.core.types import EvolutionState, ParameterUpdate, ThemeAnalysis, WeatherData
from scenemap.mapping.engine import ParameterMappingEngine
from scenemap.mapping.safety import is_numeric

__all__ = ["ParameterSummary", "ReplayFrame", "ReplayResult", "replay"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplayFrame:
    """One recorded set of inputs."""

    ai: ThemeAnalysis
    weather: WeatherData
    evolution: EvolutionState | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ReplayFrame":
        if "ai" not in payload or "weather" not in payload:
            raise ValueError("Replay frames require 'ai' and 'weather' entries")
        evolution = payload.get("evolution")
        return cls(
            ai=ThemeAnalysis.from_payload(payload["ai"]),
            weather=WeatherData.from_payload(payload["weather"]),
            evolution=EvolutionState.from_payload(evolution) if evolution else None,
        )


@dataclass(frozen=True)
class ParameterSummary:
    """Emission statistics for a single parameter path."""

    path: str
    emissions: int
    final: Any
    sources: Tuple[str, ...]
    minimum: float | None = None
    maximum: float | None = None
    mean: float | None = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "emissions": self.emissions,
            "final": self.final,
            "sources": list(self.sources),
            "min": self.minimum,
            "max": self.maximum,
            "mean": self.mean,
        }


@dataclass
class ReplayResult:
    tree: Dict[str, Any]
    frame_updates: List[int] = field(default_factory=list)
    summaries: Dict[str, ParameterSummary] = field(default_factory=dict)

    @property
    def frames(self) -> int:
        return len(self.frame_updates)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "frames": self.frames,
            "frame_updates": list(self.frame_updates),
            "parameters": {
                path: summary.as_dict() for path, summary in sorted(self.summaries.items())
            },
            "tree": self.tree,
        }


def _summarise(path: str, updates: List[ParameterUpdate]) -> ParameterSummary:
    sources = tuple(dict.fromkeys(update.source for update in updates))
    numeric = [update.value for update in updates if is_numeric(update.value)]
    if not numeric:
        return ParameterSummary(
            path=path, emissions=len(updates), final=updates[-1].value, sources=sources
        )
    values = np.asarray(numeric, dtype=float)
    values = values[np.isfinite(values)]
    return ParameterSummary(
        path=path,
        emissions=len(updates),
        final=updates[-1].value,
        sources=sources,
        minimum=float(np.min(values)) if values.size else None,
        maximum=float(np.max(values)) if values.size else None,
        mean=float(np.mean(values)) if values.size else None,
    )


def replay(
    engine: ParameterMappingEngine,
    frames: Iterable[ReplayFrame | Mapping[str, Any]],
    tree: Mapping[str, Any] | None = None,
) -> ReplayResult:
    """Map every frame in order and collect per-parameter statistics.

    ``tree`` defaults to the engine schema's default scene.
    """

    current = dict(tree) if tree is not None else engine.schema.default_tree()
    emitted: Dict[str, List[ParameterUpdate]] = defaultdict(list)
    result = ReplayResult(tree=current)

    for frame in frames:
        if not isinstance(frame, ReplayFrame):
            frame = ReplayFrame.from_payload(frame)
        updates = engine.map_parameters(frame.ai, frame.weather, current, frame.evolution)
        current = write_updates(current, updates, engine.schema)
        result.frame_updates.append(len(updates))
        for update in updates:
            emitted[update.variable].append(update)

    result.tree = current
    result.summaries = {path: _summarise(path, items) for path, items in emitted.items()}
    logger.info(
        "Replayed %d frames",
        result.frames,
        extra={
            "event": "replay.complete",
            "frames": result.frames,
            "parameters": len(result.summaries),
        },
    )
    return result
