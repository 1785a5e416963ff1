"""Benchmark full mapping passes over a synthetic weather sweep."""

from __future__ import annotations

import argparse
import statistics
import sys
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Sequence

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from scenemap.core.paths import default_scene_tree, write_updates
from scenemap.core.types import (
    ColorPalette,
    EvolutionState,
    ThemeAnalysis,
    VisualCharacteristics,
    WeatherData,
)
from scenemap.mapping.engine import ParameterMappingEngine

_CONDITIONS = ("sunny", "cloudy", "rain", "storm", "snow", "fog")


@dataclass(slots=True)
class BenchmarkResult:
    """Statistical summary for a benchmark series."""

    label: str
    durations: list[float]
    passes_per_run: int

    @property
    def mean(self) -> float:
        return statistics.fmean(self.durations)

    @property
    def pstdev(self) -> float:
        if len(self.durations) <= 1:
            return 0.0
        return statistics.pstdev(self.durations)

    @property
    def runs(self) -> int:
        return len(self.durations)


def _weather_sweep(count: int) -> List[WeatherData]:
    return [
        WeatherData(
            temperature=20.0 + (index * 7) % 90,
            condition=_CONDITIONS[index % len(_CONDITIONS)],
            wind_speed=float(index % 35),
            wind_direction=float((index * 37) % 360),
            humidity=float((index * 13) % 100),
        )
        for index in range(count)
    ]


def _theme() -> ThemeAnalysis:
    return ThemeAnalysis(
        theme="benchmark",
        color_palette=ColorPalette(primary="#336699", secondary="#993366", accent="#ffcc00"),
        atmosphere="neutral",
        visual_characteristics=VisualCharacteristics(energy=0.75, turbulence=0.6),
    )


def _run_pass(
    engine: ParameterMappingEngine,
    sweep: Sequence[WeatherData],
    *,
    apply: bool,
) -> float:
    theme = _theme()
    evolution = EvolutionState(phase="building", mood="energetic", intensity=0.6)
    tree: Dict[str, Any] = default_scene_tree()
    start = time.perf_counter()
    for weather in sweep:
        updates = engine.map_parameters(theme, weather, tree, evolution)
        if apply:
            tree = write_updates(tree, updates, engine.schema)
    return time.perf_counter() - start


def _measure(label: str, sweep: Sequence[WeatherData], *, apply: bool, repeats: int, warmup: int) -> BenchmarkResult:
    engine = ParameterMappingEngine(clock=lambda: datetime(2024, 6, 1, 20, 0))
    for _ in range(max(warmup, 0)):
        _run_pass(engine, sweep, apply=apply)
    durations = [_run_pass(engine, sweep, apply=apply) for _ in range(max(repeats, 1))]
    return BenchmarkResult(label=label, durations=durations, passes_per_run=len(sweep))


def _format_result(result: BenchmarkResult) -> str:
    throughput = result.passes_per_run / result.mean if result.mean else float("nan")
    return (
        f"{result.label}: {result.mean:.6f}s ± {result.pstdev:.6f}s over {result.runs} runs "
        f"({throughput:.1f} passes/s)"
    )


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--frames",
        type=int,
        default=500,
        help="Number of weather snapshots mapped per run.",
    )
    parser.add_argument(
        "--repeats",
        type=int,
        default=5,
        help="Number of measured runs per scenario.",
    )
    parser.add_argument(
        "--warmup",
        type=int,
        default=1,
        help="Warm-up runs executed before measuring.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    sweep = _weather_sweep(max(args.frames, 1))
    print(f"Mapping {len(sweep)} snapshots per run")

    mapped = _measure("map only", sweep, apply=False, repeats=args.repeats, warmup=args.warmup)
    applied = _measure("map + apply", sweep, apply=True, repeats=args.repeats, warmup=args.warmup)
    print(_format_result(mapped))
    print(_format_result(applied))


if __name__ == "__main__":
    main()
