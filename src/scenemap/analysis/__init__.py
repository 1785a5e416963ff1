"""Offline analysis of mapping behaviour over recorded inputs."""

from scenemap.analysis.replay import (
    ParameterSummary,
    ReplayFrame,
    ReplayResult,
    replay,
)

__all__ = ["ParameterSummary", "ReplayFrame", "ReplayResult", "replay"]
