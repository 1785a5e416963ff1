"""Collapse competing updates for the same parameter path."""

from __future__ import annotations

from typing import Dict, Iterable, List

from scenemap.core.types import ParameterUpdate

__all__ = ["resolve_conflicts"]


def resolve_conflicts(updates: Iterable[ParameterUpdate]) -> List[ParameterUpdate]:
    """Keep the highest-priority update per path; ties keep the first seen.

    The result preserves the order in which each path first appeared.
    """

    winners: Dict[str, ParameterUpdate] = {}
    for candidate in updates:
        current = winners.get(candidate.variable)
        if current is None or candidate.priority > current.priority:
            winners[candidate.variable] = candidate
    return list(winners.values())
