"""Evaluate every registered rule against one consistent snapshot."""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, List, Mapping, Sequence

from scenemap.core.paths import ParameterSchema, default_schema
from scenemap.core.types import (
    EvolutionState,
    MappingInput,
    ParameterUpdate,
    ThemeAnalysis,
    WeatherData,
)
from scenemap.mapping.conflicts import resolve_conflicts
from scenemap.mapping.locks import LockRegistry
from scenemap.mapping.rules import (
    MappingFunction,
    ParameterRule,
    RuleConstraints,
    RuleRegistry,
    default_rules,
)
from scenemap.mapping.safety import SafetyLimiter, is_numeric
from scenemap.mapping.snapshot import Clock, PassContext, SnapshotBuilder

__all__ = [
    "DEFAULT_UPDATE_EPSILON",
    "ParameterMappingEngine",
    "calculate_confidence",
    "describe_reason",
    "should_update",
]

logger = logging.getLogger(__name__)

DEFAULT_UPDATE_EPSILON = 1e-9
OVERRIDE_PRIORITY = 100


def should_update(
    new_value: Any,
    current_value: Any,
    sensitivity: float,
    epsilon: float = DEFAULT_UPDATE_EPSILON,
) -> bool:
    """Decide whether ``new_value`` differs enough from ``current_value``.

    Numeric pairs must move by more than ``|current| * (1 - sensitivity) +
    epsilon``; anything else is emitted whenever it differs.
    """

    if is_numeric(new_value) and is_numeric(current_value):
        threshold = abs(current_value) * (1.0 - sensitivity) + epsilon
        return abs(new_value - current_value) > threshold
    return new_value != current_value


def describe_reason(source: str, snapshot: MappingInput) -> str:
    if source == "ai":
        return (
            f"AI detected {snapshot.ai.theme} theme with "
            f"{snapshot.ai.atmosphere} atmosphere"
        )
    if source == "weather":
        return f"Weather: {snapshot.weather.condition}, {snapshot.weather.temperature:g}°F"
    if source == "time":
        return f"Time-based: {snapshot.time.period}"
    if source == "evolution":
        return (
            f"Evolution: {snapshot.evolution.phase} phase, "
            f"{snapshot.evolution.mood} mood"
        )
    if source == "override":
        return "Manual override"
    if source == "reset":
        return "Reset to scene default"
    return "Hybrid mapping"


def calculate_confidence(source: str, snapshot: MappingInput) -> float:
    confidence = 0.5
    if source == "ai":
        confidence += 0.2
    if source == "weather" and snapshot.weather.condition != "unknown":
        confidence += 0.1
    if source == "evolution" and snapshot.evolution.intensity > 0.7:
        confidence += 0.1
    if source == "hybrid":
        confidence -= 0.1
    return max(0.0, min(1.0, confidence))


class ParameterMappingEngine:
    """Turn AI, weather, time and evolution snapshots into scene updates.

    The engine owns its rules, safety limits, locks and the last evolution
    state it was given.  It performs no I/O and is not thread-safe; callers
    serialise access to a single instance.
    """

    def __init__(
        self,
        rules: Iterable[ParameterRule] | None = None,
        *,
        schema: ParameterSchema | None = None,
        safety_limits: Mapping[str, Any] | None = None,
        evolution_state: EvolutionState | None = None,
        clock: Clock | None = None,
        update_epsilon: float = DEFAULT_UPDATE_EPSILON,
    ) -> None:
        self.schema = schema or default_schema()
        self.registry = RuleRegistry(
            self.schema, default_rules() if rules is None else rules
        )
        self.limiter = SafetyLimiter(safety_limits)
        self.locks = LockRegistry()
        self.snapshots = SnapshotBuilder(self.schema, clock)
        self.update_epsilon = float(update_epsilon)
        self._evolution = evolution_state or EvolutionState()

    # -- administrative surface -------------------------------------------

    @property
    def evolution_state(self) -> EvolutionState:
        return self._evolution

    @evolution_state.setter
    def evolution_state(self, state: EvolutionState) -> None:
        self._evolution = state

    def add_rule(self, rule: ParameterRule) -> None:
        self.registry.add(rule)

    def update_rule(self, variable: str, **changes: Any) -> bool:
        """Merge ``changes`` into the rule at ``variable``.

        Unknown paths are ignored and reported by returning ``False``.
        """

        return self.registry.update(variable, **changes)

    def add_custom_mapping(
        self,
        variable: str,
        mapping_function: MappingFunction,
        **options: Any,
    ) -> ParameterRule:
        constraints = options.pop("constraints", RuleConstraints(min=0.0, max=1.0))
        rule = ParameterRule(
            variable=variable,
            source=options.pop("source", "hybrid"),
            priority=options.pop("priority", 5),
            constraints=constraints,
            mapping_function=mapping_function,
            sensitivity=options.pop("sensitivity", 0.5),
            evolution_rate=options.pop("evolution_rate", None),
            description=options.pop("description", "Custom mapping"),
        )
        if options:
            raise TypeError(f"Unexpected rule options: {', '.join(sorted(options))}")
        self.registry.add(rule)
        return rule

    def get_rule(self, variable: str) -> ParameterRule | None:
        return self.registry.get(variable)

    def get_all_rules(self) -> List[ParameterRule]:
        return self.registry.all()

    def lock_parameter(self, variable: str, reason: str | None = None) -> None:
        self.locks.lock(variable, reason)

    def unlock_parameter(self, variable: str) -> None:
        self.locks.unlock(variable)

    def get_locked_parameters(self) -> List[str]:
        return self.locks.locked()

    def set_override(self, variable: str, value: Any, reason: str | None = None) -> None:
        self.schema.validate(variable)
        self.locks.set_override(variable, value, reason)

    def clear_override(self, variable: str) -> None:
        self.locks.clear_override(variable)

    def clear_all_overrides(self) -> None:
        self.locks.clear_all()

    def get_safety_limits(self) -> Mapping[str, tuple]:
        return self.limiter.limits

    def set_safety_limit(self, variable: str, limit: Sequence[float]) -> None:
        self.schema.validate(variable)
        self.limiter.set_limit(variable, limit)

    def apply_safety_limits(
        self, variable: str, value: Any, constraints: RuleConstraints | Mapping[str, Any]
    ) -> Any:
        return self.limiter.apply(variable, value, constraints)

    # -- evaluation -------------------------------------------------------

    def _held_by(self, rule: ParameterRule, context: PassContext) -> str | None:
        for path in rule.constraints.lock_when_active:
            if context.current(path):
                return path
        return None

    def _evaluate_rule(
        self, rule: ParameterRule, context: PassContext
    ) -> ParameterUpdate | None:
        snapshot = context.input_for(rule.variable)
        try:
            raw = rule.mapping_function(snapshot)
            if is_numeric(raw) and not math.isfinite(raw):
                raise ValueError(f"non-finite value {raw!r}")
        except Exception as exc:  # one failing rule never aborts the pass
            logger.warning(
                "Mapping error for %s: %s",
                rule.variable,
                exc,
                extra={"event": "mapping.rule_error", "parameter": rule.variable},
            )
            return None

        value = self.limiter.apply(rule.variable, raw, rule.constraints)
        if not should_update(value, snapshot.current, rule.sensitivity, self.update_epsilon):
            return None
        return ParameterUpdate(
            variable=rule.variable,
            value=value,
            source=rule.source,
            priority=rule.priority,
            reason=describe_reason(rule.source, snapshot),
            confidence=calculate_confidence(rule.source, snapshot),
        )

    def map_parameters(
        self,
        ai: ThemeAnalysis,
        weather: WeatherData,
        current_params: Mapping[str, Any] | None,
        evolution_state: EvolutionState | None = None,
    ) -> List[ParameterUpdate]:
        """Run one evaluation pass and return at most one update per path."""

        if evolution_state is not None:
            self._evolution = evolution_state
        context = self.snapshots.build(ai, weather, self._evolution, current_params)

        candidates: List[ParameterUpdate] = []
        for rule in self.registry.all():
            if self.locks.is_locked(rule.variable):
                continue
            holder = self._held_by(rule, context)
            if holder is not None:
                logger.debug("Skipping %s while %s is active", rule.variable, holder)
                continue
            update = self._evaluate_rule(rule, context)
            if update is not None:
                candidates.append(update)

        updates = resolve_conflicts(candidates)
        logger.debug(
            "Mapped %d updates from %d rules",
            len(updates),
            len(self.registry),
            extra={"event": "mapping.pass", "updates": len(updates)},
        )
        return updates

    def override_updates(self) -> List[ParameterUpdate]:
        """Updates that write every manual override value."""

        return [
            ParameterUpdate(
                variable=path,
                value=value,
                source="override",
                priority=OVERRIDE_PRIORITY,
                reason=f"Manual override ({self.locks.reason(path) or 'user'})",
                confidence=1.0,
            )
            for path, value in sorted(self.locks.overrides().items())
        ]

    def reset_updates(self, current_params: Mapping[str, Any] | None) -> List[ParameterUpdate]:
        """Updates restoring scene defaults for every unlocked rule path that drifted."""

        updates: List[ParameterUpdate] = []
        for rule in self.registry.all():
            if self.locks.is_locked(rule.variable):
                continue
            default = self.schema.default(rule.variable)
            if self.schema.read(current_params, rule.variable) == default:
                continue
            updates.append(
                ParameterUpdate(
                    variable=rule.variable,
                    value=default,
                    source="reset",
                    priority=rule.priority,
                    reason="Reset to scene default",
                    confidence=1.0,
                )
            )
        return updates
