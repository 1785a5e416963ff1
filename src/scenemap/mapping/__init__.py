"""Rule-based parameter mapping engine."""

from scenemap.mapping.conflicts import resolve_conflicts
from scenemap.mapping.engine import (
    ParameterMappingEngine,
    calculate_confidence,
    describe_reason,
    should_update,
)
from scenemap.mapping.locks import LockRegistry
from scenemap.mapping.rules import ParameterRule, RuleConstraints, RuleRegistry, default_rules
from scenemap.mapping.safety import SafetyLimiter, load_default_safety_limits
from scenemap.mapping.snapshot import PassContext, SnapshotBuilder, period_for_hour

__all__ = [
    "LockRegistry",
    "ParameterMappingEngine",
    "ParameterRule",
    "PassContext",
    "RuleConstraints",
    "RuleRegistry",
    "SafetyLimiter",
    "SnapshotBuilder",
    "calculate_confidence",
    "default_rules",
    "describe_reason",
    "load_default_safety_limits",
    "period_for_hour",
    "resolve_conflicts",
    "should_update",
]
