from __future__ import annotations

import pytest

from scenemap.core.paths import default_schema
from scenemap.errors import UnknownParameterPath
from scenemap.mapping.rules import ParameterRule, RuleConstraints, RuleRegistry, default_rules


def _rule(variable: str = "camera.fov", **overrides) -> ParameterRule:
    payload = dict(
        variable=variable,
        source="hybrid",
        priority=5,
        constraints=RuleConstraints(min=0, max=1),
        mapping_function=lambda _: 0.5,
        sensitivity=0.5,
        description="test rule",
    )
    payload.update(overrides)
    return ParameterRule(**payload)


def test_default_rules_register_against_default_schema() -> None:
    registry = RuleRegistry(default_schema(), default_rules())

    assert len(registry) == len(default_rules())
    assert "camera.distance" in registry
    assert registry.get("camera.distance").constraints.lock_when_active == (
        "backgroundConfig.enabled",
    )
    paths = [rule.variable for rule in registry.all()]
    assert paths == sorted(paths)


def test_registry_rejects_unknown_paths() -> None:
    registry = RuleRegistry(default_schema())

    with pytest.raises(UnknownParameterPath):
        registry.add(_rule("camera.zoom"))
    with pytest.raises(UnknownParameterPath):
        registry.add(
            _rule(constraints=RuleConstraints(min=0, max=1, lock_when_active=("camera.tilt",)))
        )


def test_registering_same_path_replaces_rule() -> None:
    registry = RuleRegistry(default_schema(), [_rule(priority=1)])
    registry.add(_rule(priority=9))

    assert len(registry) == 1
    assert registry.get("camera.fov").priority == 9


def test_update_merges_partial_constraints() -> None:
    registry = RuleRegistry(
        default_schema(),
        [_rule(constraints=RuleConstraints(min=0, max=1, safe_zone=(0.2, 0.8)))],
    )

    assert registry.update("camera.fov", priority=7, constraints={"max": 0.9})

    rule = registry.get("camera.fov")
    assert rule.priority == 7
    assert rule.constraints.min == 0
    assert rule.constraints.max == 0.9
    assert rule.constraints.safe_zone == (0.2, 0.8)
    assert rule.variable == "camera.fov"


def test_update_of_unregistered_path_is_a_no_op() -> None:
    registry = RuleRegistry(default_schema())

    assert registry.update("camera.fov", priority=3) is False
    assert registry.get("camera.fov") is None


def test_update_never_changes_the_path() -> None:
    registry = RuleRegistry(default_schema(), [_rule()])

    registry.update("camera.fov", variable="camera.distance")

    assert registry.get("camera.fov") is not None
    assert registry.get("camera.distance") is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"source": "astrology"},
        {"sensitivity": 1.5},
        {"mapping_function": 3},
        {"constraints": RuleConstraints(min=0, max=1, safe_zone=(0.2, 0.8))},
    ],
)
def test_rule_validation(overrides) -> None:
    if "constraints" in overrides:
        assert _rule(**overrides).constraints.safe_zone == (0.2, 0.8)
        return
    with pytest.raises((TypeError, ValueError)):
        _rule(**overrides)


@pytest.mark.parametrize(
    "payload",
    [
        {"min": 2, "max": 1},
        {"min": 0, "max": 1, "safe_zone": (0.8, 0.2)},
        {"min": 0, "max": 1, "safe_zone": (1.5, 2.0)},
        {"min": 10, "max": 50, "safe_zone": (5, 35)},
    ],
)
def test_constraints_reject_inverted_ranges(payload) -> None:
    with pytest.raises(ValueError):
        RuleConstraints.coerce(payload)


def test_constraints_accept_camel_case_keys() -> None:
    constraints = RuleConstraints.coerce(
        {"min": 0, "max": 10, "safeZone": [2, 8], "lockWhenActive": ["backgroundConfig.enabled"]}
    )

    assert constraints.safe_zone == (2, 8)
    assert constraints.lock_when_active == ("backgroundConfig.enabled",)


def test_update_rejects_safe_zone_outside_merged_bounds() -> None:
    registry = RuleRegistry(
        default_schema(),
        [_rule(constraints=RuleConstraints(min=0, max=1, safe_zone=(0.2, 0.8)))],
    )

    with pytest.raises(ValueError):
        registry.update("camera.fov", constraints={"max": 0.5})

    assert registry.get("camera.fov").constraints.max == 1
