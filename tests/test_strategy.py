"""Tests for role dispatch in the strategy engine."""

from __future__ import annotations

import random

import pytest

from royale_fleet.models import ActionType, Snapshot
from royale_fleet.strategy import (
    ASSIGNABLE_ROLES,
    AggressivePolicy,
    BalancedPolicy,
    BaselinePolicy,
    RangedPolicy,
    Role,
    StealthPolicy,
    StrategyEngine,
    decide,
    policy_for_role,
)


def _snapshot_in_death_zone() -> Snapshot:
    return Snapshot.from_payload(
        {
            "self": {"id": "me", "hp": 100, "ep": 10, "regionId": "r1"},
            "currentRegion": {"id": "r1", "isDeathZone": True},
            "connectedRegions": [{"id": "r2"}],
        }
    )


class TestRoleParsing:
    """Role names resolve case-insensitively."""

    def test_parses_known_role(self) -> None:
        assert Role.parse(" ninja ") == Role.NINJA

    def test_unknown_role_is_none(self) -> None:
        assert Role.parse("PIRATE") is None
        assert Role.parse(None) is None

    def test_assignable_roles_exclude_winner(self) -> None:
        assert Role.WINNER not in ASSIGNABLE_ROLES
        assert Role.ULTIMATE_SURVIVOR in ASSIGNABLE_ROLES


class TestPolicyDispatch:
    """Roles map onto a closed set of policies."""

    @pytest.mark.parametrize(
        ("role", "expected"),
        [
            ("ULTIMATE_SURVIVOR", BaselinePolicy),
            ("SNIPER", RangedPolicy),
            ("NINJA", StealthPolicy),
            ("BERSERKER", AggressivePolicy),
            ("HUNTER", BalancedPolicy),
            ("AGENT", BalancedPolicy),
            ("MEDIC", BalancedPolicy),
        ],
    )
    def test_known_roles(self, role: str, expected: type[BaselinePolicy]) -> None:
        assert type(policy_for_role(role)) is expected

    def test_unknown_role_falls_back_to_baseline(self) -> None:
        assert type(policy_for_role("PIRATE")) is BaselinePolicy
        assert type(policy_for_role(None)) is BaselinePolicy


class TestStrategyEngine:
    """Engine wiring."""

    def test_policy_resolved_once(self) -> None:
        engine = StrategyEngine("NINJA")
        assert engine.policy is engine.policy
        assert engine.policy.name == "stealth"

    def test_explicit_policy_overrides_role(self) -> None:
        policy = AggressivePolicy()
        engine = StrategyEngine("NINJA", policy=policy)
        assert engine.policy is policy

    @pytest.mark.parametrize("role", [role.value for role in Role] + ["PIRATE"])
    def test_every_role_escapes_death_zone(self, role: str) -> None:
        decision = decide(role, _snapshot_in_death_zone(), rng=random.Random(1))
        assert decision.action.type == ActionType.MOVE
        assert decision.action.region_id == "r2"
