"""Role dispatch for the strategy engine.

Roles map onto a closed set of policy classes. The mapping is resolved once
when a :class:`StrategyEngine` is built, never per tick, and unknown roles
fall back to :class:`BaselinePolicy` instead of failing.
"""

from __future__ import annotations

import logging
import random
from enum import StrEnum

from royale_fleet.models.snapshot import Snapshot
from royale_fleet.strategy.policy import (
    AggressivePolicy,
    BalancedPolicy,
    BaselinePolicy,
    Decision,
    RangedPolicy,
    StealthPolicy,
)

logger = logging.getLogger(__name__)


class Role(StrEnum):
    """Known agent roles."""

    ULTIMATE_SURVIVOR = "ULTIMATE_SURVIVOR"
    WINNER = "WINNER"
    AGENT = "AGENT"
    HUNTER = "HUNTER"
    FARMER = "FARMER"
    SURVIVOR = "SURVIVOR"
    ASSASSIN = "ASSASSIN"
    LOOTER = "LOOTER"
    SNIPER = "SNIPER"
    BERSERKER = "BERSERKER"
    NINJA = "NINJA"
    WARRIOR = "WARRIOR"
    GHOST = "GHOST"
    SCAVENGER = "SCAVENGER"
    MEDIC = "MEDIC"
    STALKER = "STALKER"
    PALADIN = "PALADIN"
    RAIDER = "RAIDER"

    @classmethod
    def parse(cls, name: str | None) -> Role | None:
        """Resolve a role name case-insensitively, or None when unknown."""
        if not name:
            return None
        try:
            return cls(name.strip().upper())
        except ValueError:
            return None


# Roles selectable when registering new accounts.
ASSIGNABLE_ROLES: tuple[Role, ...] = tuple(role for role in Role if role != Role.WINNER)

_SPECIALISTS: dict[Role, type[BaselinePolicy]] = {
    Role.ULTIMATE_SURVIVOR: BaselinePolicy,
    Role.SNIPER: RangedPolicy,
    Role.NINJA: StealthPolicy,
    Role.BERSERKER: AggressivePolicy,
}


def policy_for_role(role: str | Role | None) -> BaselinePolicy:
    """Build the policy for a role name."""
    parsed = role if isinstance(role, Role) else Role.parse(role)
    if parsed is None:
        logger.debug("[STRATEGY] Unknown role %r; using baseline policy", role)
        return BaselinePolicy()
    return _SPECIALISTS.get(parsed, BalancedPolicy)()


class StrategyEngine:
    """Maps one snapshot to one decision for a fixed role."""

    def __init__(
        self,
        role: str | Role | None,
        rng: random.Random | None = None,
        policy: BaselinePolicy | None = None,
    ) -> None:
        self._role = role
        self._policy = policy or policy_for_role(role)
        self._rng = rng or random.Random()

    @property
    def policy(self) -> BaselinePolicy:
        return self._policy

    def decide(self, snapshot: Snapshot) -> Decision:
        """Pick the action for this tick. Never raises for well-formed snapshots."""
        return self._policy.decide(snapshot, self._rng)


def decide(role: str | Role | None, snapshot: Snapshot, rng: random.Random | None = None) -> Decision:
    """One-shot decision for a role and snapshot."""
    return StrategyEngine(role, rng=rng).decide(snapshot)
