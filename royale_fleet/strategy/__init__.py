"""Strategy package: role policies and the dispatching engine."""

from royale_fleet.strategy.engine import (
    ASSIGNABLE_ROLES,
    Role,
    StrategyEngine,
    decide,
    policy_for_role,
)
from royale_fleet.strategy.policy import (
    AggressivePolicy,
    BalancedPolicy,
    BaselinePolicy,
    Decision,
    PolicyConfig,
    RangedPolicy,
    StealthPolicy,
    estimated_damage,
)

__all__ = [
    "ASSIGNABLE_ROLES",
    "AggressivePolicy",
    "BalancedPolicy",
    "BaselinePolicy",
    "Decision",
    "PolicyConfig",
    "RangedPolicy",
    "Role",
    "StealthPolicy",
    "StrategyEngine",
    "decide",
    "estimated_damage",
    "policy_for_role",
]
