"""Agent control loops, session recovery, and fleet supervision."""

from royale_fleet.runtime.lifecycle import AgentLifecycle, LifecycleConfig, LifecycleState
from royale_fleet.runtime.recovery import (
    RecoveryPolicy,
    RegistrationFailure,
    classify_registration_failure,
    extract_session_id,
)
from royale_fleet.runtime.registry import ActiveLoopTable, FinishedSessions, RunFlag
from royale_fleet.runtime.resolver import SessionResolver
from royale_fleet.runtime.stats import AccountStatsRefresher
from royale_fleet.runtime.supervisor import AgentSupervisor

__all__ = [
    "AccountStatsRefresher",
    "ActiveLoopTable",
    "AgentLifecycle",
    "AgentSupervisor",
    "FinishedSessions",
    "LifecycleConfig",
    "LifecycleState",
    "RecoveryPolicy",
    "RegistrationFailure",
    "RunFlag",
    "SessionResolver",
    "classify_registration_failure",
    "extract_session_id",
]
