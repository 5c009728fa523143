"""Remote error classification and bounded wait policies."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

from royale_fleet.gateway.client import ApiResult

_UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)


class RegistrationFailure(StrEnum):
    """Recovery branches for a failed registration."""

    IP_LIMIT = "ip_limit"
    IDENTITY_CONFLICT = "identity_conflict"
    UNCLASSIFIED = "unclassified"


_CODE_CLASSES: dict[str, RegistrationFailure] = {
    "TOO_MANY_AGENTS_PER_IP": RegistrationFailure.IP_LIMIT,
    "ACCOUNT_ALREADY_IN_GAME": RegistrationFailure.IDENTITY_CONFLICT,
    "ONE_AGENT_PER_API_KEY": RegistrationFailure.IDENTITY_CONFLICT,
}


def classify_registration_failure(result: ApiResult) -> RegistrationFailure:
    """Map a failed registration result onto its recovery branch."""
    if result.code is None:
        return RegistrationFailure.UNCLASSIFIED
    return _CODE_CLASSES.get(result.code.strip().upper(), RegistrationFailure.UNCLASSIFIED)


def extract_session_id(message: str | None) -> str | None:
    """First canonical UUID embedded in an error message."""
    if not message:
        return None
    match = _UUID_PATTERN.search(message)
    return match.group(0) if match else None


@dataclass(frozen=True)
class RecoveryPolicy:
    """Wait budgets (seconds) and retry bounds for the control loop."""

    join_backoff_seconds: float = 60.0
    search_retry_seconds: float = 15.0
    state_retry_seconds: float = 10.0
    waiting_poll_seconds: float = 10.0
    tick_interval_seconds: float = 61.0
    error_delay_seconds: float = 10.0
    max_state_retries: int = 6

    @classmethod
    def for_profile(cls, profile: str) -> RecoveryPolicy:
        """Resolve a named recovery profile to wait budgets."""
        normalized = profile.strip().lower()
        if normalized == "conservative":
            return cls(
                join_backoff_seconds=120.0,
                search_retry_seconds=30.0,
                state_retry_seconds=15.0,
                waiting_poll_seconds=15.0,
                tick_interval_seconds=65.0,
                error_delay_seconds=20.0,
                max_state_retries=4,
            )
        if normalized == "aggressive":
            return cls(
                join_backoff_seconds=45.0,
                search_retry_seconds=8.0,
                state_retry_seconds=5.0,
                waiting_poll_seconds=5.0,
                tick_interval_seconds=60.0,
                error_delay_seconds=5.0,
                max_state_retries=12,
            )
        # Default "balanced"
        return cls()
