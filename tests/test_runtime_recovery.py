"""Tests for registration failure classification and wait budgets."""

from __future__ import annotations

from royale_fleet.gateway import ApiResult
from royale_fleet.runtime.recovery import (
    RecoveryPolicy,
    RegistrationFailure,
    classify_registration_failure,
    extract_session_id,
)


class TestRegistrationFailureClassification:
    """Error codes map onto recovery branches."""

    def test_ip_limit(self) -> None:
        result = ApiResult.failure("Too many agents", code="TOO_MANY_AGENTS_PER_IP")
        assert classify_registration_failure(result) == RegistrationFailure.IP_LIMIT

    def test_identity_conflicts(self) -> None:
        for code in ("ACCOUNT_ALREADY_IN_GAME", "ONE_AGENT_PER_API_KEY"):
            result = ApiResult.failure("Already playing", code=code)
            assert classify_registration_failure(result) == RegistrationFailure.IDENTITY_CONFLICT

    def test_unknown_or_missing_code(self) -> None:
        assert classify_registration_failure(ApiResult.failure("x", code="GAME_FULL")) == (
            RegistrationFailure.UNCLASSIFIED
        )
        assert classify_registration_failure(ApiResult.failure("x")) == RegistrationFailure.UNCLASSIFIED


class TestExtractSessionId:
    """UUIDs embedded in error messages."""

    def test_extracts_first_uuid(self) -> None:
        message = (
            "Account already in game 3F2504E0-4F89-11D3-9A0C-0305E82C3301; "
            "see 11111111-2222-3333-4444-555555555555"
        )
        assert extract_session_id(message) == "3F2504E0-4F89-11D3-9A0C-0305E82C3301"

    def test_none_without_uuid(self) -> None:
        assert extract_session_id("Account already in a game") is None
        assert extract_session_id(None) is None


class TestRecoveryPolicyProfiles:
    """Named profiles resolve to bounded budgets."""

    def test_default_is_balanced(self) -> None:
        assert RecoveryPolicy.for_profile("balanced") == RecoveryPolicy()
        assert RecoveryPolicy.for_profile("unknown") == RecoveryPolicy()

    def test_join_backoff_is_the_longest_wait(self) -> None:
        for profile in ("conservative", "balanced", "aggressive"):
            policy = RecoveryPolicy.for_profile(profile)
            assert policy.join_backoff_seconds > policy.search_retry_seconds
            assert policy.join_backoff_seconds > policy.state_retry_seconds
            assert policy.max_state_retries >= 1

    def test_conservative_waits_longer_than_aggressive(self) -> None:
        conservative = RecoveryPolicy.for_profile(" Conservative ")
        aggressive = RecoveryPolicy.for_profile("aggressive")
        assert conservative.join_backoff_seconds > aggressive.join_backoff_seconds
        assert conservative.search_retry_seconds > aggressive.search_retry_seconds
