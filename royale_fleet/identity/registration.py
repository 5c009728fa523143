"""Remote account registration for new fleet members."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass

from royale_fleet.gateway.client import GatewayFactory
from royale_fleet.identity.wallet import WalletCredentials, generate_wallet
from royale_fleet.memory.persistence import SQLiteAgentStore
from royale_fleet.strategy.engine import ASSIGNABLE_ROLES

logger = logging.getLogger(__name__)

_NAME_PREFIXES = ("Shadow", "Ghost", "Silent", "Dark", "Swift", "Iron", "Steel", "Void", "Neon", "Cyber")
_NAME_SUFFIXES = ("Hunter", "Blade", "Stalker", "Wraith", "Reaper", "Knight", "Slayer", "Wolf", "Raven", "Storm")
_LIMIT_MARKERS = ("ip", "limit")


@dataclass(frozen=True)
class RegistrationOutcome:
    """Result of registering one account."""

    name: str
    success: bool
    agent_id: int | None = None
    wallet_address: str | None = None
    message: str | None = None

    @property
    def hit_limit(self) -> bool:
        message = (self.message or "").lower()
        return not self.success and any(marker in message for marker in _LIMIT_MARKERS)


class AccountRegistrar:
    """Creates remote accounts with fresh wallets and stores their records."""

    def __init__(
        self,
        factory: GatewayFactory,
        store: SQLiteAgentStore,
        *,
        wallet_generator: Callable[[], WalletCredentials] = generate_wallet,
        rng: random.Random | None = None,
        pause_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._factory = factory
        self._store = store
        self._wallet_generator = wallet_generator
        self._rng = rng or random.Random()
        self._pause_seconds = pause_seconds
        self._sleep = sleep

    def register(self, name: str, role: str) -> RegistrationOutcome:
        """Create one remote account and persist it."""
        wallet = self._wallet_generator()
        logger.info("[REGISTER] Creating account %s", name)
        result = self._factory.create_account(name, wallet.address)
        if not result.success:
            logger.error("[REGISTER] Account creation failed for %s: %s", name, result.message)
            return RegistrationOutcome(name=name, success=False, message=result.message)

        data = result.data_dict()
        api_key = data.get("apiKey")
        if not api_key:
            return RegistrationOutcome(name=name, success=False, message="Response did not include an API key")

        stored_name = str(data.get("name") or name)
        agent_id = self._store.add(
            name=stored_name,
            api_key=str(api_key),
            role=role,
            wallet_address=wallet.address,
            private_key=wallet.private_key,
        )
        logger.info("[REGISTER] Registered %s with wallet %s", stored_name, wallet.address)
        return RegistrationOutcome(
            name=stored_name,
            success=True,
            agent_id=agent_id,
            wallet_address=wallet.address,
        )

    def random_name(self) -> str:
        prefix = self._rng.choice(_NAME_PREFIXES)
        suffix = self._rng.choice(_NAME_SUFFIXES)
        return f"{prefix} {suffix} {self._rng.randrange(999)}"

    def bulk_register(self, count: int) -> list[RegistrationOutcome]:
        """Register up to `count` accounts with random names and roles.

        Stops at the first failure that looks like an IP or rate limit.
        """
        outcomes: list[RegistrationOutcome] = []
        for index in range(count):
            role = self._rng.choice(ASSIGNABLE_ROLES).value
            outcome = self.register(self.random_name(), role)
            outcomes.append(outcome)
            if outcome.hit_limit:
                logger.warning("[REGISTER] Stopping bulk registration: %s", outcome.message)
                break
            if index < count - 1:
                self._sleep(self._pause_seconds)
        return outcomes
