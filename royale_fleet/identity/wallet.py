"""Wallet identity generation and provisioning."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from eth_account import Account

from royale_fleet.gateway.client import GameGateway
from royale_fleet.memory.persistence import SQLiteAgentStore
from royale_fleet.models.records import AgentRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WalletCredentials:
    """A fresh key pair; only the address is ever sent to the game service."""

    address: str
    private_key: str


def generate_wallet() -> WalletCredentials:
    """Generate a random Ethereum-style wallet."""
    account = Account.create()
    return WalletCredentials(address=account.address, private_key="0x" + account.key.hex().removeprefix("0x"))


class WalletProvisioner:
    """Pushes a wallet to accounts that lack one and persists it on success."""

    def __init__(
        self,
        store: SQLiteAgentStore,
        generator: Callable[[], WalletCredentials] = generate_wallet,
    ) -> None:
        self._store = store
        self._generator = generator

    def ensure(self, record: AgentRecord, gateway: GameGateway) -> bool:
        """Make sure the record has a synced wallet.

        Returns:
            True if the record already had a wallet or one was synced now.
            False if syncing failed; the caller retries on its next cycle.
        """
        if record.wallet_address:
            return True

        logger.info("[WALLET] %s has no wallet; generating and syncing", record.name)
        wallet = self._generator()
        result = gateway.put_wallet(wallet.address)
        if not result.success:
            logger.warning("[WALLET] Sync failed for %s: %s", record.name, result.message)
            return False

        self._store.update(
            record.id,
            wallet_address=wallet.address,
            private_key=wallet.private_key,
        )
        logger.info("[WALLET] %s synced wallet %s", record.name, wallet.address)
        return True
