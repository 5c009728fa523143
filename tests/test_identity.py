"""Tests for wallet provisioning and account registration."""

from __future__ import annotations

import random
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from royale_fleet.gateway import ApiResult
from royale_fleet.identity import (
    AccountRegistrar,
    RegistrationOutcome,
    WalletCredentials,
    WalletProvisioner,
    generate_wallet,
)
from royale_fleet.memory.persistence import SQLiteAgentStore
from royale_fleet.strategy import ASSIGNABLE_ROLES


@pytest.fixture
def store(tmp_path: Path) -> Iterator[SQLiteAgentStore]:
    agent_store = SQLiteAgentStore(tmp_path / "fleet.db")
    yield agent_store
    agent_store.close()


def _fixed_wallet() -> WalletCredentials:
    return WalletCredentials(address="0x" + "ab" * 20, private_key="0x" + "cd" * 32)


class TestGenerateWallet:
    """Fresh key pairs."""

    def test_generates_checksummed_address_and_prefixed_key(self) -> None:
        wallet = generate_wallet()

        assert wallet.address.startswith("0x")
        assert len(wallet.address) == 42
        assert wallet.private_key.startswith("0x")
        assert len(wallet.private_key) == 66

    def test_wallets_are_unique(self) -> None:
        assert generate_wallet().address != generate_wallet().address


class TestWalletProvisioner:
    """Wallet sync on loop start."""

    def test_no_op_when_wallet_exists(self, store: SQLiteAgentStore) -> None:
        agent_id = store.add(name="a", api_key="k", wallet_address="0x1")
        record = store.get(agent_id)
        gateway = MagicMock()

        assert WalletProvisioner(store).ensure(record, gateway) is True
        gateway.put_wallet.assert_not_called()

    def test_syncs_and_persists_new_wallet(self, store: SQLiteAgentStore) -> None:
        agent_id = store.add(name="a", api_key="k")
        gateway = MagicMock()
        gateway.put_wallet.return_value = ApiResult.ok({})

        synced = WalletProvisioner(store, generator=_fixed_wallet).ensure(store.get(agent_id), gateway)

        record = store.get(agent_id)
        assert synced is True
        gateway.put_wallet.assert_called_once_with(_fixed_wallet().address)
        assert record is not None
        assert record.wallet_address == _fixed_wallet().address
        assert record.private_key == _fixed_wallet().private_key

    def test_failed_sync_does_not_persist(self, store: SQLiteAgentStore) -> None:
        agent_id = store.add(name="a", api_key="k")
        gateway = MagicMock()
        gateway.put_wallet.return_value = ApiResult.failure("Network error", transport_error=True)

        synced = WalletProvisioner(store, generator=_fixed_wallet).ensure(store.get(agent_id), gateway)

        record = store.get(agent_id)
        assert synced is False
        assert record is not None
        assert record.wallet_address is None


class TestAccountRegistrar:
    """Remote account creation."""

    def test_register_stores_returned_name_and_key(self, store: SQLiteAgentStore) -> None:
        factory = MagicMock()
        factory.create_account.return_value = ApiResult.ok({"name": "Iron Wolf 7", "apiKey": "mr_live_1"})
        registrar = AccountRegistrar(factory, store, wallet_generator=_fixed_wallet)

        outcome = registrar.register("iron wolf 7", "SNIPER")

        assert outcome.success is True
        record = store.get(outcome.agent_id or 0)
        assert record is not None
        assert record.name == "Iron Wolf 7"
        assert record.api_key == "mr_live_1"
        assert record.role == "SNIPER"
        assert record.private_key == _fixed_wallet().private_key
        factory.create_account.assert_called_once_with("iron wolf 7", _fixed_wallet().address)

    def test_register_failure_stores_nothing(self, store: SQLiteAgentStore) -> None:
        factory = MagicMock()
        factory.create_account.return_value = ApiResult.failure("IP limit reached (max accounts per IP)")
        registrar = AccountRegistrar(factory, store, wallet_generator=_fixed_wallet)

        outcome = registrar.register("x", "AGENT")

        assert outcome.success is False
        assert outcome.hit_limit is True
        assert store.list_agents() == []

    def test_missing_api_key_is_a_failure(self, store: SQLiteAgentStore) -> None:
        factory = MagicMock()
        factory.create_account.return_value = ApiResult.ok({"name": "x"})

        outcome = AccountRegistrar(factory, store, wallet_generator=_fixed_wallet).register("x", "AGENT")

        assert outcome.success is False
        assert outcome.hit_limit is False

    def test_bulk_register_stops_at_limit(self, store: SQLiteAgentStore) -> None:
        factory = MagicMock()
        factory.create_account.side_effect = [
            ApiResult.ok({"name": "one", "apiKey": "k1"}),
            ApiResult.ok({"name": "two", "apiKey": "k2"}),
            ApiResult.failure("IP limit reached (max accounts per IP)"),
            ApiResult.ok({"name": "never", "apiKey": "k4"}),
        ]
        sleep = MagicMock()
        registrar = AccountRegistrar(
            factory,
            store,
            wallet_generator=generate_wallet,
            rng=random.Random(5),
            sleep=sleep,
        )

        outcomes = registrar.bulk_register(10)

        assert [outcome.success for outcome in outcomes] == [True, True, False]
        assert factory.create_account.call_count == 3
        assert len(store.list_agents()) == 2
        assert sleep.call_count == 2
        roles = {record.role for record in store.list_agents()}
        assert roles <= {role.value for role in ASSIGNABLE_ROLES}

    def test_random_names_use_prefix_suffix_number(self) -> None:
        registrar = AccountRegistrar(MagicMock(), MagicMock(), rng=random.Random(1))
        parts = registrar.random_name().split(" ")
        assert len(parts) == 3
        assert parts[2].isdigit()

    def test_outcome_limit_detection(self) -> None:
        assert RegistrationOutcome(name="x", success=False, message="Rate LIMIT").hit_limit is True
        assert RegistrationOutcome(name="x", success=False, message="Bad name").hit_limit is False
