"""Tests for the account stats refresher."""

from __future__ import annotations

import time
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from royale_fleet.gateway import ApiResult
from royale_fleet.memory.persistence import SQLiteAgentStore
from royale_fleet.runtime.stats import AccountStatsRefresher


@pytest.fixture
def store(tmp_path: Path) -> Iterator[SQLiteAgentStore]:
    agent_store = SQLiteAgentStore(tmp_path / "fleet.db")
    yield agent_store
    agent_store.close()


def _factory(results: dict[str, ApiResult]) -> MagicMock:
    def for_key(api_key: str) -> MagicMock:
        gateway = MagicMock()
        gateway.get_account.return_value = results[api_key]
        return gateway

    factory = MagicMock()
    factory.for_key.side_effect = for_key
    return factory


class TestAccountStatsRefresher:
    """Balance and lifetime stats copied onto records."""

    def test_refresh_copies_remote_stats(self, store: SQLiteAgentStore) -> None:
        agent_id = store.add(name="a", api_key="k1")
        factory = _factory({"k1": ApiResult.ok({"balance": 120.5, "totalWins": 3, "totalGames": 17})})

        assert AccountStatsRefresher(store, factory).refresh_once() == 1

        record = store.get(agent_id)
        assert record is not None
        assert record.balance == 120.5
        assert record.total_wins == 3
        assert record.total_games == 17

    def test_failed_fetch_is_skipped(self, store: SQLiteAgentStore) -> None:
        ok_id = store.add(name="a", api_key="k1")
        failed_id = store.add(name="b", api_key="k2")
        factory = _factory(
            {
                "k1": ApiResult.ok({"balance": 5}),
                "k2": ApiResult.failure("Network error", transport_error=True),
            }
        )

        assert AccountStatsRefresher(store, factory).refresh_once() == 1

        ok_record = store.get(ok_id)
        failed_record = store.get(failed_id)
        assert ok_record is not None and failed_record is not None
        assert ok_record.balance == 5
        assert failed_record.balance == 0.0

    def test_missing_fields_leave_existing_values(self, store: SQLiteAgentStore) -> None:
        agent_id = store.add(name="a", api_key="k1")
        store.update(agent_id, total_wins=4)
        factory = _factory({"k1": ApiResult.ok({"balance": 1})})

        AccountStatsRefresher(store, factory).refresh_once()

        record = store.get(agent_id)
        assert record is not None
        assert record.total_wins == 4

    def test_start_and_stop_background_thread(self, store: SQLiteAgentStore) -> None:
        store.add(name="a", api_key="k1")
        factory = _factory({"k1": ApiResult.ok({"balance": 2})})
        refresher = AccountStatsRefresher(store, factory, interval_seconds=60.0)

        refresher.start()
        deadline = time.monotonic() + 5.0
        while store.list_agents()[0].balance != 2 and time.monotonic() < deadline:
            time.sleep(0.01)
        refresher.stop(timeout=5.0)

        assert store.list_agents()[0].balance == 2
        assert factory.for_key.call_count == 1
        # The refresher thread closed its own connection on exit.
        assert len(store._connections) == 1
