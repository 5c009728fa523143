"""Periodic refresh of per-account balance and lifetime stats."""

from __future__ import annotations

import logging
import threading

from royale_fleet.gateway.client import GatewayFactory
from royale_fleet.memory.persistence import SQLiteAgentStore

logger = logging.getLogger(__name__)


class AccountStatsRefresher:
    """Background thread copying remote account stats into agent records."""

    def __init__(
        self,
        store: SQLiteAgentStore,
        gateways: GatewayFactory,
        interval_seconds: float = 300.0,
    ) -> None:
        self._store = store
        self._gateways = gateways
        self._interval = interval_seconds
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

    def refresh_once(self) -> int:
        """Refresh every record once; returns the number of records updated."""
        updated = 0
        for record in self._store.list_agents():
            if not record.api_key:
                continue
            result = self._gateways.for_key(record.api_key).get_account()
            if not result.success:
                logger.debug("[STATS] Account fetch failed for %s: %s", record.name, result.message)
                continue
            data = result.data_dict()
            fields = {
                "balance": data.get("balance"),
                "total_wins": data.get("totalWins"),
                "total_games": data.get("totalGames"),
            }
            fields = {key: value for key, value in fields.items() if value is not None}
            if fields and self._store.update(record.id, **fields):
                updated += 1
        return updated

    def _run(self) -> None:
        try:
            while not self._stopped.is_set():
                try:
                    self.refresh_once()
                except Exception:
                    logger.exception("[STATS] Refresh cycle failed")
                self._stopped.wait(self._interval)
        finally:
            self._store.release_thread_connection()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stopped.clear()
        self._thread = threading.Thread(target=self._run, name="AccountStats", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stopped.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
