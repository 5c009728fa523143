"""Fleet supervisor: owns every agent's control loop.

The supervisor is the only component that spawns or stops lifecycle threads.
It guarantees at most one live loop per agent id and persists the desired
run status so that a restarted process can resume the agents that were
running when it went down.
"""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass

from royale_fleet.gateway.client import GatewayFactory
from royale_fleet.identity.wallet import WalletProvisioner
from royale_fleet.memory.persistence import SQLiteAgentStore
from royale_fleet.models.records import AgentStatus
from royale_fleet.observer.streaming import FleetEventStream
from royale_fleet.runtime.lifecycle import AgentLifecycle, LifecycleConfig
from royale_fleet.runtime.registry import ActiveLoopTable, FinishedSessions, RunFlag
from royale_fleet.runtime.resolver import SessionResolver

logger = logging.getLogger(__name__)

STATUS_STOPPED = "Stopped"


@dataclass
class _LoopHandle:
    flag: RunFlag
    thread: threading.Thread
    lifecycle: AgentLifecycle


class AgentSupervisor:
    """Starts, stops, and tracks one lifecycle thread per agent."""

    def __init__(
        self,
        store: SQLiteAgentStore,
        gateways: GatewayFactory,
        *,
        config: LifecycleConfig | None = None,
        wallets: WalletProvisioner | None = None,
        events: FleetEventStream | None = None,
        scan_window: int = 15,
        rng: random.Random | None = None,
        join_timeout_seconds: float = 5.0,
    ) -> None:
        self._store = store
        self._gateways = gateways
        self._config = config or LifecycleConfig()
        self._wallets = wallets
        self._events = events
        self._rng = rng or random.Random()
        self._join_timeout = join_timeout_seconds

        self._table = ActiveLoopTable()
        self._finished = FinishedSessions()
        self._resolver = SessionResolver(self._finished, scan_window=scan_window)

        self._handles: dict[int, _LoopHandle] = {}
        self._handles_lock = threading.Lock()
        # Pairs each run-status write with the claim or revoke it describes.
        self._status_lock = threading.Lock()

    @property
    def finished_sessions(self) -> FinishedSessions:
        return self._finished

    def is_active(self, agent_id: int) -> bool:
        return self._table.is_active(agent_id)

    def active_ids(self) -> list[int]:
        return self._table.active_ids()

    def lifecycle(self, agent_id: int) -> AgentLifecycle | None:
        """Lifecycle instance currently holding the agent, if any."""
        with self._handles_lock:
            handle = self._handles.get(agent_id)
        return handle.lifecycle if handle else None

    def start(self, agent_id: int) -> bool:
        """Start the agent's control loop.

        Returns:
            True if a new loop was spawned, False if one was already active
            or the record does not exist.
        """
        if self._table.is_active(agent_id):
            logger.info("[SUPERVISOR] Agent #%s already has a running loop", agent_id)
            return False
        if self._table.holds(agent_id) and not self._await_exit(agent_id):
            logger.warning("[SUPERVISOR] Agent #%s previous loop is still exiting", agent_id)
            return False

        record = self._store.get(agent_id)
        if record is None:
            logger.warning("[SUPERVISOR] Agent #%s not found", agent_id)
            return False

        with self._status_lock:
            flag = self._table.claim(agent_id)
            if flag is None:
                return False
            self._store.update(agent_id, status=AgentStatus.RUNNING)

        lifecycle = AgentLifecycle(
            agent_id,
            store=self._store,
            gateways=self._gateways,
            resolver=self._resolver,
            finished=self._finished,
            flag=flag,
            wallets=self._wallets,
            config=self._config,
            rng=random.Random(self._rng.random()),
            events=self._events,
        )
        thread = threading.Thread(
            target=self._run_loop,
            args=(agent_id, flag, lifecycle),
            name=f"AgentLoop-{agent_id}",
            daemon=True,
        )
        with self._handles_lock:
            self._handles[agent_id] = _LoopHandle(flag=flag, thread=thread, lifecycle=lifecycle)
        thread.start()
        logger.info("[SUPERVISOR] Started agent #%s (%s)", agent_id, record.name)
        return True

    def _run_loop(self, agent_id: int, flag: RunFlag, lifecycle: AgentLifecycle) -> None:
        try:
            lifecycle.run()
        finally:
            self._store.release_thread_connection()
            self._table.release(agent_id, flag)
            with self._handles_lock:
                handle = self._handles.get(agent_id)
                if handle is not None and handle.flag is flag:
                    del self._handles[agent_id]

    def _await_exit(self, agent_id: int) -> bool:
        """Join a revoked loop that has not released its entry yet."""
        with self._handles_lock:
            handle = self._handles.get(agent_id)
        if handle is not None and handle.thread is not threading.current_thread():
            handle.thread.join(timeout=self._join_timeout)
        return not self._table.holds(agent_id)

    def stop(self, agent_id: int) -> bool:
        """Stop the agent's loop and persist the stopped status.

        The session pointer is kept so a later start resumes the same session.
        """
        if self._store.get(agent_id) is None:
            return False
        with self._status_lock:
            self._store.update(agent_id, status=AgentStatus.STOPPED, last_action=STATUS_STOPPED)
            revoked = self._table.revoke(agent_id)
        if revoked:
            logger.info("[SUPERVISOR] Stopping agent #%s", agent_id)
        return True

    def start_all(self) -> int:
        """Start every stored agent without an active loop."""
        started = 0
        for record in self._store.list_agents():
            if self.start(record.id):
                started += 1
        return started

    def stop_all(self) -> int:
        """Stop every agent persisted as running."""
        stopped = 0
        for record in self._store.list_by_status(AgentStatus.RUNNING):
            if self.stop(record.id):
                stopped += 1
        return stopped

    def delete(self, agent_id: int) -> bool:
        """Revoke the agent's loop and remove its record."""
        self._table.revoke(agent_id)
        return self._store.delete(agent_id)

    def delete_all(self) -> int:
        self._table.revoke_all()
        return self._store.delete_all()

    def resume(self) -> int:
        """Restart loops for every record persisted as running."""
        resumed = 0
        for record in self._store.list_by_status(AgentStatus.RUNNING):
            logger.info("[SUPERVISOR] Resuming agent #%s (%s)", record.id, record.name)
            if self.start(record.id):
                resumed += 1
        return resumed

    def shutdown(self, timeout: float = 5.0) -> None:
        """Revoke every loop and wait briefly for the threads to exit.

        Persisted run statuses are left untouched so the next process resumes them.
        """
        self._table.revoke_all()
        with self._handles_lock:
            threads = [handle.thread for handle in self._handles.values()]
        for thread in threads:
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("[SUPERVISOR] %s did not stop within timeout", thread.name)
