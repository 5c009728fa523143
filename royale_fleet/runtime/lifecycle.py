"""Per-agent lifecycle state machine.

One :class:`AgentLifecycle` drives one agent through

    IDLE -> RESOLVING -> SEARCHING -> JOINING -> PLAYING -> TERMINATED -> IDLE

until its run flag is revoked, at which point it drops into STOPPED without
further network activity. Every remote call returns an ``ApiResult``; the only
exceptions reaching :meth:`AgentLifecycle.run` are unexpected local failures,
which are logged and retried after a bounded delay.

Example:
    >>> lifecycle = AgentLifecycle(
    ...     agent_id,
    ...     store=store,
    ...     gateways=factory,
    ...     resolver=SessionResolver(finished),
    ...     finished=finished,
    ...     flag=table.claim(agent_id),
    ... )
    >>> lifecycle.run()  # blocks until the flag is revoked
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from royale_fleet.gateway.client import GameGateway, GatewayFactory
from royale_fleet.identity.wallet import WalletProvisioner
from royale_fleet.memory.persistence import SQLiteAgentStore
from royale_fleet.models.actions import Action
from royale_fleet.models.records import AgentRecord, GameStatus, SessionRef
from royale_fleet.models.snapshot import Snapshot
from royale_fleet.observer.streaming import FleetEventStream
from royale_fleet.runtime.recovery import (
    RecoveryPolicy,
    RegistrationFailure,
    classify_registration_failure,
    extract_session_id,
)
from royale_fleet.runtime.registry import FinishedSessions, RunFlag
from royale_fleet.runtime.resolver import SessionResolver
from royale_fleet.strategy.engine import StrategyEngine
from royale_fleet.strategy.policy import Decision

logger = logging.getLogger(__name__)

STATUS_SEARCHING = "Searching for room..."
STATUS_IP_LIMIT = "IP limit reached (waiting...)"
STATUS_NO_ROOM = "Waiting for room availability..."
STATUS_WAITING_START = "Waiting for start..."
STATUS_GAME_OVER = "Game over / eliminated"


class LifecycleState(StrEnum):
    """States of one agent's control loop."""

    IDLE = "idle"
    RESOLVING = "resolving"
    SEARCHING = "searching"
    JOINING = "joining"
    PLAYING = "playing"
    TERMINATED = "terminated"
    STOPPED = "stopped"


@dataclass(frozen=True)
class LifecycleConfig:
    """Configuration for the lifecycle state machine.

    Attributes:
        recovery: Wait budgets and retry bounds.
        inventory_capacity: Inventory size below which items are auto-picked up.
        map_size: Map size requested when creating a new session.
        entry_type: Entry type requested when creating a new session.
    """

    recovery: RecoveryPolicy = field(default_factory=RecoveryPolicy)
    inventory_capacity: int = 10
    map_size: str = "massive"
    entry_type: str = "free"


@dataclass(frozen=True)
class _JoinOutcome:
    session: SessionRef | None = None
    backed_off: bool = False


class AgentLifecycle:
    """Control loop for a single agent record."""

    def __init__(
        self,
        agent_id: int,
        *,
        store: SQLiteAgentStore,
        gateways: GatewayFactory,
        resolver: SessionResolver,
        finished: FinishedSessions,
        flag: RunFlag,
        wallets: WalletProvisioner | None = None,
        config: LifecycleConfig | None = None,
        rng: random.Random | None = None,
        events: FleetEventStream | None = None,
    ) -> None:
        self._agent_id = agent_id
        self._store = store
        self._gateways = gateways
        self._resolver = resolver
        self._finished = finished
        self._flag = flag
        self._wallets = wallets
        self._config = config or LifecycleConfig()
        self._recovery = self._config.recovery
        self._rng = rng or random.Random()
        self._events = events
        self._engine: StrategyEngine | None = None
        self._state = LifecycleState.IDLE

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def agent_id(self) -> int:
        return self._agent_id

    def run(self) -> None:
        """Run cycles until the run flag is revoked or the record stops running."""
        logger.info("[LIFECYCLE] Agent #%s loop started", self._agent_id)
        while self._flag.active:
            try:
                if not self.run_cycle():
                    break
            except Exception as e:
                logger.exception("[LIFECYCLE] Agent #%s cycle failed", self._agent_id)
                self._emit("error", error=str(e))
                self._flag.wait(self._recovery.error_delay_seconds)
        self._set_state(LifecycleState.STOPPED)
        logger.info("[LIFECYCLE] Agent #%s loop exited", self._agent_id)

    def run_cycle(self) -> bool:
        """Run one IDLE-to-TERMINATED cycle.

        Returns:
            False when the loop must exit (record gone, stopped, or flag revoked).
        """
        self._set_state(LifecycleState.IDLE)
        record = self._store.get(self._agent_id)
        if record is None or not record.is_running:
            logger.info("[LIFECYCLE] Agent #%s is no longer marked running", self._agent_id)
            return False

        gateway = self._gateways.for_key(record.api_key)
        if self._wallets is not None:
            self._wallets.ensure(record, gateway)
        if self._engine is None:
            self._engine = StrategyEngine(record.role, rng=self._rng)
        if not self._flag.active:
            return False

        self._set_state(LifecycleState.RESOLVING)
        session = record.session or self._resolver.resolve(gateway, record.name, record.game_id)
        if session is not None:
            logger.info("[LIFECYCLE] %s found active session in game %s", record.name, session.game_id)
        else:
            if not self._flag.active:
                return False
            outcome = self._search_and_join(record, gateway)
            if outcome.backed_off:
                return self._flag.active
            session = outcome.session

        if session is None:
            self._store.update(record.id, last_action=STATUS_NO_ROOM, game_id=None, agent_id=None)
            return self._flag.wait(self._recovery.search_retry_seconds)

        self._store.update(record.id, game_id=session.game_id, agent_id=session.agent_id)
        self._set_state(LifecycleState.PLAYING)
        if not self._play(record, gateway, session):
            return False

        self._set_state(LifecycleState.TERMINATED)
        self._store.update(record.id, game_id=None, agent_id=None)
        return self._flag.active

    def _search_and_join(self, record: AgentRecord, gateway: GameGateway) -> _JoinOutcome:
        self._set_state(LifecycleState.SEARCHING)
        self._store.update(record.id, last_action=STATUS_SEARCHING)

        target = self._pick_candidate(record, gateway)
        if target is None or not self._flag.active:
            return _JoinOutcome()

        self._set_state(LifecycleState.JOINING)
        result = gateway.register_agent(target, record.name)
        if result.success:
            agent_id = result.data_dict().get("id")
            if agent_id:
                logger.info("[LIFECYCLE] %s registered in game %s", record.name, target)
                return _JoinOutcome(session=SessionRef(game_id=target, agent_id=str(agent_id)))
            logger.warning("[LIFECYCLE] Registration for %s returned no agent id", record.name)
            return _JoinOutcome()

        failure = classify_registration_failure(result)
        logger.info(
            "[LIFECYCLE] %s registration failed: %s - %s",
            record.name,
            result.code,
            result.message,
        )

        if failure == RegistrationFailure.IP_LIMIT:
            self._store.update(record.id, last_action=STATUS_IP_LIMIT)
            self._emit("ip_limit", game_id=target)
            self._flag.wait(self._recovery.join_backoff_seconds)
            return _JoinOutcome(backed_off=True)

        if failure == RegistrationFailure.IDENTITY_CONFLICT:
            hint = extract_session_id(result.message)
            session = self._resolver.resolve(gateway, record.name, hint)
            if session is not None:
                logger.info("[LIFECYCLE] %s adopted existing session in game %s", record.name, session.game_id)
            return _JoinOutcome(session=session)

        return _JoinOutcome()

    def _pick_candidate(self, record: AgentRecord, gateway: GameGateway) -> str | None:
        """Choose a session to join: pinned, then open listing, then a new one."""
        pinned = record.game_id
        if pinned:
            game = gateway.get_game(pinned)
            status = game.data_dict().get("status")
            if game.success and status == GameStatus.WAITING:
                return pinned
            if game.success and status == GameStatus.RUNNING:
                logger.info("[LIFECYCLE] Pinned game %s is already running; cannot join", pinned)

        listing = gateway.list_games(GameStatus.WAITING.value)
        for game in listing.data_list():
            if isinstance(game, dict) and self._is_open(game):
                return str(game["id"])

        # A pinned but unjoinable session never triggers auto-creation.
        if pinned:
            return None

        logger.info("[LIFECYCLE] No open rooms for %s; creating one", record.name)
        created = gateway.create_game(
            {
                "hostName": f"{record.name}'s Arena",
                "mapSize": self._config.map_size,
                "entryType": self._config.entry_type,
            }
        )
        game_id = created.data_dict().get("id") if created.success else None
        return str(game_id) if game_id else None

    @staticmethod
    def _is_open(game: dict[str, Any]) -> bool:
        if not game.get("id") or game.get("entryType") != "free":
            return False
        return int(game.get("agentCount") or 0) < int(game.get("maxAgents") or 0)

    def _play(self, record: AgentRecord, gateway: GameGateway, session: SessionRef) -> bool:
        """Per-tick play loop.

        Returns:
            True when the session terminated, False when the loop was stopped.
        """
        failures = 0
        while self._flag.active:
            result = gateway.get_agent_state(session.game_id, session.agent_id)
            if not result.success:
                if self._session_gone(gateway, session):
                    logger.info("[LIFECYCLE] Game %s ended or not found", session.game_id)
                    return True
                failures += 1
                if failures > self._recovery.max_state_retries:
                    logger.warning(
                        "[LIFECYCLE] %s gave up on game %s after %s failed polls",
                        record.name,
                        session.game_id,
                        failures - 1,
                    )
                    return True
                if not self._flag.wait(self._recovery.state_retry_seconds):
                    return False
                continue
            failures = 0

            snapshot = Snapshot.from_payload(result.data_dict())
            if snapshot.game_status == GameStatus.FINISHED or not snapshot.me.is_alive:
                logger.info("[LIFECYCLE] %s: game finished or agent eliminated", record.name)
                self._finished.add(session.game_id)
                self._store.update(record.id, is_alive=False, last_action=STATUS_GAME_OVER)
                self._emit("game_over", game_id=session.game_id)
                return True

            self._store.update(record.id, hp=snapshot.me.hp, ep=snapshot.me.ep, is_alive=True)

            if snapshot.game_status == GameStatus.WAITING:
                self._store.update(record.id, last_action=STATUS_WAITING_START)
                if not self._flag.wait(self._recovery.waiting_poll_seconds):
                    return False
                continue

            self._free_actions(gateway, session, snapshot)
            decision = self._decide(snapshot)
            submitted = gateway.submit_action(
                session.game_id,
                session.agent_id,
                decision.action,
                thought=decision.thought(),
            )
            if submitted.success:
                last_action = f"Action: {decision.action.type.value}"
            else:
                last_action = f"Error: {submitted.message or 'Action failed'}"
            self._store.update(record.id, last_action=last_action)
            self._emit(
                "action",
                game_id=session.game_id,
                action=decision.action.describe(),
                strategy=decision.strategy,
                success=submitted.success,
            )

            if not self._flag.wait(self._recovery.tick_interval_seconds):
                return False
        return False

    def _session_gone(self, gateway: GameGateway, session: SessionRef) -> bool:
        """Whether the session has finished or vanished (transport failures excluded)."""
        game = gateway.get_game(session.game_id)
        if game.success:
            return game.data_dict().get("status") == GameStatus.FINISHED
        return not game.transport_error

    def _free_actions(self, gateway: GameGateway, session: SessionRef, snapshot: Snapshot) -> None:
        """Pickup and auto-equip; these do not consume the tick's decision."""
        ground = snapshot.item_here()
        if ground is not None and len(snapshot.me.inventory) < self._config.inventory_capacity:
            result = gateway.submit_action(session.game_id, session.agent_id, Action.pickup(ground.item.id))
            if not result.success:
                logger.debug("[LIFECYCLE] Pickup of %s failed: %s", ground.item.id, result.message)

        upgrade = snapshot.me.upgrade_weapon()
        if upgrade is not None:
            result = gateway.submit_action(session.game_id, session.agent_id, Action.equip(upgrade.id))
            if not result.success:
                logger.debug("[LIFECYCLE] Auto-equip of %s failed: %s", upgrade.id, result.message)

    def _decide(self, snapshot: Snapshot) -> Decision:
        # A region already flagged lethal skips strategic evaluation entirely.
        if snapshot.current_region.is_death_zone:
            exit_id = snapshot.first_reachable_id()
            if exit_id is not None:
                return Decision(
                    action=Action.move(exit_id),
                    strategy="hazard_exit",
                    rationale=f"Standing in death zone {snapshot.current_region.id}; leaving immediately.",
                )
        assert self._engine is not None
        return self._engine.decide(snapshot)

    def _set_state(self, state: LifecycleState) -> None:
        if state == self._state:
            return
        logger.debug("[LIFECYCLE] Agent #%s: %s -> %s", self._agent_id, self._state.value, state.value)
        self._state = state
        self._emit("state", state=state.value)

    def _emit(self, event: str, **fields: Any) -> None:
        if self._events is None:
            return
        self._events.push_event(self._agent_id, event, **fields)
