"""Session resolution: find which live session (if any) an agent is playing.

After a process restart or a dropped game, an agent only knows its account
credential, its display name and possibly a previously seen session id (the
hint). Lookups run cheapest and most authoritative first:

1. the account's own current sessions
2. the hinted session's full state, matched by display name
3. a bounded scan of `running` then `waiting` sessions, matched by name

A found-but-dead match during the scan marks that session finished in the
shared memo so later scans skip it.
"""

from __future__ import annotations

import logging
from typing import Any

from royale_fleet.gateway.client import GameGateway
from royale_fleet.models.records import GameStatus, SessionRef
from royale_fleet.runtime.registry import FinishedSessions

logger = logging.getLogger(__name__)

DEFAULT_SCAN_WINDOW = 15
_SCAN_STATUSES = (GameStatus.RUNNING, GameStatus.WAITING)


def _normalize_name(name: Any) -> str:
    return str(name or "").strip().lower()


def _find_by_name(state: dict[str, Any], display_name: str) -> dict[str, Any] | None:
    wanted = _normalize_name(display_name)
    agents = state.get("agents")
    if not isinstance(agents, list):
        return None
    for agent in agents:
        if isinstance(agent, dict) and _normalize_name(agent.get("name")) == wanted:
            return agent
    return None


class SessionResolver:
    """Prioritized lookup sequence over the game gateway."""

    def __init__(
        self,
        finished: FinishedSessions,
        scan_window: int = DEFAULT_SCAN_WINDOW,
    ) -> None:
        self._finished = finished
        self._scan_window = max(0, scan_window)

    def resolve(
        self,
        gateway: GameGateway,
        display_name: str,
        hint: str | None = None,
    ) -> SessionRef | None:
        """Locate the agent's live session. Never raises."""
        try:
            return (
                self._from_own_sessions(gateway, hint)
                or self._from_hint(gateway, display_name, hint)
                or self._from_scan(gateway, display_name, hint)
            )
        except Exception:
            logger.exception("[RESOLVER] Resolution failed for %s", display_name)
            return None

    def _from_own_sessions(self, gateway: GameGateway, hint: str | None) -> SessionRef | None:
        result = gateway.get_account()
        if not result.success:
            return None

        games = result.data_dict().get("currentGames")
        if not isinstance(games, list):
            return None

        for game in games:
            if not isinstance(game, dict):
                continue
            if game.get("gameStatus") == GameStatus.FINISHED:
                continue
            if hint and game.get("gameId") != hint:
                continue
            # Only the first unfinished candidate counts.
            if game.get("isAlive") and game.get("gameId") and game.get("agentId"):
                logger.debug("[RESOLVER] Own sessions list game %s", game["gameId"])
                return SessionRef(game_id=str(game["gameId"]), agent_id=str(game["agentId"]))
            return None
        return None

    def _from_hint(
        self,
        gateway: GameGateway,
        display_name: str,
        hint: str | None,
    ) -> SessionRef | None:
        if not hint:
            return None

        result = gateway.get_game_state(hint)
        if not result.success:
            return None

        me = _find_by_name(result.data_dict(), display_name)
        if me is not None and me.get("isAlive") and me.get("id"):
            logger.debug("[RESOLVER] Hinted game %s matched by name", hint)
            return SessionRef(game_id=hint, agent_id=str(me["id"]))
        return None

    def _from_scan(
        self,
        gateway: GameGateway,
        display_name: str,
        hint: str | None,
    ) -> SessionRef | None:
        for status in _SCAN_STATUSES:
            listing = gateway.list_games(status.value)
            if not listing.success:
                continue

            for game in listing.data_list()[: self._scan_window]:
                game_id = game.get("id") if isinstance(game, dict) else None
                if not game_id or game_id in self._finished or game_id == hint:
                    continue

                state = gateway.get_game_state(game_id)
                if not state.success:
                    continue

                me = _find_by_name(state.data_dict(), display_name)
                if me is None:
                    continue
                if me.get("isAlive") and me.get("id"):
                    logger.debug("[RESOLVER] Scan found %s in %s game %s", display_name, status, game_id)
                    return SessionRef(game_id=str(game_id), agent_id=str(me["id"]))
                self._finished.add(str(game_id))
        return None
