"""Agent record and session reference models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, Field


class AgentStatus(StrEnum):
    """Process-level run flag persisted on the agent record."""

    STOPPED = "stopped"
    RUNNING = "running"


class GameStatus(StrEnum):
    """Lifecycle states of a remote session."""

    WAITING = "waiting"
    RUNNING = "running"
    FINISHED = "finished"


@dataclass(frozen=True)
class SessionRef:
    """Back reference into a remote session.

    Becomes stale as soon as the remote game finishes or the agent is removed,
    so every use must tolerate it being invalid.
    """

    game_id: str
    agent_id: str


class AgentRecord(BaseModel):
    """Persisted agent identity plus runtime fields."""

    id: int
    name: str = Field(..., min_length=1)
    api_key: str
    role: str = "AGENT"
    status: AgentStatus = AgentStatus.STOPPED
    last_action: str | None = None
    game_id: str | None = None
    agent_id: str | None = None
    hp: float | None = None
    ep: float | None = None
    is_alive: bool = True
    balance: float = 0.0
    total_wins: int = 0
    total_games: int = 0
    wallet_address: str | None = None
    private_key: str | None = None

    model_config = {"frozen": True}

    @property
    def session(self) -> SessionRef | None:
        """Complete session reference, or None when only a hint is stored."""
        if self.game_id and self.agent_id:
            return SessionRef(game_id=self.game_id, agent_id=self.agent_id)
        return None

    @property
    def is_running(self) -> bool:
        return self.status == AgentStatus.RUNNING

    def public_view(self) -> dict[str, object]:
        """Record fields safe to expose over the management API."""
        return self.model_dump(exclude={"private_key"})
