"""FastAPI control API for the agent fleet."""

from __future__ import annotations

import asyncio
import logging
import time

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from royale_fleet.identity.registration import AccountRegistrar
from royale_fleet.memory.persistence import DuplicateAgentError, SQLiteAgentStore
from royale_fleet.observer.streaming import FleetEventStream
from royale_fleet.runtime.supervisor import AgentSupervisor

logger = logging.getLogger(__name__)


class AddAgentRequest(BaseModel):
    """Import an existing account by API key."""

    name: str = Field(min_length=1)
    api_key: str = Field(min_length=1, alias="apiKey")
    role: str = "AGENT"
    wallet_address: str | None = Field(default=None, alias="walletAddress")
    private_key: str | None = Field(default=None, alias="privateKey")

    model_config = {"populate_by_name": True}


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    role: str = "AGENT"


class BulkRegisterRequest(BaseModel):
    count: int = Field(default=50, ge=1, le=500)


class SetGameRequest(BaseModel):
    game_id: str | None = Field(default=None, alias="gameId")

    model_config = {"populate_by_name": True}


def create_app(
    supervisor: AgentSupervisor,
    store: SQLiteAgentStore,
    registrar: AccountRegistrar | None = None,
    events: FleetEventStream | None = None,
) -> FastAPI:
    """Create the control API.

    Args:
        supervisor: Owner of every agent control loop.
        store: Agent record store shared with the supervisor.
        registrar: Remote account registrar. Registration endpoints return
            503 when absent.
        events: Event stream served on ``/ws/events``. A private one is
            created when omitted.
    """
    app = FastAPI(title="Royale Fleet", version="0.1.0")
    started_at = time.monotonic()
    app.state.events = events or FleetEventStream()

    def _require_record(agent_id: int) -> None:
        if store.get(agent_id) is None:
            raise HTTPException(status_code=404, detail=f"Agent {agent_id} not found")

    def _require_registrar() -> AccountRegistrar:
        if registrar is None:
            raise HTTPException(status_code=503, detail="Account registration is not configured")
        return registrar

    @app.get("/api/health")
    async def health() -> dict[str, object]:
        return {"status": "ok", "uptime": round(time.monotonic() - started_at, 3)}

    @app.get("/api/agents")
    def list_agents() -> list[dict[str, object]]:
        return [
            {**record.public_view(), "active": supervisor.is_active(record.id)}
            for record in store.list_agents()
        ]

    @app.post("/api/agents/add")
    def add_agent(request: AddAgentRequest) -> dict[str, object]:
        try:
            agent_id = store.add(
                name=request.name,
                api_key=request.api_key,
                role=request.role,
                wallet_address=request.wallet_address,
                private_key=request.private_key,
            )
        except DuplicateAgentError as e:
            raise HTTPException(status_code=400, detail="API key already exists") from e
        return {"success": True, "id": agent_id}

    @app.post("/api/agents/register")
    def register_agent(request: RegisterRequest) -> dict[str, object]:
        outcome = _require_registrar().register(request.name, request.role)
        if not outcome.success:
            raise HTTPException(
                status_code=403 if outcome.hit_limit else 400,
                detail=outcome.message or "Registration failed",
            )
        return {"success": True, "id": outcome.agent_id, "walletAddress": outcome.wallet_address}

    @app.post("/api/agents/bulk-register")
    def bulk_register(request: BulkRegisterRequest) -> dict[str, object]:
        outcomes = _require_registrar().bulk_register(request.count)
        results = [
            {
                "name": outcome.name,
                "success": outcome.success,
                "walletAddress": outcome.wallet_address,
                "message": outcome.message,
            }
            for outcome in outcomes
        ]
        return {"success": True, "results": results}

    @app.post("/api/agents/start-all")
    def start_all() -> dict[str, object]:
        return {"success": True, "count": supervisor.start_all()}

    @app.post("/api/agents/stop-all")
    def stop_all() -> dict[str, object]:
        return {"success": True, "count": supervisor.stop_all()}

    @app.post("/api/agents/delete-all")
    def delete_all() -> dict[str, object]:
        logger.info("[API] Deleting all agents")
        return {"success": True, "count": supervisor.delete_all()}

    @app.post("/api/agents/{agent_id}/start")
    def start_agent(agent_id: int) -> dict[str, object]:
        _require_record(agent_id)
        return {"success": True, "started": supervisor.start(agent_id)}

    @app.post("/api/agents/{agent_id}/stop")
    def stop_agent(agent_id: int) -> dict[str, object]:
        _require_record(agent_id)
        supervisor.stop(agent_id)
        return {"success": True}

    @app.post("/api/agents/{agent_id}/set-game")
    def set_game(agent_id: int, request: SetGameRequest) -> dict[str, object]:
        _require_record(agent_id)
        # A manual pin is a hint only; the old in-session id no longer applies.
        store.update(agent_id, game_id=request.game_id or None, agent_id=None)
        return {"success": True}

    @app.delete("/api/agents/{agent_id}")
    def delete_agent(agent_id: int) -> dict[str, object]:
        _require_record(agent_id)
        logger.info("[API] Deleting agent #%s", agent_id)
        supervisor.delete(agent_id)
        return {"success": True}

    @app.websocket("/ws/events")
    async def events_stream(websocket: WebSocket, agent: int | None = None) -> None:
        await websocket.accept()
        stream: FleetEventStream = app.state.events
        last_seq = 0
        try:
            while True:
                for event in stream.get_events_since(last_seq, agent_id=agent):
                    await websocket.send_json(event.to_message())
                    last_seq = event.seq
                await asyncio.sleep(0.1)
        except WebSocketDisconnect:
            logger.debug("Events WebSocket client disconnected")
        except Exception as e:
            logger.warning("Events stream error: %s", e)

    return app
