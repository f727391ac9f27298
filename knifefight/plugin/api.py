"""FastAPI sandbox that drives the duel controller against an in-memory host."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field, ValidationError

from .config import KnifeFightConfig, load_config, load_settings, save_config
from .controller import DuelController
from .host import EVENT_MAP_START, EVENT_MATCH_START, EVENT_ROUND_END, EVENT_ROUND_START, Team
from .models import Vector
from .simulation import InMemoryHost

logger = logging.getLogger(__name__)

SANDBOX_EVENTS = {
    "round_start": EVENT_ROUND_START,
    "match_start": EVENT_MATCH_START,
    "round_end": EVENT_ROUND_END,
    "map_start": EVENT_MAP_START,
}


class CreatePlayerRequest(BaseModel):
    name: str = Field(min_length=1, max_length=64)
    team: Team
    money: int | None = Field(default=800, ge=0)
    weapons: list[str] = Field(default_factory=list)
    position: tuple[float, float, float] = (0.0, 0.0, 0.0)


class PlayerResponse(BaseModel):
    player: dict[str, Any]


class PlayersResponse(BaseModel):
    players: list[dict[str, Any]]


class EventEnvelope(BaseModel):
    map_name: str | None = None


class AdvanceClockRequest(BaseModel):
    seconds: float = Field(ge=0)


class DuelStateResponse(BaseModel):
    state: dict[str, Any]


class DuelWebSocketHub:
    def __init__(self) -> None:
        self._connections: set[WebSocket] = set()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections.add(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)

    async def send_state(self, websocket: WebSocket, state: dict[str, Any]) -> None:
        await websocket.send_json({"type": "state.full", "state": state})

    async def broadcast_state(self, state: dict[str, Any]) -> None:
        stale_connections: list[WebSocket] = []
        for websocket in list(self._connections):
            try:
                await self.send_state(websocket, state)
            except RuntimeError:
                stale_connections.append(websocket)
        for websocket in stale_connections:
            self.disconnect(websocket)


def build_state(host: InMemoryHost, controller: DuelController) -> dict[str, Any]:
    state = controller.snapshot()
    state["clock"] = host.scheduler.now
    state["mapName"] = host.map_name
    state["chat"] = list(host.chat)
    state["players"] = [player.to_dict() for player in host.get_players()]
    return state


def create_app(
    host: InMemoryHost | None = None,
    config: KnifeFightConfig | None = None,
    config_path: Path | None = None,
) -> FastAPI:
    app = FastAPI(title="Knife Fight Sandbox", version="1.0.0")
    sandbox_host = host if host is not None else InMemoryHost()
    if config is None:
        config = load_config(config_path) if config_path is not None else KnifeFightConfig()
    controller = DuelController(host=sandbox_host, config=config, clock=lambda: sandbox_host.scheduler.now)
    controller.load()
    websocket_hub = DuelWebSocketHub()
    app.state.host = sandbox_host
    app.state.controller = controller
    app.state.websocket_hub = websocket_hub

    async def publish_state() -> dict[str, Any]:
        state = build_state(sandbox_host, controller)
        await websocket_hub.broadcast_state(state)
        return state

    def get_host() -> InMemoryHost:
        return sandbox_host

    @app.post("/api/players", response_model=PlayerResponse)
    async def create_player(
        payload: CreatePlayerRequest,
        local_host: InMemoryHost = Depends(get_host),
    ) -> PlayerResponse:
        player = local_host.add_player(
            name=payload.name,
            team=payload.team,
            money=payload.money,
            weapons=payload.weapons,
            position=Vector(*payload.position),
        )
        await publish_state()
        return PlayerResponse(player=player.to_dict())

    @app.get("/api/players", response_model=PlayersResponse)
    def list_players(local_host: InMemoryHost = Depends(get_host)) -> PlayersResponse:
        return PlayersResponse(players=[player.to_dict() for player in local_host.get_players()])

    @app.post("/api/players/{player_id}/kill", response_model=DuelStateResponse)
    async def kill_player(player_id: int, local_host: InMemoryHost = Depends(get_host)) -> DuelStateResponse:
        player = local_host.find_player(player_id)
        if player is None:
            raise HTTPException(status_code=404, detail="Player not found")
        player.kill()
        local_host.run_frame()
        return DuelStateResponse(state=await publish_state())

    @app.post("/api/events/{event_name}", response_model=DuelStateResponse)
    async def post_event(
        event_name: str,
        payload: EventEnvelope | None = None,
        local_host: InMemoryHost = Depends(get_host),
    ) -> DuelStateResponse:
        host_event = SANDBOX_EVENTS.get(event_name)
        if host_event is None:
            raise HTTPException(status_code=422, detail=f"Unknown event: {event_name}")
        event_payload: dict[str, Any] = {}
        if host_event == EVENT_MAP_START:
            map_name = payload.map_name if payload is not None else None
            local_host.map_name = map_name
            event_payload["map_name"] = map_name
        if host_event == EVENT_ROUND_START:
            local_host.respawn_all()
        local_host.fire_event(host_event, event_payload)
        local_host.run_frame()
        return DuelStateResponse(state=await publish_state())

    @app.post("/api/clock/advance", response_model=DuelStateResponse)
    async def advance_clock(
        payload: AdvanceClockRequest,
        local_host: InMemoryHost = Depends(get_host),
    ) -> DuelStateResponse:
        local_host.advance(payload.seconds)
        return DuelStateResponse(state=await publish_state())

    @app.get("/api/duel", response_model=DuelStateResponse)
    def get_duel(local_host: InMemoryHost = Depends(get_host)) -> DuelStateResponse:
        return DuelStateResponse(state=build_state(local_host, controller))

    @app.get("/api/config")
    def get_config() -> dict[str, Any]:
        return controller.config.to_json_dict()

    @app.put("/api/config")
    async def put_config(payload: dict[str, Any]) -> dict[str, Any]:
        try:
            updated = KnifeFightConfig.model_validate(payload)
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False)) from exc
        controller.update_config(updated)
        if config_path is not None:
            save_config(updated, config_path)
        logger.info("Config updated through the sandbox API")
        await publish_state()
        return updated.to_json_dict()

    @app.websocket("/ws/duel")
    async def duel_ws(websocket: WebSocket) -> None:
        await websocket_hub.connect(websocket)
        await websocket_hub.send_state(websocket, build_state(sandbox_host, controller))
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            websocket_hub.disconnect(websocket)

    return app


def _default_app() -> FastAPI:
    settings = load_settings()
    return create_app(config_path=settings.config_path)


app = _default_app()
