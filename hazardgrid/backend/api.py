"""FastAPI endpoints for session lifecycle, reveals and websocket sync."""

from __future__ import annotations

from collections import defaultdict
from typing import Any

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from hazardgrid.backend.config import ConfigRegistry, load_settings
from hazardgrid.backend.controller import GameController
from hazardgrid.backend.errors import ErrorCategory, GameError, NotInitialized, Unauthorized
from hazardgrid.backend.hub import create_hub
from hazardgrid.backend.models import GameSession, Phase, SessionTokens
from hazardgrid.backend.movement import legal_moves
from hazardgrid.backend.proof import RemoteProofVerifier
from hazardgrid.backend.security import ConsentAuthorizer, generate_token
from hazardgrid.backend.store import create_store

HEX_32 = r"^[0-9a-fA-F]{64}$"
HEX_ANY = r"^([0-9a-fA-F]{2})*$"

STATUS_BY_CATEGORY = {
    ErrorCategory.LOOKUP: 404,
    ErrorCategory.AUTHORIZATION: 403,
    ErrorCategory.PHASE: 409,
    ErrorCategory.MOVEMENT: 409,
    ErrorCategory.SETUP: 409,
    ErrorCategory.PROOF: 400,
    ErrorCategory.HUB: 502,
}


class StartSessionRequest(BaseModel):
    session_id: int = Field(ge=0, le=0xFFFFFFFF)
    concealer: str = Field(min_length=1, max_length=200)
    traverser: str = Field(min_length=1, max_length=200)
    concealer_stake: int = Field(ge=0)
    traverser_stake: int = Field(ge=0)


class StartSessionResponse(BaseModel):
    session_id: int
    concealer_token: str
    traverser_token: str


class SessionResponse(BaseModel):
    session: dict[str, Any]
    legal_moves: list[list[int]]


class CommitEnvelope(BaseModel):
    token: str = Field(min_length=1)
    commitment: str = Field(pattern=HEX_32)


class MoveEnvelope(BaseModel):
    token: str = Field(min_length=1)
    x: int
    y: int


class RevealEnvelope(BaseModel):
    token: str = Field(min_length=1)
    journal: str = Field(pattern=HEX_ANY)
    journal_hash: str = Field(pattern=HEX_32)
    proof: str = Field(default="", pattern=HEX_ANY)


class RevealResponse(BaseModel):
    result: dict[str, Any]
    session: dict[str, Any]


class SessionWebSocketHub:
    def __init__(self) -> None:
        self._connections: dict[int, set[WebSocket]] = defaultdict(set)

    async def connect(self, session_id: int, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections[session_id].add(websocket)

    def disconnect(self, session_id: int, websocket: WebSocket) -> None:
        connections = self._connections.get(session_id)
        if connections is None:
            return
        connections.discard(websocket)
        if not connections:
            self._connections.pop(session_id, None)

    async def send_session(self, websocket: WebSocket, session: dict[str, Any]) -> None:
        await websocket.send_json({"type": "session.full", "session": session})

    async def broadcast_session(self, session_id: int, session: dict[str, Any]) -> None:
        stale_connections: list[WebSocket] = []
        for websocket in self._connections.get(session_id, set()):
            try:
                await self.send_session(websocket, session)
            except RuntimeError:
                stale_connections.append(websocket)
        for websocket in stale_connections:
            self.disconnect(session_id=session_id, websocket=websocket)


def _session_response(session: GameSession) -> SessionResponse:
    moves = [] if session.phase is not Phase.PLAYING else legal_moves(session.x, session.y)
    return SessionResponse(session=session.to_dict(), legal_moves=[[x, y] for x, y in moves])


def _default_controller() -> GameController:
    settings = load_settings()
    registry = ConfigRegistry()
    verifier = RemoteProofVerifier(settings.verifier_url) if settings.verifier_url else None
    registry.initialize(
        admin=settings.admin,
        hub=create_hub(settings.database_url),
        verifier=verifier,
        circuit_id=settings.circuit_id,
    )
    store = create_store(
        database_url=settings.database_url,
        server_salt=settings.server_salt,
        ttl_seconds=settings.session_ttl_seconds,
    )
    return GameController(store=store, config=registry, authorizer=ConsentAuthorizer(()))


def create_app(controller: GameController | None = None) -> FastAPI:
    app = FastAPI(title="Hazard Grid API", version="0.1.0")
    game = controller if controller is not None else _default_controller()
    websocket_hub = SessionWebSocketHub()
    app.state.websocket_hub = websocket_hub
    app.state.controller = game

    async def publish_session(session: GameSession) -> None:
        await websocket_hub.broadcast_session(session_id=session.session_id, session=session.to_dict())

    def acting_controller(session_id: int, token: str) -> GameController:
        game.get_session(session_id)
        access = game.store.get_session_access(session_id=session_id, raw_token=token)
        if access is None:
            raise Unauthorized("token is not valid for this session")
        return game.acting_as(access.session.party(access.role))

    @app.exception_handler(GameError)
    async def handle_game_error(request: Request, exc: GameError) -> JSONResponse:
        status_code = 503 if isinstance(exc, NotInitialized) else STATUS_BY_CATEGORY[exc.category]
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    @app.get("/api/config")
    def get_config() -> dict[str, Any]:
        return game.config.describe()

    @app.post("/api/sessions", response_model=StartSessionResponse)
    def start_session(payload: StartSessionRequest) -> StartSessionResponse:
        tokens = SessionTokens(concealer_token=generate_token(), traverser_token=generate_token())
        consenting = game.with_authorizer(ConsentAuthorizer({payload.concealer, payload.traverser}))
        session = consenting.start(
            session_id=payload.session_id,
            concealer=payload.concealer,
            traverser=payload.traverser,
            concealer_stake=payload.concealer_stake,
            traverser_stake=payload.traverser_stake,
            tokens=tokens,
        )
        return StartSessionResponse(
            session_id=session.session_id,
            concealer_token=tokens.concealer_token,
            traverser_token=tokens.traverser_token,
        )

    @app.get("/api/sessions/{session_id}", response_model=SessionResponse)
    def get_session(session_id: int) -> SessionResponse:
        return _session_response(game.get_session(session_id))

    @app.post("/api/sessions/{session_id}/commit", response_model=SessionResponse)
    async def post_commit(session_id: int, payload: CommitEnvelope) -> SessionResponse:
        session = acting_controller(session_id, payload.token).commit(session_id, bytes.fromhex(payload.commitment))
        await publish_session(session)
        return _session_response(session)

    @app.post("/api/sessions/{session_id}/move", response_model=SessionResponse)
    async def post_move(session_id: int, payload: MoveEnvelope) -> SessionResponse:
        session = acting_controller(session_id, payload.token).move(session_id, payload.x, payload.y)
        await publish_session(session)
        return _session_response(session)

    @app.post("/api/sessions/{session_id}/reveal", response_model=RevealResponse)
    async def post_reveal(session_id: int, payload: RevealEnvelope) -> RevealResponse:
        # Proof verification may block on the remote verifier.
        result = await run_in_threadpool(
            acting_controller(session_id, payload.token).reveal,
            session_id,
            journal_bytes=bytes.fromhex(payload.journal),
            journal_hash=bytes.fromhex(payload.journal_hash),
            proof=bytes.fromhex(payload.proof),
        )
        session = game.get_session(session_id)
        await publish_session(session)
        return RevealResponse(result=result.to_dict(), session=session.to_dict())

    @app.websocket("/ws/sessions/{session_id}")
    async def session_ws(websocket: WebSocket, session_id: int) -> None:
        token = websocket.query_params.get("token")
        if token is None or token == "":
            await websocket.close(code=1008)
            return
        access = game.store.get_session_access(session_id=session_id, raw_token=token)
        if access is None:
            await websocket.close(code=1008)
            return

        await websocket_hub.connect(session_id=session_id, websocket=websocket)
        await websocket_hub.send_session(websocket=websocket, session=access.session.to_dict())

        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            websocket_hub.disconnect(session_id=session_id, websocket=websocket)

    return app


app = create_app()
