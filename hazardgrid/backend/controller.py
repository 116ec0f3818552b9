"""Game controller: authorizes, runs the reducers, talks to the hub and persists."""

from __future__ import annotations

import functools
from dataclasses import dataclass, replace
from typing import Any, Callable, TypeVar

from hazardgrid.backend.config import ConfigRegistry
from hazardgrid.backend.engine import apply_commit, apply_move, apply_reveal, require_phase
from hazardgrid.backend.errors import (
    AlreadyInitialized,
    GameError,
    InvalidSessionId,
    SelfPlayNotAllowed,
    SessionNotFound,
)
from hazardgrid.backend.journal import MAX_U32
from hazardgrid.backend.logger import get_logger
from hazardgrid.backend.models import CellRevealResult, GameSession, ProofMode, Role, SessionTokens
from hazardgrid.backend.proof import ProofGate
from hazardgrid.backend.security import Authorizer, CallerAuthorizer
from hazardgrid.backend.state import build_initial_session
from hazardgrid.backend.store import SessionStore

log = get_logger(__name__)

GAME_ID = "hazardgrid"

F = TypeVar("F", bound=Callable[..., Any])


def _logged(operation: str) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: GameController, session_id: int, *args: Any, **kwargs: Any) -> Any:
            try:
                return func(self, session_id, *args, **kwargs)
            except GameError as exc:
                log.warning("%s rejected for session %s: %s (%s)", operation, session_id, exc.code.name, exc.message)
                raise

        return wrapper  # type: ignore[return-value]

    return decorator


@dataclass(frozen=True)
class GameController:
    store: SessionStore
    config: ConfigRegistry
    authorizer: Authorizer
    game_id: str = GAME_ID

    def acting_as(self, caller: str) -> GameController:
        """Return a controller whose calls are authorized as `caller`."""
        return replace(self, authorizer=CallerAuthorizer(caller))

    def with_authorizer(self, authorizer: Authorizer) -> GameController:
        return replace(self, authorizer=authorizer)

    @_logged("start")
    def start(
        self,
        session_id: int,
        concealer: str,
        traverser: str,
        concealer_stake: int,
        traverser_stake: int,
        tokens: SessionTokens | None = None,
    ) -> GameSession:
        if concealer == traverser:
            raise SelfPlayNotAllowed(f"{concealer!r} cannot play against themselves")
        if not 0 <= session_id <= MAX_U32:
            raise InvalidSessionId(f"session id must fit in an unsigned 32-bit integer: {session_id}")
        if self.store.has_session(session_id):
            raise AlreadyInitialized(f"session {session_id} already exists")

        self.authorizer.require_auth(concealer, {"session_id": session_id, "stake": concealer_stake})
        self.authorizer.require_auth(traverser, {"session_id": session_id, "stake": traverser_stake})

        config = self.config.require()
        for expired_id in self.store.purge_expired():
            config.hub.release_game(expired_id)
            log.info("session %s expired and was purged", expired_id)

        config.hub.start_game(
            self.game_id,
            session_id,
            concealer,
            traverser,
            concealer_stake,
            traverser_stake,
        )

        session = build_initial_session(
            session_id=session_id,
            concealer=concealer,
            traverser=traverser,
            concealer_stake=concealer_stake,
            traverser_stake=traverser_stake,
        )
        self.store.create_session(session, tokens)
        log.info(
            "session %s started: moon %s, health %s",
            session_id,
            session.moon_phase.name,
            session.health,
        )
        return session

    @_logged("commit")
    def commit(self, session_id: int, commitment: bytes) -> GameSession:
        session = self.get_session(session_id)
        self.authorizer.require_auth(session.concealer, {"session_id": session_id, "commitment": commitment.hex()})

        result = apply_commit(session, commitment)
        self.store.save_session(result.session)
        log.info("session %s committed %s", session_id, commitment.hex())
        return result.session

    @_logged("move")
    def move(self, session_id: int, x: int, y: int) -> GameSession:
        session = self.get_session(session_id)
        self.authorizer.require_auth(session.traverser, {"session_id": session_id, "x": x, "y": y})

        result = apply_move(session, x, y)
        self.store.save_session(result.session)
        log.info("session %s turn %s: traverser moved to (%s, %s)", session_id, result.session.turn, x, y)
        return result.session

    @_logged("reveal")
    def reveal(
        self,
        session_id: int,
        journal_bytes: bytes,
        journal_hash: bytes,
        proof: bytes = b"",
    ) -> CellRevealResult:
        session = self.get_session(session_id)
        self.authorizer.require_auth(
            session.concealer,
            {"session_id": session_id, "journal_hash": journal_hash.hex()},
        )
        require_phase(session, "reveal")

        config = self.config.require()
        gate = ProofGate(verifier=config.verifier, circuit_id=config.circuit_id)
        verified = gate.verify(
            commitment=session.commitment,
            journal_bytes=journal_bytes,
            journal_hash=journal_hash,
            proof=proof,
            position=(session.x, session.y),
        )
        if verified.proof_mode is ProofMode.DEVELOPMENT:
            log.warning(
                "session %s accepted a development mode reveal: hash-checked only, not a zero-knowledge proof",
                session_id,
            )

        result = apply_reveal(session, verified)
        if result.finished:
            config.hub.end_game(session_id, result.session.winner is Role.CONCEALER)
        self.store.save_session(result.session)

        log.info(
            "session %s revealed (%s, %s) [%s]: hazard=%s damage=%s health=%s phase=%s",
            session_id,
            result.reveal.x,
            result.reveal.y,
            result.reveal.proof_mode.value,
            result.reveal.hazard_type,
            result.reveal.damage_dealt,
            result.session.health,
            result.session.phase.value,
        )
        return result.reveal

    def get_session(self, session_id: int) -> GameSession:
        session = self.store.get_session(session_id)
        if session is None:
            raise SessionNotFound(f"session {session_id} not found")
        return session
