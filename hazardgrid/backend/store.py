"""Persistence interfaces and implementations for session snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import json
from typing import Any, Callable, Protocol
import uuid

from hazardgrid.backend.config import DEFAULT_SESSION_TTL_SECONDS
from hazardgrid.backend.errors import AlreadyInitialized, SessionNotFound
from hazardgrid.backend.models import GameSession, Role, SessionAccess, SessionTokens
from hazardgrid.backend.security import hash_token, verify_token


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore(Protocol):
    def create_session(self, session: GameSession, tokens: SessionTokens | None = None) -> None:
        """Persist a brand-new session; fail with AlreadyInitialized if the id is taken."""

    def has_session(self, session_id: int) -> bool:
        """Return True while a record for the id exists and has not expired."""

    def get_session(self, session_id: int) -> GameSession | None:
        """Return the current snapshot, or None when unknown or expired."""

    def get_session_access(self, session_id: int, raw_token: str) -> SessionAccess | None:
        """Return the caller's role and the snapshot when the token is valid."""

    def save_session(self, session: GameSession) -> int:
        """Persist a new snapshot and return its version."""

    def purge_expired(self) -> list[int]:
        """Drop every expired record and return the freed session ids."""


@dataclass
class InMemorySessionStore:
    server_salt: str
    ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS
    clock: Callable[[], datetime] = field(default=_utc_now)

    def __post_init__(self) -> None:
        self._sessions: dict[int, dict[str, Any]] = {}

    def create_session(self, session: GameSession, tokens: SessionTokens | None = None) -> None:
        if self.has_session(session.session_id):
            raise AlreadyInitialized(f"session {session.session_id} already exists")
        now = self.clock()
        token_hashes: dict[Role, str] = {}
        if tokens is not None:
            token_hashes[Role.CONCEALER] = hash_token(tokens.concealer_token, self.server_salt)
            token_hashes[Role.TRAVERSER] = hash_token(tokens.traverser_token, self.server_salt)
        self._sessions[session.session_id] = {
            "session": session,
            "version": 1,
            "tokens": token_hashes,
            "createdAt": now,
            "expiresAt": now + timedelta(seconds=self.ttl_seconds),
        }

    def has_session(self, session_id: int) -> bool:
        return self._live_record(session_id) is not None

    def get_session(self, session_id: int) -> GameSession | None:
        record = self._live_record(session_id)
        if record is None:
            return None
        return record["session"]

    def get_session_access(self, session_id: int, raw_token: str) -> SessionAccess | None:
        record = self._live_record(session_id)
        if record is None:
            return None

        for role, token_hash in record["tokens"].items():
            if verify_token(raw_token, token_hash, self.server_salt):
                return SessionAccess(session_id=session_id, role=role, session=record["session"])
        return None

    def save_session(self, session: GameSession) -> int:
        record = self._live_record(session.session_id)
        if record is None:
            raise SessionNotFound(f"session {session.session_id} not found")
        record["session"] = session
        record["version"] += 1
        record["expiresAt"] = self.clock() + timedelta(seconds=self.ttl_seconds)
        return record["version"]

    def purge_expired(self) -> list[int]:
        now = self.clock()
        expired = sorted(session_id for session_id, record in self._sessions.items() if record["expiresAt"] <= now)
        for session_id in expired:
            del self._sessions[session_id]
        return expired

    def _live_record(self, session_id: int) -> dict[str, Any] | None:
        record = self._sessions.get(session_id)
        if record is None:
            return None
        if record["expiresAt"] <= self.clock():
            return None
        return record


@dataclass
class PostgresSessionStore:
    database_url: str
    server_salt: str
    ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS

    def _connect(self) -> Any:
        import psycopg

        return psycopg.connect(self.database_url)

    def create_session(self, session: GameSession, tokens: SessionTokens | None = None) -> None:
        now = _utc_now()
        expires_at = now + timedelta(seconds=self.ttl_seconds)

        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    DELETE FROM sessions WHERE id = %s AND expires_at <= %s
                    """,
                    (session.session_id, now),
                )
                cur.execute(
                    """
                    INSERT INTO sessions (id, phase, current_version, created_at, updated_at, expires_at)
                    VALUES (%s, %s, 1, %s, %s, %s)
                    ON CONFLICT (id) DO NOTHING
                    RETURNING id
                    """,
                    (session.session_id, session.phase.value, now, now, expires_at),
                )
                if cur.fetchone() is None:
                    raise AlreadyInitialized(f"session {session.session_id} already exists")
                if tokens is not None:
                    cur.execute(
                        """
                        INSERT INTO session_tokens (id, session_id, role, token_hash, created_at, revoked_at)
                        VALUES (%s, %s, 'CONCEALER', %s, %s, NULL), (%s, %s, 'TRAVERSER', %s, %s, NULL)
                        """,
                        (
                            str(uuid.uuid4()),
                            session.session_id,
                            hash_token(tokens.concealer_token, self.server_salt),
                            now,
                            str(uuid.uuid4()),
                            session.session_id,
                            hash_token(tokens.traverser_token, self.server_salt),
                            now,
                        ),
                    )
                cur.execute(
                    """
                    INSERT INTO session_snapshots (id, session_id, version, created_at, state_json)
                    VALUES (%s, %s, %s, %s, %s::jsonb)
                    """,
                    (str(uuid.uuid4()), session.session_id, 1, now, json.dumps(session.to_dict())),
                )
            conn.commit()

    def has_session(self, session_id: int) -> bool:
        return self.get_session(session_id) is not None

    def get_session(self, session_id: int) -> GameSession | None:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT s.state_json
                    FROM sessions e
                    JOIN session_snapshots s
                      ON s.session_id = e.id AND s.version = e.current_version
                    WHERE e.id = %s
                      AND e.expires_at > %s
                    """,
                    (session_id, _utc_now()),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return GameSession.from_dict(_load_json(row[0]))

    def get_session_access(self, session_id: int, raw_token: str) -> SessionAccess | None:
        token_hash = hash_token(raw_token, self.server_salt)
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT t.role, s.state_json
                    FROM sessions e
                    JOIN session_snapshots s
                      ON s.session_id = e.id AND s.version = e.current_version
                    JOIN session_tokens t
                      ON t.session_id = e.id
                    WHERE e.id = %s
                      AND e.expires_at > %s
                      AND t.token_hash = %s
                      AND t.revoked_at IS NULL
                    """,
                    (session_id, _utc_now(), token_hash),
                )
                row = cur.fetchone()

        if row is None:
            return None

        role, state_json = row
        return SessionAccess(
            session_id=session_id,
            role=Role(role),
            session=GameSession.from_dict(_load_json(state_json)),
        )

    def save_session(self, session: GameSession) -> int:
        now = _utc_now()
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE sessions
                    SET current_version = current_version + 1, phase = %s, updated_at = %s, expires_at = %s
                    WHERE id = %s AND expires_at > %s
                    RETURNING current_version
                    """,
                    (
                        session.phase.value,
                        now,
                        now + timedelta(seconds=self.ttl_seconds),
                        session.session_id,
                        now,
                    ),
                )
                row = cur.fetchone()
                if row is None:
                    raise SessionNotFound(f"session {session.session_id} not found")
                version = int(row[0])
                cur.execute(
                    """
                    INSERT INTO session_snapshots (id, session_id, version, created_at, state_json)
                    VALUES (%s, %s, %s, %s, %s::jsonb)
                    """,
                    (str(uuid.uuid4()), session.session_id, version, now, json.dumps(session.to_dict())),
                )
            conn.commit()

        return version

    def purge_expired(self) -> list[int]:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    DELETE FROM sessions WHERE expires_at <= %s RETURNING id
                    """,
                    (_utc_now(),),
                )
                expired = sorted(int(row[0]) for row in cur.fetchall())
            conn.commit()
        return expired


def _load_json(state_json: Any) -> dict[str, Any]:
    return state_json if isinstance(state_json, dict) else json.loads(state_json)


def create_store(
    database_url: str | None,
    server_salt: str,
    ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
) -> SessionStore:
    if database_url:
        return PostgresSessionStore(database_url=database_url, server_salt=server_salt, ttl_seconds=ttl_seconds)
    return InMemorySessionStore(server_salt=server_salt, ttl_seconds=ttl_seconds)
