"""Security helpers: access tokens and the authorization oracle."""

from __future__ import annotations

import hashlib
import secrets
from collections.abc import Iterable
from typing import Any, Protocol

from hazardgrid.backend.errors import Unauthorized

TOKEN_BYTES = 24


def generate_token() -> str:
    """Generate a URL-safe token for session access."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def hash_token(token: str, server_salt: str) -> str:
    """Create deterministic token hash via sha256(token + server_salt)."""
    payload = f"{token}{server_salt}".encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def verify_token(raw_token: str, expected_hash: str, server_salt: str) -> bool:
    """Compare raw token against a stored hash."""
    return secrets.compare_digest(hash_token(raw_token, server_salt), expected_hash)


class Authorizer(Protocol):
    def require_auth(self, party: str, payload: dict[str, Any]) -> None:
        """Raise Unauthorized unless `party` approved an operation carrying `payload`."""


class CallerAuthorizer:
    """Approves only the party the transport already authenticated."""

    def __init__(self, caller: str) -> None:
        self.caller = caller

    def require_auth(self, party: str, payload: dict[str, Any]) -> None:
        if party != self.caller:
            raise Unauthorized(f"{self.caller!r} cannot act for {party!r}")


class ConsentAuthorizer:
    """Approves an explicit set of parties that consented out of band."""

    def __init__(self, parties: Iterable[str]) -> None:
        self.parties = frozenset(parties)

    def require_auth(self, party: str, payload: dict[str, Any]) -> None:
        if party not in self.parties:
            raise Unauthorized(f"{party!r} did not consent")
