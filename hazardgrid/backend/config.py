"""Configuration helpers for backend runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any

from hazardgrid.backend.errors import AlreadyInitialized, NotInitialized
from hazardgrid.backend.hub import GameHub
from hazardgrid.backend.proof import ProofVerifier
from hazardgrid.backend.security import Authorizer

CIRCUIT_ID_LEN = 32
DEFAULT_SESSION_TTL_SECONDS = 30 * 24 * 60 * 60
TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class BackendSettings:
    server_salt: str
    database_url: str | None
    host: str
    port: int
    admin: str
    circuit_id: bytes
    verifier_url: str | None
    session_ttl_seconds: int
    log_level: str
    log_json: bool
    log_file: str | None


def load_settings() -> BackendSettings:
    port_raw = os.getenv("HAZARDGRID_PORT", "8000")
    ttl_raw = os.getenv("HAZARDGRID_SESSION_TTL_SECONDS", str(DEFAULT_SESSION_TTL_SECONDS))
    circuit_id = bytes.fromhex(os.getenv("HAZARDGRID_CIRCUIT_ID", "00" * CIRCUIT_ID_LEN))
    if len(circuit_id) != CIRCUIT_ID_LEN:
        raise ValueError(f"HAZARDGRID_CIRCUIT_ID must be {CIRCUIT_ID_LEN} bytes of hex")
    return BackendSettings(
        server_salt=os.getenv("HAZARDGRID_SERVER_SALT", "dev-salt"),
        database_url=os.getenv("HAZARDGRID_DATABASE_URL"),
        host=os.getenv("HAZARDGRID_HOST", "127.0.0.1"),
        port=int(port_raw),
        admin=os.getenv("HAZARDGRID_ADMIN", "admin"),
        circuit_id=circuit_id,
        verifier_url=os.getenv("HAZARDGRID_VERIFIER_URL"),
        session_ttl_seconds=int(ttl_raw),
        log_level=os.getenv("HAZARDGRID_LOG_LEVEL", "INFO"),
        log_json=os.getenv("HAZARDGRID_LOG_JSON", "").lower() in TRUTHY,
        log_file=os.getenv("HAZARDGRID_LOG_FILE") or None,
    )


@dataclass(frozen=True)
class GameConfig:
    admin: str
    hub: GameHub
    verifier: ProofVerifier | None
    circuit_id: bytes


class ConfigRegistry:
    """Process-wide game configuration with a one-time init and admin-gated setters."""

    def __init__(self) -> None:
        self._config: GameConfig | None = None

    @property
    def initialized(self) -> bool:
        return self._config is not None

    def initialize(
        self,
        admin: str,
        hub: GameHub,
        verifier: ProofVerifier | None,
        circuit_id: bytes,
    ) -> GameConfig:
        if self._config is not None:
            raise AlreadyInitialized("configuration is already initialized")
        _check_circuit_id(circuit_id)
        self._config = GameConfig(admin=admin, hub=hub, verifier=verifier, circuit_id=bytes(circuit_id))
        return self._config

    def require(self) -> GameConfig:
        if self._config is None:
            raise NotInitialized("configuration has not been initialized")
        return self._config

    def set_hub(self, new_hub: GameHub, authorizer: Authorizer) -> GameConfig:
        config = self.require()
        authorizer.require_auth(config.admin, {"operation": "set_hub"})
        self._config = replace(config, hub=new_hub)
        return self._config

    def set_verifier(
        self,
        verifier: ProofVerifier | None,
        circuit_id: bytes,
        authorizer: Authorizer,
    ) -> GameConfig:
        config = self.require()
        authorizer.require_auth(config.admin, {"operation": "set_verifier", "circuit_id": circuit_id.hex()})
        _check_circuit_id(circuit_id)
        self._config = replace(config, verifier=verifier, circuit_id=bytes(circuit_id))
        return self._config

    def describe(self) -> dict[str, Any]:
        config = self.require()
        return {
            "admin": config.admin,
            "circuit_id": config.circuit_id.hex(),
            "production_proofs": config.verifier is not None,
        }


def _check_circuit_id(circuit_id: bytes) -> None:
    if len(circuit_id) != CIRCUIT_ID_LEN:
        raise ValueError(f"circuit id must be {CIRCUIT_ID_LEN} bytes, got {len(circuit_id)}")
