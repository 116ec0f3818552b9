"""Domain models for session snapshots, reveal results and persistence contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from hazardgrid.backend.commitment import COMMITMENT_LEN
from hazardgrid.backend.moon import MoonPhase


class Phase(str, Enum):
    WAITING_FOR_COMMITMENT = "waiting_for_commitment"
    PLAYING = "playing"
    WAITING_FOR_PROOF = "waiting_for_proof"
    FINISHED = "finished"


class Role(str, Enum):
    CONCEALER = "CONCEALER"
    TRAVERSER = "TRAVERSER"


class ProofMode(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


EMPTY_COMMITMENT = bytes(COMMITMENT_LEN)


@dataclass(frozen=True)
class CellRevealResult:
    x: int
    y: int
    has_hazard: bool
    hazard_type: int
    damage_dealt: int
    proof_mode: ProofMode

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "has_hazard": self.has_hazard,
            "hazard_type": self.hazard_type,
            "damage_dealt": self.damage_dealt,
            "proof_mode": self.proof_mode.value,
        }


@dataclass(frozen=True)
class GameSession:
    session_id: int
    concealer: str
    traverser: str
    concealer_stake: int
    traverser_stake: int
    moon_phase: MoonPhase
    health: int
    x: int
    y: int
    phase: Phase = Phase.WAITING_FOR_COMMITMENT
    commitment: bytes = EMPTY_COMMITMENT
    turn: int = 0
    damage_reduction: int = 0
    revealed_cells: tuple[int, ...] = ()
    winner: Role | None = None
    log: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    def party(self, role: Role) -> str:
        return self.concealer if role is Role.CONCEALER else self.traverser

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "concealer": self.concealer,
            "traverser": self.traverser,
            "concealer_stake": self.concealer_stake,
            "traverser_stake": self.traverser_stake,
            "moon_phase": self.moon_phase.name,
            "health": self.health,
            "x": self.x,
            "y": self.y,
            "phase": self.phase.value,
            "commitment": self.commitment.hex(),
            "turn": self.turn,
            "damage_reduction": self.damage_reduction,
            "revealed_cells": list(self.revealed_cells),
            "winner": self.winner.value if self.winner is not None else None,
            "log": [dict(entry) for entry in self.log],
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> GameSession:
        winner = payload.get("winner")
        return cls(
            session_id=int(payload["session_id"]),
            concealer=payload["concealer"],
            traverser=payload["traverser"],
            concealer_stake=int(payload["concealer_stake"]),
            traverser_stake=int(payload["traverser_stake"]),
            moon_phase=MoonPhase[payload["moon_phase"]],
            health=int(payload["health"]),
            x=int(payload["x"]),
            y=int(payload["y"]),
            phase=Phase(payload["phase"]),
            commitment=bytes.fromhex(payload["commitment"]),
            turn=int(payload["turn"]),
            damage_reduction=int(payload["damage_reduction"]),
            revealed_cells=tuple(int(index) for index in payload.get("revealed_cells", [])),
            winner=Role(winner) if winner is not None else None,
            log=tuple(dict(entry) for entry in payload.get("log", [])),
        )


@dataclass(frozen=True)
class SessionAccess:
    session_id: int
    role: Role
    session: GameSession


@dataclass(frozen=True)
class SessionTokens:
    concealer_token: str
    traverser_token: str

