"""Reducers for the session state machine.

Each reducer takes a snapshot and returns a new one; nothing is mutated in
place, so a reducer that raises leaves the caller's snapshot untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from hazardgrid.backend.commitment import COMMITMENT_LEN, HazardType, cell_index
from hazardgrid.backend.damage import resolve_damage
from hazardgrid.backend.errors import CommitmentMismatch, InvalidPhase
from hazardgrid.backend.models import CellRevealResult, GameSession, Phase, Role
from hazardgrid.backend.movement import validate_move
from hazardgrid.backend.outcome import Outcome, evaluate_outcome

# The only phase in which each operation is legal. Finished admits nothing.
LEGAL_PHASES: dict[str, Phase] = {
    "commit": Phase.WAITING_FOR_COMMITMENT,
    "move": Phase.PLAYING,
    "reveal": Phase.WAITING_FOR_PROOF,
}

WINNERS: dict[Outcome, Role] = {
    Outcome.CONCEALER_WINS: Role.CONCEALER,
    Outcome.TRAVERSER_WINS: Role.TRAVERSER,
}


@dataclass(frozen=True)
class ActionResult:
    session: GameSession
    engine_events: list[dict[str, Any]]
    reveal: CellRevealResult | None = None
    outcome: Outcome | None = None

    @property
    def finished(self) -> bool:
        return self.session.phase is Phase.FINISHED


def require_phase(session: GameSession, operation: str) -> None:
    expected = LEGAL_PHASES[operation]
    if session.phase is not expected:
        raise InvalidPhase(f"{operation} needs phase {expected.value}, session is {session.phase.value}")


def apply_commit(session: GameSession, commitment: bytes) -> ActionResult:
    require_phase(session, "commit")
    if len(commitment) != COMMITMENT_LEN:
        raise CommitmentMismatch(f"commitment must be {COMMITMENT_LEN} bytes, got {len(commitment)}")

    event = {"kind": "committed", "commitment": bytes(commitment).hex()}
    next_session = replace(
        session,
        commitment=bytes(commitment),
        phase=Phase.PLAYING,
        log=session.log + (event,),
    )
    return ActionResult(session=next_session, engine_events=[event])


def apply_move(session: GameSession, x: int, y: int) -> ActionResult:
    require_phase(session, "move")
    validate_move(session.x, session.y, x, y)

    turn = session.turn + 1
    event = {"kind": "moved", "turn": turn, "x": x, "y": y}
    next_session = replace(
        session,
        x=x,
        y=y,
        turn=turn,
        phase=Phase.WAITING_FOR_PROOF,
        log=session.log + (event,),
    )
    return ActionResult(session=next_session, engine_events=[event])


def apply_reveal(session: GameSession, reveal: CellRevealResult) -> ActionResult:
    """Resolve a verified reveal: damage, status effect, then the terminal check."""
    require_phase(session, "reveal")

    hazard = HazardType(reveal.hazard_type) if reveal.has_hazard else HazardType.EMPTY
    damage = resolve_damage(hazard, session.moon_phase, session.damage_reduction, session.health)
    outcome = evaluate_outcome(damage.health, session.y)
    resolved = replace(reveal, damage_dealt=damage.damage)

    events: list[dict[str, Any]] = [
        {
            "kind": "revealed",
            "turn": session.turn,
            "x": reveal.x,
            "y": reveal.y,
            "has_hazard": reveal.has_hazard,
            "proof_mode": reveal.proof_mode.value,
        }
    ]
    if hazard.is_hazard:
        events.append(
            {
                "kind": "hazard_hit",
                "hazard_type": int(hazard),
                "damage": damage.damage,
                "health": damage.health,
                "damage_reduction": damage.damage_reduction,
            }
        )

    winner = WINNERS.get(outcome)
    if winner is not None:
        events.append({"kind": "game_over", "winner": winner.value})

    next_session = replace(
        session,
        health=damage.health,
        damage_reduction=damage.damage_reduction,
        revealed_cells=session.revealed_cells + (cell_index(reveal.x, reveal.y),),
        phase=Phase.FINISHED if winner is not None else Phase.PLAYING,
        winner=winner,
        log=session.log + tuple(events),
    )
    return ActionResult(session=next_session, engine_events=events, reveal=resolved, outcome=outcome)
