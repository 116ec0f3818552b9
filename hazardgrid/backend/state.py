"""State builders for session snapshots."""

from __future__ import annotations

from hazardgrid.backend.commitment import GRID_SIZE
from hazardgrid.backend.models import GameSession, Phase
from hazardgrid.backend.moon import determine_moon_phase, starting_health

START_X = GRID_SIZE // 2
START_Y = 0


def build_initial_session(
    session_id: int,
    concealer: str,
    traverser: str,
    concealer_stake: int,
    traverser_stake: int,
) -> GameSession:
    """Return a fresh session: Traverser at the top-row center, waiting for a commitment."""
    moon_phase = determine_moon_phase(session_id)
    return GameSession(
        session_id=session_id,
        concealer=concealer,
        traverser=traverser,
        concealer_stake=concealer_stake,
        traverser_stake=traverser_stake,
        moon_phase=moon_phase,
        health=starting_health(moon_phase),
        x=START_X,
        y=START_Y,
        phase=Phase.WAITING_FOR_COMMITMENT,
    )
