"""Terminal-condition check run after every reveal."""

from __future__ import annotations

from enum import Enum

from hazardgrid.backend.commitment import GOAL_ROW


class Outcome(str, Enum):
    CONTINUE = "continue"
    CONCEALER_WINS = "concealer_wins"
    TRAVERSER_WINS = "traverser_wins"


def evaluate_outcome(health: int, traverser_y: int, goal_row: int = GOAL_ROW) -> Outcome:
    # Death is checked before the goal row.
    if health == 0:
        return Outcome.CONCEALER_WINS
    if traverser_y >= goal_row:
        return Outcome.TRAVERSER_WINS
    return Outcome.CONTINUE
