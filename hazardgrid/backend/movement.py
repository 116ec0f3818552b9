"""Per-turn movement legality for the Traverser."""

from __future__ import annotations

from hazardgrid.backend.commitment import GRID_SIZE
from hazardgrid.backend.errors import InvalidMove


def validate_move(current_x: int, current_y: int, new_x: int, new_y: int, grid_size: int = GRID_SIZE) -> None:
    """Raise InvalidMove unless (new_x, new_y) is a legal next cell.

    Every move advances exactly one row. From row 0 the Traverser has not entered
    the grid yet and may pick any column; afterwards it drifts at most one column.
    """
    if new_y - current_y != 1:
        raise InvalidMove(f"must advance exactly one row: {current_y} -> {new_y}")
    if not (0 <= new_x < grid_size and 0 <= new_y < grid_size):
        raise InvalidMove(f"({new_x}, {new_y}) is outside the {grid_size}x{grid_size} grid")
    if current_y > 0 and abs(new_x - current_x) > 1:
        raise InvalidMove(f"column drift too large: {current_x} -> {new_x}")


def legal_moves(current_x: int, current_y: int, grid_size: int = GRID_SIZE) -> list[tuple[int, int]]:
    next_y = current_y + 1
    if next_y >= grid_size:
        return []
    if current_y == 0:
        columns = range(grid_size)
    else:
        columns = range(max(0, current_x - 1), min(grid_size, current_x + 2))
    return [(x, next_y) for x in columns]
