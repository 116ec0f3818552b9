"""Hazard layouts and the commitment that binds the Concealer to one of them."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from hazardgrid.backend.errors import InvalidLayout

GRID_SIZE = 5
GRID_CELLS = GRID_SIZE * GRID_SIZE
GOAL_ROW = GRID_SIZE - 1
MAX_HAZARDS = 7
SALT_LEN = 16
COMMITMENT_LEN = 32


class HazardType(IntEnum):
    EMPTY = 0
    CALMING = 1
    PIERCING = 2
    CRUSHING = 3

    @property
    def is_hazard(self) -> bool:
        return self is not HazardType.EMPTY


def parse_hazard_type(value: int) -> HazardType | None:
    try:
        return HazardType(value)
    except ValueError:
        return None


def cell_index(x: int, y: int) -> int:
    return y * GRID_SIZE + x


@dataclass(frozen=True)
class HazardLayout:
    """Row-major 5x5 grid of hazard type bytes plus a random salt."""

    cells: bytes
    salt: bytes

    def cell(self, x: int, y: int) -> HazardType:
        if not (0 <= x < GRID_SIZE and 0 <= y < GRID_SIZE):
            return HazardType.EMPTY
        return parse_hazard_type(self.cells[cell_index(x, y)]) or HazardType.EMPTY

    def hazard_count(self) -> int:
        return sum(1 for value in self.cells if value != HazardType.EMPTY)

    def to_bytes(self) -> bytes:
        return bytes(self.cells) + bytes(self.salt)

    def validate(self) -> None:
        """Raise InvalidLayout unless the grid obeys the placement rules."""
        if len(self.cells) != GRID_CELLS:
            raise InvalidLayout(f"layout must have {GRID_CELLS} cells, got {len(self.cells)}")
        if len(self.salt) != SALT_LEN:
            raise InvalidLayout(f"salt must be {SALT_LEN} bytes, got {len(self.salt)}")

        count = 0
        for index, value in enumerate(self.cells):
            if parse_hazard_type(value) is None:
                raise InvalidLayout(f"unknown hazard type {value} at cell {index}")
            if value == HazardType.EMPTY:
                continue
            count += 1
            if index // GRID_SIZE == GOAL_ROW:
                raise InvalidLayout(f"hazard in goal row at cell {index}")

        if count > MAX_HAZARDS:
            raise InvalidLayout(f"too many hazards: {count} > {MAX_HAZARDS}")

    def to_dict(self) -> dict[str, Any]:
        return {"cells": list(self.cells), "salt": self.salt.hex()}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> HazardLayout:
        cells = payload.get("cells")
        salt = payload.get("salt")
        if not isinstance(cells, list) or not isinstance(salt, str):
            raise InvalidLayout("layout needs a 'cells' list and a hex 'salt'")
        try:
            return cls(cells=bytes(cells), salt=bytes.fromhex(salt))
        except ValueError as exc:
            raise InvalidLayout(str(exc)) from exc


def compute_commitment(layout: HazardLayout) -> bytes:
    """SHA-256 over cells || salt, no separators (both fields are fixed size)."""
    return hashlib.sha256(layout.to_bytes()).digest()


def sha256_digest(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()
