"""Off-line development-mode producer of cell-reveal journals.

Builds exactly the journal the reveal circuit would commit, but without running
the circuit, so the proof blob is empty. The verifier accepts such bundles only
in development mode; they carry no soundness guarantee.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from hazardgrid.backend.commitment import GRID_SIZE, HazardLayout, HazardType, compute_commitment, sha256_digest
from hazardgrid.backend.errors import InvalidCoordinates
from hazardgrid.backend.journal import KEY_LEN, Journal, encode_journal

DEV_CIRCUIT_ID = bytes(32)

# Damage byte the reveal circuit commits per hazard type. Adjudication ignores it
# and recomputes damage from the type.
JOURNAL_DAMAGE = {
    HazardType.EMPTY: 0,
    HazardType.CALMING: 1,
    HazardType.PIERCING: 2,
    HazardType.CRUSHING: 1,
}


@dataclass(frozen=True)
class ProofBundle:
    journal: Journal
    journal_bytes: bytes
    journal_hash: bytes
    proof: bytes
    circuit_id: bytes
    is_dev_mode: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "dev_mode": self.is_dev_mode,
            "journal_bytes": self.journal_bytes.hex(),
            "journal_hash": self.journal_hash.hex(),
            "proof": self.proof.hex(),
            "circuit_id": self.circuit_id.hex(),
            "output": {
                "x": self.journal.x,
                "y": self.journal.y,
                "has_hazard": self.journal.has_hazard,
                "hazard_type": self.journal.hazard_type,
                "damage": self.journal.damage,
                "session_id": self.journal.session_id,
            },
        }


def build_dev_reveal(
    layout: HazardLayout,
    x: int,
    y: int,
    session_id: int,
    committer_key: bytes,
) -> ProofBundle:
    if not (0 <= x < GRID_SIZE and 0 <= y < GRID_SIZE):
        raise InvalidCoordinates(f"coordinates out of bounds: ({x}, {y})")
    if len(committer_key) != KEY_LEN:
        raise ValueError(f"committer key must be {KEY_LEN} bytes")
    layout.validate()

    hazard = layout.cell(x, y)
    journal = Journal(
        commitment=compute_commitment(layout),
        x=x,
        y=y,
        has_hazard=hazard.is_hazard,
        hazard_type=int(hazard),
        damage=JOURNAL_DAMAGE[hazard],
        session_id=session_id,
        committer_key=bytes(committer_key),
    )
    journal_bytes = encode_journal(journal)
    return ProofBundle(
        journal=journal,
        journal_bytes=journal_bytes,
        journal_hash=sha256_digest(journal_bytes),
        proof=b"",
        circuit_id=DEV_CIRCUIT_ID,
        is_dev_mode=True,
    )
