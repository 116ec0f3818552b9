"""Fixed-layout binary codec for the cell-reveal journal.

The journal is the public output of the reveal circuit. The circuit, the
off-line prover and the on-line verifier must agree on it bit for bit:

    offset  len  field
    0       32   commitment
    32      1    x
    33      1    y
    34      1    has_hazard (0/1)
    35      1    hazard_type (0 = empty, 1-3 = hazard types)
    36      1    damage
    37      4    session_id (little-endian u32)
    41      32   committer public key
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

COMMITMENT_LEN = 32
KEY_LEN = 32

COMMITMENT_OFFSET = 0
X_OFFSET = 32
Y_OFFSET = 33
HAS_HAZARD_OFFSET = 34
HAZARD_TYPE_OFFSET = 35
DAMAGE_OFFSET = 36
SESSION_ID_OFFSET = 37
COMMITTER_KEY_OFFSET = 41
JOURNAL_LEN = COMMITTER_KEY_OFFSET + KEY_LEN

_LAYOUT = struct.Struct("<32sBBBBBI32s")

assert _LAYOUT.size == JOURNAL_LEN == 73

MAX_U8 = 0xFF
MAX_U32 = 0xFFFFFFFF


class JournalFormatError(ValueError):
    """Raised when journal bytes or fields do not fit the fixed layout."""


@dataclass(frozen=True)
class Journal:
    commitment: bytes
    x: int
    y: int
    has_hazard: bool
    hazard_type: int
    damage: int
    session_id: int
    committer_key: bytes


def encode_journal(journal: Journal) -> bytes:
    """Serialize a journal into its 73-byte wire form."""
    if len(journal.commitment) != COMMITMENT_LEN:
        raise JournalFormatError(f"commitment must be {COMMITMENT_LEN} bytes, got {len(journal.commitment)}")
    if len(journal.committer_key) != KEY_LEN:
        raise JournalFormatError(f"committer key must be {KEY_LEN} bytes, got {len(journal.committer_key)}")
    for name in ("x", "y", "hazard_type", "damage"):
        value = getattr(journal, name)
        if not 0 <= value <= MAX_U8:
            raise JournalFormatError(f"{name} out of range: {value}")
    if not 0 <= journal.session_id <= MAX_U32:
        raise JournalFormatError(f"session_id out of range: {journal.session_id}")

    return _LAYOUT.pack(
        bytes(journal.commitment),
        journal.x,
        journal.y,
        1 if journal.has_hazard else 0,
        journal.hazard_type,
        journal.damage,
        journal.session_id,
        bytes(journal.committer_key),
    )


def decode_journal(data: bytes) -> Journal:
    """Parse 73 journal bytes. Any other length fails before any field is read."""
    if len(data) != JOURNAL_LEN:
        raise JournalFormatError(f"journal must be {JOURNAL_LEN} bytes, got {len(data)}")
    commitment, x, y, has_hazard, hazard_type, damage, session_id, committer_key = _LAYOUT.unpack(bytes(data))
    return Journal(
        commitment=commitment,
        x=x,
        y=y,
        has_hazard=has_hazard != 0,
        hazard_type=hazard_type,
        damage=damage,
        session_id=session_id,
        committer_key=committer_key,
    )


def extract_commitment(data: bytes) -> bytes | None:
    """Return the embedded commitment, or None when the buffer is too short to hold one."""
    if len(data) < COMMITMENT_LEN:
        return None
    return bytes(data[COMMITMENT_OFFSET : COMMITMENT_OFFSET + COMMITMENT_LEN])
