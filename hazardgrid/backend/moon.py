"""Session-deterministic moon phase modifier."""

from __future__ import annotations

from enum import IntEnum

from eth_utils import keccak

BASE_HEALTH = 6
FULL_MOON_HEALTH_BONUS = 2


class MoonPhase(IntEnum):
    FULL_MOON = 0
    NEW_MOON = 1
    BALANCED = 2


def determine_moon_phase(session_id: int) -> MoonPhase:
    """Bucket keccak256(be_u32(session_id))[0] % 100 into one of three phases.

    Off-line simulation and on-line adjudication must call this with the same id
    and get the same answer, so the input encoding is fixed to 4 big-endian bytes.
    """
    roll = keccak(session_id.to_bytes(4, "big"))[0] % 100
    if roll < 20:
        return MoonPhase.FULL_MOON
    if roll < 40:
        return MoonPhase.NEW_MOON
    return MoonPhase.BALANCED


def starting_health(moon_phase: MoonPhase) -> int:
    if moon_phase is MoonPhase.FULL_MOON:
        return BASE_HEALTH + FULL_MOON_HEALTH_BONUS
    return BASE_HEALTH
