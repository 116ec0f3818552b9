"""Damage resolution for revealed hazards."""

from __future__ import annotations

from dataclasses import dataclass

from hazardgrid.backend.commitment import HazardType
from hazardgrid.backend.moon import MoonPhase

BASE_DAMAGE = {
    HazardType.CALMING: 1,
    HazardType.PIERCING: 2,
    HazardType.CRUSHING: 3,
}
MINIMUM_HAZARD_DAMAGE = 1
CALMING_REDUCTION = 1


@dataclass(frozen=True)
class DamageResult:
    damage: int
    damage_reduction: int
    health: int


def apply_moon_modifier(base_damage: int, moon_phase: MoonPhase) -> int:
    if moon_phase is MoonPhase.FULL_MOON:
        return max(0, base_damage - 1)
    if moon_phase is MoonPhase.NEW_MOON:
        return base_damage + 1
    return base_damage


def resolve_damage(hazard: HazardType, moon_phase: MoonPhase, damage_reduction: int, health: int) -> DamageResult:
    """Apply a revealed cell to the Traverser.

    Empty cells deal nothing and leave the pending calming reduction in place.
    A hazard consumes the reduction, always deals at least one point, and a
    calming hazard arms a fresh reduction for the next hazard hit.
    """
    if not hazard.is_hazard:
        return DamageResult(damage=0, damage_reduction=damage_reduction, health=health)

    moon_adjusted = apply_moon_modifier(BASE_DAMAGE[hazard], moon_phase)
    damage = max(MINIMUM_HAZARD_DAMAGE, moon_adjusted - damage_reduction)
    next_reduction = CALMING_REDUCTION if hazard is HazardType.CALMING else 0
    return DamageResult(
        damage=damage,
        damage_reduction=next_reduction,
        health=max(0, health - damage),
    )
