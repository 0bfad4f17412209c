"""
Threat scoring and focus-fire target selection.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from env.core.constants import ATTACK_POWER, HEAL_POWER, RANGED_ATTACK_POWER
from env.core.types import GridPos, PartKind
from env.entities import Unit
from env.world.grid import Grid

from .config import SquadConfig


def threat_score(enemy: Unit) -> float:
    """Offensive and sustain output of a unit, plus its HP ratio as a tie-breaker."""
    return (
        enemy.count_active(PartKind.ATTACK) * ATTACK_POWER
        + enemy.count_active(PartKind.RANGED_ATTACK) * RANGED_ATTACK_POWER
        + enemy.count_active(PartKind.HEAL) * HEAL_POWER
        + enemy.hp_ratio
    )


def group_strength(units: Iterable[Unit]) -> int:
    """Summed active attack, ranged and heal power of a group."""
    return sum(
        u.count_active(PartKind.ATTACK) * ATTACK_POWER
        + u.count_active(PartKind.RANGED_ATTACK) * RANGED_ATTACK_POWER
        + u.count_active(PartKind.HEAL) * HEAL_POWER
        for u in units
    )


def is_unhealed(enemy: Unit, enemies: Iterable[Unit], radius: int) -> bool:
    """True when no other enemy with a working HEAL part is within `radius`."""
    return not any(
        other.id != enemy.id
        and other.has_active(PartKind.HEAL)
        and Grid.range(other.pos, enemy.pos) <= radius
        for other in enemies
    )


def threatens_medic(enemy: Unit, medics: Iterable[Unit], radius: int) -> bool:
    return any(Grid.range(enemy.pos, m.pos) <= radius for m in medics)


def select_focus_target(
    origin: GridPos,
    candidates: Sequence[Unit],
    enemies: Sequence[Unit],
    medics: Sequence[Unit],
    config: SquadConfig,
) -> Optional[Unit]:
    """
    Pick the enemy everyone should shoot.

    Sort keys, in order:
        0. threatens one of our Medics
        1. at or below the kill-secure HP threshold
        1b. no enemy healer nearby to sustain it
        2. carries a working HEAL part
        3. lowest HP ratio
        4. highest threat score
    Ties keep candidate order. `origin` is where the question is asked from;
    callers restrict `candidates` to what that position can reach.
    """
    if not candidates:
        return None
    if len(candidates) == 1:
        return candidates[0]

    def key(enemy: Unit):
        return (
            not threatens_medic(enemy, medics, config.medic_threat_range),
            enemy.hits > config.kill_secure_hp,
            not is_unhealed(enemy, enemies, config.healer_support_radius),
            not enemy.has_active(PartKind.HEAL),
            enemy.hp_ratio,
            -threat_score(enemy),
        )

    return sorted(candidates, key=key)[0]
