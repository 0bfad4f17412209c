"""
Tower controller: one attack or heal per powered tower.
"""

from __future__ import annotations

from typing import Dict

from agents.team_intel import TeamIntel
from env.core.actions import Action

from .config import SquadConfig


def resolve_towers(intel: TeamIntel, config: SquadConfig) -> Dict[int, Action]:
    """
    Orders for every owned tower that has energy and no cooldown.

    Kill-securable enemies first, then the closest enemy, then the most
    hurt ally in range. Towers with nothing to do are left out.
    """
    orders: Dict[int, Action] = {}
    for tower in intel.snapshot.my_towers:
        if tower.energy <= 0 or tower.cooldown > 0:
            continue

        enemies = intel.enemies_in_range(tower.pos, config.tower_range)
        if enemies:
            killable = [e for e in enemies if e.hits <= config.tower_kill_secure_hp]
            target = intel.closest_by_range(tower.pos, killable or enemies)
            orders[tower.id] = Action.attack(target.id)
            continue

        damaged = [a for a in intel.allies_in_range(tower.pos, config.tower_range) if a.is_damaged]
        if damaged:
            patient = sorted(damaged, key=lambda a: a.hp_ratio)[0]
            orders[tower.id] = Action.heal(patient.id)
    return orders
