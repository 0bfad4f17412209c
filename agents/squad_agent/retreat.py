"""
Retreat and pull-back predicates.

Retreating units fall back hard to a Medic; pulled-back units only drift
toward one. Both are read by the combat and movement resolvers.
"""

from __future__ import annotations

from agents.team_intel import TeamIntel
from env.core.types import Role
from env.entities import Unit

from .config import SquadConfig


def should_retreat(unit: Unit, intel: TeamIntel, config: SquadConfig) -> bool:
    """
    True when the unit is critically hurt and a Medic is alive to fall back to.

    A hurt Medic counts itself: it falls back and self-heals. Without any
    living Medic retreating gains nothing, so the unit keeps fighting.
    """
    if unit.hits >= unit.hits_max * config.retreat_hp_ratio:
        return False
    if config.vanguard_fights_to_death and intel.role_of(unit.id) == Role.VANGUARD:
        return False
    return bool(intel.medics())


def should_pull_back(unit: Unit, intel: TeamIntel, config: SquadConfig) -> bool:
    """Moderately hurt non-Medic with no Medic adjacent."""
    if intel.role_of(unit.id) == Role.MEDIC:
        return False
    if should_retreat(unit, intel, config):
        return False
    if unit.hp_ratio > config.pullback_hp_ratio:
        return False
    return not intel.in_range(unit.pos, intel.medics(), 1)
