"""
Combat resolver: at most one attack or heal per unit per tick.

The resolver never moves a unit; movement is decided separately and the
two orders are executed side by side.
"""

from __future__ import annotations

from typing import Optional, Sequence

from agents.team_intel import TeamIntel
from env.core.actions import Action
from env.core.constants import MELEE_RANGE, RANGED_ATTACK_POWER, RANGED_HEAL_RANGE, RANGED_MASS_ATTACK_POWER, RANGED_RANGE
from env.core.types import PartKind, Role
from env.entities import Unit
from env.world.grid import Grid

from .config import SquadConfig
from .decisions import CombatDecision
from .retreat import should_retreat
from .state import SquadState
from .threat import select_focus_target


def area_attack_damage(unit: Unit, enemies: Sequence[Unit]) -> int:
    """Total damage a mass attack would deal to `enemies` (10/4/1 per part at range 1/2/3)."""
    parts = unit.count_active(PartKind.RANGED_ATTACK)
    total = 0
    for enemy in enemies:
        total += RANGED_MASS_ATTACK_POWER.get(Grid.range(unit.pos, enemy.pos), 0) * parts
    return total


def focused_attack_damage(unit: Unit) -> int:
    return unit.count_active(PartKind.RANGED_ATTACK) * RANGED_ATTACK_POWER


def _ranged(unit: Unit, intel: TeamIntel, state: SquadState, config: SquadConfig) -> Optional[Action]:
    """Mass or single-target ranged attack, or None when nothing is in range."""
    if not unit.has_active(PartKind.RANGED_ATTACK):
        return None
    in_range = intel.enemies_in_range(unit.pos, RANGED_RANGE)
    if not in_range:
        return None

    adjacent = [e for e in in_range if Grid.range(unit.pos, e.pos) == 1]
    area_total = area_attack_damage(unit, in_range)
    if (len(adjacent) >= config.area_attack_melee_count
            or area_total > focused_attack_damage(unit) * config.area_attack_multiplier):
        return Action.ranged_mass_attack()

    focus = next((e for e in in_range if e.id == state.focus_target_id), None)
    if focus is None:
        focus = select_focus_target(unit.pos, in_range, intel.enemies, intel.medics(), config)
    return Action.ranged_attack(focus.id)


def _melee(unit: Unit, intel: TeamIntel, state: SquadState) -> Optional[Action]:
    if not unit.has_active(PartKind.ATTACK):
        return None
    adjacent = intel.enemies_in_range(unit.pos, MELEE_RANGE)
    if not adjacent:
        return None
    focus = next((e for e in adjacent if e.id == state.focus_target_id), None)
    if focus is None:
        focus = min(adjacent, key=lambda e: e.hits)
    return Action.attack(focus.id)


def _self_heal(unit: Unit) -> Optional[Action]:
    if unit.has_active(PartKind.HEAL) and unit.is_damaged:
        return Action.heal(unit.id)
    return None


def _heal_target(unit: Unit, target: Unit) -> Optional[Action]:
    distance = Grid.range(unit.pos, target.pos)
    if distance <= 1:
        return Action.heal(target.id)
    if distance <= RANGED_HEAL_RANGE:
        return Action.ranged_heal(target.id)
    return None


def _medic(unit: Unit, intel: TeamIntel, state: SquadState, config: SquadConfig) -> CombatDecision:
    if not unit.has_active(PartKind.HEAL):
        return CombatDecision("medic_disabled")

    tank = intel.snapshot.get_my_unit(state.tank_id)
    if tank is not None and tank.is_damaged and tank.hp_ratio < config.medic_tank_heal_ratio:
        action = _heal_target(unit, tank)
        if action is not None:
            return CombatDecision("medic_heal_tank", action)

    damaged = [
        a for a in intel.allies_in_range(unit.pos, RANGED_HEAL_RANGE)
        if a.id != unit.id and a.is_damaged
    ]
    if damaged:
        # Adjacent heals are stronger, so they win over a more critical ally at range
        adjacent = [a for a in damaged if Grid.range(unit.pos, a.pos) <= 1]
        pool = adjacent or damaged
        patient = min(pool, key=lambda a: a.hp_ratio)
        return CombatDecision("medic_heal_ally", _heal_target(unit, patient))

    action = _self_heal(unit)
    if action is not None:
        return CombatDecision("medic_self_heal", action)
    return CombatDecision("medic_idle")


def resolve_combat(unit: Unit, intel: TeamIntel, state: SquadState, config: SquadConfig) -> CombatDecision:
    """
    Pick this tick's attack or heal for one unit.

    Medics never attack. A retreating unit heals itself first and only
    shoots what is already in range.
    """
    role = intel.role_of(unit.id)

    if should_retreat(unit, intel, config):
        action = _self_heal(unit)
        if action is not None:
            return CombatDecision("retreat_self_heal", action)
        action = _ranged(unit, intel, state, config)
        if action is not None:
            return CombatDecision("retreat_ranged", action)
        return CombatDecision("retreat_none")

    if role == Role.MEDIC:
        return _medic(unit, intel, state, config)

    if role == Role.RUNNER:
        for rule, action in (
            ("runner_self_heal", _self_heal(unit)),
            ("runner_ranged", _ranged(unit, intel, state, config)),
            ("runner_melee", _melee(unit, intel, state)),
        ):
            if action is not None:
                return CombatDecision(rule, action)
        return CombatDecision("runner_none")

    action = _melee(unit, intel, state)
    if action is not None:
        return CombatDecision("melee", action)
    action = _ranged(unit, intel, state, config)
    if action is not None:
        rule = "area_attack" if action.target_id is None else "ranged"
        return CombatDecision(rule, action)

    if unit.has_active(PartKind.HEAL):
        patients = [a for a in intel.allies_in_range(unit.pos, 1) if a.id != unit.id and a.is_damaged]
        if patients:
            return CombatDecision("idle_heal_ally", Action.heal(min(patients, key=lambda a: a.hits).id))
        action = _self_heal(unit)
        if action is not None:
            return CombatDecision("idle_self_heal", action)
    return CombatDecision("none")
