"""
Tower logistics: charger binding and the WITHDRAW/DELIVER cycle.

Each own tower below the charge threshold gets at most one charger: the
closest free unit that can carry energy. A bound unit takes the LOGISTICS
role and gets its previous role back when released.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from agents.team_intel import TeamIntel
from env.core.actions import Action
from env.core.types import ChargerState, PartKind
from env.entities import Container, Tower, Unit
from env.interfaces import PathPlanner
from env.world.grid import Grid
from infra.logger import get_logger

from .config import SquadConfig
from .decisions import MovementDecision
from .pathing import navigate
from .state import SquadState

log = get_logger(__name__)


@dataclass(frozen=True)
class ChargerOrders:
    """Movement and logistics orders of one charger."""
    movement: MovementDecision
    logistics: Optional[Action] = None


def next_charger_state(current: ChargerState, energy: int, free_capacity: int) -> ChargerState:
    """Full cargo flips WITHDRAW to DELIVER; empty cargo flips DELIVER back."""
    state = current
    if state == ChargerState.WITHDRAW and free_capacity <= 0:
        state = ChargerState.DELIVER
    if state == ChargerState.DELIVER and energy <= 0:
        state = ChargerState.WITHDRAW
    return state


# ============================================================================
# BINDING
# ============================================================================

def assign_chargers(intel: TeamIntel, state: SquadState, config: SquadConfig) -> List[Dict[str, Any]]:
    """
    Release finished or broken bindings, then bind chargers to hungry towers.

    Returns bind/release events.
    """
    snapshot = intel.snapshot
    events: List[Dict[str, Any]] = []
    my_towers = {t.id: t for t in snapshot.my_towers}
    live = snapshot.my_unit_ids

    for uid, tower_id in list(state.charger_to_tower.items()):
        tower = my_towers.get(tower_id)
        if uid in live and tower is not None and tower.fill_ratio < config.tower_charge_threshold:
            continue
        state.release_charger(uid)
        reason = "filled" if tower is not None and uid in live else "gone"
        events.append({"kind": "charger_released", "unit_id": uid, "tower_id": tower_id, "reason": reason})
        log.debug("Tick %s: charger %s released from tower %s (%s)", snapshot.tick, uid, tower_id, reason)

    hungry = snapshot.my_towers if snapshot.stocked_containers else []
    for tower in hungry:
        if tower.fill_ratio >= config.tower_charge_threshold or tower.id in state.tower_to_charger:
            continue
        free = [
            u for u in snapshot.my_units
            if not u.spawning
            and u.id not in state.charger_to_tower
            and u.has_active(PartKind.CARRY)
            and Grid.range(u.pos, tower.pos) <= config.tower_assign_radius
        ]
        unit = intel.closest_by_range(tower.pos, free)
        if unit is None:
            continue
        state.bind_charger(unit.id, tower.id)
        events.append({
            "kind": "charger_bound",
            "unit_id": unit.id,
            "tower_id": tower.id,
            "previous_role": state.previous_roles[unit.id].value,
        })
        log.debug("Tick %s: unit %s bound to charge tower %s", snapshot.tick, unit.id, tower.id)

    advance_chargers(intel, state)
    return events


# ============================================================================
# WITHDRAW / DELIVER
# ============================================================================

def _source_for(tower: Tower, intel: TeamIntel) -> Optional[Container]:
    return intel.closest_by_range(tower.pos, intel.snapshot.stocked_containers)


def _pickup_near(unit: Unit, intel: TeamIntel, radius: int):
    return intel.closest_by_range(unit.pos, intel.in_range(unit.pos, intel.snapshot.pickups, radius))


def advance_chargers(intel: TeamIntel, state: SquadState) -> None:
    """
    Step every bound charger's WITHDRAW/DELIVER cycle for this tick.

    A carrier holding energy with no stocked source left delivers what it has.
    """
    for uid, tower_id in state.charger_to_tower.items():
        unit = intel.snapshot.get_my_unit(uid)
        tower = intel.snapshot.get_tower(tower_id)
        if unit is None or tower is None:
            continue
        current = state.charger_states.get(uid, ChargerState.WITHDRAW)
        phase = next_charger_state(current, unit.energy, unit.free_capacity)
        if phase == ChargerState.WITHDRAW and unit.energy > 0 and _source_for(tower, intel) is None:
            phase = ChargerState.DELIVER
        if phase != current:
            log.debug("Tick %s: charger %s %s -> %s", intel.snapshot.tick, uid, current, phase)
        state.charger_states[uid] = phase


def resolve_charger(
    unit: Unit,
    intel: TeamIntel,
    state: SquadState,
    planner: PathPlanner,
    config: SquadConfig,
) -> ChargerOrders:
    """
    Orders for one bound charger this tick; reads the cycle phase without changing it.

    Chargers path on terrain only.
    """
    tower = intel.snapshot.get_tower(state.charger_to_tower.get(unit.id))
    if tower is None:
        return ChargerOrders(MovementDecision("charger_unbound"))

    phase = state.charger_states.get(unit.id, ChargerState.WITHDRAW)

    def go(rule: str, target, reach: int) -> MovementDecision:
        return MovementDecision(rule, navigate(intel, planner, unit, target, reach=reach), target)

    if phase == ChargerState.WITHDRAW:
        source = _source_for(tower, intel)
        if source is not None:
            if Grid.range(unit.pos, source.pos) <= 1:
                return ChargerOrders(MovementDecision("charger_withdraw", None, source.pos),
                                     Action.withdraw(source.id))
            return ChargerOrders(go("charger_to_source", source.pos, 1))
        if unit.energy <= 0:
            pickup = _pickup_near(unit, intel, config.charger_idle_pickup_range)
            if pickup is not None:
                return ChargerOrders(go("charger_pickup", pickup.pos, 0))
            if Grid.range(unit.pos, tower.pos) > config.charger_idle_tower_range:
                return ChargerOrders(go("charger_idle", tower.pos, config.charger_idle_tower_range))
            return ChargerOrders(MovementDecision("charger_idle"))
        # leftovers and no source: deliver what is carried

    if Grid.range(unit.pos, tower.pos) <= 1:
        pickup = _pickup_near(unit, intel, config.charger_deliver_pickup_range)
        movement = (
            go("charger_pickup", pickup.pos, 0) if pickup is not None
            else MovementDecision("charger_deliver", None, tower.pos)
        )
        return ChargerOrders(movement, Action.transfer(tower.id))
    return ChargerOrders(go("charger_to_tower", tower.pos, 1))
