"""
Squad agent: the per-tick pipeline and its registered agent wrapper.

Decision pipeline (one pass per tick):
- Liveness sweep of the carried SquadState
- Role assignment (first tick), spawn classification, periodic re-evaluation
- Influence field refresh
- Tower orders and charger bindings
- Commander: focus target, tank, formation point, objectives
- Per unit: combat, then the charger cycle or the movement rules
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Tuple, Union

from env.interfaces import DiagnosticsSink, PathPlanner
from env.world.snapshot import WorldSnapshot
from infra.logger import get_logger

from ..base_agent import BaseAgent
from ..registry import register_agent
from ..team_intel import TeamIntel
from .combat import resolve_combat
from .commander import run_commander
from .config import SquadConfig
from .decisions import TickResult, UnitOrders
from .diagnostics import SquadDiagnostics
from .influence import refresh_influence
from .logistics import assign_chargers, resolve_charger
from .movement import resolve_movement
from .pathing import default_planner
from .roles import assign_new_units, assign_roles, reevaluate_roles, should_reevaluate
from .state import SquadState
from .towers import resolve_towers

log = get_logger(__name__)


def _flag_events(snapshot: WorldSnapshot, state: SquadState) -> List[Dict[str, Any]]:
    events = []
    for flag in snapshot.flags:
        before = state.last_flag_owners.get(flag.id)
        if before is not None and before != flag.owner:
            events.append({
                "kind": "flag_change",
                "flag_id": flag.id,
                "from": before.value,
                "to": flag.owner.value,
            })
    return events


def run_tick(
    snapshot: WorldSnapshot,
    state: Optional[SquadState] = None,
    config: Optional[SquadConfig] = None,
    planner: Optional[PathPlanner] = None,
) -> Tuple[TickResult, SquadState]:
    """
    Compute every order for one tick.

    The input state is never mutated; the returned state is the one to
    pass in on the next tick.
    """
    config = config or SquadConfig()
    planner = planner or default_planner(snapshot.grid, config)
    state = state.copy() if state is not None else SquadState()
    events: List[Dict[str, Any]] = []

    for uid, role in state.sweep(snapshot).items():
        events.append({"kind": "death", "unit_id": uid, "role": role.value})

    if not state.initialized:
        assign_roles(snapshot, state, config)
    else:
        for uid in assign_new_units(snapshot, state):
            events.append({"kind": "spawn", "unit_id": uid, "role": state.roles[uid].value})
    if should_reevaluate(snapshot.tick, config):
        events.extend(reevaluate_roles(snapshot, state, config))

    field = refresh_influence(snapshot, state, config)

    intel = TeamIntel.build(snapshot, state.roles)
    tower_orders = resolve_towers(intel, config)
    events.extend(assign_chargers(intel, state, config))

    # Bindings may have changed roles; everything below reads the new table
    intel = TeamIntel.build(snapshot, state.roles)
    events.extend(_flag_events(snapshot, state))
    phase = run_commander(intel, state, config)

    result = TickResult(
        tick=snapshot.tick,
        phase=phase,
        tower_orders=tower_orders,
        focus_target_id=state.focus_target_id,
        tank_id=state.tank_id,
        events=events,
    )

    for unit in snapshot.my_units:
        if unit.spawning:
            continue
        combat = resolve_combat(unit, intel, state, config)
        orders = UnitOrders(role=state.roles[unit.id], combat=combat.action, combat_rule=combat.rule)
        if unit.id in state.charger_to_tower:
            charger = resolve_charger(unit, intel, state, planner, config)
            orders.movement = charger.movement.action
            orders.movement_rule = charger.movement.rule
            orders.logistics = charger.logistics
        else:
            movement = resolve_movement(unit, intel, state, planner, config, field.matrix)
            orders.movement = movement.action
            orders.movement_rule = movement.rule
        result.unit_orders[unit.id] = orders

    return result, state


@register_agent("squad")
class SquadAgent(BaseAgent):
    """
    Rule-based squad controller.

    Keeps the SquadState between ticks and feeds every TickResult to the
    diagnostics collector.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        *,
        config: Union[SquadConfig, Dict[str, Any], None] = None,
        planner: Optional[PathPlanner] = None,
        diagnostics_sink: Optional[DiagnosticsSink] = None,
        **_: Any,
    ):
        """
        Args:
            name: Optional agent name (default: "SquadAgent")
            config: SquadConfig, or a dict of overrides applied on top of the environment
            planner: Path planner; defaults to GridPathPlanner for the snapshot's grid
            diagnostics_sink: Where summaries go (default: the log)
        """
        super().__init__(name)
        if isinstance(config, SquadConfig):
            self.config = config
        else:
            self.config = SquadConfig.from_env(**(config or {}))
        self.planner = planner
        self.diagnostics = SquadDiagnostics(self.config.diag_interval, diagnostics_sink)
        self.state = SquadState()

    def get_actions(self, snapshot: WorldSnapshot) -> TickResult:
        started = time.perf_counter()
        result, self.state = run_tick(snapshot, self.state, self.config, self.planner)
        self.diagnostics.record_tick(snapshot, result)
        log.debug(
            "%s tick %s: %s orders, %s tower orders in %.1f ms",
            self.name, snapshot.tick, len(result.unit_orders), len(result.tower_orders),
            (time.perf_counter() - started) * 1000,
        )
        return result

    def reset(self) -> None:
        self.state = SquadState()
        self.diagnostics.reset()

    def on_match_end(self, snapshot: WorldSnapshot) -> Dict[str, Any]:
        return self.diagnostics.end_of_match()
