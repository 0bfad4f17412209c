"""
Movement resolver: an ordered list of rules, first match wins.

Each MovementRule pairs a predicate with an action. A rule whose action
returns None lets the next rule try; a decision without a MOVE order means
"hold position" and still ends the search. The fallback is "idle".

Rule order:
    emergency_retreat, runner_objective, pull_back, hold_on_pickup,
    outnumbered_kite, ranger_opportunity, flag_capture_detour,
    vanguard_engage, sentinel_guard, ranger_kite, medic_support,
    advance_objective, collect_pickup
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, List, Optional

from agents.team_intel import TeamIntel, centroid
from env.core.actions import Action
from env.core.types import GridPos, PartKind, Role
from env.entities import Unit
from env.interfaces import PathPlanner
from env.world.grid import Grid

from .config import SquadConfig
from .decisions import MovementDecision
from .influence import CostMatrix
from .pathing import first_step, navigate
from .retreat import should_pull_back, should_retreat
from .state import SquadState
from .threat import group_strength, select_focus_target


@dataclass
class MoveContext:
    """Everything a movement rule may read for one unit."""
    unit: Unit
    intel: TeamIntel
    state: SquadState
    planner: PathPlanner
    config: SquadConfig
    influence: Optional[CostMatrix] = None

    @property
    def role(self) -> Optional[Role]:
        return self.intel.role_of(self.unit.id)

    @property
    def objective(self) -> Optional[GridPos]:
        return self.state.movement_targets.get(self.unit.id)

    def go(self, target: GridPos, *, reach: int = 0, aggressive: bool = False) -> MovementDecision:
        """Step toward `target`; aggressive paths ignore the influence field."""
        matrix = None if aggressive else self.influence
        action = navigate(self.intel, self.planner, self.unit, target, reach=reach, cost_matrix=matrix)
        return MovementDecision("", action, target)

    def hold(self) -> MovementDecision:
        return MovementDecision("", None, self.unit.pos)

    def enemies_within(self, radius: int) -> List[Unit]:
        return self.intel.enemies_in_range(self.unit.pos, radius)

    def others(self, *roles: Role) -> List[Unit]:
        """Other owned units, optionally restricted to some roles."""
        pool = self.intel.units_with_role(*roles) if roles else self.intel.my_units
        return [u for u in pool if u.id != self.unit.id]

    def nearest(self, objects):
        return self.intel.closest_by_range(self.unit.pos, objects)


@dataclass(frozen=True)
class MovementRule:
    name: str
    applies: Callable[[MoveContext], bool]
    act: Callable[[MoveContext], Optional[MovementDecision]]


def _always(ctx: MoveContext) -> bool:
    return True


def _has_role(*roles: Role) -> Callable[[MoveContext], bool]:
    return lambda ctx: ctx.role in roles


# ============================================================================
# SITUATION CHECKS
# ============================================================================

def is_outnumbered(unit: Unit, intel: TeamIntel, config: SquadConfig) -> bool:
    """
    Genuinely outnumbered small group.

    Never true for the main body of the army or when the squad as a whole
    dominates the enemy.
    """
    local_allies = len(intel.allies_in_range(unit.pos, config.local_detect_range))
    local_enemies = len(intel.enemies_in_range(unit.pos, config.local_detect_range))
    if local_enemies < config.outnumbered_min_enemies:
        return False
    if local_allies >= len(intel.my_units) * config.main_body_share:
        return False
    if len(intel.my_units) >= len(intel.enemies) * config.dominance_ratio:
        return False
    return local_enemies > local_allies * config.outnumbered_ratio


def opportunity_targets(unit: Unit, intel: TeamIntel, config: SquadConfig) -> List[Unit]:
    """Small enemy group heavily outgunned by nearby allies; returns it, or [] when absent."""
    enemies = intel.enemies_in_range(unit.pos, config.opportunity_enemy_radius)
    if not enemies or len(enemies) > config.opportunity_max_enemies:
        return []
    allies = intel.allies_in_range(unit.pos, config.opportunity_ally_radius)
    if group_strength(allies) > group_strength(enemies) * config.opportunity_strength_ratio:
        return enemies
    return []


# ============================================================================
# RULE ACTIONS
# ============================================================================

def _emergency_retreat(ctx: MoveContext) -> Optional[MovementDecision]:
    config = ctx.config
    nearby = ctx.enemies_within(config.retreat_scan_range)
    if nearby:
        goals = [(e.pos, config.emergency_flee_range) for e in nearby]
        result = ctx.planner.search(ctx.unit.pos, goals, cost_matrix=ctx.influence, flee=True)
        action = first_step(ctx.unit.pos, result)
        if action is not None:
            destination = result.path[-1]
            return MovementDecision("", action, destination)

    medic = ctx.nearest(ctx.others(Role.MEDIC))
    if medic is not None:
        return ctx.go(medic.pos, reach=1)
    home = ctx.intel.snapshot.home_flag
    if home is not None:
        return ctx.go(home.pos)
    return ctx.hold()


def _runner_objective(ctx: MoveContext) -> Optional[MovementDecision]:
    snapshot = ctx.intel.snapshot
    if snapshot.pickup_at(ctx.unit.pos) is not None:
        return ctx.hold()
    if ctx.objective is not None:
        threatened = bool(ctx.enemies_within(ctx.config.runner_danger_radius))
        return ctx.go(ctx.objective, aggressive=not threatened)
    pickup = ctx.nearest(ctx.intel.in_range(ctx.unit.pos, snapshot.pickups, ctx.config.runner_pickup_range))
    if pickup is not None:
        return ctx.go(pickup.pos, aggressive=True)
    return ctx.hold()


def _pull_back(ctx: MoveContext) -> Optional[MovementDecision]:
    medic = ctx.nearest(ctx.others(Role.MEDIC))
    if medic is None or Grid.range(ctx.unit.pos, medic.pos) <= 1:
        return None
    return ctx.go(medic.pos, reach=1)


def _hold_on_pickup(ctx: MoveContext) -> Optional[MovementDecision]:
    if ctx.intel.snapshot.pickup_at(ctx.unit.pos) is None:
        return None
    return ctx.hold()


def _outnumbered_kite(ctx: MoveContext) -> Optional[MovementDecision]:
    # Always an approach search toward safety; never a flee search
    snapshot = ctx.intel.snapshot
    far = [u for u in ctx.others() if Grid.range(ctx.unit.pos, u.pos) > ctx.config.local_detect_range]
    safe_point = centroid(u.pos for u in far)
    if safe_point is None:
        tower = next((t for t in snapshot.my_towers if t.energy > 0), None)
        home = snapshot.home_flag
        safe_point = tower.pos if tower is not None else (home.pos if home is not None else None)
    if safe_point is None:
        return None
    return ctx.go(safe_point)


def _ranger_opportunity(ctx: MoveContext) -> Optional[MovementDecision]:
    enemies = opportunity_targets(ctx.unit, ctx.intel, ctx.config)
    if not enemies:
        return None
    target = select_focus_target(ctx.unit.pos, enemies, ctx.intel.enemies, ctx.intel.medics(), ctx.config)
    return ctx.go(target.pos, reach=ctx.config.ranger_ideal_range)


def _flag_capture_detour(ctx: MoveContext) -> Optional[MovementDecision]:
    config = ctx.config
    suppress = (
        config.flag_detour_suppress_vanguard if ctx.role == Role.VANGUARD
        else config.flag_detour_suppress_other
    )
    if ctx.enemies_within(suppress):
        return None
    radius = config.flag_detour_radius_medic if ctx.role == Role.MEDIC else config.flag_detour_radius
    flag = ctx.nearest(ctx.intel.snapshot.uncaptured_flags)
    if flag is None or Grid.range(ctx.unit.pos, flag.pos) > radius:
        return None
    return ctx.go(flag.pos, aggressive=True)


def _vanguard_engage(ctx: MoveContext) -> Optional[MovementDecision]:
    if ctx.enemies_within(1):
        return ctx.hold()
    near = ctx.enemies_within(ctx.config.vanguard_engage_radius)
    if near:
        target = next((e for e in near if e.id == ctx.state.focus_target_id), None) or ctx.nearest(near)
        return ctx.go(target.pos, reach=1, aggressive=True)
    if ctx.objective is not None:
        return ctx.go(ctx.objective, aggressive=True)
    return None


def _sentinel_guard(ctx: MoveContext) -> Optional[MovementDecision]:
    home = ctx.intel.snapshot.home_flag
    if home is None:
        return None
    config = ctx.config
    threats = ctx.intel.enemies_in_range(home.pos, config.sentinel_guard_radius)
    if threats:
        if ctx.enemies_within(1):
            return ctx.hold()
        target = (
            next((e for e in threats if e.id == ctx.state.focus_target_id), None)
            or ctx.intel.closest_by_range(home.pos, threats)
        )
        return ctx.go(target.pos, reach=1, aggressive=True)
    if Grid.range(ctx.unit.pos, home.pos) > config.sentinel_patrol_range:
        return ctx.go(home.pos, reach=config.sentinel_patrol_range)
    return ctx.hold()


def _ranger_kite(ctx: MoveContext) -> Optional[MovementDecision]:
    config = ctx.config
    unit = ctx.unit
    vanguards = ctx.others(Role.VANGUARD)

    close = ctx.enemies_within(2)
    if close:
        screen = ctx.nearest(vanguards)
        if screen is not None and Grid.range(unit.pos, screen.pos) > 1:
            return ctx.go(screen.pos, reach=1)
        threat = ctx.nearest(close)
        away = ctx.intel.move_away(unit.pos, threat.pos, ignore_ids={unit.id})
        if away:
            return MovementDecision("", Action.move(away[0]), None)
        fallback = ctx.state.centroid or ctx.intel.grid.center
        return ctx.go(fallback)

    if ctx.enemies_within(config.ranger_ideal_range):
        return ctx.hold()

    approaching = ctx.enemies_within(config.ranger_approach_radius)
    if not approaching:
        return None
    target = select_focus_target(unit.pos, approaching, ctx.intel.enemies, ctx.intel.medics(), config)
    screen = ctx.nearest(vanguards)
    # Only close in while a Vanguard stands between us and the target
    if screen is not None and Grid.range(unit.pos, target.pos) <= Grid.range(screen.pos, target.pos):
        return ctx.go(screen.pos, reach=1)
    return ctx.go(target.pos, reach=config.ranger_ideal_range)


def _medic_support(ctx: MoveContext) -> Optional[MovementDecision]:
    config = ctx.config
    unit = ctx.unit
    intel = ctx.intel
    allies = ctx.others()
    vanguards = ctx.others(Role.VANGUARD)
    tank = intel.snapshot.get_my_unit(ctx.state.tank_id)
    formation = ctx.state.formation_point
    in_combat = any(intel.enemies_in_range(a.pos, 3) for a in allies)

    enemy = ctx.nearest(intel.enemies)
    if vanguards and enemy is not None:
        mine = Grid.range(unit.pos, enemy.pos)
        if all(mine < Grid.range(v.pos, enemy.pos) for v in vanguards):
            if formation is not None:
                return ctx.go(formation)
            anchor = tank or ctx.nearest(vanguards)
            return ctx.go(anchor.pos, reach=1)

    critical = [a for a in allies if a.hp_ratio < config.medic_critical_ratio]
    if critical:
        worst = min(critical, key=lambda a: a.hp_ratio)
        if Grid.range(unit.pos, worst.pos) > 1:
            return ctx.go(worst.pos, reach=1, aggressive=True)
        return ctx.hold()

    damaged = [a for a in allies if a.hp_ratio < config.medic_damaged_ratio]
    if any(Grid.range(unit.pos, a.pos) <= 3 for a in damaged):
        return ctx.hold()
    if damaged:
        worst = min(damaged, key=lambda a: a.hp_ratio)
        return ctx.go(worst.pos, reach=1, aggressive=in_combat)

    if formation is not None:
        return ctx.go(formation, aggressive=in_combat)

    leader = tank if tank is not None and tank.id != unit.id else ctx.nearest(vanguards)
    if leader is not None:
        return ctx.go(leader.pos, reach=config.medic_follow_range, aggressive=in_combat)

    ranger = ctx.nearest(ctx.others(Role.RANGER))
    if ranger is not None and Grid.range(unit.pos, ranger.pos) > 2:
        return ctx.go(ranger.pos, reach=2, aggressive=in_combat)
    return None


def _advance_objective(ctx: MoveContext) -> Optional[MovementDecision]:
    if ctx.objective is None:
        return None
    return ctx.go(ctx.objective, aggressive=ctx.role == Role.VANGUARD)


def _collect_pickup(ctx: MoveContext) -> Optional[MovementDecision]:
    pickups = ctx.intel.in_range(ctx.unit.pos, ctx.intel.snapshot.pickups, ctx.config.pickup_deviate_range)
    pickup = ctx.nearest(pickups)
    if pickup is None:
        return None
    return ctx.go(pickup.pos, aggressive=True)


MOVEMENT_RULES: List[MovementRule] = [
    MovementRule("emergency_retreat",
                 lambda ctx: should_retreat(ctx.unit, ctx.intel, ctx.config), _emergency_retreat),
    MovementRule("runner_objective", _has_role(Role.RUNNER), _runner_objective),
    MovementRule("pull_back",
                 lambda ctx: should_pull_back(ctx.unit, ctx.intel, ctx.config), _pull_back),
    MovementRule("hold_on_pickup", _always, _hold_on_pickup),
    MovementRule("outnumbered_kite",
                 lambda ctx: is_outnumbered(ctx.unit, ctx.intel, ctx.config), _outnumbered_kite),
    MovementRule("ranger_opportunity", _has_role(Role.RANGER), _ranger_opportunity),
    MovementRule("flag_capture_detour",
                 _has_role(Role.VANGUARD, Role.RANGER, Role.MEDIC), _flag_capture_detour),
    MovementRule("vanguard_engage", _has_role(Role.VANGUARD), _vanguard_engage),
    MovementRule("sentinel_guard", _has_role(Role.SENTINEL), _sentinel_guard),
    MovementRule("ranger_kite", _has_role(Role.RANGER), _ranger_kite),
    MovementRule("medic_support", _has_role(Role.MEDIC), _medic_support),
    MovementRule("advance_objective", _always, _advance_objective),
    MovementRule("collect_pickup", _always, _collect_pickup),
]


def resolve_movement(
    unit: Unit,
    intel: TeamIntel,
    state: SquadState,
    planner: PathPlanner,
    config: SquadConfig,
    influence: Optional[CostMatrix] = None,
    rules: Optional[List[MovementRule]] = None,
) -> MovementDecision:
    """Run the rule list for one unit and return the first decision produced."""
    if unit.fatigue > 0 or not unit.has_active(PartKind.MOVE):
        return MovementDecision("immobile")

    ctx = MoveContext(unit, intel, state, planner, config, influence)
    for rule in rules if rules is not None else MOVEMENT_RULES:
        if not rule.applies(ctx):
            continue
        decision = rule.act(ctx)
        if decision is not None:
            return replace(decision, rule=rule.name)
    return MovementDecision("idle")
