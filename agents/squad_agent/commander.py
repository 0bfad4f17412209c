"""
Commander layer: squad-wide decisions, once per tick.

The commander is the only writer of the focus target, the tank, the
formation point, the sticky objective, the interceptors and the per-unit
movement targets. Per-unit resolvers only read them.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence

from agents.team_intel import TeamIntel, centroid, round_half_up
from env.core.types import GridPos, Phase, Role
from env.entities import Flag, Unit
from env.world.grid import Grid
from infra.logger import get_logger

from .config import SquadConfig
from .state import SquadState
from .threat import select_focus_target

log = get_logger(__name__)

MAIN_ARMY_EXCLUDED = (Role.RUNNER, Role.LOGISTICS, Role.SENTINEL)


# ============================================================================
# PHASES & GEOMETRY
# ============================================================================

def phase_for_tick(tick: int, config: SquadConfig) -> Phase:
    if tick <= config.phase_expansion_end:
        return Phase.EXPANSION
    if tick <= config.phase_consolidation_end:
        return Phase.CONSOLIDATION
    if tick <= config.phase_assault_end:
        return Phase.ASSAULT
    return Phase.ENDGAME


def squad_centroid(intel: TeamIntel) -> GridPos:
    """Mean position of Vanguards and Rangers, else of all combat units, else the map centre."""
    core = intel.units_with_role(Role.VANGUARD, Role.RANGER)
    if core:
        return centroid(u.pos for u in core)
    others = intel.combat_units()
    if others:
        return centroid(u.pos for u in others)
    return intel.grid.center


def largest_enemy_cluster_centroid(enemies: Sequence[Unit], radius: int) -> Optional[GridPos]:
    """Centroid of the enemies around the enemy with the most company within `radius`."""
    if not enemies:
        return None
    best, best_count = enemies[0], 0
    for enemy in enemies:
        company = sum(1 for e in enemies if Grid.range(e.pos, enemy.pos) <= radius)
        if company > best_count:
            best, best_count = enemy, company
    cluster = [e.pos for e in enemies if Grid.range(e.pos, best.pos) <= radius]
    return centroid(cluster)


def designate_tank(intel: TeamIntel, incumbent_id: Optional[int], config: SquadConfig) -> Optional[int]:
    """
    Keep the incumbent while it is a healthy Vanguard; otherwise pick the
    healthiest Vanguard (largest body breaks ties).
    """
    vanguards = intel.vanguards()
    if not vanguards:
        return None
    incumbent = next((v for v in vanguards if v.id == incumbent_id), None)
    if incumbent is not None and incumbent.hp_ratio > config.tank_health_floor:
        return incumbent.id
    best = sorted(vanguards, key=lambda v: (-v.hp_ratio, -len(v.body)))[0]
    return best.id


def formation_point(
    tank: Unit,
    enemies: Sequence[Unit],
    grid: Grid,
    config: SquadConfig,
) -> Optional[GridPos]:
    """
    Point `formation_distance` tiles behind the tank, opposite the nearby
    enemies. None when no enemy is near the tank.
    """
    near = [e for e in enemies if Grid.range(e.pos, tank.pos) <= config.formation_enemy_radius]
    if not near:
        return None
    ex = sum(e.x for e in near) / len(near)
    ey = sum(e.y for e in near) / len(near)
    dx, dy = tank.x - ex, tank.y - ey
    magnitude = math.hypot(dx, dy) or 1.0
    fx = round_half_up(tank.x + dx / magnitude * config.formation_distance)
    fy = round_half_up(tank.y + dy / magnitude * config.formation_distance)
    return grid.clamp((fx, fy), margin=1)


# ============================================================================
# OBJECTIVES
# ============================================================================

def assign_runner_targets(intel: TeamIntel, runners: Sequence[Unit], config: SquadConfig) -> Dict[int, GridPos]:
    """
    Spread Runners over uncaptured flags, undefended ones first.

    With nothing left to capture, Runners patrol owned flags round-robin.
    """
    targets: Dict[int, GridPos] = {}
    if not runners:
        return targets
    snapshot = intel.snapshot
    uncaptured = snapshot.uncaptured_flags

    if not uncaptured:
        owned = snapshot.my_flags
        home = snapshot.home_flag
        for i, runner in enumerate(runners):
            flag = owned[i % len(owned)] if owned else home
            if flag is not None:
                targets[runner.id] = flag.pos
        return targets

    undefended = [
        f for f in uncaptured
        if not intel.enemies_in_range(f.pos, config.runner_undefended_radius)
    ]
    pool = undefended or uncaptured
    taken = set()
    for runner in runners:
        by_range = sorted(pool, key=lambda f: Grid.range(runner.pos, f.pos))
        target = next((f for f in by_range if f.id not in taken), by_range[0])
        targets[runner.id] = target.pos
        taken.add(target.id)
    return targets


def _flag_transition(intel: TeamIntel, state: SquadState) -> bool:
    """True when any flag changed owner since the previous tick."""
    return any(
        f.id in state.last_flag_owners and state.last_flag_owners[f.id] != f.owner
        for f in intel.snapshot.flags
    )


def _sticky_flag(
    intel: TeamIntel,
    state: SquadState,
    candidates: List[Flag],
    anchor: GridPos,
    transition: bool,
    config: SquadConfig,
) -> Flag:
    """
    Nearest candidate to `anchor`, locked for `sticky_ticks`.

    The lock holds while the flag stays a candidate and no flag changed
    hands; otherwise a fresh choice is made and locked.
    """
    tick = intel.snapshot.tick
    locked = next((f for f in candidates if f.id == state.sticky_objective_id), None)
    if (
        locked is not None
        and not transition
        and tick - state.sticky_set_tick < config.sticky_ticks
    ):
        return locked

    choice = min(candidates, key=lambda f: Grid.range(anchor, f.pos))
    if choice.id != state.sticky_objective_id:
        log.debug("Tick %s: objective locked on flag %s at %s", tick, choice.id, choice.pos)
    state.sticky_objective_id = choice.id
    state.sticky_set_tick = tick
    return choice


def _intercept(intel: TeamIntel, state: SquadState, army: Sequence[Unit], config: SquadConfig) -> None:
    """Send the closest free Vanguard/Ranger to each owned flag that is threatened and undefended."""
    eligible = [u for u in army if intel.role_of(u.id) in (Role.VANGUARD, Role.RANGER)]
    for flag in intel.snapshot.my_flags:
        if not intel.enemies_in_range(flag.pos, config.flag_threat_radius):
            continue
        defenders = intel.in_range(flag.pos, intel.combat_units(), config.flag_defender_radius)
        if defenders:
            continue
        free = [u for u in eligible if u.id not in state.interceptors]
        closest = intel.closest_by_range(flag.pos, free)
        if closest is None:
            continue
        state.movement_targets[closest.id] = flag.pos
        state.interceptors[closest.id] = flag.id
        log.debug("Tick %s: unit %s intercepts at flag %s", intel.snapshot.tick, closest.id, flag.id)


def _recall_stragglers(intel: TeamIntel, state: SquadState, army: Sequence[Unit], anchor: GridPos,
                       config: SquadConfig) -> None:
    for unit in army:
        if unit.id in state.interceptors:
            continue
        if Grid.range(unit.pos, anchor) <= config.straggler_distance:
            continue
        local = intel.enemies_in_range(unit.pos, config.local_detect_range)
        if len(local) >= config.straggler_enemy_count:
            state.movement_targets[unit.id] = anchor


def run_commander(intel: TeamIntel, state: SquadState, config: SquadConfig) -> Phase:
    """
    Write this tick's squad-wide decisions into `state`.

    Returns the current phase.
    """
    snapshot = intel.snapshot
    phase = phase_for_tick(snapshot.tick, config)
    anchor = squad_centroid(intel)
    state.centroid = anchor
    transition = _flag_transition(intel, state)
    state.last_flag_owners = {f.id: f.owner for f in snapshot.flags}

    # Focus: prefer enemies some unit can actually reach soon
    combat = intel.combat_units()
    reachable = [
        e for e in snapshot.enemies
        if any(Grid.range(e.pos, u.pos) <= config.focus_engagement_radius for u in combat)
    ]
    focus = select_focus_target(anchor, reachable or list(snapshot.enemies), snapshot.enemies,
                                intel.medics(), config)
    state.focus_target_id = focus.id if focus else None

    tank_id = designate_tank(intel, state.tank_id, config)
    if tank_id != state.tank_id:
        log.debug("Tick %s: tank %s -> %s", snapshot.tick, state.tank_id, tank_id)
    state.tank_id = tank_id
    tank = snapshot.get_my_unit(tank_id)
    state.formation_point = formation_point(tank, snapshot.enemies, intel.grid, config) if tank else None

    state.movement_targets = {}
    state.interceptors = {}
    runners = intel.units_with_role(Role.RUNNER)
    army = [u for u in snapshot.my_units if intel.role_of(u.id) not in MAIN_ARMY_EXCLUDED]

    home = snapshot.home_flag
    if home is not None:
        for sentinel in intel.units_with_role(Role.SENTINEL):
            state.movement_targets[sentinel.id] = home.pos

    state.movement_targets.update(assign_runner_targets(intel, runners, config))

    # Early rush: the army marches as one body to the nearest neutral flag
    neutral = snapshot.neutral_flags
    if phase == Phase.EXPANSION and neutral:
        target = _sticky_flag(intel, state, neutral, anchor, transition, config)
        for unit in army:
            state.movement_targets[unit.id] = target.pos
        return phase

    uncaptured = snapshot.uncaptured_flags
    objective: Optional[GridPos] = None
    if snapshot.enemies:
        behind = len(snapshot.my_flags) <= len(snapshot.enemy_flags)
        if phase == Phase.ENDGAME and behind and uncaptured:
            objective = _sticky_flag(intel, state, uncaptured, anchor, transition, config).pos
        else:
            objective = largest_enemy_cluster_centroid(snapshot.enemies, config.cluster_radius)
    elif uncaptured:
        objective = _sticky_flag(intel, state, uncaptured, anchor, transition, config).pos
    elif home is not None:
        objective = home.pos

    if objective is not None:
        for unit in army:
            state.movement_targets[unit.id] = objective

    _intercept(intel, state, army, config)
    _recall_stragglers(intel, state, army, anchor, config)
    return phase
