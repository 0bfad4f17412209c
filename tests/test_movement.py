from agents.squad_agent.movement import (
    MOVEMENT_RULES,
    MovementRule,
    is_outnumbered,
    opportunity_targets,
    resolve_movement,
)
from agents.squad_agent.pathing import GridPathPlanner
from agents.squad_agent.state import SquadState
from env.core.types import ActionType, Owner, PartKind, Role
from env.entities import Pickup
from env.world import Grid

from builders import HEALER, MELEE, RANGED, enemy, flag, intel_for, make_snapshot, mine


def _move(unit, *, allies=(), enemies=(), flags=(), pickups=(), roles=None, state=None, config, rules=None):
    snapshot = make_snapshot(units=[unit, *allies], enemies=enemies, flags=flags, pickups=pickups)
    intel = intel_for(snapshot, roles or {unit.id: Role.VANGUARD})
    planner = GridPathPlanner(snapshot.grid)
    return resolve_movement(unit, intel, state or SquadState(), planner, config, rules=rules)


def test_rule_order():
    assert [r.name for r in MOVEMENT_RULES] == [
        "emergency_retreat",
        "runner_objective",
        "pull_back",
        "hold_on_pickup",
        "outnumbered_kite",
        "ranger_opportunity",
        "flag_capture_detour",
        "vanguard_engage",
        "sentinel_guard",
        "ranger_kite",
        "medic_support",
        "advance_objective",
        "collect_pickup",
    ]


def test_immobile_units_skip_every_rule(config):
    tired = mine(1, (10, 10), fatigue=2)
    assert _move(tired, enemies=[enemy(10, (11, 10))], config=config).rule == "immobile"

    legless = mine(2, (10, 10))
    for part in legless.body:
        if part.kind == PartKind.MOVE:
            part.hits = 0
    decision = _move(legless, config=config, state=SquadState(movement_targets={2: (30, 30)}))
    assert decision.rule == "immobile"
    assert decision.action is None


def test_custom_rule_list(config):
    rules = [MovementRule("stay", lambda ctx: True, lambda ctx: ctx.hold())]
    decision = _move(mine(1, (10, 10)), config=config, rules=rules)
    assert decision.rule == "stay"
    assert decision.destination == (10, 10)


def test_idle_fallback(config):
    decision = _move(mine(1, (10, 10)), config=config)
    assert decision.rule == "idle"
    assert decision.action is None


# ============================================================================
# RETREAT
# ============================================================================

def test_emergency_retreat_flees_nearby_enemies(config):
    ranger = mine(1, (10, 10), RANGED, hits=100)
    medic = mine(2, (40, 40), HEALER)
    threat = enemy(10, (12, 10))
    decision = _move(ranger, allies=[medic], enemies=[threat], roles={1: Role.RANGER, 2: Role.MEDIC}, config=config)

    assert decision.rule == "emergency_retreat"
    assert decision.action.type == ActionType.MOVE
    assert Grid.range(decision.destination, threat.pos) >= config.emergency_flee_range


def test_emergency_retreat_heads_to_medic_when_clear(config):
    ranger = mine(1, (10, 10), RANGED, hits=100)
    medic = mine(2, (20, 20), HEALER)
    decision = _move(ranger, allies=[medic], roles={1: Role.RANGER, 2: Role.MEDIC}, config=config)
    assert decision.rule == "emergency_retreat"
    assert decision.destination == (20, 20)


def test_retreat_beats_runner_objective(config):
    runner = mine(1, (10, 10), hits=100)
    medic = mine(2, (20, 20), HEALER)
    state = SquadState(movement_targets={1: (40, 40)})
    decision = _move(runner, allies=[medic], roles={1: Role.RUNNER, 2: Role.MEDIC}, state=state, config=config)
    assert decision.rule == "emergency_retreat"


def test_pull_back_drifts_to_medic(config):
    ranger = mine(1, (10, 10), RANGED, hits=350)
    medic = mine(2, (15, 10), HEALER)
    decision = _move(ranger, allies=[medic], roles={1: Role.RANGER, 2: Role.MEDIC}, config=config)
    assert decision.rule == "pull_back"
    assert decision.destination == (15, 10)


# ============================================================================
# RUNNERS / PICKUPS
# ============================================================================

def test_runner_walks_to_its_flag(config):
    runner = mine(1, (10, 10))
    state = SquadState(movement_targets={1: (30, 30)})
    decision = _move(runner, roles={1: Role.RUNNER}, state=state, config=config)
    assert decision.rule == "runner_objective"
    assert decision.destination == (30, 30)
    assert decision.action.direction.delta == (1, 1)


def test_runner_holds_on_pickup(config):
    runner = mine(1, (10, 10))
    pickups = [Pickup(80, (10, 10), PartKind.MOVE)]
    state = SquadState(movement_targets={1: (30, 30)})
    decision = _move(runner, pickups=pickups, roles={1: Role.RUNNER}, state=state, config=config)
    assert decision.rule == "runner_objective"
    assert decision.action is None


def test_units_hold_on_pickups(config):
    unit = mine(1, (10, 10))
    state = SquadState(movement_targets={1: (30, 30)})
    decision = _move(unit, pickups=[Pickup(80, (10, 10), PartKind.ATTACK)], state=state, config=config)
    assert decision.rule == "hold_on_pickup"


def test_collect_nearby_pickup(config):
    ranger = mine(1, (10, 10), RANGED)
    decision = _move(ranger, pickups=[Pickup(80, (12, 11), PartKind.HEAL)], roles={1: Role.RANGER}, config=config)
    assert decision.rule == "collect_pickup"
    assert decision.destination == (12, 11)


# ============================================================================
# FORCE BALANCE
# ============================================================================

def test_outnumbered_unit_kites_to_main_body(config):
    unit = mine(1, (10, 10))
    allies = [mine(2, (40, 40)), mine(3, (41, 40))]
    enemies = [enemy(10, (18, 10)), enemy(11, (18, 12)), enemy(12, (17, 14)), enemy(13, (19, 11))]
    roles = {1: Role.VANGUARD, 2: Role.VANGUARD, 3: Role.VANGUARD}

    intel = intel_for(make_snapshot(units=[unit, *allies], enemies=enemies), roles)
    assert is_outnumbered(unit, intel, config)

    decision = _move(unit, allies=allies, enemies=enemies, roles=roles, config=config)
    assert decision.rule == "outnumbered_kite"
    assert decision.destination == (41, 40)


def test_dominant_squad_never_kites(config):
    unit = mine(1, (10, 10))
    allies = [mine(i, (40, 40 + i)) for i in range(2, 9)]
    enemies = [enemy(10, (18, 10)), enemy(11, (18, 12)), enemy(12, (17, 14))]
    intel = intel_for(make_snapshot(units=[unit, *allies], enemies=enemies), {})
    assert not is_outnumbered(unit, intel, config)


def test_ranger_chases_weak_group(config):
    ranger = mine(1, (10, 10), RANGED)
    allies = [mine(2, (11, 10)), mine(3, (10, 11))]
    weak = enemy(10, (17, 10), {PartKind.ATTACK: 1, PartKind.MOVE: 1})
    roles = {1: Role.RANGER, 2: Role.VANGUARD, 3: Role.VANGUARD}

    intel = intel_for(make_snapshot(units=[ranger, *allies], enemies=[weak]), roles)
    assert [e.id for e in opportunity_targets(ranger, intel, config)] == [10]

    decision = _move(ranger, allies=allies, enemies=[weak], roles=roles, config=config)
    assert decision.rule == "ranger_opportunity"
    assert decision.destination == (17, 10)


# ============================================================================
# ROLE RULES
# ============================================================================

def test_vanguard_detours_to_nearby_flag(config):
    unit = mine(1, (10, 10))
    decision = _move(unit, flags=[flag(100, (14, 10))], config=config)
    assert decision.rule == "flag_capture_detour"
    assert decision.destination == (14, 10)


def test_enemies_suppress_the_detour(config):
    unit = mine(1, (10, 10))
    decision = _move(unit, flags=[flag(100, (14, 10))], enemies=[enemy(10, (16, 16))], config=config)
    assert decision.rule == "vanguard_engage"
    assert decision.destination == (16, 16)


def test_sentinel_ignores_flag_detour(config):
    sentinel = mine(1, (10, 10))
    flags = [flag(100, (14, 10)), flag(101, (2, 2), Owner.MINE, home=True)]
    decision = _move(sentinel, flags=flags, roles={1: Role.SENTINEL}, config=config)
    assert decision.rule == "sentinel_guard"
    assert decision.destination == (2, 2)


def test_sentinel_engages_home_threats(config):
    sentinel = mine(1, (4, 4))
    flags = [flag(101, (2, 2), Owner.MINE, home=True)]
    decision = _move(sentinel, flags=flags, enemies=[enemy(10, (8, 2))], roles={1: Role.SENTINEL}, config=config)
    assert decision.rule == "sentinel_guard"
    assert decision.destination == (8, 2)


def test_medic_detour_is_short(config):
    medic = mine(1, (10, 10), HEALER)
    decision = _move(medic, flags=[flag(100, (14, 10))], roles={1: Role.MEDIC}, config=config)
    assert decision.rule != "flag_capture_detour"


def test_vanguard_holds_in_melee(config):
    decision = _move(mine(1, (10, 10)), enemies=[enemy(10, (11, 11))], config=config)
    assert decision.rule == "vanguard_engage"
    assert decision.action is None


def test_ranger_backs_off_from_close_enemy(config):
    ranger = mine(1, (10, 10), RANGED)
    threat = enemy(10, (12, 10))
    decision = _move(ranger, enemies=[threat], roles={1: Role.RANGER}, config=config)
    assert decision.rule == "ranger_kite"
    step = decision.action.direction.delta
    assert Grid.range((10 + step[0], 10 + step[1]), threat.pos) == 3


def test_ranger_holds_at_ideal_range(config):
    ranger = mine(1, (10, 10), RANGED)
    decision = _move(ranger, enemies=[enemy(10, (13, 10))], roles={1: Role.RANGER}, config=config)
    assert decision.rule == "ranger_kite"
    assert decision.action is None


def test_medic_falls_back_behind_vanguard(config):
    medic = mine(1, (15, 10), HEALER)
    tank = mine(2, (10, 10))
    state = SquadState(tank_id=2, formation_point=(7, 10))
    decision = _move(medic, allies=[tank], enemies=[enemy(10, (20, 10))],
                     roles={1: Role.MEDIC, 2: Role.VANGUARD}, state=state, config=config)
    assert decision.rule == "medic_support"
    assert decision.destination == (7, 10)


def test_medic_stays_near_damaged_ally(config):
    medic = mine(1, (10, 10), HEALER)
    ally = mine(2, (12, 10), hits=500)
    decision = _move(medic, allies=[ally], roles={1: Role.MEDIC, 2: Role.VANGUARD}, config=config)
    assert decision.rule == "medic_support"
    assert decision.action is None


def test_medic_follows_leader(config):
    medic = mine(1, (10, 10), HEALER)
    leader = mine(2, (20, 10))
    decision = _move(medic, allies=[leader], roles={1: Role.MEDIC, 2: Role.VANGUARD}, config=config)
    assert decision.rule == "medic_support"
    assert decision.destination == (20, 10)


def test_ranger_advances_to_objective(config):
    ranger = mine(1, (10, 10), RANGED)
    state = SquadState(movement_targets={1: (30, 10)})
    decision = _move(ranger, roles={1: Role.RANGER}, state=state, config=config)
    assert decision.rule == "advance_objective"
    assert decision.action.direction.delta[0] == 1


def test_medic_rushes_critical_ally(config):
    medic = mine(1, (10, 10), HEALER)
    worst = mine(2, (20, 10), hits=200)
    hurt = mine(3, (10, 15), hits=280)
    roles = {1: Role.MEDIC, 2: Role.VANGUARD, 3: Role.VANGUARD}
    decision = _move(medic, allies=[worst, hurt], roles=roles, config=config)
    assert decision.rule == "medic_support"
    assert decision.destination == (20, 10)
    assert decision.action.direction.delta[0] == 1

    beside = mine(2, (11, 11), hits=200)
    decision = _move(medic, allies=[beside], roles={1: Role.MEDIC, 2: Role.VANGUARD}, config=config)
    assert decision.rule == "medic_support"
    assert decision.action is None
    assert decision.destination == (10, 10)


def test_ranger_approaches_behind_screen(config):
    roles = {1: Role.RANGER, 2: Role.VANGUARD}

    ranger = mine(1, (10, 10), RANGED)
    screen = mine(2, (12, 10))
    decision = _move(ranger, allies=[screen], enemies=[enemy(10, (15, 10))], roles=roles, config=config)
    assert decision.rule == "ranger_kite"
    assert decision.destination == (15, 10)
    assert decision.action.direction.delta[0] == 1

    ranger = mine(1, (12, 10), RANGED)
    screen = mine(2, (10, 10))
    decision = _move(ranger, allies=[screen], enemies=[enemy(10, (17, 10))], roles=roles, config=config)
    assert decision.rule == "ranger_kite"
    assert decision.destination == (10, 10)
    assert decision.action.direction.delta[0] == -1
