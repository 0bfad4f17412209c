from agents.squad_agent.combat import area_attack_damage, focused_attack_damage, resolve_combat
from agents.squad_agent.state import SquadState
from agents.squad_agent.towers import resolve_towers
from env.core.types import ActionType, Owner, PartKind, Role
from env.entities import Tower

from builders import HEALER, MELEE, RANGED, enemy, intel_for, make_snapshot, mine


def _resolve(unit, *, allies=(), enemies=(), roles=None, state=None, config):
    snapshot = make_snapshot(units=[unit, *allies], enemies=enemies)
    intel = intel_for(snapshot, roles or {unit.id: Role.VANGUARD})
    return resolve_combat(unit, intel, state or SquadState(), config)


# ============================================================================
# RANGED / MELEE
# ============================================================================

def test_area_attack_against_a_crowd(config):
    ranger = mine(1, (10, 10), RANGED)
    crowd = [enemy(10, (11, 10)), enemy(11, (9, 10)), enemy(12, (10, 11))]
    decision = _resolve(ranger, enemies=crowd, roles={1: Role.RANGER}, config=config)

    assert decision.rule == "area_attack"
    assert decision.action.type == ActionType.RANGED_MASS_ATTACK
    assert area_attack_damage(ranger, crowd) == 90
    assert focused_attack_damage(ranger) == 30


def test_single_target_at_long_range(config):
    ranger = mine(1, (10, 10), RANGED)
    decision = _resolve(ranger, enemies=[enemy(10, (13, 10))], roles={1: Role.RANGER}, config=config)
    assert decision.rule == "ranged"
    assert decision.action.type == ActionType.RANGED_ATTACK
    assert decision.action.target_id == 10


def test_ranged_prefers_shared_focus(config):
    ranger = mine(1, (10, 10), RANGED)
    enemies = [enemy(10, (13, 10), hits=50), enemy(11, (10, 13))]
    state = SquadState(focus_target_id=11)
    decision = _resolve(ranger, enemies=enemies, roles={1: Role.RANGER}, state=state, config=config)
    assert decision.action.target_id == 11


def test_melee_hits_weakest_adjacent(config):
    fighter = mine(1, (10, 10), MELEE)
    enemies = [enemy(10, (11, 10), hits=500), enemy(11, (9, 9), hits=200), enemy(12, (12, 10), hits=10)]
    decision = _resolve(fighter, enemies=enemies, config=config)
    assert decision.rule == "melee"
    assert decision.action.type == ActionType.ATTACK
    assert decision.action.target_id == 11

    focused = _resolve(fighter, enemies=enemies, state=SquadState(focus_target_id=10), config=config)
    assert focused.action.target_id == 10


def test_nothing_in_range(config):
    decision = _resolve(mine(1, (10, 10)), enemies=[enemy(10, (30, 30))], config=config)
    assert decision.rule == "none"
    assert decision.action is None


# ============================================================================
# MEDICS
# ============================================================================

def test_medic_never_attacks(config):
    medic = mine(1, (10, 10), {PartKind.HEAL: 2, PartKind.ATTACK: 2, PartKind.RANGED_ATTACK: 2})
    decision = _resolve(medic, enemies=[enemy(10, (11, 10))], roles={1: Role.MEDIC}, config=config)
    assert decision.rule == "medic_idle"
    assert decision.action is None


def test_medic_heals_tank_first(config):
    medic = mine(1, (10, 10), HEALER)
    tank = mine(2, (12, 10), hits=500)
    ally = mine(3, (11, 10), hits=200)
    roles = {1: Role.MEDIC, 2: Role.VANGUARD, 3: Role.VANGUARD}
    decision = _resolve(medic, allies=[tank, ally], roles=roles, state=SquadState(tank_id=2), config=config)
    assert decision.rule == "medic_heal_tank"
    assert decision.action.type == ActionType.RANGED_HEAL
    assert decision.action.target_id == 2


def test_lightly_scratched_tank_waits(config):
    medic = mine(1, (10, 10), HEALER)
    tank = mine(2, (11, 10), hits=590)
    ally = mine(3, (10, 11), hits=400)
    roles = {1: Role.MEDIC, 2: Role.VANGUARD, 3: Role.VANGUARD}
    decision = _resolve(medic, allies=[tank, ally], roles=roles, state=SquadState(tank_id=2), config=config)
    assert decision.rule == "medic_heal_ally"
    assert decision.action.target_id == 3


def test_medic_prefers_adjacent_patient(config):
    medic = mine(1, (10, 10), HEALER)
    near = mine(2, (11, 10), hits=480)
    far = mine(3, (13, 10), hits=100)
    roles = {1: Role.MEDIC, 2: Role.RANGER, 3: Role.RANGER}
    decision = _resolve(medic, allies=[near, far], roles=roles, config=config)
    assert decision.action.type == ActionType.HEAL
    assert decision.action.target_id == 2


def test_medic_heals_ranged_when_nobody_adjacent(config):
    medic = mine(1, (10, 10), HEALER)
    roles = {1: Role.MEDIC, 2: Role.RANGER, 3: Role.RANGER}
    patients = [mine(2, (13, 10), hits=400), mine(3, (10, 13), hits=100)]
    decision = _resolve(medic, allies=patients, roles=roles, config=config)
    assert decision.action.type == ActionType.RANGED_HEAL
    assert decision.action.target_id == 3


def test_medic_self_heal_and_disabled(config):
    hurt = mine(1, (10, 10), HEALER, hits=500)
    assert _resolve(hurt, roles={1: Role.MEDIC}, config=config).rule == "medic_self_heal"

    broken = mine(1, (10, 10), HEALER)
    for part in broken.body:
        if part.kind == PartKind.HEAL:
            part.hits = 0
    assert _resolve(broken, roles={1: Role.MEDIC}, config=config).rule == "medic_disabled"


# ============================================================================
# RETREAT / RUNNERS / IDLE
# ============================================================================

def test_retreating_ranger_still_shoots(config):
    ranger = mine(1, (10, 10), RANGED, hits=100)
    medic = mine(2, (30, 30), HEALER)
    decision = _resolve(ranger, allies=[medic], enemies=[enemy(10, (12, 10))],
                        roles={1: Role.RANGER, 2: Role.MEDIC}, config=config)
    assert decision.rule == "retreat_ranged"


def test_retreating_melee_unit_does_not_swing(config):
    fighter = mine(1, (10, 10), {PartKind.ATTACK: 3, PartKind.HEAL: 1, PartKind.MOVE: 2}, hits=100)
    medic = mine(2, (30, 30), HEALER)
    decision = _resolve(fighter, allies=[medic], enemies=[enemy(10, (11, 10))],
                        roles={1: Role.VANGUARD, 2: Role.MEDIC}, config=config)
    assert decision.rule == "retreat_self_heal"
    assert decision.action.target_id == 1


def test_runner_order_of_preference(config):
    runner = mine(1, (10, 10), {PartKind.ATTACK: 2, PartKind.RANGED_ATTACK: 1, PartKind.MOVE: 3})
    decision = _resolve(runner, enemies=[enemy(10, (11, 10))], roles={1: Role.RUNNER}, config=config)
    assert decision.rule == "runner_ranged"

    decision = _resolve(runner, roles={1: Role.RUNNER}, config=config)
    assert decision.rule == "runner_none"


def test_idle_unit_heals_adjacent_ally(config):
    support = mine(1, (10, 10), {PartKind.ATTACK: 2, PartKind.HEAL: 1})
    patients = [mine(2, (11, 10), hits=300), mine(3, (9, 10), hits=200)]
    decision = _resolve(support, allies=patients, roles={1: Role.VANGUARD, 2: Role.VANGUARD, 3: Role.VANGUARD},
                        config=config)
    assert decision.rule == "idle_heal_ally"
    assert decision.action.target_id == 3


# ============================================================================
# TOWERS
# ============================================================================

def _tower_orders(towers, *, units=(), enemies=(), config):
    snapshot = make_snapshot(units=units, enemies=enemies, towers=towers)
    return resolve_towers(intel_for(snapshot, {}), config)


def test_tower_secures_kills_first(config):
    tower = Tower(50, (10, 10), Owner.MINE, energy=20)
    enemies = [enemy(10, (12, 10)), enemy(11, (20, 10), hits=150)]
    orders = _tower_orders([tower], enemies=enemies, config=config)
    assert orders[50].type == ActionType.ATTACK
    assert orders[50].target_id == 11


def test_tower_attacks_closest_without_killable(config):
    tower = Tower(50, (10, 10), Owner.MINE, energy=20)
    enemies = [enemy(10, (30, 10)), enemy(11, (14, 10))]
    assert _tower_orders([tower], enemies=enemies, config=config)[50].target_id == 11


def test_tower_heals_most_hurt_ally(config):
    tower = Tower(50, (10, 10), Owner.MINE, energy=20)
    units = [mine(1, (12, 10), hits=500), mine(2, (14, 10), hits=200), mine(3, (15, 10))]
    orders = _tower_orders([tower], units=units, config=config)
    assert orders[50].type == ActionType.HEAL
    assert orders[50].target_id == 2


def test_unpowered_or_cooling_towers_stay_quiet(config):
    towers = [
        Tower(50, (10, 10), Owner.MINE, energy=0),
        Tower(51, (12, 10), Owner.MINE, energy=20, cooldown=3),
        Tower(52, (14, 10), Owner.ENEMY, energy=20),
    ]
    assert _tower_orders(towers, enemies=[enemy(10, (11, 10))], config=config) == {}
