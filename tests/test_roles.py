from agents.squad_agent.roles import (
    assign_new_units,
    assign_roles,
    classify_unit,
    reevaluate_roles,
    should_reevaluate,
)
from agents.squad_agent.state import SquadState
from env.core.types import Owner, PartKind, Role

from builders import HEALER, MELEE, RANGED, flag, make_snapshot, mine


def test_classify_by_dominant_part():
    assert classify_unit(mine(1, (0, 0), MELEE)) == Role.VANGUARD
    assert classify_unit(mine(2, (0, 1), RANGED)) == Role.RANGER
    assert classify_unit(mine(3, (0, 2), HEALER)) == Role.MEDIC
    # heal ties with melee -> medic
    assert classify_unit(mine(4, (0, 3), {PartKind.HEAL: 2, PartKind.ATTACK: 2})) == Role.MEDIC
    # ranged ties with melee -> ranger
    assert classify_unit(mine(5, (0, 4), {PartKind.RANGED_ATTACK: 1, PartKind.ATTACK: 1})) == Role.RANGER
    assert classify_unit(mine(6, (0, 5), {PartKind.CARRY: 2, PartKind.MOVE: 1})) == Role.VANGUARD


def test_classify_counts_disabled_parts():
    unit = mine(1, (0, 0), {PartKind.HEAL: 2, PartKind.ATTACK: 1})
    for part in unit.body:
        if part.kind == PartKind.HEAL:
            part.hits = 0
    assert classify_unit(unit) == Role.MEDIC


def test_fastest_vanguards_become_runners(config):
    units = [
        mine(1, (1, 1), {PartKind.ATTACK: 2, PartKind.MOVE: 2}),
        mine(2, (2, 1), {PartKind.ATTACK: 2, PartKind.MOVE: 5}),
        mine(3, (3, 1), {PartKind.ATTACK: 2, PartKind.MOVE: 5}),
        mine(4, (4, 1), {PartKind.ATTACK: 2, PartKind.MOVE: 1}),
        mine(5, (5, 1), RANGED),
    ]
    state = SquadState()
    roles = assign_roles(make_snapshot(units=units), state, config)

    assert roles[2] == Role.RUNNER
    assert roles[3] == Role.RUNNER
    assert roles[1] == Role.VANGUARD
    assert roles[4] == Role.VANGUARD
    assert roles[5] == Role.RANGER
    assert state.initialized


def test_sentinels_are_closest_to_home(config):
    cfg = config.with_overrides(runner_count=0, sentinel_count=1)
    units = [mine(1, (20, 20)), mine(2, (3, 3)), mine(3, (10, 10))]
    snapshot = make_snapshot(units=units, flags=[flag(100, (2, 2), Owner.MINE, home=True)])
    roles = assign_roles(snapshot, SquadState(), cfg)
    assert roles[2] == Role.SENTINEL
    assert roles[1] == Role.VANGUARD and roles[3] == Role.VANGUARD


def test_each_living_unit_holds_one_role(config):
    units = [mine(1, (1, 1)), mine(2, (2, 2), RANGED), mine(3, (3, 3), HEALER)]
    state = SquadState()
    assign_roles(make_snapshot(units=units), state, config)
    assert set(state.roles) == {1, 2, 3}

    later = make_snapshot(tick=2, units=units[1:] + [mine(4, (4, 4), RANGED)])
    state.sweep(later)
    new_ids = assign_new_units(later, state)
    assert new_ids == [4]
    assert set(state.roles) == later.my_unit_ids
    assert state.roles[4] == Role.RANGER


def test_reevaluation_promotes_ranger_without_vanguard(config):
    units = [
        mine(1, (1, 1), {PartKind.RANGED_ATTACK: 3, PartKind.ATTACK: 1}),
        mine(2, (2, 2), {PartKind.RANGED_ATTACK: 3, PartKind.ATTACK: 2}),
    ]
    state = SquadState(roles={1: Role.RANGER, 2: Role.RANGER}, initialized=True)
    events = reevaluate_roles(make_snapshot(tick=30, units=units), state, config)

    assert state.roles[2] == Role.VANGUARD
    assert state.roles[1] == Role.RANGER
    assert events[0]["kind"] == "role_change"
    assert events[0]["unit_id"] == 2


def test_reevaluation_converts_ranger_to_medic(config):
    units = [
        mine(1, (1, 1)),
        mine(2, (2, 2), RANGED),
        mine(3, (3, 3), {PartKind.RANGED_ATTACK: 3, PartKind.HEAL: 1}),
        mine(4, (4, 4), RANGED),
    ]
    roles = {1: Role.VANGUARD, 2: Role.RANGER, 3: Role.RANGER, 4: Role.RANGER}
    state = SquadState(roles=dict(roles), initialized=True)
    reevaluate_roles(make_snapshot(tick=60, units=units), state, config)
    assert state.roles[3] == Role.MEDIC
    assert state.count_role(Role.VANGUARD) == 1


def test_reevaluation_recalls_a_runner(config):
    units = [
        mine(1, (1, 1), {PartKind.ATTACK: 1, PartKind.MOVE: 4}),
        mine(2, (2, 2), {PartKind.ATTACK: 2, PartKind.MOVE: 4}),
    ]
    state = SquadState(roles={1: Role.RUNNER, 2: Role.RUNNER}, initialized=True)
    reevaluate_roles(make_snapshot(tick=90, units=units), state, config)
    assert state.roles[2] == Role.VANGUARD
    assert state.roles[1] == Role.RUNNER


def test_reevaluation_prunes_dead_units(config):
    state = SquadState(roles={1: Role.VANGUARD, 9: Role.MEDIC}, initialized=True)
    reevaluate_roles(make_snapshot(tick=30, units=[mine(1, (1, 1))]), state, config)
    assert set(state.roles) == {1}


def test_reevaluation_schedule(config):
    assert should_reevaluate(30, config)
    assert should_reevaluate(60, config)
    assert not should_reevaluate(1, config)
    assert not should_reevaluate(31, config)
