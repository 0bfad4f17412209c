import pytest

from agents import SquadAgent, available_agents, create_agent_from_spec
from agents.squad_agent import SquadConfig, SquadState, run_tick
from agents.squad_agent.diagnostics import MemorySink
from env.core.types import ActionType, Owner, Phase, Role
from env.entities import Container, Tower

from builders import HAULER, HEALER, RANGED, enemy, flag, make_snapshot, mine


@pytest.fixture
def no_runners():
    return SquadConfig(runner_count=0)


def _squad():
    return [mine(i, (10 + i % 5, 10 + i // 5)) for i in range(1, 11)]


def test_whole_squad_rushes_the_nearer_flag(no_runners):
    flags = [flag(100, (20, 20)), flag(101, (45, 45))]
    result, state = run_tick(make_snapshot(units=_squad(), flags=flags), config=no_runners)

    assert result.phase == Phase.EXPANSION
    assert set(result.unit_orders) == set(range(1, 11))
    assert {state.movement_targets[uid] for uid in range(1, 11)} == {(20, 20)}
    assert all(orders.movement is not None for orders in result.unit_orders.values())


def test_runners_split_from_the_rush():
    flags = [flag(100, (20, 20)), flag(101, (45, 45))]
    result, state = run_tick(make_snapshot(units=_squad(), flags=flags), config=SquadConfig())

    runners = [uid for uid, role in state.roles.items() if role == Role.RUNNER]
    assert len(runners) == 2
    assert {state.movement_targets[uid] for uid in runners} == {(20, 20), (45, 45)}
    assert result.unit_orders[runners[0]].role == Role.RUNNER

    army = set(range(1, 11)) - set(runners)
    assert {state.movement_targets[uid] for uid in army} == {(20, 20)}


def test_input_state_is_not_mutated(no_runners):
    units = [mine(1, (10, 10)), mine(2, (12, 10), RANGED), mine(3, (11, 12), HEALER)]
    _, first = run_tick(make_snapshot(tick=1, units=units), config=no_runners)
    before = first.to_dict()

    result, second = run_tick(make_snapshot(tick=2, units=units[:2]), first, no_runners)

    assert first.to_dict() == before
    assert 3 in first.roles
    assert 3 not in second.roles
    assert {"kind": "death", "unit_id": 3, "role": "medic"} in result.events


def test_spawns_are_classified_without_orders(no_runners):
    units = [mine(1, (10, 10))]
    _, state = run_tick(make_snapshot(tick=1, units=units), config=no_runners)

    newcomer = mine(2, (5, 5), RANGED, spawning=True)
    result, state = run_tick(make_snapshot(tick=2, units=units + [newcomer]), state, no_runners)

    assert state.roles[2] == Role.RANGER
    assert 2 not in result.unit_orders
    assert {"kind": "spawn", "unit_id": 2, "role": "ranger"} in result.events


def test_every_living_unit_has_exactly_one_role(no_runners):
    units = [mine(1, (10, 10)), mine(2, (11, 10), RANGED), mine(3, (12, 10), HEALER), mine(4, (13, 10), HAULER)]
    towers = [Tower(50, (14, 12), Owner.MINE, energy=5)]
    containers = [Container(70, (20, 20), energy=1000)]
    enemies = [enemy(90, (30, 30))]
    state = None
    for tick in range(1, 6):
        snapshot = make_snapshot(tick=tick, units=units, enemies=enemies, towers=towers, containers=containers)
        result, state = run_tick(snapshot, state, no_runners)
        assert set(state.roles) == snapshot.my_unit_ids
        assert state.bindings_consistent()
    assert state.charger_to_tower == {4: 50}


def test_charger_gets_logistics_orders(no_runners):
    hauler = mine(4, (19, 20), HAULER)
    snapshot = make_snapshot(
        units=[mine(1, (10, 10)), hauler],
        towers=[Tower(50, (14, 12), Owner.MINE, energy=5)],
        containers=[Container(70, (20, 20), energy=1000)],
    )
    result, state = run_tick(snapshot, config=no_runners)

    orders = result.unit_orders[4]
    assert orders.role == Role.LOGISTICS
    assert orders.movement_rule == "charger_withdraw"
    assert orders.logistics.type == ActionType.WITHDRAW
    assert any(e["kind"] == "charger_bound" for e in result.events)
    assert state.previous_roles[4] == Role.VANGUARD


def test_tower_orders_are_reported(no_runners):
    snapshot = make_snapshot(
        units=[mine(1, (10, 10))],
        enemies=[enemy(90, (15, 15))],
        towers=[Tower(50, (12, 12), Owner.MINE, energy=30)],
    )
    result, _ = run_tick(snapshot, config=no_runners)
    assert result.tower_orders[50].target_id == 90
    assert result.focus_target_id == 90
    assert result.tank_id == 1


def test_flag_changes_become_events(no_runners):
    units = [mine(1, (10, 10))]
    _, state = run_tick(make_snapshot(tick=1, units=units, flags=[flag(100, (20, 20))]), config=no_runners)
    result, _ = run_tick(make_snapshot(tick=2, units=units, flags=[flag(100, (20, 20), Owner.MINE)]),
                         state, no_runners)
    assert {"kind": "flag_change", "flag_id": 100, "from": "NEUTRAL", "to": "MINE"} in result.events


def test_result_serializes(no_runners):
    result, _ = run_tick(make_snapshot(units=[mine(1, (10, 10))], flags=[flag(100, (20, 20))]), config=no_runners)
    data = result.to_dict()
    assert data["phase"] == "expansion"
    assert data["unit_orders"]["1"]["role"] == "vanguard"
    assert data["unit_orders"]["1"]["movement"]["type"] == "MOVE"


# ============================================================================
# AGENT WRAPPER
# ============================================================================

def test_squad_agent_is_registered():
    assert "squad" in available_agents()
    agent = create_agent_from_spec({"type": "squad", "name": "blue", "init_params": {"config": {"runner_count": 0}}})
    assert isinstance(agent, SquadAgent)
    assert agent.name == "blue"
    assert agent.config.runner_count == 0


def test_agent_keeps_state_and_reports():
    sink = MemorySink()
    agent = SquadAgent(config=SquadConfig(runner_count=0, diag_interval=2), diagnostics_sink=sink)
    units = [mine(1, (10, 10)), mine(2, (12, 10), RANGED)]

    for tick in (1, 2, 3):
        agent.get_actions(make_snapshot(tick=tick, units=units, flags=[flag(100, (20, 20))]))

    assert agent.state.initialized
    assert [r["kind"] for r in sink.records] == ["squad_summary", "squad_summary"]
    assert sink.records[0]["tick"] == 1
    assert sink.records[1]["tick"] == 2

    report = agent.on_match_end(make_snapshot(tick=3, units=units))
    assert report["ticks"] == 3
    assert report["actions"]["vanguard"]["move"] == 3
    assert sink.records[-1]["kind"] == "squad_report"

    agent.reset()
    assert agent.state == SquadState()
