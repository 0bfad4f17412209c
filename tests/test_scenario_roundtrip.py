from env.core.types import Owner, PartKind
from env.entities import Container, Flag, Pickup, Tower, Unit
from env.scenario import Scenario
from env.world import WorldState
from infra.paths import SCENARIO_STORAGE_DIR
from runtime import GameRunner


def _scenario() -> Scenario:
    return Scenario(
        grid_width=30,
        grid_height=20,
        max_ticks=40,
        units=[
            Unit.with_body(1, (3, 3), {PartKind.ATTACK: 3, PartKind.MOVE: 3}),
            Unit.with_body(2, (4, 3), {PartKind.RANGED_ATTACK: 3, PartKind.MOVE: 3}),
            Unit.with_body(3, (3, 4), {PartKind.HEAL: 2, PartKind.MOVE: 2}),
            Unit.with_body(4, (5, 5), {PartKind.CARRY: 2, PartKind.MOVE: 2}),
            Unit.with_body(20, (25, 15), {PartKind.ATTACK: 2, PartKind.MOVE: 2}, owner=Owner.ENEMY),
        ],
        flags=[
            Flag(100, (2, 2), Owner.MINE, home=True),
            Flag(101, (15, 10)),
            Flag(102, (27, 17), Owner.ENEMY),
        ],
        towers=[Tower(50, (6, 6), Owner.MINE, energy=10)],
        containers=[Container(70, (8, 3), energy=800)],
        pickups=[Pickup(80, (10, 10), PartKind.MOVE)],
        agent={"type": "squad", "init_params": {"config": {"runner_count": 1}}},
    )


def test_scenario_roundtrip_persist_and_load():
    scenario = _scenario()

    path = SCENARIO_STORAGE_DIR / "test_scenario_roundtrip.json"
    try:
        scenario.save_json(path)
        loaded = Scenario.load_json(path)
    finally:
        if path.exists():
            path.unlink()

    assert loaded.to_dict() == scenario.to_dict()
    assert loaded.agent == scenario.agent
    for original, restored in zip(scenario.units, loaded.units):
        assert original.to_dict() == restored.to_dict()


def test_world_roundtrip_keeps_tick_and_objects(tmp_path):
    world = _scenario().build_world()
    world.advance()
    world.set_flag_owner(101, Owner.MINE)

    path = tmp_path / "world.json"
    world.to_json(filepath=str(path))
    restored = WorldState.from_json(filepath=str(path))

    assert restored.to_dict() == world.to_dict()
    assert restored.tick == 2
    assert restored.snapshot().get_flag(101).owner == Owner.MINE


def test_reloaded_scenario_replays_identically(tmp_path):
    scenario = _scenario()
    path = scenario.save_json(tmp_path / "replay.json")

    original = GameRunner(scenario)
    replay = GameRunner(Scenario.load_json(path))

    for _ in range(3):
        assert original.step().result.to_dict() == replay.step().result.to_dict()
