import pytest

from agents.squad_agent.influence import (
    CostMatrix,
    InfluenceField,
    build_influence_field,
    enemy_threat_cost,
    refresh_influence,
    tower_threat_cost,
)
from agents.squad_agent.state import SquadState
from env.core.types import Owner, PartKind
from env.entities import Tower

from builders import enemy, make_snapshot, mine

HEAVY = {PartKind.ATTACK: 10}


def test_cost_matrix_rejects_bad_values():
    matrix = CostMatrix(5, 5)
    with pytest.raises(ValueError):
        matrix.set((0, 0), 300)
    with pytest.raises(ValueError):
        matrix.set((5, 0), 10)
    matrix.set((1, 1), 7)
    matrix.set((1, 1), 0)
    assert len(matrix) == 0


def test_enemy_cost_zero_beyond_radius(config):
    assert enemy_threat_cost(300, config.enemy_threat_radius + 1, config) == 0
    assert enemy_threat_cost(10_000, 0, config) == config.source_penalty_cap


def test_tower_cost_falloff(config):
    assert tower_threat_cost(1, config) == 200
    assert tower_threat_cost(21, config) == 0
    assert tower_threat_cost(11, config) == 100


def test_values_stay_in_bounds(config):
    enemies = [enemy(i, (x, y), HEAVY) for i, (x, y) in enumerate([(1, 1), (2, 2), (3, 1), (18, 18)], start=1)]
    towers = [Tower(50, (1, 3), Owner.ENEMY, energy=40)]
    snapshot = make_snapshot(size=(20, 20), enemies=enemies, towers=towers, units=[mine(9, (1, 2))])
    field = build_influence_field(snapshot, config)
    values = [v for _, v in field.matrix.items()]
    assert values
    assert all(0 <= v <= config.max_cost for v in values)
    assert field.matrix.get((0, 0)) == config.max_cost


def test_overlapping_enemies_combine_by_max(config):
    a = enemy(1, (30, 30), HEAVY)
    b = enemy(2, (32, 31), HEAVY)
    only_a = build_influence_field(make_snapshot(size=(60, 60), enemies=[a]), config).matrix
    only_b = build_influence_field(make_snapshot(size=(60, 60), enemies=[b]), config).matrix
    both = build_influence_field(make_snapshot(size=(60, 60), enemies=[a, b]), config).matrix

    for x in range(22, 41):
        for y in range(22, 40):
            assert both.get((x, y)) == max(only_a.get((x, y)), only_b.get((x, y)))


def test_single_source_decays_with_distance(config):
    source = enemy(1, (30, 30), HEAVY)
    matrix = build_influence_field(make_snapshot(size=(60, 60), enemies=[source]), config).matrix
    ray = [matrix.get((30 + d, 30)) for d in range(0, config.enemy_threat_radius + 2)]
    assert all(a >= b for a, b in zip(ray, ray[1:]))
    assert ray[0] > ray[config.enemy_threat_radius]
    assert ray[-1] == 0


def test_edge_band_and_ally_stacking(config):
    snapshot = make_snapshot(size=(40, 40), units=[mine(1, (20, 20))])
    matrix = build_influence_field(snapshot, config).matrix
    assert matrix.get((0, 20)) == config.edge_band * config.edge_penalty_per_tile
    assert matrix.get((7, 20)) == config.edge_penalty_per_tile
    assert matrix.get((8, 20)) == 0
    assert matrix.get((20, 20)) == config.ally_stacking_penalty


def test_empty_tower_adds_nothing(config):
    snapshot = make_snapshot(size=(60, 60), towers=[Tower(50, (30, 30), Owner.ENEMY, energy=0)])
    assert build_influence_field(snapshot, config).matrix.get((31, 30)) == 0


def test_field_is_reused_until_stale(config):
    state = SquadState()
    first = refresh_influence(make_snapshot(tick=1), state, config)
    assert refresh_influence(make_snapshot(tick=3), state, config) is first
    rebuilt = refresh_influence(make_snapshot(tick=4), state, config)
    assert rebuilt is not first
    assert rebuilt.built_at_tick == 4
    assert InfluenceField(CostMatrix(1, 1), 10).is_stale(13, 3)
