"""
Influence field: a per-tile movement-cost overlay.

The field biases path searches away from enemies, enemy towers and the
arena edges, and slightly away from tiles our own units already stand on.
It is a pure function of the snapshot, rebuilt whole once it is
`influence_refresh_ticks` old; every unit reads the same field in between.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from env.core.constants import IMPASSABLE_COST
from env.core.types import GridPos, Terrain
from env.world.snapshot import WorldSnapshot
from infra.logger import get_logger

from .config import SquadConfig
from .state import SquadState
from .threat import threat_score

log = get_logger(__name__)


class CostMatrix:
    """
    Sparse grid of tile costs in [0, 255].

    0 means "use the terrain cost"; any other value replaces it, and 255
    marks a tile as impassable.
    """

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"CostMatrix dimensions must be positive: {width}x{height}")
        self.width = width
        self.height = height
        self._values: Dict[GridPos, int] = {}

    def _check(self, pos: GridPos) -> None:
        x, y = pos
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError(f"Position out of bounds: {pos}")

    def get(self, pos: GridPos) -> int:
        return self._values.get(pos, 0)

    def set(self, pos: GridPos, value: int) -> None:
        self._check(pos)
        if not 0 <= value <= IMPASSABLE_COST:
            raise ValueError(f"Cost must be in [0, {IMPASSABLE_COST}]: {value}")
        if value == 0:
            self._values.pop(pos, None)
        else:
            self._values[pos] = value

    def raise_to(self, pos: GridPos, value: int) -> None:
        """Keep the larger of the current value and `value`."""
        if value > self.get(pos):
            self.set(pos, value)

    def add(self, pos: GridPos, delta: int, ceiling: int = IMPASSABLE_COST) -> None:
        self.set(pos, max(0, min(ceiling, self.get(pos) + delta)))

    def clamp(self, upper: int) -> None:
        for pos, value in list(self._values.items()):
            if value > upper:
                self._values[pos] = upper

    def items(self) -> Iterator[Tuple[GridPos, int]]:
        return iter(self._values.items())

    def max_value(self) -> int:
        return max(self._values.values(), default=0)

    def min_nonzero(self) -> Optional[int]:
        return min(self._values.values(), default=None)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"CostMatrix({self.width}x{self.height}, set={len(self._values)})"


@dataclass(frozen=True)
class InfluenceField:
    """A built cost matrix and the tick it was built at."""
    matrix: CostMatrix
    built_at_tick: int

    def is_stale(self, tick: int, refresh_ticks: int) -> bool:
        return tick - self.built_at_tick >= refresh_ticks


def terrain_cost(terrain: Terrain, config: SquadConfig) -> int:
    return config.swamp_cost if terrain == Terrain.SWAMP else config.plain_cost


def enemy_threat_cost(threat: float, distance: int, config: SquadConfig) -> int:
    """Cost an enemy adds at a Chebyshev distance; zero beyond the threat radius."""
    if distance > config.enemy_threat_radius:
        return 0
    raw = max(1.0, threat) / (distance + 1) * config.enemy_threat_scale
    return min(config.source_penalty_cap, math.floor(raw))


def tower_threat_cost(distance: int, config: SquadConfig) -> int:
    """Cost from a linear falloff estimate of tower damage."""
    if distance > config.tower_range:
        return 0
    damage = max(0, 1000 - 50 * (distance - 1))
    return min(config.source_penalty_cap, math.floor(damage * config.tower_threat_weight))


def build_influence_field(snapshot: WorldSnapshot, config: SquadConfig) -> InfluenceField:
    """
    Build the field from scratch.

    Enemy and tower overlays combine per tile by max; edge repulsion and
    ally stacking are added on top; everything is clamped to `max_cost`.
    """
    grid = snapshot.grid
    matrix = CostMatrix(grid.width, grid.height)

    for enemy in snapshot.enemies:
        threat = threat_score(enemy)
        for pos, distance in grid.positions_in_range(enemy.pos, config.enemy_threat_radius):
            terrain = grid.terrain_at(pos)
            if terrain == Terrain.WALL:
                continue
            value = terrain_cost(terrain, config) + enemy_threat_cost(threat, distance, config)
            matrix.raise_to(pos, min(config.max_cost, value))

    for tower in snapshot.enemy_towers:
        if tower.energy <= 0:
            continue
        for pos, distance in grid.positions_in_range(tower.pos, config.tower_range):
            if grid.terrain_at(pos) == Terrain.WALL:
                continue
            matrix.raise_to(pos, min(config.max_cost, tower_threat_cost(distance, config)))

    band = config.edge_band
    if band > 0:
        for x in range(grid.width):
            for y in range(grid.height):
                edge = grid.edge_distance((x, y))
                if edge >= band or grid.terrain_at((x, y)) == Terrain.WALL:
                    continue
                matrix.add((x, y), (band - edge) * config.edge_penalty_per_tile, config.max_cost)

    for ally in snapshot.my_units:
        matrix.add(ally.pos, config.ally_stacking_penalty, config.max_cost)

    matrix.clamp(config.max_cost)
    return InfluenceField(matrix=matrix, built_at_tick=snapshot.tick)


def refresh_influence(snapshot: WorldSnapshot, state: SquadState, config: SquadConfig) -> InfluenceField:
    """Rebuild the cached field when it is missing or stale; otherwise reuse it."""
    field = state.influence
    if field is None or field.is_stale(snapshot.tick, config.influence_refresh_ticks):
        field = build_influence_field(snapshot, config)
        state.influence = field
        log.debug("Influence field rebuilt at tick %s (%s tiles)", snapshot.tick, len(field.matrix))
    return field
