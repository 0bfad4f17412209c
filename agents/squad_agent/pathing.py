"""
Default path planner and the step helpers built on it.

The host may plug in its own PathPlanner; GridPathPlanner is the in-repo
implementation used by the runner and the tests. It searches the
8-connected grid with A*, reading tile costs from an optional CostMatrix.
"""

from __future__ import annotations

import heapq
from itertools import count
from typing import Dict, Optional, Sequence, Tuple

from agents.team_intel import TeamIntel
from env.core.actions import Action
from env.core.constants import IMPASSABLE_COST, PLAIN_COST, SWAMP_COST
from env.core.types import GridPos, MoveDir, Terrain
from env.entities import Unit
from env.interfaces import PathPlanner, PathResult
from env.world.grid import Grid

from .influence import CostMatrix

Goal = Tuple[GridPos, int]


def reconstruct_path(came_from: Dict[GridPos, GridPos], cur: GridPos) -> list[GridPos]:
    path = []
    while cur in came_from:
        path.append(cur)
        cur = came_from[cur]
    path.reverse()
    return path


class GridPathPlanner:
    """
    A* over the arena grid.

    - approach mode: stop at the first tile within range of any goal
    - flee mode: stop at the first tile at or beyond range of every goal
    - a non-zero matrix value replaces the terrain cost; walls and values
      of 255 are impassable
    - the search gives up after `max_ops` expansions and returns the path
      to the most promising tile with `incomplete=True`
    """

    def __init__(
        self,
        grid: Grid,
        *,
        plain_cost: int = PLAIN_COST,
        swamp_cost: int = SWAMP_COST,
        max_ops: int = 2000,
    ):
        self.grid = grid
        self.plain_cost = plain_cost
        self.swamp_cost = swamp_cost
        self.max_ops = max_ops

    def tile_cost(self, pos: GridPos, cost_matrix: Optional[CostMatrix]) -> Optional[int]:
        """Cost of entering a tile, or None when it cannot be entered."""
        terrain = self.grid.terrain_at(pos)
        if terrain == Terrain.WALL:
            return None
        if cost_matrix is not None:
            value = cost_matrix.get(pos)
            if value >= IMPASSABLE_COST:
                return None
            if value > 0:
                return value
        return self.swamp_cost if terrain == Terrain.SWAMP else self.plain_cost

    def search(
        self,
        origin: GridPos,
        goals: Sequence[Goal],
        *,
        cost_matrix: Optional[CostMatrix] = None,
        flee: bool = False,
    ) -> PathResult:
        if not goals:
            return PathResult(incomplete=True)

        def remaining(pos: GridPos) -> int:
            # Lower bound on steps still needed
            if flee:
                return max(max(0, r - Grid.range(pos, g)) for g, r in goals)
            return min(max(0, Grid.range(pos, g) - r) for g, r in goals)

        if remaining(origin) == 0:
            return PathResult()

        step_floor = min(self.plain_cost, self.swamp_cost)
        if cost_matrix is not None:
            lowest = cost_matrix.min_nonzero()
            if lowest is not None:
                step_floor = min(step_floor, lowest)

        tie = count()
        open_set = [(remaining(origin) * step_floor, next(tie), origin)]
        came_from: Dict[GridPos, GridPos] = {}
        g: Dict[GridPos, int] = {origin: 0}
        closed = set()
        best = (remaining(origin), 0, origin)
        ops = 0

        while open_set and ops < self.max_ops:
            _, _, cur = heapq.heappop(open_set)
            if cur in closed:
                continue
            closed.add(cur)
            ops += 1

            h = remaining(cur)
            if h == 0:
                return PathResult(path=reconstruct_path(came_from, cur), ops=ops)
            if (h, g[cur]) < best[:2]:
                best = (h, g[cur], cur)

            for nxt in self.grid.get_neighbors(cur):
                if nxt in closed:
                    continue
                step = self.tile_cost(nxt, cost_matrix)
                if step is None:
                    continue
                tg = g[cur] + step
                if tg < g.get(nxt, float("inf")):
                    came_from[nxt] = cur
                    g[nxt] = tg
                    heapq.heappush(open_set, (tg + remaining(nxt) * step_floor, next(tie), nxt))

        return PathResult(path=reconstruct_path(came_from, best[2]), ops=ops, incomplete=True)


def step_toward(pos: GridPos, target: GridPos) -> Optional[MoveDir]:
    """Naive single step closing both axes; None when already there."""
    if pos == target:
        return None
    return MoveDir.from_delta(target[0] - pos[0], target[1] - pos[1])


def first_step(origin: GridPos, result: PathResult) -> Optional[Action]:
    """MOVE order for the first tile of a path, if there is one."""
    if not result.path:
        return None
    nxt = result.path[0]
    return Action.move(MoveDir.from_delta(nxt[0] - origin[0], nxt[1] - origin[1]))


def navigate(
    intel: TeamIntel,
    planner: PathPlanner,
    unit: Unit,
    target: GridPos,
    *,
    reach: int = 0,
    cost_matrix: Optional[CostMatrix] = None,
) -> Optional[Action]:
    """
    One MOVE order bringing `unit` within `reach` of `target`.

    Falls back to a naive step when the planner finds nothing; returns None
    when the unit is already in reach.
    """
    if Grid.range(unit.pos, target) <= reach:
        return None
    result = planner.search(unit.pos, [(target, reach)], cost_matrix=cost_matrix)
    action = first_step(unit.pos, result)
    if action is not None:
        return action
    candidates = intel.move_toward(unit.pos, target, ignore_ids={unit.id})
    direction = candidates[0] if candidates else step_toward(unit.pos, target)
    return Action.move(direction) if direction is not None else None


def default_planner(grid: Grid, config) -> PathPlanner:
    return GridPathPlanner(
        grid,
        plain_cost=config.plain_cost,
        swamp_cost=config.swamp_cost,
        max_ops=config.path_max_ops,
    )
