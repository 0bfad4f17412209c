from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, TypeVar

from env.core.types import GridPos, MoveDir, Role
from env.entities import Unit
from env.world.grid import Grid
from env.world.snapshot import WorldSnapshot

# Anything with a grid position: units, flags, towers, containers, pickups.
Positioned = TypeVar("Positioned")


def round_half_up(value: float) -> int:
    """Round .5 away from zero on the positive side, as tile math expects."""
    return math.floor(value + 0.5)


def centroid(positions: Iterable[GridPos]) -> Optional[GridPos]:
    """Rounded mean of a set of positions; None when empty."""
    points = list(positions)
    if not points:
        return None
    x = round_half_up(sum(p[0] for p in points) / len(points))
    y = round_half_up(sum(p[1] for p in points) / len(points))
    return (x, y)


@dataclass(frozen=True)
class TeamIntel:
    """
    Read-only per-tick view of the world for squad decision-making.

    - snapshot: the tick's WorldSnapshot (never mutated)
    - roles: role table at the moment the view was built
    """

    snapshot: WorldSnapshot
    roles: Mapping[int, Role] = field(default_factory=dict)

    @property
    def grid(self) -> Grid:
        return self.snapshot.grid

    @property
    def my_units(self) -> Sequence[Unit]:
        return self.snapshot.my_units

    @property
    def enemies(self) -> Sequence[Unit]:
        return self.snapshot.enemies

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------
    def role_of(self, unit_id: int) -> Optional[Role]:
        return self.roles.get(unit_id)

    def units_with_role(self, *roles: Role) -> List[Unit]:
        """Owned units holding any of the given roles, in snapshot order."""
        return [u for u in self.my_units if self.roles.get(u.id) in roles]

    def medics(self) -> List[Unit]:
        return self.units_with_role(Role.MEDIC)

    def vanguards(self) -> List[Unit]:
        return self.units_with_role(Role.VANGUARD)

    def combat_units(self) -> List[Unit]:
        """Owned units that are not tied up charging towers."""
        return [u for u in self.my_units if self.roles.get(u.id) != Role.LOGISTICS]

    # ------------------------------------------------------------------
    # Range queries (Chebyshev)
    # ------------------------------------------------------------------
    def in_range(self, origin: GridPos, objects: Iterable[Positioned], max_range: int) -> List[Positioned]:
        """Objects within `max_range` of a position, order preserved."""
        return [o for o in objects if Grid.range(origin, o.pos) <= max_range]

    def enemies_in_range(self, origin: GridPos, max_range: int) -> List[Unit]:
        return self.in_range(origin, self.enemies, max_range)

    def allies_in_range(self, origin: GridPos, max_range: int) -> List[Unit]:
        return self.in_range(origin, self.my_units, max_range)

    def closest_by_range(self, origin: GridPos, objects: Iterable[Positioned]) -> Optional[Positioned]:
        """Closest object by Chebyshev range; the earliest wins ties."""
        best: Optional[Positioned] = None
        best_range = None
        for obj in objects:
            distance = Grid.range(origin, obj.pos)
            if best_range is None or distance < best_range:
                best, best_range = obj, distance
        return best

    def is_occupied(self, pos: GridPos, *, ignore_ids: Optional[Set[int]] = None) -> bool:
        """Check whether any living unit (either side) stands on a tile."""
        ignore = ignore_ids or set()
        return any(
            u.pos == pos and u.id not in ignore
            for u in (*self.my_units, *self.enemies)
        )

    # ------------------------------------------------------------------
    # Movement helpers
    # ------------------------------------------------------------------
    def _usable(self, pos: GridPos, blocked: Set[GridPos], ignore_ids: Optional[Set[int]]) -> bool:
        return (
            self.grid.is_walkable(pos)
            and pos not in blocked
            and not self.is_occupied(pos, ignore_ids=ignore_ids)
        )

    def move_toward(
        self,
        start: GridPos,
        target: GridPos,
        *,
        blocked: Optional[Set[GridPos]] = None,
        ignore_ids: Optional[Set[int]] = None,
    ) -> List[MoveDir]:
        """
        Suggest single steps that reduce the range to a target.

        The diagonal closing both axes comes first, then the axis with the
        larger delta, then the other one. Steps onto walls, blocked or
        occupied tiles are filtered out.
        """
        if start == target:
            return []

        blocked_positions = blocked or set()
        dx = target[0] - start[0]
        dy = target[1] - start[1]
        sx = (dx > 0) - (dx < 0)
        sy = (dy > 0) - (dy < 0)

        deltas = []
        if sx and sy:
            deltas.append((sx, sy))
        axes = [(sx, 0), (0, sy)] if abs(dx) >= abs(dy) else [(0, sy), (sx, 0)]
        deltas.extend(d for d in axes if d != (0, 0))

        valid: List[MoveDir] = []
        for delta in deltas:
            next_pos = (start[0] + delta[0], start[1] + delta[1])
            if self._usable(next_pos, blocked_positions, ignore_ids):
                valid.append(MoveDir.from_delta(*delta))
        return valid

    def move_away(
        self,
        start: GridPos,
        threat: GridPos,
        *,
        blocked: Optional[Set[GridPos]] = None,
        ignore_ids: Optional[Set[int]] = None,
    ) -> List[MoveDir]:
        """
        Suggest single steps that increase the range from a threat.

        Candidates are ordered by the range they open up (largest first),
        then by Euclidean separation so straight retreats beat sidesteps.
        """
        blocked_positions = blocked or set()
        current = Grid.range(start, threat)

        scored = []
        for direction in MoveDir:
            next_pos = (start[0] + direction.delta[0], start[1] + direction.delta[1])
            if not self._usable(next_pos, blocked_positions, ignore_ids):
                continue
            opened = Grid.range(next_pos, threat)
            if opened <= current:
                continue
            scored.append((-opened, -Grid.distance(next_pos, threat), direction))

        scored.sort(key=lambda item: (item[0], item[1]))
        return [direction for _, _, direction in scored]

    @classmethod
    def build(cls, snapshot: WorldSnapshot, roles: Mapping[int, Role]) -> "TeamIntel":
        """
        Construct a view over a snapshot with a frozen copy of the role table.
        """
        role_table: Dict[int, Role] = dict(roles)
        return cls(snapshot=snapshot, roles=role_table)
