"""
WorldSnapshot - the read-only view of one tick.

The decision engine reads the world exactly once per tick through a
snapshot. Snapshots are immutable containers; comparing two consecutive
snapshots yields a SnapshotDelta (spawns, deaths, flag transitions).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from .grid import Grid
from ..core.types import GridPos, Owner
from ..entities import Container, Flag, Pickup, Tower, Unit


@dataclass(frozen=True)
class WorldSnapshot:
    """
    Everything the squad can observe at one tick.

    Attributes:
        tick: Current simulation tick (starts at 1)
        grid: Arena geometry and terrain
        my_units: Living owned units
        enemies: Living enemy units
        flags: All flags with their current ownership
        towers: All towers (own and enemy)
        containers: Energy containers
        pickups: Body parts lying on the ground
        cpu_time_ns: Compute time already used this tick, as reported by the host
    """

    tick: int
    grid: Grid
    my_units: Tuple[Unit, ...] = ()
    enemies: Tuple[Unit, ...] = ()
    flags: Tuple[Flag, ...] = ()
    towers: Tuple[Tower, ...] = ()
    containers: Tuple[Container, ...] = ()
    pickups: Tuple[Pickup, ...] = ()
    cpu_time_ns: int = 0
    _units_by_id: Dict[int, Unit] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self):
        for name in ("my_units", "enemies", "flags", "towers", "containers", "pickups"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        if any(u.owner != Owner.MINE for u in self.my_units):
            raise ValueError("my_units must all be owned by MINE")
        if any(u.owner != Owner.ENEMY for u in self.enemies):
            raise ValueError("enemies must all be owned by ENEMY")
        index = {u.id: u for u in self.my_units}
        index.update({u.id: u for u in self.enemies})
        object.__setattr__(self, "_units_by_id", index)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def get_unit(self, unit_id: Optional[int]) -> Optional[Unit]:
        if unit_id is None:
            return None
        return self._units_by_id.get(unit_id)

    def get_my_unit(self, unit_id: Optional[int]) -> Optional[Unit]:
        unit = self.get_unit(unit_id)
        return unit if unit is not None and unit.is_mine else None

    def get_enemy(self, unit_id: Optional[int]) -> Optional[Unit]:
        unit = self.get_unit(unit_id)
        return unit if unit is not None and unit.owner == Owner.ENEMY else None

    def get_tower(self, tower_id: Optional[int]) -> Optional[Tower]:
        return next((t for t in self.towers if t.id == tower_id), None)

    def get_flag(self, flag_id: Optional[int]) -> Optional[Flag]:
        return next((f for f in self.flags if f.id == flag_id), None)

    def pickup_at(self, pos: GridPos) -> Optional[Pickup]:
        return next((p for p in self.pickups if p.pos == pos), None)

    @property
    def my_unit_ids(self) -> FrozenSet[int]:
        return frozenset(u.id for u in self.my_units)

    # ------------------------------------------------------------------
    # Flag views
    # ------------------------------------------------------------------
    @property
    def my_flags(self) -> List[Flag]:
        return [f for f in self.flags if f.owner == Owner.MINE]

    @property
    def enemy_flags(self) -> List[Flag]:
        return [f for f in self.flags if f.owner == Owner.ENEMY]

    @property
    def neutral_flags(self) -> List[Flag]:
        return [f for f in self.flags if f.owner == Owner.NEUTRAL]

    @property
    def uncaptured_flags(self) -> List[Flag]:
        """Flags we do not own: neutral ones first, then enemy ones."""
        return self.neutral_flags + self.enemy_flags

    @property
    def home_flag(self) -> Optional[Flag]:
        """The flag we fall back to: first owned flag, else the declared home flag."""
        owned = self.my_flags
        if owned:
            home = [f for f in owned if f.home]
            return home[0] if home else owned[0]
        return next((f for f in self.flags if f.home), None)

    # ------------------------------------------------------------------
    # Structure views
    # ------------------------------------------------------------------
    @property
    def my_towers(self) -> List[Tower]:
        return [t for t in self.towers if t.owner == Owner.MINE]

    @property
    def enemy_towers(self) -> List[Tower]:
        return [t for t in self.towers if t.owner == Owner.ENEMY]

    @property
    def stocked_containers(self) -> List[Container]:
        return [c for c in self.containers if c.energy > 0]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "tick": self.tick,
            "grid": {
                "width": self.grid.width,
                "height": self.grid.height,
                "rows": self.grid.to_rows(),
            },
            "my_units": [u.to_dict() for u in self.my_units],
            "enemies": [u.to_dict() for u in self.enemies],
            "flags": [f.to_dict() for f in self.flags],
            "towers": [t.to_dict() for t in self.towers],
            "containers": [c.to_dict() for c in self.containers],
            "pickups": [p.to_dict() for p in self.pickups],
            "cpu_time_ns": self.cpu_time_ns,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> WorldSnapshot:
        grid_data = data["grid"]
        if grid_data.get("rows"):
            grid = Grid.from_rows(grid_data["rows"])
        else:
            grid = Grid(grid_data["width"], grid_data["height"])
        return cls(
            tick=data["tick"],
            grid=grid,
            my_units=[Unit.from_dict(u) for u in data.get("my_units", [])],
            enemies=[Unit.from_dict(u) for u in data.get("enemies", [])],
            flags=[Flag.from_dict(f) for f in data.get("flags", [])],
            towers=[Tower.from_dict(t) for t in data.get("towers", [])],
            containers=[Container.from_dict(c) for c in data.get("containers", [])],
            pickups=[Pickup.from_dict(p) for p in data.get("pickups", [])],
            cpu_time_ns=data.get("cpu_time_ns", 0),
        )

    def __str__(self) -> str:
        return (f"WorldSnapshot(tick={self.tick}, mine={len(self.my_units)}, "
                f"enemies={len(self.enemies)}, flags={len(self.flags)})")


@dataclass(frozen=True)
class SnapshotDelta:
    """
    Enter/exit changes between two consecutive snapshots.

    Attributes:
        spawned: Owned unit ids present now but not before
        died: Owned unit ids present before but gone now
        flags_captured: Flag ids that became ours
        flags_lost: Flag ids that were ours and no longer are
        flags_taken_by_enemy: Flag ids that became the enemy's
    """

    spawned: FrozenSet[int] = frozenset()
    died: FrozenSet[int] = frozenset()
    flags_captured: FrozenSet[int] = frozenset()
    flags_lost: FrozenSet[int] = frozenset()
    flags_taken_by_enemy: FrozenSet[int] = frozenset()

    @property
    def ownership_changed(self) -> bool:
        return bool(self.flags_captured or self.flags_lost or self.flags_taken_by_enemy)

    @classmethod
    def between(cls, previous: Optional[WorldSnapshot], current: WorldSnapshot) -> SnapshotDelta:
        """Compare two snapshots; with no previous snapshot everything is a spawn."""
        current_ids = current.my_unit_ids
        if previous is None:
            return cls(spawned=current_ids)

        previous_ids = previous.my_unit_ids
        before = {f.id: f.owner for f in previous.flags}
        captured, lost, taken = set(), set(), set()
        for flag in current.flags:
            old = before.get(flag.id)
            if old is None or old == flag.owner:
                continue
            if flag.owner == Owner.MINE:
                captured.add(flag.id)
            if old == Owner.MINE:
                lost.add(flag.id)
            if flag.owner == Owner.ENEMY:
                taken.add(flag.id)

        return cls(
            spawned=current_ids - previous_ids,
            died=previous_ids - current_ids,
            flags_captured=frozenset(captured),
            flags_lost=frozenset(lost),
            flags_taken_by_enemy=frozenset(taken),
        )
