"""
WorldState - In-memory arena declared from a scenario.

The WorldState is the headless stand-in for the real simulation. It:
- Holds the grid and every arena object
- Tracks the tick counter
- Produces one immutable WorldSnapshot per tick
- Exposes the small set of mutations a host (or a test) needs

It does NOT resolve damage, movement or captures; those belong to the
simulation that drives the squad.
"""

from __future__ import annotations

import copy
import json
import time
from typing import Any, Dict, List, Optional

from .grid import Grid
from .snapshot import WorldSnapshot
from ..core.types import GridPos, Owner, Terrain
from ..entities import Container, Flag, Pickup, Tower, Unit


class WorldState:
    """
    The in-memory world.

    WorldState manages:
    - The spatial grid
    - Units, flags, towers, containers and pickups
    - The tick counter

    It implements the WorldQuery protocol.
    """

    def __init__(self, width: int, height: int, terrain_rows: Optional[List[str]] = None):
        """
        Initialize a new world.

        Args:
            width: Grid width
            height: Grid height
            terrain_rows: Optional terrain rows (top row first)
        """
        if terrain_rows:
            self.grid = Grid.from_rows(terrain_rows)
            if (self.grid.width, self.grid.height) != (width, height):
                raise ValueError(
                    f"Terrain rows are {self.grid.width}x{self.grid.height}, expected {width}x{height}"
                )
        else:
            self.grid = Grid(width, height)

        self._units: Dict[int, Unit] = {}
        self._flags: Dict[int, Flag] = {}
        self._towers: Dict[int, Tower] = {}
        self._containers: Dict[int, Container] = {}
        self._pickups: Dict[int, Pickup] = {}

        self._tick: int = 1
        self._tick_started_ns: int = time.perf_counter_ns()

    # ========================================================================
    # ENTITY MANAGEMENT
    # ========================================================================

    def add_unit(self, unit: Unit) -> int:
        """
        Add a unit to the world.

        Raises:
            ValueError: If the position is invalid, a wall, or occupied, or the id is taken
        """
        self._check_placement(unit.id, unit.pos)
        if self.is_position_occupied(unit.pos):
            raise ValueError(f"Position already occupied: {unit.pos}")
        self._units[unit.id] = unit
        return unit.id

    def add_flag(self, flag: Flag) -> int:
        self._check_placement(flag.id, flag.pos)
        self._flags[flag.id] = flag
        return flag.id

    def add_tower(self, tower: Tower) -> int:
        self._check_placement(tower.id, tower.pos)
        self._towers[tower.id] = tower
        return tower.id

    def add_container(self, container: Container) -> int:
        self._check_placement(container.id, container.pos)
        self._containers[container.id] = container
        return container.id

    def add_pickup(self, pickup: Pickup) -> int:
        self._check_placement(pickup.id, pickup.pos)
        self._pickups[pickup.id] = pickup
        return pickup.id

    def remove_unit(self, unit_id: int) -> Optional[Unit]:
        """Remove a unit (killed by the simulation)."""
        return self._units.pop(unit_id, None)

    def remove_tower(self, tower_id: int) -> Optional[Tower]:
        return self._towers.pop(tower_id, None)

    def remove_pickup(self, pickup_id: int) -> Optional[Pickup]:
        return self._pickups.pop(pickup_id, None)

    def set_flag_owner(self, flag_id: int, owner: Owner) -> None:
        """Apply a capture event."""
        flag = self._flags.get(flag_id)
        if flag is None:
            raise ValueError(f"Unknown flag: {flag_id}")
        flag.owner = owner

    def get_entity(self, entity_id: int) -> Optional[Any]:
        """Look up any arena object by id."""
        for table in (self._units, self._towers, self._containers, self._flags, self._pickups):
            if entity_id in table:
                return table[entity_id]
        return None

    def is_position_occupied(self, pos: GridPos) -> bool:
        """Check if a position is occupied by a unit or a tower."""
        return (
            any(u.pos == pos for u in self._units.values())
            or any(t.pos == pos for t in self._towers.values())
        )

    def _check_placement(self, entity_id: int, pos: GridPos) -> None:
        if not self.grid.in_bounds(pos):
            raise ValueError(f"Entity position out of bounds: {pos}")
        if self.grid.terrain_at(pos) == Terrain.WALL:
            raise ValueError(f"Entity position is a wall: {pos}")
        if self.get_entity(entity_id) is not None:
            raise ValueError(f"Duplicate entity id: {entity_id}")

    # ========================================================================
    # WORLD QUERY
    # ========================================================================

    @property
    def tick(self) -> int:
        return self._tick

    def advance(self) -> int:
        """Move to the next tick and restart the compute clock."""
        self._tick += 1
        self._tick_started_ns = time.perf_counter_ns()
        return self._tick

    def cpu_time_ns(self) -> int:
        return time.perf_counter_ns() - self._tick_started_ns

    def terrain_at(self, pos: GridPos) -> Terrain:
        return self.grid.terrain_at(pos)

    def get_units(self) -> List[Unit]:
        return list(self._units.values())

    def get_flags(self) -> List[Flag]:
        return list(self._flags.values())

    def get_towers(self) -> List[Tower]:
        return list(self._towers.values())

    def get_containers(self) -> List[Container]:
        return list(self._containers.values())

    def get_pickups(self) -> List[Pickup]:
        return list(self._pickups.values())

    def snapshot(self) -> WorldSnapshot:
        """Freeze the current tick into a snapshot (entities are copied)."""
        units = [copy.deepcopy(u) for u in self._units.values()]
        return WorldSnapshot(
            tick=self._tick,
            grid=self.grid,
            my_units=[u for u in units if u.is_mine],
            enemies=[u for u in units if u.owner == Owner.ENEMY],
            flags=[copy.copy(f) for f in self._flags.values()],
            towers=[copy.copy(t) for t in self._towers.values()],
            containers=[copy.copy(c) for c in self._containers.values()],
            pickups=[copy.copy(p) for p in self._pickups.values()],
            cpu_time_ns=self.cpu_time_ns(),
        )

    # ========================================================================
    # UTILITY
    # ========================================================================
    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize world state to dictionary.

        Returns:
            JSON-serializable dictionary of complete world state
        """
        return {
            "grid": {
                "width": self.grid.width,
                "height": self.grid.height,
                "rows": self.grid.to_rows(),
            },
            "tick": self._tick,
            "units": [u.to_dict() for u in self._units.values()],
            "flags": [f.to_dict() for f in self._flags.values()],
            "towers": [t.to_dict() for t in self._towers.values()],
            "containers": [c.to_dict() for c in self._containers.values()],
            "pickups": [p.to_dict() for p in self._pickups.values()],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> WorldState:
        """
        Deserialize world state from dictionary.

        Args:
            data: Dictionary from to_dict()
        """
        world = cls(
            width=data["grid"]["width"],
            height=data["grid"]["height"],
            terrain_rows=data["grid"].get("rows"),
        )
        world._tick = data.get("tick", 1)
        for unit_data in data.get("units", []):
            world.add_unit(Unit.from_dict(unit_data))
        for flag_data in data.get("flags", []):
            world.add_flag(Flag.from_dict(flag_data))
        for tower_data in data.get("towers", []):
            world.add_tower(Tower.from_dict(tower_data))
        for container_data in data.get("containers", []):
            world.add_container(Container.from_dict(container_data))
        for pickup_data in data.get("pickups", []):
            world.add_pickup(Pickup.from_dict(pickup_data))
        return world

    def to_json(self, filepath: Optional[str] = None, indent: int = 2) -> str:
        """
        Serialize to JSON.

        Args:
            filepath: If provided, write to file
            indent: JSON indentation (default: 2)
        """
        json_str = json.dumps(self.to_dict(), indent=indent, ensure_ascii=True)

        if filepath:
            with open(filepath, 'w') as f:
                f.write(json_str)

        return json_str

    @classmethod
    def from_json(cls, json_str: Optional[str] = None, filepath: Optional[str] = None) -> WorldState:
        """
        Deserialize from JSON.

        Raises:
            ValueError: If neither json_str nor filepath provided
        """
        if filepath:
            with open(filepath, 'r') as f:
                json_str = f.read()

        if not json_str:
            raise ValueError("Must provide either json_str or filepath")

        return cls.from_dict(json.loads(json_str))

    def clone(self) -> WorldState:
        """Create an independent deep copy of this world."""
        return WorldState.from_dict(self.to_dict())

    def __str__(self) -> str:
        """String representation."""
        return f"WorldState(tick={self._tick}, units={len(self._units)}, grid={self.grid})"

    def __repr__(self) -> str:
        """Detailed representation."""
        return (f"WorldState(grid={self.grid}, units={len(self._units)}, flags={len(self._flags)}, "
                f"towers={len(self._towers)}, tick={self._tick})")
