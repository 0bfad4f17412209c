"""
Scenario - a declared arena: terrain, objects and the agent to drive.

Scenarios are the only way to configure a headless match. They persist
to JSON so a situation can be replayed tick for tick.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .entities import Container, Flag, Pickup, Tower, Unit
from .world import WorldState


@dataclass
class Scenario:
    """
    Declarative description of a match.

    Attributes:
        grid_width / grid_height: Arena size
        terrain_rows: Optional terrain rows, top row first
        max_ticks: Match length
        units / flags / towers / containers / pickups: Initial arena objects
        agent: Agent spec dict ({"type": ..., "init_params": {...}})
    """

    grid_width: int = 100
    grid_height: int = 100
    terrain_rows: List[str] = field(default_factory=list)
    max_ticks: int = 2000
    units: List[Unit] = field(default_factory=list)
    flags: List[Flag] = field(default_factory=list)
    towers: List[Tower] = field(default_factory=list)
    containers: List[Container] = field(default_factory=list)
    pickups: List[Pickup] = field(default_factory=list)
    agent: Dict[str, Any] = field(default_factory=lambda: {"type": "squad"})

    def __post_init__(self):
        if self.max_ticks <= 0:
            raise ValueError(f"max_ticks must be positive: {self.max_ticks}")
        if self.terrain_rows:
            height = len(self.terrain_rows)
            width = len(self.terrain_rows[0])
            if (width, height) != (self.grid_width, self.grid_height):
                raise ValueError(
                    f"Terrain is {width}x{height} but scenario declares "
                    f"{self.grid_width}x{self.grid_height}"
                )

    def build_world(self) -> WorldState:
        """Create a fresh WorldState populated with copies of the declared objects."""
        world = WorldState(self.grid_width, self.grid_height, terrain_rows=self.terrain_rows or None)
        for unit in self.units:
            world.add_unit(Unit.from_dict(unit.to_dict()))
        for flag in self.flags:
            world.add_flag(Flag.from_dict(flag.to_dict()))
        for tower in self.towers:
            world.add_tower(Tower.from_dict(tower.to_dict()))
        for container in self.containers:
            world.add_container(Container.from_dict(container.to_dict()))
        for pickup in self.pickups:
            world.add_pickup(Pickup.from_dict(pickup.to_dict()))
        return world

    def to_dict(self) -> Dict[str, Any]:
        return {
            "config": {
                "grid_width": self.grid_width,
                "grid_height": self.grid_height,
                "terrain_rows": list(self.terrain_rows),
                "max_ticks": self.max_ticks,
            },
            "units": [u.to_dict() for u in self.units],
            "flags": [f.to_dict() for f in self.flags],
            "towers": [t.to_dict() for t in self.towers],
            "containers": [c.to_dict() for c in self.containers],
            "pickups": [p.to_dict() for p in self.pickups],
            "agent": dict(self.agent),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Scenario:
        if "config" not in data:
            raise ValueError("Scenario must contain 'config' dictionary")
        config = data["config"]
        return cls(
            grid_width=config.get("grid_width", 100),
            grid_height=config.get("grid_height", 100),
            terrain_rows=list(config.get("terrain_rows", [])),
            max_ticks=config.get("max_ticks", 2000),
            units=[Unit.from_dict(u) for u in data.get("units", [])],
            flags=[Flag.from_dict(f) for f in data.get("flags", [])],
            towers=[Tower.from_dict(t) for t in data.get("towers", [])],
            containers=[Container.from_dict(c) for c in data.get("containers", [])],
            pickups=[Pickup.from_dict(p) for p in data.get("pickups", [])],
            agent=dict(data.get("agent", {"type": "squad"})),
        )

    def save_json(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        return path

    @classmethod
    def load_json(cls, path: str | Path) -> Scenario:
        return cls.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))

    def clone(self) -> Scenario:
        return Scenario.from_dict(self.to_dict())

    def __str__(self) -> str:
        return (f"Scenario({self.grid_width}x{self.grid_height}, units={len(self.units)}, "
                f"flags={len(self.flags)}, agent={self.agent.get('type')})")


def load_scenario(path: Optional[str | Path]) -> Scenario:
    """Load a scenario file, or return the empty default arena."""
    if path is None:
        return Scenario()
    return Scenario.load_json(path)
