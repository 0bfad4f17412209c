"""
Static arena objects: flags, towers, energy containers and pickups.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict

from ..core.constants import TOWER_CAPACITY
from ..core.types import GridPos, Owner, PartKind


@dataclass
class Flag:
    """
    A capturable flag.

    Ownership is mutated by the simulation on capture; `home` marks the
    flag a team starts with.
    """
    id: int
    pos: GridPos
    owner: Owner = Owner.NEUTRAL
    home: bool = False

    def __post_init__(self):
        self.pos = tuple(self.pos)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "pos": list(self.pos), "owner": self.owner.value, "home": self.home}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Flag:
        return cls(
            id=data["id"],
            pos=tuple(data["pos"]),
            owner=Owner(data.get("owner", Owner.NEUTRAL.value)),
            home=data.get("home", False),
        )


@dataclass
class Tower:
    """A defensive tower that spends stored energy to attack or heal."""
    id: int
    pos: GridPos
    owner: Owner
    energy: int = 0
    energy_capacity: int = TOWER_CAPACITY
    cooldown: int = 0

    def __post_init__(self):
        self.pos = tuple(self.pos)
        if not 0 <= self.energy <= self.energy_capacity:
            raise ValueError(
                f"Tower {self.id} energy {self.energy} outside [0, {self.energy_capacity}]"
            )

    @property
    def fill_ratio(self) -> float:
        if self.energy_capacity <= 0:
            return 1.0
        return self.energy / self.energy_capacity

    @property
    def free_capacity(self) -> int:
        return self.energy_capacity - self.energy

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "pos": list(self.pos),
            "owner": self.owner.value,
            "energy": self.energy,
            "energy_capacity": self.energy_capacity,
            "cooldown": self.cooldown,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Tower:
        return cls(
            id=data["id"],
            pos=tuple(data["pos"]),
            owner=Owner(data["owner"]),
            energy=data.get("energy", 0),
            energy_capacity=data.get("energy_capacity", TOWER_CAPACITY),
            cooldown=data.get("cooldown", 0),
        )


@dataclass
class Container:
    """An energy container that chargers withdraw from."""
    id: int
    pos: GridPos
    energy: int = 0
    energy_capacity: int = 2000

    def __post_init__(self):
        self.pos = tuple(self.pos)
        if self.energy < 0:
            raise ValueError(f"Container {self.id} energy cannot be negative")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "pos": list(self.pos),
            "energy": self.energy,
            "energy_capacity": self.energy_capacity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Container:
        return cls(
            id=data["id"],
            pos=tuple(data["pos"]),
            energy=data.get("energy", 0),
            energy_capacity=data.get("energy_capacity", 2000),
        )


@dataclass
class Pickup:
    """A body part lying on the ground; collected by stepping onto it."""
    id: int
    pos: GridPos
    kind: PartKind

    def __post_init__(self):
        self.pos = tuple(self.pos)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "pos": list(self.pos), "kind": self.kind.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Pickup:
        return cls(id=data["id"], pos=tuple(data["pos"]), kind=PartKind(data["kind"]))
