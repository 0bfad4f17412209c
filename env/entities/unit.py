"""
Unit entity - a creep with a modular body.

A unit's capabilities come entirely from its body: each part is
independently alive or disabled, so a damaged unit loses capability
part by part. Units are created and destroyed by the simulation; the
decision engine only observes them.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..core.constants import BODYPART_HITS, CARRY_CAPACITY
from ..core.types import GridPos, Owner, PartKind


@dataclass
class BodyPart:
    """A single body part; disabled once its hits reach zero."""
    kind: PartKind
    hits: int = BODYPART_HITS

    @property
    def active(self) -> bool:
        return self.hits > 0

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "hits": self.hits}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> BodyPart:
        return cls(kind=PartKind(data["kind"]), hits=data.get("hits", BODYPART_HITS))


@dataclass
class Unit:
    """
    A combat unit (owned or enemy).

    Attributes:
        id: Unique identifier
        owner: MINE or ENEMY
        pos: Current grid position
        body: Ordered list of body parts
        hits: Current hit points (defaults to the body's total)
        hits_max: Maximum hit points (defaults to parts x 100)
        fatigue: Movement fatigue; a unit with fatigue cannot step
        energy: Carried energy
        energy_capacity: Cargo capacity (defaults to CARRY parts x 50)
        spawning: True while the unit is still being spawned
    """
    id: int
    owner: Owner
    pos: GridPos
    body: List[BodyPart] = field(default_factory=list)
    hits: Optional[int] = None
    hits_max: Optional[int] = None
    fatigue: int = 0
    energy: int = 0
    energy_capacity: Optional[int] = None
    spawning: bool = False

    def __post_init__(self):
        if self.owner == Owner.NEUTRAL:
            raise ValueError(f"Unit {self.id} cannot be neutral")
        self.pos = tuple(self.pos)
        if self.hits_max is None:
            self.hits_max = max(1, len(self.body) * BODYPART_HITS)
        if self.hits is None:
            self.hits = sum(max(0, part.hits) for part in self.body) if self.body else self.hits_max
        if self.energy_capacity is None:
            self.energy_capacity = self.count_active(PartKind.CARRY) * CARRY_CAPACITY
        if self.hits_max <= 0:
            raise ValueError(f"hits_max must be positive: {self.hits_max}")
        if self.energy < 0:
            raise ValueError(f"Energy cannot be negative: {self.energy}")

    @classmethod
    def with_body(
        cls,
        unit_id: int,
        pos: GridPos,
        parts: Mapping[PartKind, int],
        *,
        owner: Owner = Owner.MINE,
        **kwargs: Any,
    ) -> Unit:
        """Build a unit from part counts, e.g. {PartKind.ATTACK: 3, PartKind.MOVE: 3}."""
        body = [BodyPart(kind) for kind, count in parts.items() for _ in range(count)]
        return cls(id=unit_id, owner=owner, pos=pos, body=body, **kwargs)

    # ------------------------------------------------------------------
    # Body introspection
    # ------------------------------------------------------------------
    def count_parts(self, kind: PartKind) -> int:
        """Number of parts of a kind, alive or not."""
        return sum(1 for part in self.body if part.kind == kind)

    def count_active(self, kind: PartKind) -> int:
        """Number of parts of a kind that still have hits."""
        return sum(1 for part in self.body if part.kind == kind and part.active)

    def has_active(self, kind: PartKind) -> bool:
        return any(part.kind == kind and part.active for part in self.body)

    @property
    def hp_ratio(self) -> float:
        return self.hits / self.hits_max

    @property
    def is_damaged(self) -> bool:
        return self.hits < self.hits_max

    @property
    def free_capacity(self) -> int:
        return max(0, self.energy_capacity - self.energy)

    @property
    def is_mine(self) -> bool:
        return self.owner == Owner.MINE

    @property
    def x(self) -> int:
        return self.pos[0]

    @property
    def y(self) -> int:
        return self.pos[1]

    def label(self) -> str:
        return f"Unit#{self.id}@{self.pos}"

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "owner": self.owner.value,
            "pos": list(self.pos),
            "body": [part.to_dict() for part in self.body],
            "hits": self.hits,
            "hits_max": self.hits_max,
            "fatigue": self.fatigue,
            "energy": self.energy,
            "energy_capacity": self.energy_capacity,
            "spawning": self.spawning,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Unit:
        return cls(
            id=data["id"],
            owner=Owner(data["owner"]),
            pos=tuple(data["pos"]),
            body=[BodyPart.from_dict(p) for p in data.get("body", [])],
            hits=data.get("hits"),
            hits_max=data.get("hits_max"),
            fatigue=data.get("fatigue", 0),
            energy=data.get("energy", 0),
            energy_capacity=data.get("energy_capacity"),
            spawning=data.get("spawning", False),
        )
