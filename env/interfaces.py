"""
Contracts of the external collaborators the decision engine consumes.

The simulation, the path search, order execution and diagnostics output are
all owned by the host. The engine only talks to them through these
protocols; the repository ships one in-memory implementation of each so the
engine can be driven and tested headless.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, TYPE_CHECKING

from .core.actions import Action
from .core.types import ActionValidation, GridPos, Terrain

if TYPE_CHECKING:
    from .entities import Container, Flag, Pickup, Tower, Unit
    from .world.snapshot import WorldSnapshot


class WorldQuery(Protocol):
    """Read access to the live world."""

    @property
    def tick(self) -> int: ...

    def cpu_time_ns(self) -> int: ...

    def terrain_at(self, pos: GridPos) -> Terrain: ...

    def get_units(self) -> List["Unit"]: ...

    def get_flags(self) -> List["Flag"]: ...

    def get_towers(self) -> List["Tower"]: ...

    def get_containers(self) -> List["Container"]: ...

    def get_pickups(self) -> List["Pickup"]: ...

    def snapshot(self) -> "WorldSnapshot": ...


@dataclass
class PathResult:
    """
    Outcome of a path search.

    Attributes:
        path: Tiles to walk, excluding the origin; empty on failure
        ops: Nodes expanded by the search
        incomplete: True when the search gave up before reaching a goal
    """
    path: List[GridPos] = field(default_factory=list)
    ops: int = 0
    incomplete: bool = False

    @property
    def found(self) -> bool:
        return bool(self.path) and not self.incomplete


class PathPlanner(Protocol):
    """Best-effort path search; a pure function of its inputs."""

    def search(
        self,
        origin: GridPos,
        goals: Sequence[Tuple[GridPos, int]],
        *,
        cost_matrix: Optional[Any] = None,
        flee: bool = False,
    ) -> PathResult: ...


class ActionExecutor(Protocol):
    """Imperative per-object commands; failures are reported, never raised."""

    def execute(self, actor_id: int, action: Action) -> ActionValidation: ...


class DiagnosticsSink(Protocol):
    """Write-only output for summaries and overlays."""

    def emit(self, kind: str, payload: Dict[str, Any]) -> None: ...
