from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from agents.squad_agent.decisions import TickResult


@dataclass
class OrderFailure:
    """An order the executor rejected."""
    actor_id: int
    action: Dict[str, Any]
    error_code: Optional[str]
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "actor_id": self.actor_id,
            "action": self.action,
            "error_code": self.error_code,
            "message": self.message,
        }


@dataclass
class Frame:
    """
    Snapshot of a single tick for UIs, logs and tests.

    - tick: tick the orders were issued at
    - result: the agent's TickResult
    - executed: number of orders the executor accepted
    - failures: orders rejected by validation
    - events: spawn/death/flag events derived from consecutive snapshots
    - done: whether the match reached its last tick
    """

    tick: int
    result: TickResult
    executed: int = 0
    failures: List[OrderFailure] = field(default_factory=list)
    events: List[Dict[str, Any]] = field(default_factory=list)
    done: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tick": self.tick,
            "orders": self.result.to_dict(),
            "executed": self.executed,
            "failures": [f.to_dict() for f in self.failures],
            "events": list(self.events),
            "done": self.done,
        }
