"""
In-memory ActionExecutor.

Validates each order against the tick's snapshot and records it. Nothing is
applied to the world: damage, movement and captures belong to the host
simulation.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from env.core.actions import Action
from env.core.types import ActionValidation
from env.core.validation import validate_action_in_world
from env.world.snapshot import WorldSnapshot


class RecordingExecutor:
    """
    Executes orders by validating and recording them.

    Call `begin(snapshot)` at the start of every tick; `execute` then
    checks orders against that snapshot.
    """

    def __init__(self):
        self.snapshot: Optional[WorldSnapshot] = None
        self.history: List[Tuple[int, int, Action, ActionValidation]] = []

    def begin(self, snapshot: WorldSnapshot) -> None:
        self.snapshot = snapshot

    def execute(self, actor_id: int, action: Action) -> ActionValidation:
        if self.snapshot is None:
            raise RuntimeError("RecordingExecutor.begin() must be called before execute()")
        actor = self.snapshot.get_my_unit(actor_id) or self.snapshot.get_tower(actor_id)
        if actor is None:
            result = ActionValidation.fail("DEAD", f"Actor {actor_id} not found")
        else:
            result = validate_action_in_world(self.snapshot, actor, action)
        self.history.append((self.snapshot.tick, actor_id, action, result))
        return result

    def orders_at(self, tick: int) -> List[Tuple[int, Action, ActionValidation]]:
        return [(actor, action, result) for t, actor, action, result in self.history if t == tick]

    def clear(self) -> None:
        self.history.clear()
