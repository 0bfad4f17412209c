"""
Value objects produced by one tick of the squad controller.

Combat and movement are resolved independently, so every unit gets two
separate decisions (plus a logistics action for chargers). Each decision
records the name of the rule that produced it for logs and diagnostics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from env.core.actions import Action
from env.core.types import ActionType, GridPos, Phase, Role


@dataclass(frozen=True)
class CombatDecision:
    """Attack/heal choice of one unit; `action` is None when nothing is worth doing."""
    rule: str
    action: Optional[Action] = None


@dataclass(frozen=True)
class MovementDecision:
    """
    Movement choice of one unit.

    Attributes:
        rule: Name of the rule that fired
        action: A single MOVE step, or None to hold position
        destination: Where the unit is heading, if anywhere
    """
    rule: str
    action: Optional[Action] = None
    destination: Optional[GridPos] = None


@dataclass
class UnitOrders:
    """Everything one unit is told to do this tick."""
    role: Role
    combat: Optional[Action] = None
    movement: Optional[Action] = None
    logistics: Optional[Action] = None
    combat_rule: str = "none"
    movement_rule: str = "none"

    def actions(self) -> List[Action]:
        """Orders to hand to the executor, combat first."""
        return [a for a in (self.combat, self.movement, self.logistics) if a is not None]

    @property
    def activity(self) -> str:
        """Coarse activity label: attack, heal, harvest, move or idle."""
        if self.combat is not None:
            if self.combat.type in (ActionType.HEAL, ActionType.RANGED_HEAL):
                return "heal"
            return "attack"
        if self.logistics is not None:
            return "harvest"
        if self.movement is not None:
            return "move"
        return "idle"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role.value,
            "combat": self.combat.to_dict() if self.combat else None,
            "movement": self.movement.to_dict() if self.movement else None,
            "logistics": self.logistics.to_dict() if self.logistics else None,
            "combat_rule": self.combat_rule,
            "movement_rule": self.movement_rule,
        }


@dataclass
class TickResult:
    """
    Output of one tick.

    Attributes:
        tick: Tick the orders were computed for
        phase: Match phase at that tick
        unit_orders: Orders per owned unit id (spawning units are absent)
        tower_orders: One action per owned tower that acts
        focus_target_id: Shared focus-fire target, if any
        tank_id: Designated tank, if any
        events: Structured events (deaths, spawns, promotions, bindings, flags)
    """
    tick: int
    phase: Phase
    unit_orders: Dict[int, UnitOrders] = field(default_factory=dict)
    tower_orders: Dict[int, Action] = field(default_factory=dict)
    focus_target_id: Optional[int] = None
    tank_id: Optional[int] = None
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tick": self.tick,
            "phase": str(self.phase),
            "unit_orders": {str(uid): o.to_dict() for uid, o in self.unit_orders.items()},
            "tower_orders": {str(tid): a.to_dict() for tid, a in self.tower_orders.items()},
            "focus_target_id": self.focus_target_id,
            "tank_id": self.tank_id,
            "events": list(self.events),
        }
