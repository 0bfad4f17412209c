"""
Rule-based squad controller for the capture-the-flag arena.

Usage:
    from agents.squad_agent import SquadAgent, run_tick

    agent = SquadAgent(config={"runner_count": 1})
    result = agent.get_actions(world.snapshot())
"""

from .config import SquadConfig
from .decisions import CombatDecision, MovementDecision, TickResult, UnitOrders
from .state import SquadState
from .squad_agent import SquadAgent, run_tick

__all__ = [
    "SquadConfig",
    "CombatDecision",
    "MovementDecision",
    "TickResult",
    "UnitOrders",
    "SquadState",
    "SquadAgent",
    "run_tick",
]
