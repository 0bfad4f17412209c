"""
Base agent interface for the capture-the-flag arena.

All agents must implement this interface to be driven by the runner or the API.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from env.world.snapshot import WorldSnapshot

if TYPE_CHECKING:
    from agents.squad_agent.decisions import TickResult


class BaseAgent(ABC):
    """
    Abstract base class for all agents.

    Agents observe one WorldSnapshot per tick and produce orders for every
    owned unit and tower.

    Subclasses must implement:
    - get_actions(): Produce orders for all controlled objects

    Attributes:
        name: Agent name for logging/identification
    """

    def __init__(self, name: Optional[str] = None):
        """
        Initialize the agent.

        Args:
            name: Optional name for the agent (defaults to class name)
        """
        self.name = name or self.__class__.__name__

    @abstractmethod
    def get_actions(self, snapshot: WorldSnapshot) -> TickResult:
        """
        Get orders for all controlled objects.

        This is called once per tick. The agent should:
        1. Read the snapshot (it is never mutated)
        2. Update whatever per-match memory it keeps
        3. Return one TickResult with per-unit and per-tower orders

        Args:
            snapshot: Read-only view of the current tick

        Returns:
            TickResult holding the orders of this tick

        Notes:
            - Units still spawning receive no orders
            - Orders may fail validation; failures are non-fatal
        """

    def reset(self) -> None:
        """
        Reset agent state between matches.

        Override if your agent maintains internal state that needs to be reset.
        """

    def on_match_end(self, snapshot: WorldSnapshot) -> Dict[str, Any]:
        """Called once after the last tick. Returns an optional report."""
        return {}

    def __str__(self) -> str:
        """String representation."""
        return self.name

    def __repr__(self) -> str:
        """Detailed representation."""
        return f"{self.__class__.__name__}(name='{self.name}')"
