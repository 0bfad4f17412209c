"""
Agent interface and implementations for the capture-the-flag arena.

This module provides:
- BaseAgent: Abstract interface for all agents
- register_agent / create_agent_from_spec: Config-driven construction
- TeamIntel: Read-only per-tick view used by decision code
- SquadAgent: The rule-based squad controller (registered as "squad")
"""

from .base_agent import BaseAgent
from .factory import create_agent_from_spec
from .registry import available_agents, register_agent, resolve_agent_class
from .spec import AgentSpec
from .team_intel import TeamIntel
from .squad_agent import SquadAgent

__all__ = [
    "BaseAgent",
    "AgentSpec",
    "TeamIntel",
    "SquadAgent",
    "available_agents",
    "create_agent_from_spec",
    "register_agent",
    "resolve_agent_class",
]
