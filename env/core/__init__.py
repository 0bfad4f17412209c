"""
Core types and constants for the capture-the-flag arena.
"""

# Instead of from env.core.types import GridPos, you can do: from env.core import GridPos
from .types import (
    GridPos,
    Owner,
    Terrain,
    PartKind,
    ActionType,
    MoveDir,
    Role,
    ChargerState,
    Phase,
    ActionValidation,
)
from .actions import Action


__all__ = [
    "GridPos",
    "Owner",
    "Terrain",
    "PartKind",
    "ActionType",
    "MoveDir",
    "Role",
    "ChargerState",
    "Phase",
    "ActionValidation",
    "Action",
]
