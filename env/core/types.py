"""
Core type definitions for the capture-the-flag arena.

This module contains all fundamental types, enums, and constants used
throughout the system. No logic, just pure data structures.
"""

from __future__ import annotations
from enum import Enum, auto
from typing import Tuple
from dataclasses import dataclass

# ============================================================================
# SPATIAL TYPES
# ============================================================================

# Grid position: (x, y) where:
# - X increases to the RIGHT
# - Y increases UPWARD
# - Origin (0, 0) is at BOTTOM-LEFT
GridPos = Tuple[int, int]


class Owner(Enum):
    """Ownership of a unit, flag or structure as seen from our side."""
    MINE = "MINE"
    ENEMY = "ENEMY"
    NEUTRAL = "NEUTRAL"

    def __str__(self) -> str:
        return self.value


class Terrain(Enum):
    """Terrain class of a single tile."""
    PLAIN = "."
    SWAMP = "~"
    WALL = "#"

    @classmethod
    def from_char(cls, char: str) -> Terrain:
        for terrain in cls:
            if terrain.value == char:
                return terrain
        raise ValueError(f"Unknown terrain character: {char!r}")


# ============================================================================
# BODY PARTS
# ============================================================================

class PartKind(Enum):
    """Kinds of body parts a unit can carry."""
    ATTACK = "attack"  # melee
    RANGED_ATTACK = "ranged_attack"
    HEAL = "heal"
    MOVE = "move"
    CARRY = "carry"
    TOUGH = "tough"
    WORK = "work"

    def __str__(self) -> str:
        return self.value


# ============================================================================
# ACTIONS
# ============================================================================

class ActionType(Enum):
    """Types of commands the core can issue."""
    WAIT = auto()  # Do nothing this tick
    MOVE = auto()  # Step one tile in a direction
    ATTACK = auto()  # Melee attack an adjacent target
    RANGED_ATTACK = auto()  # Ranged attack a target within 3
    RANGED_MASS_ATTACK = auto()  # Area attack everything within 3
    HEAL = auto()  # Heal an adjacent ally (or self)
    RANGED_HEAL = auto()  # Heal an ally within 3
    WITHDRAW = auto()  # Take energy from a container
    TRANSFER = auto()  # Give energy to a structure

    def __str__(self) -> str:
        return self.name


class MoveDir(Enum):
    """
    Movement directions using mathematical coordinates (Y+ = UP).
    Each direction provides a delta tuple (dx, dy).
    """
    UP = (0, 1)
    UP_RIGHT = (1, 1)
    RIGHT = (1, 0)
    DOWN_RIGHT = (1, -1)
    DOWN = (0, -1)
    DOWN_LEFT = (-1, -1)
    LEFT = (-1, 0)
    UP_LEFT = (-1, 1)

    @property
    def delta(self) -> Tuple[int, int]:
        """Get the (dx, dy) movement delta."""
        return self.value

    @classmethod
    def from_delta(cls, dx: int, dy: int) -> MoveDir:
        """Direction of a single step; larger deltas are reduced to their sign."""
        sx = (dx > 0) - (dx < 0)
        sy = (dy > 0) - (dy < 0)
        if sx == 0 and sy == 0:
            raise ValueError("Zero delta has no direction")
        return cls((sx, sy))

    def __str__(self) -> str:
        return self.name


# ============================================================================
# SQUAD ROLES / FSM STATES
# ============================================================================

class Role(Enum):
    """Role of an owned unit. Exactly one per living unit."""
    VANGUARD = "vanguard"  # frontline melee
    RANGER = "ranger"  # kiting ranged DPS
    MEDIC = "medic"  # healer
    RUNNER = "runner"  # dedicated flag capture
    SENTINEL = "sentinel"  # home-flag defender
    LOGISTICS = "logistics"  # tower charger

    def __str__(self) -> str:
        return self.value

    @property
    def icon(self) -> str:
        """Single letter used in logs and overlays."""
        return {
            Role.VANGUARD: "V",
            Role.RANGER: "R",
            Role.MEDIC: "M",
            Role.RUNNER: "F",
            Role.SENTINEL: "S",
            Role.LOGISTICS: "L",
        }[self]


class ChargerState(Enum):
    """Two-state cycle of a tower charger."""
    WITHDRAW = "WITHDRAW"
    DELIVER = "DELIVER"

    def __str__(self) -> str:
        return self.value


class Phase(Enum):
    """Match phases; they bias objective selection."""
    EXPANSION = 1
    CONSOLIDATION = 2
    ASSAULT = 3
    ENDGAME = 4

    def __str__(self) -> str:
        return self.name.lower()


# ============================================================================
# ACTION VALIDATION
# ============================================================================

@dataclass
class ActionValidation:
    """
    Structured result of validating an order.

    Attributes:
        valid: Whether the order is valid
        error_code: Machine-readable error code (None if valid)
        message: Human-readable message explaining the result

    Error codes:
        - "DEAD": Unit is gone or still spawning
        - "NO_BODYPART": Unit lacks an active part for the action
        - "TIRED": Unit has fatigue and cannot move
        - "INVALID_TARGET": Target id does not resolve or is the wrong kind
        - "NOT_IN_RANGE": Target is outside the action's range
        - "OUT_OF_BOUNDS": Movement would leave the arena or hit a wall
        - "NOT_ENOUGH_RESOURCES": Nothing to withdraw/transfer
        - "FULL": Receiver has no free capacity
        - "BUSY": Structure is cooling down
    """
    valid: bool
    error_code: str | None = None
    message: str = ""

    @staticmethod
    def success(message: str = "") -> ActionValidation:
        """Create a validation success result."""
        return ActionValidation(valid=True, error_code=None, message=message)

    @staticmethod
    def fail(error_code: str, message: str) -> ActionValidation:
        """Create a validation failure result."""
        return ActionValidation(valid=False, error_code=error_code, message=message)
