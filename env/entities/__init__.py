"""
Entity definitions for the capture-the-flag arena.

This module exports all entity types:
- Unit / BodyPart (owned and enemy creeps)
- Flag (capturable objective)
- Tower (energy-powered defense)
- Container (energy supply)
- Pickup (collectible body part)
"""

from .unit import BodyPart, Unit
from .structures import Container, Flag, Pickup, Tower

__all__ = [
    "BodyPart",
    "Unit",
    "Flag",
    "Tower",
    "Container",
    "Pickup",
]
