"""
Capture-the-flag arena model consumed by the squad decision engine.

Usage:
    from env import Scenario

    world = Scenario.load_json("storage/scenarios/skirmish.json").build_world()
    snapshot = world.snapshot()
"""

from .scenario import Scenario
from .world import Grid, SnapshotDelta, WorldSnapshot, WorldState

__all__ = [
    "Scenario",
    "Grid",
    "SnapshotDelta",
    "WorldSnapshot",
    "WorldState",
]
