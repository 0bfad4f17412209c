"""
World state management for the capture-the-flag arena.

This module provides:
- Grid: Spatial logic, terrain and geometry
- WorldSnapshot / SnapshotDelta: Per-tick read-only view and its changes
- WorldState: In-memory world that produces snapshots
"""

from .grid import Grid
from .snapshot import SnapshotDelta, WorldSnapshot
from .world import WorldState

__all__ = [
    "Grid",
    "SnapshotDelta",
    "WorldSnapshot",
    "WorldState",
]
