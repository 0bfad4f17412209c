"""
Grid - Spatial logic for the arena.

The Grid handles:
- Coordinate validation
- Terrain lookup (plain / swamp / wall)
- Range calculations (Chebyshev, the arena's notion of "range")
- Neighborhood and area queries

Coordinate System:
- X increases to the RIGHT
- Y increases UPWARD (mathematical convention)
- Origin (0, 0) is at BOTTOM-LEFT
"""

from __future__ import annotations
import math
from typing import Dict, Iterator, List, Optional, Sequence

from ..core.types import GridPos, Terrain


class Grid:
    """
    A 2D grid with terrain, using mathematical coordinates (Y+ = UP).

    Provides spatial queries and calculations without game logic or state.
    Terrain defaults to PLAIN; only non-plain tiles are stored.

    Attributes:
        width: Grid width (X dimension)
        height: Grid height (Y dimension)
    """

    def __init__(self, width: int, height: int, terrain: Optional[Dict[GridPos, Terrain]] = None):
        """
        Initialize a grid.

        Args:
            width: Grid width (must be positive)
            height: Grid height (must be positive)
            terrain: Sparse map of non-plain tiles

        Raises:
            ValueError: If dimensions are invalid or terrain is out of bounds
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive: {width}x{height}")

        self.width = width
        self.height = height
        self._terrain: Dict[GridPos, Terrain] = {}
        for pos, kind in (terrain or {}).items():
            if not self.in_bounds(pos):
                raise ValueError(f"Terrain tile out of bounds: {pos}")
            if kind != Terrain.PLAIN:
                self._terrain[tuple(pos)] = kind

    @classmethod
    def from_rows(cls, rows: Sequence[str]) -> Grid:
        """
        Build a grid from text rows ('.' plain, '~' swamp, '#' wall).

        The first row is the TOP of the map (highest y), matching how the
        rows read on screen.
        """
        if not rows:
            raise ValueError("Terrain rows cannot be empty")
        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise ValueError("All terrain rows must have the same width")
        height = len(rows)
        terrain: Dict[GridPos, Terrain] = {}
        for screen_y, row in enumerate(rows):
            y = height - 1 - screen_y
            for x, char in enumerate(row):
                kind = Terrain.from_char(char)
                if kind != Terrain.PLAIN:
                    terrain[(x, y)] = kind
        return cls(width, height, terrain)

    def to_rows(self) -> List[str]:
        """Inverse of from_rows()."""
        return [
            "".join(self.terrain_at((x, y)).value for x in range(self.width))
            for y in range(self.height - 1, -1, -1)
        ]

    def in_bounds(self, pos: GridPos) -> bool:
        """
        Check if a position is within grid boundaries.

        Args:
            pos: Position to check (x, y)

        Returns:
            True if position is valid, False otherwise
        """
        x, y = pos
        return 0 <= x < self.width and 0 <= y < self.height

    def terrain_at(self, pos: GridPos) -> Terrain:
        """Terrain class of a tile; out-of-bounds reads as WALL."""
        if not self.in_bounds(pos):
            return Terrain.WALL
        return self._terrain.get(tuple(pos), Terrain.PLAIN)

    def is_walkable(self, pos: GridPos) -> bool:
        return self.terrain_at(pos) != Terrain.WALL

    @staticmethod
    def range(a: GridPos, b: GridPos) -> int:
        """
        Chebyshev distance: number of 8-directional steps between tiles.

        Args:
            a: First position (x, y)
            b: Second position (x, y)
        """
        return max(abs(a[0] - b[0]), abs(a[1] - b[1]))

    @staticmethod
    def distance(a: GridPos, b: GridPos) -> float:
        """Euclidean distance between two positions."""
        return math.hypot(a[0] - b[0], a[1] - b[1])

    def edge_distance(self, pos: GridPos) -> int:
        """Tiles between a position and the closest map boundary."""
        x, y = pos
        return min(x, y, self.width - 1 - x, self.height - 1 - y)

    def get_neighbors(self, pos: GridPos, include_diagonals: bool = True) -> list[GridPos]:
        """
        Get in-bounds neighboring positions (8 or 4 directions).

        Args:
            pos: Center position
            include_diagonals: If True, include diagonal neighbors (8 total)
        """
        x, y = pos

        candidates = [
            (x, y + 1),  # UP
            (x, y - 1),  # DOWN
            (x - 1, y),  # LEFT
            (x + 1, y),  # RIGHT
        ]

        if include_diagonals:
            candidates.extend([
                (x - 1, y + 1),  # UP-LEFT
                (x + 1, y + 1),  # UP-RIGHT
                (x - 1, y - 1),  # DOWN-LEFT
                (x + 1, y - 1),  # DOWN-RIGHT
            ])

        return [p for p in candidates if self.in_bounds(p)]

    def positions_in_range(self, center: GridPos, max_range: int) -> Iterator[tuple[GridPos, int]]:
        """
        Yield (position, range) for every in-bounds tile within a Chebyshev range.

        Args:
            center: Center position
            max_range: Maximum Chebyshev range (inclusive)
        """
        cx, cy = center
        for y in range(max(0, cy - max_range), min(self.height, cy + max_range + 1)):
            for x in range(max(0, cx - max_range), min(self.width, cx + max_range + 1)):
                yield (x, y), max(abs(x - cx), abs(y - cy))

    def clamp(self, pos: GridPos, margin: int = 0) -> GridPos:
        """Clamp a position into [margin, size - 1 - margin] on both axes."""
        x = max(margin, min(self.width - 1 - margin, pos[0]))
        y = max(margin, min(self.height - 1 - margin, pos[1]))
        return (x, y)

    @property
    def center(self) -> GridPos:
        return (self.width // 2, self.height // 2)

    def __str__(self) -> str:
        """String representation."""
        return f"Grid({self.width}x{self.height})"

    def __repr__(self) -> str:
        """Detailed representation."""
        return f"Grid(width={self.width}, height={self.height}, special_tiles={len(self._terrain)})"
