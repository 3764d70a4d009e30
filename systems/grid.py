"""Read-only query surface over a generated maze plus the camera viewport."""

from __future__ import annotations
import math
from typing import List, Optional, Tuple
import pygame
from systems.maze import Grid, Cell, WALL, get_accessible_positions

Vec2 = pygame.Vector2

DEFAULT_CELL_SIZE = 20


class NavigableGrid:
    def __init__(self, maze: Grid, cell_size: int = DEFAULT_CELL_SIZE):
        if not maze or not maze[0]:
            raise ValueError("maze must have at least one row and one column")
        self._maze = [list(row) for row in maze]
        self.cell_size = max(1, int(cell_size))
        self.height = len(maze)
        self.width = len(maze[0])

    @property
    def pixel_width(self) -> int:
        return self.width * self.cell_size

    @property
    def pixel_height(self) -> int:
        return self.height * self.cell_size

    @property
    def dimensions(self) -> Tuple[int, int]:
        """Maze size in pixels."""
        return (self.pixel_width, self.pixel_height)

    def contains(self, cell: Cell) -> bool:
        x, y = cell
        return 0 <= x < self.width and 0 <= y < self.height

    def is_wall_cell(self, cell: Cell) -> bool:
        # Anything outside the maze counts as solid
        if not self.contains(cell):
            return True
        x, y = cell
        return self._maze[y][x] == WALL

    def is_wall(self, pos) -> bool:
        return self.is_wall_cell(self.world_to_grid(pos))

    def world_to_grid(self, pos) -> Cell:
        return (math.floor(pos[0] / self.cell_size), math.floor(pos[1] / self.cell_size))

    def grid_to_world(self, cell: Cell) -> Vec2:
        half = self.cell_size / 2
        return Vec2(cell[0] * self.cell_size + half, cell[1] * self.cell_size + half)

    def cell_center(self, pos) -> Vec2:
        return self.grid_to_world(self.world_to_grid(pos))

    def clamp_to_bounds(self, pos) -> Vec2:
        """Pull a world point inside the maze rectangle (half a cell margin)."""
        half = self.cell_size / 2
        return Vec2(
            min(max(pos[0], half), self.pixel_width - half),
            min(max(pos[1], half), self.pixel_height - half),
        )

    def nearest_open_cell(self, cell: Cell, max_radius: int = 3) -> Optional[Cell]:
        """``cell`` itself when open, else the closest open cell within ``max_radius`` rings."""
        if not self.is_wall_cell(cell):
            return cell
        x, y = cell
        for radius in range(1, max_radius + 1):
            ring = [
                (x + dx, y + dy)
                for dy in range(-radius, radius + 1)
                for dx in range(-radius, radius + 1)
                if max(abs(dx), abs(dy)) == radius and not self.is_wall_cell((x + dx, y + dy))
            ]
            if ring:
                return min(ring, key=lambda c: (abs(c[0] - x) + abs(c[1] - y), c[1], c[0]))
        return None

    def accessible_cells(self) -> List[Cell]:
        return get_accessible_positions(self._maze)

    def export(self) -> Grid:
        return [list(row) for row in self._maze]


class Camera:
    """Viewport that follows a target and clamps to the maze rectangle."""

    def __init__(self, width: int, height: int):
        self.x = 0.0
        self.y = 0.0
        self.width = width
        self.height = height

    def follow(self, target, grid: NavigableGrid) -> None:
        self.x = target[0] - self.width / 2
        self.y = target[1] - self.height / 2
        # Only scroll along an axis when the maze is larger than the view
        if grid.pixel_width > self.width:
            self.x = max(0.0, min(self.x, grid.pixel_width - self.width))
        else:
            self.x = -(self.width - grid.pixel_width) / 2
        if grid.pixel_height > self.height:
            self.y = max(0.0, min(self.y, grid.pixel_height - self.height))
        else:
            self.y = -(self.height - grid.pixel_height) / 2

    def world_to_screen(self, pos) -> Vec2:
        return Vec2(pos[0] - self.x, pos[1] - self.y)

    def screen_to_world(self, pos) -> Vec2:
        return Vec2(pos[0] + self.x, pos[1] + self.y)

    def visible_cells(self, grid: NavigableGrid) -> Tuple[int, int, int, int]:
        """Cell range (start_x, start_y, end_x, end_y) overlapping the view, end exclusive."""
        size = grid.cell_size
        start_x = max(0, math.floor(self.x / size))
        start_y = max(0, math.floor(self.y / size))
        end_x = min(grid.width, math.ceil((self.x + self.width) / size))
        end_y = min(grid.height, math.ceil((self.y + self.height) / size))
        return start_x, start_y, end_x, end_y
