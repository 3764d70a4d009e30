from __future__ import annotations
from typing import Tuple
import pygame

Vec2 = pygame.Vector2

def box_corners(pos, size: float) -> Tuple[Vec2, Vec2, Vec2, Vec2]:
    half = size / 2
    x, y = pos[0], pos[1]
    return (
        Vec2(x - half, y - half),
        Vec2(x + half, y - half),
        Vec2(x - half, y + half),
        Vec2(x + half, y + half),
    )

def box_fits(grid, pos, size: float) -> bool:
    """True when no corner of the square box centred on ``pos`` lands in a wall."""
    return not any(grid.is_wall(corner) for corner in box_corners(pos, size))

def circles_overlap(a, radius_a: float, b, radius_b: float) -> bool:
    return Vec2(a).distance_to(b) < radius_a + radius_b

def point_in_grid(point: Tuple[int, int], grid_size: Tuple[int, int]) -> bool:
    x, y = point
    width, height = grid_size
    return 0 <= x < width and 0 <= y < height
