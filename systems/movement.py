"""
Grid-aware continuous movement shared by the player and every enemy.

Agents live at continuous pixel positions but every decision (collision,
turns, wall stops) is resolved against the cells of a NavigableGrid, so an
agent never comes to rest between two cell centres.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple
import pygame
from systems.collision import box_fits
from systems.grid import NavigableGrid

Vec2 = pygame.Vector2

DIRECTIONS: Dict[str, Tuple[int, int]] = {
    "up": (0, -1),
    "down": (0, 1),
    "left": (-1, 0),
    "right": (1, 0),
}

INTERSECTION_THRESHOLD = 5.0
# Smallest displacement used when probing a turn
MIN_PROBE = 1.0


def direction_from_intent(intent: str) -> Vec2:
    try:
        return Vec2(DIRECTIONS[intent])
    except KeyError:
        raise ValueError(f"Unknown movement intent: {intent!r}") from None


@dataclass
class Agent:
    position: Vec2
    speed: float = 120.0
    size: float = 16
    direction: Vec2 = field(default_factory=Vec2)
    queued_direction: Vec2 = field(default_factory=Vec2)
    # Cell the queued turn was requested in
    queued_cell: Optional[Tuple[int, int]] = None
    at_intersection: bool = True

    @property
    def radius(self) -> float:
        return self.size / 2

    @property
    def is_moving(self) -> bool:
        return self.direction.length_squared() > 0

    def stop(self) -> None:
        self.direction = Vec2()
        self.queued_direction = Vec2()
        self.queued_cell = None


class MovementController:
    def __init__(self, grid: NavigableGrid, intersection_threshold: float = INTERSECTION_THRESHOLD):
        self.grid = grid
        self.intersection_threshold = intersection_threshold

    def can_occupy(self, pos, size: float) -> bool:
        return box_fits(self.grid, pos, size)

    def attempt_move(self, agent: Agent, direction, dt: float) -> Optional[Vec2]:
        """Position one step along ``direction``, or None when the box would hit a wall."""
        candidate = agent.position + Vec2(direction) * (agent.speed * dt)
        return candidate if self.can_occupy(candidate, agent.size) else None

    def try_turn(self, agent: Agent, direction, dt: float) -> bool:
        """Accept a direction change only if one step that way is free; otherwise drop it."""
        direction = Vec2(direction)
        if direction.length_squared() == 0:
            return False
        probe = max(agent.speed * dt, MIN_PROBE)
        if not self.can_occupy(agent.position + direction * probe, agent.size):
            return False
        agent.direction = direction
        return True

    def request_turn(self, agent: Agent, direction, dt: float) -> bool:
        """Player intent: turn now if possible, else hold it until the next cell centre."""
        self.update_intersection(agent)
        if self.try_turn(agent, direction, dt) or (
            agent.at_intersection and self._turn_from_center(agent, Vec2(direction), dt)
        ):
            agent.queued_direction = Vec2()
            agent.queued_cell = None
            return True
        agent.queued_direction = Vec2(direction)
        # Requested off-centre: the centre of this same cell is still ahead
        agent.queued_cell = self.grid.world_to_grid(agent.position) if agent.at_intersection else None
        return False

    def advance(self, agent: Agent, dt: float) -> bool:
        """Run one tick of movement. Returns True when the agent changed position."""
        self.update_intersection(agent)
        if agent.queued_direction.length_squared() > 0 and agent.at_intersection:
            # A moving agent carries the turn to the next cell centre
            if (
                not agent.is_moving
                or agent.queued_cell is None
                or self.grid.world_to_grid(agent.position) != agent.queued_cell
            ):
                self._resolve_queued_turn(agent, dt)

        if not agent.is_moving:
            return False

        candidate = agent.position + agent.direction * (agent.speed * dt)
        wrapped = self.wrap_position(candidate, agent.size)
        if wrapped is not None:
            agent.position = wrapped
        elif self.can_occupy(candidate, agent.size):
            agent.position = candidate
        else:
            # Blocked: rest exactly on the cell centre, never mid-cell
            self.snap_to_cell_center(agent)
            agent.direction = Vec2()
            return False
        self.update_intersection(agent)
        return True

    def _resolve_queued_turn(self, agent: Agent, dt: float) -> None:
        queued = agent.queued_direction
        agent.queued_direction = Vec2()
        agent.queued_cell = None
        if not self.try_turn(agent, queued, dt):
            self._turn_from_center(agent, queued, dt)

    def _turn_from_center(self, agent: Agent, direction: Vec2, dt: float) -> bool:
        # Within the intersection window, line the agent up on the centre and retry once
        if direction.length_squared() == 0:
            return False
        center = self.grid.cell_center(agent.position)
        probe = max(agent.speed * dt, MIN_PROBE)
        if not (self.can_occupy(center, agent.size) and self.can_occupy(center + direction * probe, agent.size)):
            return False
        agent.position = center
        agent.direction = Vec2(direction)
        agent.at_intersection = True
        return True

    def wrap_position(self, pos, size: float) -> Optional[Vec2]:
        """Mirror ``pos`` through an edge tunnel, or None when no free tunnel applies."""
        half = self.grid.cell_size / 2
        width, height = self.grid.pixel_width, self.grid.pixel_height
        x, y = pos[0], pos[1]

        # Horizontal first so corners resolve left/right before top/bottom
        if x < half:
            target = Vec2(width - half, y)
            if self.can_occupy(target, size):
                return target
        elif x > width - half:
            target = Vec2(half, y)
            if self.can_occupy(target, size):
                return target

        if y < half:
            target = Vec2(x, height - half)
            if self.can_occupy(target, size):
                return target
        elif y > height - half:
            target = Vec2(x, half)
            if self.can_occupy(target, size):
                return target
        return None

    def wrap(self, agent: Agent) -> bool:
        target = self.wrap_position(agent.position, agent.size)
        if target is None:
            return False
        agent.position = target
        self.update_intersection(agent)
        return True

    def snap_to_cell_center(self, agent: Agent) -> None:
        agent.position = self.grid.cell_center(agent.position)
        agent.at_intersection = True

    def update_intersection(self, agent: Agent) -> bool:
        center = self.grid.cell_center(agent.position)
        agent.at_intersection = agent.position.distance_to(center) <= self.intersection_threshold
        return agent.at_intersection
