"""
Enemy agents: archetype tuning, goal selection and the vulnerability state machine.

Each archetype is plain data (speed, replanning cadence, points, spawn
weight, goal strategy). Enemies replan on a countdown and walk the last
A* plan between replans.
"""

from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional
import pygame
from systems.ai import PathPlan, astar
from systems.grid import NavigableGrid
from systems.movement import Agent, MovementController

logger = logging.getLogger(__name__)

Vec2 = pygame.Vector2

ENEMY_SIZE = 16
ARRIVAL_DISTANCE = 4.0
AMBUSH_DISTANCE = 100.0
AVOIDANCE_DISTANCE = 200.0
PATROL_REACHED = 30.0
RANDOM_TARGET_ATTEMPTS = 10
VULNERABLE_SPEED_FACTOR = 0.5
DEFAULT_VULNERABILITY = 10.0


class Archetype(Enum):
    CHASER = "chaser"
    AMBUSHER = "ambusher"
    PATROL = "patrol"
    RANDOM = "random"

    @property
    def profile(self) -> "ArchetypeProfile":
        return ARCHETYPE_PROFILES[self]


class EnemyState(Enum):
    CHASING = "chasing"
    VULNERABLE = "vulnerable"


@dataclass
class PursuitContext:
    """What the enemies know about the player this tick."""
    player_position: Vec2
    player_direction: Vec2 = field(default_factory=Vec2)


@dataclass
class VulnerabilityState:
    active: bool = False
    remaining: float = 0.0
    original_speed: Optional[float] = None


def chase_goal(enemy: "Enemy", ctx: PursuitContext) -> Vec2:
    return Vec2(ctx.player_position)

def ambush_goal(enemy: "Enemy", ctx: PursuitContext) -> Vec2:
    return ctx.player_position + ctx.player_direction * AMBUSH_DISTANCE

def patrol_goal(enemy: "Enemy", ctx: PursuitContext) -> Vec2:
    points = enemy.patrol_points()
    if not points:
        return Vec2(enemy.position)
    target = points[enemy.patrol_index % len(points)]
    if enemy.position.distance_to(target) < PATROL_REACHED:
        enemy.patrol_index = (enemy.patrol_index + 1) % len(points)
    return Vec2(points[enemy.patrol_index % len(points)])

def random_goal(enemy: "Enemy", ctx: PursuitContext) -> Vec2:
    grid, rng = enemy.grid, enemy.rng
    size = grid.cell_size
    for _ in range(RANDOM_TARGET_ATTEMPTS):
        candidate = Vec2(rng.uniform(size, grid.pixel_width - size), rng.uniform(size, grid.pixel_height - size))
        if not grid.is_wall(candidate):
            return candidate
    cells = grid.accessible_cells()
    return grid.grid_to_world(rng.choice(cells)) if cells else Vec2(enemy.position)


@dataclass(frozen=True)
class ArchetypeProfile:
    speed: float
    replan_interval: float
    points: int
    spawn_weight: float
    goal: Callable[["Enemy", PursuitContext], Vec2]


ARCHETYPE_PROFILES: Dict[Archetype, ArchetypeProfile] = {
    Archetype.CHASER: ArchetypeProfile(speed=108.0, replan_interval=0.3, points=200, spawn_weight=0.30, goal=chase_goal),
    Archetype.AMBUSHER: ArchetypeProfile(speed=96.0, replan_interval=0.6, points=400, spawn_weight=0.25, goal=ambush_goal),
    Archetype.PATROL: ArchetypeProfile(speed=84.0, replan_interval=0.8, points=300, spawn_weight=0.25, goal=patrol_goal),
    Archetype.RANDOM: ArchetypeProfile(speed=78.0, replan_interval=1.0, points=100, spawn_weight=0.20, goal=random_goal),
}


def axis_direction(delta) -> Vec2:
    dx, dy = delta[0], delta[1]
    if dx == 0 and dy == 0:
        return Vec2()
    if abs(dx) >= abs(dy):
        return Vec2(1 if dx > 0 else -1, 0)
    return Vec2(0, 1 if dy > 0 else -1)


class Enemy:
    def __init__(
        self,
        position,
        grid: NavigableGrid,
        archetype: Archetype = Archetype.CHASER,
        rng: Optional[random.Random] = None,
        speed: Optional[float] = None,
        replan_interval: Optional[float] = None,
    ):
        profile = archetype.profile
        self.grid = grid
        self.archetype = archetype
        self.rng = rng or random.Random()
        self.agent = Agent(position=Vec2(position), speed=profile.speed if speed is None else speed, size=ENEMY_SIZE)
        self.replan_interval = profile.replan_interval if replan_interval is None else replan_interval
        # Zero means plan on the very next update
        self.replan_timer = 0.0
        self.plan = PathPlan()
        self.target_position = Vec2(position)
        self.vulnerability = VulnerabilityState()
        self.patrol_index = 0
        self._patrol_points: Optional[List[Vec2]] = None

    @property
    def position(self) -> Vec2:
        return self.agent.position

    @position.setter
    def position(self, value) -> None:
        self.agent.position = Vec2(value)

    @property
    def speed(self) -> float:
        return self.agent.speed

    @speed.setter
    def speed(self, value: float) -> None:
        self.agent.speed = max(0.0, value)

    @property
    def radius(self) -> float:
        return self.agent.radius

    @property
    def points(self) -> int:
        return self.archetype.profile.points

    @property
    def is_vulnerable(self) -> bool:
        return self.vulnerability.active

    @property
    def state(self) -> EnemyState:
        return EnemyState.VULNERABLE if self.vulnerability.active else EnemyState.CHASING

    def update(self, dt: float, ctx: PursuitContext, movement: MovementController) -> None:
        self.update_vulnerability(dt)
        self.replan_timer -= dt
        if self.replan_timer <= 0:
            self.replan(ctx)
            self.replan_timer = self.replan_interval
        self.follow_path(dt)
        movement.advance(self.agent, dt)

    def update_vulnerability(self, dt: float) -> None:
        if not self.vulnerability.active:
            return
        self.vulnerability.remaining -= dt
        if self.vulnerability.remaining <= 0:
            self.set_vulnerable(False)

    def set_vulnerable(self, vulnerable: bool, duration: float = DEFAULT_VULNERABILITY) -> None:
        state = self.vulnerability
        was_vulnerable = state.active
        if vulnerable:
            state.active = True
            state.remaining = duration
            # Capture only on entry so overlapping power pellets never compound
            if not was_vulnerable:
                state.original_speed = self.agent.speed
                self.agent.speed *= VULNERABLE_SPEED_FACTOR
        else:
            state.active = False
            state.remaining = 0.0
            if was_vulnerable and state.original_speed is not None:
                self.agent.speed = state.original_speed
            state.original_speed = None
        self.invalidate_plan()

    def invalidate_plan(self) -> None:
        self.plan.clear()
        self.replan_timer = 0.0

    def select_goal(self, ctx: PursuitContext) -> Vec2:
        if self.vulnerability.active:
            return self.avoidance_goal(ctx)
        return self.archetype.profile.goal(self, ctx)

    def avoidance_goal(self, ctx: PursuitContext) -> Vec2:
        away = self.position - ctx.player_position
        if away.length_squared() > 0:
            away = away.normalize()
        return self.position + away * AVOIDANCE_DISTANCE

    def replan(self, ctx: PursuitContext) -> None:
        goal = self.grid.clamp_to_bounds(self.select_goal(ctx))
        self.target_position = goal
        goal_cell = self.grid.nearest_open_cell(self.grid.world_to_grid(goal))
        start_cell = self.grid.world_to_grid(self.position)
        cells = astar(start_cell, goal_cell, self.grid) if goal_cell is not None else []
        if cells:
            self.plan = PathPlan(cells)
            if len(cells) > 1:
                offset = self.grid.grid_to_world(cells[1]) - self.position
                # Already between the first two centres and lined up: skip the backtrack
                if offset.length() <= self.grid.cell_size and (abs(offset.x) < 0.5 or abs(offset.y) < 0.5):
                    self.plan.cursor = 1
        elif not self.plan.exhausted:
            logger.debug("%s enemy found no path to %s; holding previous plan", self.archetype.value, goal_cell)
        else:
            self.plan = PathPlan()

    def follow_path(self, dt: float) -> None:
        waypoint = self.plan.current
        if waypoint is None:
            self.agent.direction = Vec2()
            return
        target = self.grid.grid_to_world(waypoint)
        threshold = max(ARRIVAL_DISTANCE, self.agent.speed * dt)
        if self.position.distance_to(target) <= threshold:
            # Land on the waypoint and turn toward the one after it straight away
            self.agent.position = target
            waypoint = self.plan.advance()
            if waypoint is None:
                self.agent.direction = Vec2()
                return
            target = self.grid.grid_to_world(waypoint)
        self.agent.direction = axis_direction(target - self.position)

    def patrol_points(self) -> List[Vec2]:
        if self._patrol_points is None:
            right, bottom = self.grid.width - 2, self.grid.height - 2
            points: List[Vec2] = []
            # Clockwise from the top-left corner just inside the border
            for corner in ((1, 1), (right, 1), (right, bottom), (1, bottom)):
                cell = self.grid.nearest_open_cell(corner)
                if cell is None:
                    continue
                point = self.grid.grid_to_world(cell)
                if point not in points:
                    points.append(point)
            self._patrol_points = points
        return self._patrol_points

    def reset(self, position) -> None:
        self.agent.position = Vec2(position)
        self.agent.stop()
        if self.vulnerability.active:
            self.set_vulnerable(False)
        self.invalidate_plan()
