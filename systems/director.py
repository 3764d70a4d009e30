"""
AIDirector: owns the enemy roster.

Enemies live in an arena of slots addressed by a stable integer handle;
freed slots go on a free list and are reused by later spawns, so removing
an enemy never shifts the handles of the others.
"""

from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple
import pygame
from systems.collision import circles_overlap
from systems.enemy import Archetype, Enemy, PursuitContext, DEFAULT_VULNERABILITY
from systems.grid import NavigableGrid
from systems.maze import Cell
from systems.movement import MovementController
from systems.rules import get_rules
from systems.scoring import EnemyEaten

logger = logging.getLogger(__name__)

Vec2 = pygame.Vector2

# Spawn cells closer than this (in cells, Manhattan) to the player start are skipped
SPAWN_SAFE_DISTANCE = 6


@dataclass
class SpawnRoster:
    cells: List[Cell] = field(default_factory=list)
    spawned: int = 0

    def next_cell(self) -> Optional[Cell]:
        if not self.cells:
            return None
        return self.cells[self.spawned % len(self.cells)]


@dataclass
class CollisionReport:
    eaten: List[EnemyEaten] = field(default_factory=list)
    player_hit: bool = False

    @property
    def points(self) -> int:
        return sum(event.points for event in self.eaten)


class AIDirector:
    def __init__(
        self,
        grid: NavigableGrid,
        movement: MovementController,
        rng: Optional[random.Random] = None,
        player_start: Optional[Cell] = None,
    ):
        self.rules = get_rules("director").data
        self.grid = grid
        self.movement = movement
        self.rng = rng or random.Random()
        self.player_start = player_start

        self.slots: List[Optional[Enemy]] = []
        self.free_slots: List[int] = []
        self.roster = SpawnRoster()

        self.difficulty_level = 1
        self.max_enemies = self.rules["max_enemies"]
        self.spawn_delay = self.rules["spawn_delay"]
        self.spawn_timer = self.spawn_delay
        self.active = True

        self.player_last_position: Optional[Vec2] = None
        self.player_direction = Vec2()
        self.vulnerability_remaining = 0.0

        self.calculate_spawn_positions()

    # ----- roster arena -----

    def __len__(self) -> int:
        return len(self.slots) - len(self.free_slots)

    def enemies(self) -> Iterator[Tuple[int, Enemy]]:
        """Live enemies in slot order with their handles."""
        for handle, enemy in enumerate(self.slots):
            if enemy is not None:
                yield handle, enemy

    def get(self, handle: int) -> Optional[Enemy]:
        if 0 <= handle < len(self.slots):
            return self.slots[handle]
        return None

    def add_enemy(self, enemy: Enemy) -> int:
        if self.free_slots:
            handle = self.free_slots.pop()
            self.slots[handle] = enemy
        else:
            handle = len(self.slots)
            self.slots.append(enemy)
        return handle

    def remove_enemy(self, handle: int) -> bool:
        enemy = self.get(handle)
        if enemy is None:
            return False
        self.slots[handle] = None
        self.free_slots.append(handle)
        logger.debug("Removed %s enemy from slot %d", enemy.archetype.value, handle)
        return True

    # ----- spawning -----

    def calculate_spawn_positions(self) -> List[Cell]:
        w, h = self.grid.width, self.grid.height
        right, bottom = w - 2, h - 2
        candidates = [
            # Corners
            (1, 1), (right, 1), (1, bottom), (right, bottom),
            # Mid-edges
            (w // 2, 1), (w // 2, bottom), (1, h // 2), (right, h // 2),
        ]
        cells = [c for c in candidates if not self.grid.is_wall_cell(c) and self._far_from_start(c)]

        if not cells:
            center = Vec2(self.grid.pixel_width / 2, self.grid.pixel_height / 2)
            radius = min(self.grid.pixel_width, self.grid.pixel_height) / 4
            for quarter in range(4):
                angle = quarter * math.pi / 2
                point = center + Vec2(math.cos(angle), math.sin(angle)) * radius
                cell = self.grid.world_to_grid(point)
                if not self.grid.is_wall_cell(cell) and cell not in cells:
                    cells.append(cell)

        self.roster = SpawnRoster(cells=cells)
        logger.info("Calculated %d valid spawn positions", len(cells))
        return cells

    def _far_from_start(self, cell: Cell) -> bool:
        if self.player_start is None:
            return True
        return abs(cell[0] - self.player_start[0]) + abs(cell[1] - self.player_start[1]) >= SPAWN_SAFE_DISTANCE

    def select_archetype(self) -> Archetype:
        roll = self.rng.random()
        cumulative = 0.0
        for archetype in Archetype:
            cumulative += archetype.profile.spawn_weight
            if roll <= cumulative:
                return archetype
        return next(iter(Archetype))

    def spawn_enemy(self, archetype: Optional[Archetype] = None) -> Optional[int]:
        cell = self.roster.next_cell()
        if cell is None:
            logger.warning("No valid spawn positions found for enemies")
            return None
        archetype = archetype or self.select_archetype()
        enemy = Enemy(self.grid.grid_to_world(cell), self.grid, archetype, rng=self.rng)
        self.apply_difficulty_scaling(enemy)
        handle = self.add_enemy(enemy)
        self.roster.spawned += 1
        logger.info("Spawned %s enemy at cell %s (slot %d)", archetype.value, cell, handle)
        return handle

    def apply_difficulty_scaling(self, enemy: Enemy) -> None:
        level = self.difficulty_level
        enemy.speed = enemy.archetype.profile.speed + (level - 1) * self.rules["speed_per_level"]
        extra_levels = level - self.rules["replan_from_level"]
        if extra_levels > 0:
            enemy.replan_interval = max(
                self.rules["replan_min"],
                enemy.replan_interval - self.rules["replan_step"] * extra_levels,
            )

    def set_difficulty_level(self, level: int) -> None:
        self.difficulty_level = max(1, level)
        self.max_enemies = min(self.rules["max_enemies_cap"], self.rules["max_enemies"] + self.difficulty_level // 3)
        self.spawn_delay = max(
            self.rules["spawn_delay_min"],
            self.rules["spawn_delay"] - (self.difficulty_level - 1) * self.rules["spawn_delay_step"],
        )
        logger.info(
            "AI difficulty level %d: %d max enemies, %.2fs spawn delay",
            self.difficulty_level, self.max_enemies, self.spawn_delay,
        )

    # ----- per-tick phases -----

    def advance_timers(self, dt: float) -> None:
        if not self.active:
            return
        self.spawn_timer -= dt
        if self.vulnerability_remaining > 0:
            self.vulnerability_remaining = max(0.0, self.vulnerability_remaining - dt)

    def update_player_tracking(self, player_position) -> None:
        position = Vec2(player_position)
        if self.player_last_position is not None:
            delta = position - self.player_last_position
            # A stationary or wrapping player keeps its last heading
            if 0 < delta.length() < self.grid.cell_size:
                self.player_direction = delta.normalize()
        self.player_last_position = position

    def update_enemies(self, dt: float, player_position) -> None:
        if not self.active:
            return
        self.update_player_tracking(player_position)
        ctx = PursuitContext(player_position=Vec2(player_position), player_direction=Vec2(self.player_direction))
        for _, enemy in self.enemies():
            enemy.update(dt, ctx, self.movement)

    def check_player_collisions(self, player_position, player_radius: float) -> List[Tuple[int, Enemy]]:
        hits = []
        for handle, enemy in self.enemies():
            if circles_overlap(enemy.position, enemy.radius, player_position, player_radius):
                hits.append((handle, enemy))
        return hits

    def resolve_player_collisions(self, player_position, player_radius: float, ignore_hits: bool = False) -> CollisionReport:
        report = CollisionReport()
        for handle, enemy in self.check_player_collisions(player_position, player_radius):
            if enemy.is_vulnerable:
                self.remove_enemy(handle)
                report.eaten.append(EnemyEaten(archetype=enemy.archetype.value, points=enemy.points))
            elif not ignore_hits:
                # One hit per tick
                report.player_hit = True
                break
        return report

    def is_out_of_bounds(self, enemy: Enemy) -> bool:
        buffer = self.rules["out_of_bounds_buffer"]
        x, y = enemy.position
        return (
            x < -buffer
            or x > self.grid.pixel_width + buffer
            or y < -buffer
            or y > self.grid.pixel_height + buffer
        )

    def prune(self) -> int:
        stale = [handle for handle, enemy in self.enemies() if self.is_out_of_bounds(enemy)]
        for handle in stale:
            logger.debug("Pruning out-of-bounds enemy in slot %d", handle)
            self.remove_enemy(handle)
        return len(stale)

    def spawn_if_due(self) -> Optional[int]:
        if not self.active or self.spawn_timer > 0 or len(self) >= self.max_enemies:
            return None
        handle = self.spawn_enemy()
        self.spawn_timer = self.spawn_delay
        return handle

    # ----- vulnerability -----

    def set_all_vulnerable(self, vulnerable: bool, duration: float = DEFAULT_VULNERABILITY) -> int:
        affected = 0
        for _, enemy in self.enemies():
            if enemy.is_vulnerable != vulnerable:
                enemy.set_vulnerable(vulnerable, duration)
                affected += 1
            elif vulnerable:
                # Refresh the countdown without touching the captured speed
                enemy.set_vulnerable(True, duration)
        self.vulnerability_remaining = duration if vulnerable else 0.0
        logger.info("%s %d enemies", "Frightened" if vulnerable else "Restored", affected)
        return affected

    def vulnerable_count(self) -> int:
        return sum(1 for _, enemy in self.enemies() if enemy.is_vulnerable)

    def has_vulnerable_enemies(self) -> bool:
        return self.vulnerable_count() > 0

    # ----- bookkeeping -----

    def stats(self) -> Dict[str, object]:
        by_type: Dict[str, int] = {}
        vulnerable = 0
        for _, enemy in self.enemies():
            by_type[enemy.archetype.value] = by_type.get(enemy.archetype.value, 0) + 1
            vulnerable += enemy.is_vulnerable
        return {"total": len(self), "vulnerable": vulnerable, "chasing": len(self) - vulnerable, "by_type": by_type}

    def set_active(self, active: bool) -> None:
        self.active = active
        if not active:
            for _, enemy in self.enemies():
                enemy.agent.stop()

    def set_grid(self, grid: NavigableGrid, movement: MovementController, player_start: Optional[Cell] = None) -> None:
        self.grid = grid
        self.movement = movement
        self.player_start = player_start
        self.reset()

    def reset(self) -> None:
        self.slots = []
        self.free_slots = []
        self.spawn_timer = self.spawn_delay
        self.player_last_position = None
        self.player_direction = Vec2()
        self.vulnerability_remaining = 0.0
        self.calculate_spawn_positions()
