"""
One fixed-order tick of the maze game.

Each ``step`` runs its phases in this order: countdowns, player movement,
enemy AI and movement in roster order, pellet and enemy collisions, then
pruning and spawning. The simulation knows nothing about pygame surfaces
or input devices; it takes intents in and hands events out.
"""

from __future__ import annotations
import logging
import math
import random
from typing import Dict, List, Optional, Tuple
from settings import Settings
from systems.director import AIDirector
from systems.enemy import Archetype
from systems.grid import NavigableGrid
from systems.maze import Cell, Grid, MazeGenerator
from systems.movement import Agent, MovementController, direction_from_intent
from systems.pellets import PelletManager
from systems.rules import get_rules
from systems.scoring import GameEvent, GameOver, LevelComplete, PlayerHit, ScoreEvent, level_bonus

logger = logging.getLogger(__name__)


class MazeSimulation:
    def __init__(self, settings: Optional[Settings] = None, rng: Optional[random.Random] = None, maze: Optional[Grid] = None):
        self.settings = settings or Settings()
        self.rules = get_rules("maze_chase").data
        self.pellet_rules = get_rules("pellets").data
        self.rng = rng or random.Random(self.settings.seed)

        self.level = 1
        self.lives = self.rules["lives"]
        self.score = ScoreEvent()
        self.game_over = False
        self.paused = False
        self.respawn_timer = 0.0
        self.invulnerable_timer = 0.0

        self.maze_size: Tuple[int, int] = (self.settings.maze_width, self.settings.maze_height)
        self.player_speed = self.rules["player_speed"]
        self.pellet_density = self.pellet_rules["density"]
        self.power_count = self.pellet_rules["power_count"]

        self.grid: NavigableGrid
        self.movement: MovementController
        self.player: Agent
        self.player_start: Cell = (1, 1)
        self.director: Optional[AIDirector] = None
        self.pellets: PelletManager
        self.build_level(maze)

    # ----- level construction -----

    def generate_maze(self) -> Grid:
        width, height = self.maze_size
        generator = MazeGenerator(width, height, rng=self.rng)
        return generator.generate_with_retries(self.rules["generation_attempts"])

    def build_level(self, maze: Optional[Grid] = None) -> None:
        """Install a fresh maze (generated unless one is given) and everything sitting on it."""
        if maze is None:
            maze = self.generate_maze()
        self.grid = NavigableGrid(maze, self.settings.cell_size)
        self.movement = MovementController(self.grid)

        cells = self.grid.accessible_cells()
        if not cells:
            raise ValueError("maze has no open cells for the player")
        self.player_start = cells[0]
        self.player = Agent(
            position=self.grid.grid_to_world(self.player_start),
            speed=self.player_speed,
            size=self.rules["agent_size"],
        )

        if self.director is None:
            self.director = AIDirector(self.grid, self.movement, rng=self.rng, player_start=self.player_start)
        else:
            self.director.set_grid(self.grid, self.movement, player_start=self.player_start)
        self.director.set_difficulty_level(self.level)

        self.pellets = PelletManager(self.grid, rng=self.rng)
        self.pellets.generate(density=self.pellet_density, power_count=self.power_count)

        self.respawn_timer = 0.0
        self.invulnerable_timer = 0.0
        logger.info("Level %d ready: %dx%d maze, player at %s", self.level, self.grid.width, self.grid.height, self.player_start)

    # ----- input -----

    def handle_intent(self, intent: str) -> bool:
        """Apply a direction intent to the player. Returns True when the turn happened now."""
        direction = direction_from_intent(intent)
        if self.game_over or self.paused or self.respawning:
            return False
        return self.movement.request_turn(self.player, direction, 1 / self.settings.fps)

    # ----- tick -----

    @property
    def respawning(self) -> bool:
        return self.respawn_timer > 0

    @property
    def invulnerable(self) -> bool:
        return self.invulnerable_timer > 0

    def step(self, dt: float) -> List[GameEvent]:
        """Advance by ``dt`` seconds, split into sub-steps no longer than ``max_step``."""
        events: List[GameEvent] = []
        if dt <= 0 or self.paused or self.game_over:
            return events
        slices = max(1, math.ceil(dt / self.settings.max_step))
        for _ in range(slices):
            events.extend(self.tick(dt / slices))
            if self.game_over:
                break
        return events

    def tick(self, dt: float) -> List[GameEvent]:
        events: List[GameEvent] = []

        # 1. countdowns
        if self.respawning:
            self.respawn_timer -= dt
            if self.respawn_timer <= 0:
                self.respawn_player()
            return events
        if self.invulnerable:
            self.invulnerable_timer = max(0.0, self.invulnerable_timer - dt)
        self.director.advance_timers(dt)

        # 2. player
        self.movement.advance(self.player, dt)

        # 3. enemies
        self.director.update_enemies(dt, self.player.position)

        # 4. collisions
        events.extend(self.collect_pellets())
        events.extend(self.collide_enemies())
        if self.game_over:
            return events

        if self.pellets.all_collected():
            events.append(self.complete_level())
            return events

        # 5. prune and spawn
        self.director.prune()
        self.director.spawn_if_due()
        return events

    def collect_pellets(self) -> List[GameEvent]:
        events = self.pellets.check_collisions(self.player.position, self.player.radius)
        for event in events:
            self.score.record(event)
            if event.kind == "power":
                self.director.set_all_vulnerable(True, self.rules["power_duration"])
        return events

    def collide_enemies(self) -> List[GameEvent]:
        report = self.director.resolve_player_collisions(
            self.player.position, self.player.radius, ignore_hits=self.invulnerable
        )
        events: List[GameEvent] = list(report.eaten)
        for event in report.eaten:
            self.score.record(event)
        if report.player_hit:
            events.extend(self.lose_life())
        return events

    def lose_life(self) -> List[GameEvent]:
        self.lives -= 1
        events: List[GameEvent] = [PlayerHit(lives_remaining=self.lives)]
        logger.info("Player hit, %d lives left", self.lives)
        if self.lives <= 0:
            self.game_over = True
            self.director.set_active(False)
            events.append(GameOver(score=self.score.points))
            logger.info("Game over with %d points", self.score.points)
        else:
            self.player.stop()
            self.respawn_timer = self.rules["respawn_delay"]
        return events

    def respawn_player(self) -> None:
        self.respawn_timer = 0.0
        self.player.position = self.grid.grid_to_world(self.player_start)
        self.player.stop()
        self.movement.update_intersection(self.player)
        self.invulnerable_timer = self.rules["invulnerability"]

    # ----- level life-cycle -----

    def complete_level(self) -> LevelComplete:
        event = LevelComplete(level=self.level, bonus=level_bonus(self.level, self.rules["level_bonus"]))
        self.score.record(event)
        logger.info("Level %d complete, bonus %d", self.level, event.bonus)
        self.level += 1
        self.increase_difficulty()
        self.build_level()
        return event

    def increase_difficulty(self) -> None:
        self.player_speed = min(self.rules["player_speed_max"], self.player_speed + self.rules["player_speed_step"])

        if self.level % self.rules["maze_growth_every"] == 0:
            width, height = self.maze_size
            grow_w, grow_h = self.rules["maze_growth"]
            max_w, max_h = self.rules["maze_size_max"]
            self.maze_size = (min(max_w, width + grow_w), min(max_h, height + grow_h))

        self.pellet_density = max(self.pellet_rules["density_min"], self.pellet_density - self.pellet_rules["density_step"])

        if self.level % self.pellet_rules["power_every"] == 0:
            self.power_count = min(self.pellet_rules["power_count_max"], self.power_count + 1)

    def reset(self) -> None:
        self.level = 1
        self.lives = self.rules["lives"]
        self.score = ScoreEvent()
        self.game_over = False
        self.paused = False
        self.maze_size = (self.settings.maze_width, self.settings.maze_height)
        self.player_speed = self.rules["player_speed"]
        self.pellet_density = self.pellet_rules["density"]
        self.power_count = self.pellet_rules["power_count"]
        self.director.set_active(True)
        self.build_level()

    def set_paused(self, paused: bool) -> None:
        self.paused = paused

    def level_info(self) -> Dict[str, object]:
        return {
            "level": self.level,
            "lives": self.lives,
            "score": self.score.points,
            "maze_size": (self.grid.width, self.grid.height),
            "player_speed": self.player_speed,
            "pellets_remaining": self.pellets.remaining(),
            "pellets_total": self.pellets.total(),
            "enemies": self.director.stats(),
            "vulnerability_remaining": self.director.vulnerability_remaining,
            "game_over": self.game_over,
        }

    def spawn_enemy(self, archetype: Optional[Archetype] = None) -> Optional[int]:
        return self.director.spawn_enemy(archetype)
