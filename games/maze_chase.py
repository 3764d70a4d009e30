"""
Maze Chase: pygame front-end over MazeSimulation.

Decodes keys into movement intents, feeds frame time to the simulation and
draws the visible part of the maze through a following camera.
"""

from __future__ import annotations
import math
import random
from typing import Dict, Optional
import pygame
from . import BaseGame, register_game
from systems.enemy import Archetype
from systems.grid import Camera
from systems.scoring import GameOver, LevelComplete, PlayerHit, format_score
from systems.simulation import MazeSimulation

WALL_COLOR = (33, 33, 222)
PELLET_COLOR = (255, 184, 151)
POWER_COLOR = (255, 255, 255)
PLAYER_COLOR = (255, 255, 0)
FRIGHTENED_COLOR = (33, 33, 255)
ARCHETYPE_COLORS: Dict[Archetype, tuple] = {
    Archetype.CHASER: (255, 0, 0),
    Archetype.AMBUSHER: (255, 184, 255),
    Archetype.PATROL: (0, 255, 255),
    Archetype.RANDOM: (255, 184, 82),
}

KEY_INTENTS = {
    pygame.K_UP: "up",
    pygame.K_w: "up",
    pygame.K_DOWN: "down",
    pygame.K_s: "down",
    pygame.K_LEFT: "left",
    pygame.K_a: "left",
    pygame.K_RIGHT: "right",
    pygame.K_d: "right",
}


@register_game("maze_chase")
class MazeChaseGame(BaseGame):
    def __init__(self, screen: pygame.Surface, cfg, rng: Optional[random.Random] = None):
        super().__init__(screen, cfg)
        self.rng = rng
        # Built on the first start so the opening level is generated once
        self.sim: Optional[MazeSimulation] = None
        self.camera = Camera(cfg.width, cfg.height)
        self.font = pygame.font.SysFont("arial", 20)
        self.title_font = pygame.font.SysFont("arial", 32)
        self.banner: str = ""
        self.banner_timer = 0.0

    def reset(self) -> None:
        if self.sim is None:
            self.sim = MazeSimulation(self.cfg, rng=self.rng)
        else:
            self.sim.reset()
        self.banner = ""
        self.banner_timer = 0.0

    @property
    def paused(self) -> bool:
        return self.sim.paused

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        if self.sim.game_over:
            if event.key in (pygame.K_RETURN, pygame.K_SPACE):
                self.reset()
            return
        if event.key in (pygame.K_ESCAPE, pygame.K_p):
            self.sim.set_paused(not self.sim.paused)
            return
        intent = KEY_INTENTS.get(event.key)
        if intent is not None:
            self.sim.handle_intent(intent)

    def update(self, dt: float) -> None:
        for event in self.sim.step(dt):
            if isinstance(event, LevelComplete):
                self.show_banner(f"Level {event.level} clear! +{event.bonus}")
            elif isinstance(event, PlayerHit):
                self.show_banner("Caught!")
            elif isinstance(event, GameOver):
                self.show_banner("Game Over")
        if self.banner_timer > 0:
            self.banner_timer = max(0.0, self.banner_timer - dt)
        self.camera.follow(self.sim.player.position, self.sim.grid)

    def show_banner(self, text: str, duration: float = 2.0) -> None:
        self.banner = text
        self.banner_timer = duration

    # ----- drawing -----

    def draw(self) -> None:
        self.screen.fill(self.cfg.bg_color)
        self._draw_maze()
        self._draw_pellets()
        self._draw_enemies()
        self._draw_player()
        self._draw_hud()
        if self.sim.paused:
            self._draw_overlay("Paused", "Press ESC to resume")
        elif self.sim.game_over:
            self._draw_overlay("Game Over", f"Score {format_score(self.sim.score.points)} - Enter to play again")
        elif self.banner_timer > 0:
            self._draw_banner()

    def _draw_maze(self) -> None:
        grid = self.sim.grid
        size = grid.cell_size
        start_x, start_y, end_x, end_y = self.camera.visible_cells(grid)
        for y in range(start_y, end_y):
            for x in range(start_x, end_x):
                if grid.is_wall_cell((x, y)):
                    screen_pos = self.camera.world_to_screen((x * size, y * size))
                    pygame.draw.rect(
                        self.screen, WALL_COLOR,
                        pygame.Rect(int(screen_pos.x), int(screen_pos.y), size - 1, size - 1),
                        border_radius=4,
                    )

    def _draw_pellets(self) -> None:
        blink = (pygame.time.get_ticks() // 250) % 2 == 0
        for pellet in self.sim.pellets.pellets:
            if pellet.collected:
                continue
            pos = self.camera.world_to_screen(pellet.position)
            if pellet.is_power:
                radius = int(pellet.radius) if blink else int(pellet.radius) - 1
                pygame.draw.circle(self.screen, POWER_COLOR, (int(pos.x), int(pos.y)), max(1, radius))
            else:
                pygame.draw.circle(self.screen, PELLET_COLOR, (int(pos.x), int(pos.y)), max(1, int(pellet.radius)))

    def _draw_enemies(self) -> None:
        remaining = self.sim.director.vulnerability_remaining
        for _, enemy in self.sim.director.enemies():
            pos = self.camera.world_to_screen(enemy.position)
            if enemy.is_vulnerable:
                # Flash white during the last two seconds
                flashing = remaining < 2.0 and (pygame.time.get_ticks() // 200) % 2 == 0
                color = (255, 255, 255) if flashing else FRIGHTENED_COLOR
            else:
                color = ARCHETYPE_COLORS[enemy.archetype]
            radius = int(enemy.radius)
            body = pygame.Rect(int(pos.x) - radius, int(pos.y) - radius, radius * 2, radius * 2)
            pygame.draw.circle(self.screen, color, (body.centerx, body.centery - 1), radius)
            pygame.draw.rect(self.screen, color, pygame.Rect(body.x, body.centery, body.width, radius))
            for ex in (body.centerx - 3, body.centerx + 3):
                pygame.draw.circle(self.screen, (255, 255, 255), (ex, body.centery - 2), 2)

    def _draw_player(self) -> None:
        if self.sim.respawning:
            return
        # Blink while invulnerable
        if self.sim.invulnerable and (pygame.time.get_ticks() // 100) % 2 == 0:
            return
        player = self.sim.player
        pos = self.camera.world_to_screen(player.position)
        center = (int(pos.x), int(pos.y))
        radius = int(player.radius)
        pygame.draw.circle(self.screen, PLAYER_COLOR, center, radius)

        if not player.is_moving:
            return
        t = (pygame.time.get_ticks() % 400) / 400.0
        mouth = int(20 + 25 * abs(0.5 - t) * 2)
        angle = math.degrees(math.atan2(-player.direction.y, player.direction.x))
        rad1 = math.radians(angle - mouth)
        rad2 = math.radians(angle + mouth)
        p1 = (center[0] + radius * math.cos(rad1), center[1] - radius * math.sin(rad1))
        p2 = (center[0] + radius * math.cos(rad2), center[1] - radius * math.sin(rad2))
        pygame.draw.polygon(self.screen, (0, 0, 0), [center, p1, p2])

    def _draw_hud(self) -> None:
        info = self.sim.level_info()
        lines = [
            f"Score: {info['score']}",
            f"Lives: {info['lives']}",
            f"Level: {info['level']}",
            f"Pellets: {info['pellets_remaining']}/{info['pellets_total']}",
        ]
        for i, line in enumerate(lines):
            self.screen.blit(self.font.render(line, True, (255, 255, 255)), (16, 10 + i * 22))

    def _draw_banner(self) -> None:
        surf = self.title_font.render(self.banner, True, (255, 255, 100))
        self.screen.blit(surf, (self.cfg.width // 2 - surf.get_width() // 2, 40))

    def _draw_overlay(self, title: str, subtitle: str) -> None:
        overlay = pygame.Surface(self.cfg.screen_size, pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 160))
        self.screen.blit(overlay, (0, 0))
        title_surf = self.title_font.render(title, True, (255, 255, 255))
        self.screen.blit(title_surf, (self.cfg.width // 2 - title_surf.get_width() // 2, self.cfg.height // 2 - 60))
        sub_surf = self.font.render(subtitle, True, (220, 220, 240))
        self.screen.blit(sub_surf, (self.cfg.width // 2 - sub_surf.get_width() // 2, self.cfg.height // 2))
