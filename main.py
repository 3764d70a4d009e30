from __future__ import annotations
import logging
import random
import sys
import pygame
from settings import Settings, init_pygame_window
from games import GAME_REGISTRY

logger = logging.getLogger(__name__)

DEFAULT_GAME = "maze_chase"

class MazeApp:
    def __init__(self, game_key: str = DEFAULT_GAME):
        self.cfg = Settings()
        logging.basicConfig(
            level=getattr(logging, self.cfg.log_level.upper(), logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        pygame.init()
        self.screen = init_pygame_window(self.cfg)
        self.clock = pygame.time.Clock()
        rng = random.Random(self.cfg.seed)
        if self.cfg.seed is not None:
            logger.info("Using maze seed %d", self.cfg.seed)
        GameClass = GAME_REGISTRY[game_key]
        self.active_game = GameClass(self.screen, self.cfg, rng=rng)
        self.active_game.start()

    def cleanup(self) -> None:
        """Clean up resources before exit."""
        if self.active_game:
            self.active_game.stop()
        pygame.quit()

    def run(self) -> None:
        try:
            while True:
                dt = self.clock.tick(self.cfg.fps) / 1000.0
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        return
                    self.active_game.handle_event(event)
                self.active_game.update(dt)
                self.active_game.draw()
                pygame.display.flip()
        finally:
            self.cleanup()

def main() -> None:
    MazeApp(sys.argv[1] if len(sys.argv) > 1 else DEFAULT_GAME).run()

if __name__ == "__main__":
    main()
