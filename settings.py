from dataclasses import dataclass
from pathlib import Path
import os
from dotenv import load_dotenv
import pygame

BASE_DIR = Path(__file__).resolve().parent

# Load environment variables from .env file
load_dotenv(BASE_DIR / ".env")


def _env_seed() -> int | None:
    raw = os.getenv("MAZE_SEED", "").strip()
    return int(raw) if raw else None


@dataclass
class Settings:
    width: int = 960
    height: int = 720
    fullscreen: bool = False
    fps: int = 60
    title: str = "Maze Chase"
    bg_color: tuple[int, int, int] = (0, 0, 0)
    # Allow held keys to auto-repeat KEYDOWN events (ms)
    key_repeat_delay: int = 120
    key_repeat_interval: int = 30

    # Maze configuration (cells); normalised to odd values by the generator
    maze_width: int = int(os.getenv("MAZE_WIDTH", "41"))
    maze_height: int = int(os.getenv("MAZE_HEIGHT", "31"))
    cell_size: int = int(os.getenv("CELL_SIZE", "20"))
    # Empty MAZE_SEED means a fresh maze every run
    seed: int | None = None
    # Largest simulation step (s); longer frames are split
    max_step: float = 1 / 30
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    def __post_init__(self):
        if self.seed is None:
            self.seed = _env_seed()

    @property
    def screen_size(self) -> tuple[int, int]:
        return (self.width, self.height)


def init_pygame_window(cfg: Settings) -> pygame.Surface:
    pygame.display.set_caption(cfg.title)
    flags = pygame.FULLSCREEN if cfg.fullscreen else 0
    size = (0, 0) if cfg.fullscreen else cfg.screen_size
    screen = pygame.display.set_mode(size, flags)
    if cfg.fullscreen:
        cfg.width, cfg.height = screen.get_size()
    # Enable key repeat so holding a direction keeps re-trying the turn
    pygame.key.set_repeat(cfg.key_repeat_delay, cfg.key_repeat_interval)
    return screen
