from __future__ import annotations
from typing import Callable, Dict, Type
import pygame
from settings import Settings

class BaseGame:
    name: str = "base"

    def __init__(self, screen: pygame.Surface, cfg: Settings):
        self.screen = screen
        self.cfg = cfg
        self.active = False

    def start(self) -> None:
        self.active = True
        self.reset()

    def stop(self) -> None:
        self.active = False

    def reset(self) -> None:
        ...

    def handle_event(self, event: pygame.event.Event) -> None:
        ...

    def update(self, dt: float) -> None:
        ...

    def draw(self) -> None:
        ...

GAME_REGISTRY: Dict[str, Type[BaseGame]] = {}

def register_game(key: str) -> Callable[[Type[BaseGame]], Type[BaseGame]]:
    def wrapper(cls: Type[BaseGame]) -> Type[BaseGame]:
        GAME_REGISTRY[key] = cls
        cls.name = key
        return cls
    return wrapper

# Auto-import game modules to populate the registry on package import.
from . import maze_chase  # noqa: F401
