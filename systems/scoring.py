from __future__ import annotations
from dataclasses import dataclass
from typing import Union

# Events handed to score/UI/audio collaborators. These are the only coupling
# points between the simulation and the outside world.

@dataclass(frozen=True)
class PelletCollected:
    kind: str
    points: int

@dataclass(frozen=True)
class EnemyEaten:
    archetype: str
    points: int

@dataclass(frozen=True)
class PlayerHit:
    lives_remaining: int

@dataclass(frozen=True)
class LevelComplete:
    level: int
    bonus: int

@dataclass(frozen=True)
class GameOver:
    score: int

GameEvent = Union[PelletCollected, EnemyEaten, PlayerHit, LevelComplete, GameOver]

@dataclass
class ScoreEvent:
    pellets_eaten: int = 0
    power_pellets_eaten: int = 0
    enemies_eaten: int = 0
    levels_cleared: int = 0
    points: int = 0

    def record(self, event: GameEvent) -> int:
        """Fold one event into the tally and return the points it is worth."""
        gained = 0
        if isinstance(event, PelletCollected):
            if event.kind == "power":
                self.power_pellets_eaten += 1
            else:
                self.pellets_eaten += 1
            gained = event.points
        elif isinstance(event, EnemyEaten):
            self.enemies_eaten += 1
            gained = event.points
        elif isinstance(event, LevelComplete):
            self.levels_cleared += 1
            gained = event.bonus
        self.points += gained
        return gained

def level_bonus(level: int, per_level: int = 100) -> int:
    return level * per_level

FORMAT_SUFFIX = {0: "", 1: " pt", 2: " pts"}

def format_score(score: int) -> str:
    suffix = FORMAT_SUFFIX[min(len(FORMAT_SUFFIX) - 1, score if score < 3 else 2)]
    return f"{score}{suffix}"
