from dataclasses import dataclass, field
from typing import Dict, Any

@dataclass
class GameRuleSet:
    name: str
    data: Dict[str, Any] = field(default_factory=dict)

DEFAULT_RULES = {
    "maze_chase": GameRuleSet(
        name="maze_chase",
        data={
            "lives": 3,
            "power_duration": 10.0,
            "respawn_delay": 1.0,
            "invulnerability": 2.0,
            "level_bonus": 100,
            # Speeds are pixels per second
            "player_speed": 120.0,
            "player_speed_step": 6.0,
            "player_speed_max": 240.0,
            "agent_size": 16,
            # Maze growth every few levels
            "maze_size_max": (61, 41),
            "maze_growth": (4, 2),
            "maze_growth_every": 3,
            "generation_attempts": 5,
        },
    ),
    "pellets": GameRuleSet(
        name="pellets",
        data={
            "normal_points": 10,
            "power_points": 50,
            "normal_size": 3,
            "power_size": 8,
            "density": 0.7,
            "density_step": 0.05,
            "density_min": 0.4,
            "power_count": 4,
            "power_count_max": 6,
            "power_every": 5,
        },
    ),
    "director": GameRuleSet(
        name="director",
        data={
            "max_enemies": 4,
            "max_enemies_cap": 6,
            "spawn_delay": 2.0,
            "spawn_delay_min": 1.0,
            "spawn_delay_step": 0.1,
            "speed_per_level": 6.0,
            "replan_min": 0.2,
            "replan_step": 0.05,
            "replan_from_level": 3,
            "out_of_bounds_buffer": 100.0,
        },
    ),
}

def get_rules(game: str) -> GameRuleSet:
    return DEFAULT_RULES.get(game, GameRuleSet(name=game))
