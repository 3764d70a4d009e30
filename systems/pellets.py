from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass
from typing import List, Optional
import pygame
from systems.grid import NavigableGrid
from systems.rules import get_rules
from systems.scoring import PelletCollected

logger = logging.getLogger(__name__)

Vec2 = pygame.Vector2

NORMAL = "normal"
POWER = "power"

# Normal pellets this close to a power pellet are dropped
POWER_CLEARANCE = 10.0
# Fraction of the maze, measured from each edge, where power pellets go
OUTER_BAND = 0.25


@dataclass
class Pellet:
    position: Vec2
    kind: str = NORMAL
    points: int = 10
    size: float = 3
    collected: bool = False

    @property
    def radius(self) -> float:
        return self.size / 2

    @property
    def is_power(self) -> bool:
        return self.kind == POWER

    def collect(self) -> int:
        if self.collected:
            return 0
        self.collected = True
        return self.points

    def check_collision(self, pos, radius: float) -> bool:
        if self.collected:
            return False
        distance = self.position.distance_to(pos)
        return distance == 0 or distance < self.radius + radius


class PelletManager:
    def __init__(self, grid: NavigableGrid, rng: Optional[random.Random] = None):
        self.rules = get_rules("pellets").data
        self.grid = grid
        self.rng = rng or random.Random()
        self.pellets: List[Pellet] = []
        self.density = self.rules["density"]
        self.power_count = self.rules["power_count"]

    def make_pellet(self, cell, kind: str = NORMAL) -> Pellet:
        return Pellet(
            position=self.grid.grid_to_world(cell),
            kind=kind,
            points=self.rules[f"{kind}_points"],
            size=self.rules[f"{kind}_size"],
        )

    def generate(self, density: Optional[float] = None, power_count: Optional[int] = None) -> List[Pellet]:
        if density is not None:
            self.density = density
        if power_count is not None:
            self.power_count = power_count

        cells = self.grid.accessible_cells()
        chosen = self.rng.sample(cells, math.floor(len(cells) * self.density))
        self.pellets = [self.make_pellet(cell) for cell in chosen]

        for cell in self.power_cells(cells):
            power = self.make_pellet(cell, POWER)
            self.pellets = [
                p for p in self.pellets
                if p.is_power or p.position.distance_to(power.position) >= POWER_CLEARANCE
            ]
            self.pellets.append(power)

        logger.info(
            "Placed %d pellets (%d power) on %d open cells",
            len(self.pellets), sum(p.is_power for p in self.pellets), len(cells),
        )
        return self.pellets

    def power_cells(self, cells):
        """Open cells for power pellets: outermost first, random fill when the band runs short."""
        if not cells or self.power_count <= 0:
            return []
        band_x = self.grid.width * OUTER_BAND
        band_y = self.grid.height * OUTER_BAND
        outer = [
            (x, y) for x, y in cells
            if x < band_x or x >= self.grid.width - band_x or y < band_y or y >= self.grid.height - band_y
        ]
        cx, cy = (self.grid.width - 1) / 2, (self.grid.height - 1) / 2
        outer.sort(key=lambda c: (c[0] - cx) ** 2 + (c[1] - cy) ** 2, reverse=True)

        picked = outer[: self.power_count]
        if len(picked) < self.power_count:
            rest = [c for c in cells if c not in picked]
            picked += self.rng.sample(rest, min(len(rest), self.power_count - len(picked)))
        return picked

    def check_collisions(self, pos, radius: float) -> List[PelletCollected]:
        events = []
        for pellet in self.pellets:
            if pellet.check_collision(pos, radius):
                points = pellet.collect()
                events.append(PelletCollected(kind=pellet.kind, points=points))
        return events

    def remaining(self) -> int:
        return sum(1 for p in self.pellets if not p.collected)

    def total(self) -> int:
        return len(self.pellets)

    def all_collected(self) -> bool:
        return bool(self.pellets) and self.remaining() == 0
