"""
Procedural maze generation.

Recursive backtracking carves a perfect maze, then arcade-style features
(loops, wider corridors, open rooms, edge tunnels) are layered on top.
Every generated maze is flood-fill validated before it is handed out.
"""

from __future__ import annotations
import logging
import random
from typing import Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

Grid = List[List[int]]
Cell = Tuple[int, int]

PATH = 0
WALL = 1

# Unit steps in up, right, down, left order
STEPS: Tuple[Cell, ...] = ((0, -1), (1, 0), (0, 1), (-1, 0))

# Density divisors: one feature per this many cells
LOOP_DIVISOR = 200
CORRIDOR_DIVISOR = 300
ROOM_DIVISOR = 400


class MazeGenerationError(RuntimeError):
    """Raised when a carved maze fails validation; the caller must regenerate."""


class MazeGenerator:
    def __init__(self, width: int, height: int, rng: Optional[random.Random] = None):
        # Odd dimensions keep the carving lattice aligned with the border
        self.width = max(3, width + 1 if width % 2 == 0 else width)
        self.height = max(3, height + 1 if height % 2 == 0 else height)
        self.rng = rng or random.Random()
        self.directions: Tuple[Cell, ...] = tuple((dx * 2, dy * 2) for dx, dy in STEPS)

    def generate(self) -> Grid:
        maze = self.initialize_maze()
        maze[1][1] = PATH
        self.recursive_backtrack(maze, 1, 1)
        self.add_arcade_features(maze)
        self.ensure_starting_choices(maze)
        self.validate_maze(maze)
        return maze

    def generate_with_retries(self, attempts: int = 5) -> Grid:
        """Regenerate from scratch until a maze validates or attempts run out."""
        if attempts < 1:
            raise ValueError(f"attempts must be at least 1, got {attempts}")
        last_error: MazeGenerationError | None = None
        for attempt in range(1, attempts + 1):
            try:
                return self.generate()
            except MazeGenerationError as exc:
                last_error = exc
                logger.warning("Maze attempt %d/%d rejected: %s", attempt, attempts, exc)
        raise last_error

    def initialize_maze(self) -> Grid:
        return [[WALL] * self.width for _ in range(self.height)]

    def recursive_backtrack(self, maze: Grid, x: int, y: int) -> None:
        # Explicit stack, same visiting order as the recursive formulation
        stack: List[Tuple[int, int, Iterator[Cell]]] = [(x, y, iter(self.shuffled(self.directions)))]
        while stack:
            cx, cy, pending = stack[-1]
            for dx, dy in pending:
                nx, ny = cx + dx, cy + dy
                if self.is_valid_position(nx, ny) and maze[ny][nx] == WALL:
                    maze[ny][nx] = PATH
                    maze[cy + dy // 2][cx + dx // 2] = PATH
                    stack.append((nx, ny, iter(self.shuffled(self.directions))))
                    break
            else:
                stack.pop()

    def shuffled(self, items) -> list:
        items = list(items)
        self.rng.shuffle(items)
        return items

    def is_valid_position(self, x: int, y: int) -> bool:
        return 0 < x < self.width - 1 and 0 < y < self.height - 1

    def is_in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def validate_maze(self, maze: Grid) -> None:
        path_cells = self.get_accessible_positions(maze)
        if not path_cells:
            raise MazeGenerationError("Maze generation failed: no path cells found")

        for x in range(self.width):
            if maze[0][x] != WALL or maze[self.height - 1][x] != WALL:
                raise MazeGenerationError("Maze generation failed: border breached")
        for y in range(self.height):
            if maze[y][0] != WALL or maze[y][self.width - 1] != WALL:
                raise MazeGenerationError("Maze generation failed: border breached")

        if len(self.flood_fill(maze, path_cells[0])) != len(path_cells):
            raise MazeGenerationError("Maze generation failed: not all areas are reachable")

    def flood_fill(self, maze: Grid, origin: Cell) -> set[Cell]:
        visited: set[Cell] = set()
        stack = [origin]
        while stack:
            x, y = stack.pop()
            if (x, y) in visited:
                continue
            visited.add((x, y))
            for nx, ny in self.get_path_neighbors(maze, x, y):
                if (nx, ny) not in visited:
                    stack.append((nx, ny))
        return visited

    # ----- arcade features -----

    def add_arcade_features(self, maze: Grid) -> None:
        self.add_random_loops(maze)
        self.create_wider_corridors(maze)
        self.create_open_areas(maze)
        self.create_edge_tunnels(maze)

    def add_random_loops(self, maze: Grid) -> None:
        span_x, span_y = self.width - 4, self.height - 4
        if span_x <= 0 or span_y <= 0:
            return
        for _ in range((self.width * self.height) // LOOP_DIVISOR):
            x = 2 + self.rng.randrange(span_x)
            y = 2 + self.rng.randrange(span_y)
            if maze[y][x] == WALL and len(self.get_path_neighbors(maze, x, y)) >= 2:
                maze[y][x] = PATH

    def create_wider_corridors(self, maze: Grid) -> None:
        span_x, span_y = self.width - 6, self.height - 6
        if span_x <= 0 or span_y <= 0:
            return
        for _ in range((self.width * self.height) // CORRIDOR_DIVISOR):
            x = 2 + self.rng.randrange(span_x)
            y = 2 + self.rng.randrange(span_y)
            if not self.has_nearby_paths(maze, x, y, 2):
                continue
            for dx in range(3):
                for dy in range(2):
                    if x + dx < self.width - 1 and y + dy < self.height - 1:
                        maze[y + dy][x + dx] = PATH

    def create_open_areas(self, maze: Grid) -> None:
        span_x, span_y = self.width - 8, self.height - 8
        if span_x <= 0 or span_y <= 0:
            return
        for _ in range((self.width * self.height) // ROOM_DIVISOR):
            cx = 3 + self.rng.randrange(span_x)
            cy = 3 + self.rng.randrange(span_y)
            half = (3 + self.rng.randrange(2)) // 2
            if not self.has_nearby_paths(maze, cx, cy, 3):
                continue
            for dx in range(-half, half + 1):
                for dy in range(-half, half + 1):
                    if self.is_valid_position(cx + dx, cy + dy):
                        maze[cy + dy][cx + dx] = PATH

    def create_edge_tunnels(self, maze: Grid) -> None:
        mid_y = self.height // 2
        if not 1 < mid_y < self.height - 2:
            return
        for x in (1, 2, self.width - 2, self.width - 3):
            if self.is_valid_position(x, mid_y):
                maze[mid_y][x] = PATH

    def get_path_neighbors(self, maze: Grid, x: int, y: int) -> List[Cell]:
        neighbors = []
        for dx, dy in STEPS:
            nx, ny = x + dx, y + dy
            if self.is_in_bounds(nx, ny) and maze[ny][nx] == PATH:
                neighbors.append((nx, ny))
        return neighbors

    def has_nearby_paths(self, maze: Grid, x: int, y: int, radius: int) -> bool:
        for dx in range(-radius, radius + 1):
            for dy in range(-radius, radius + 1):
                if self.is_in_bounds(x + dx, y + dy) and maze[y + dy][x + dx] == PATH:
                    return True
        return False

    # ----- start reinforcement -----

    def ensure_starting_choices(self, maze: Grid) -> None:
        accessible = self.get_accessible_positions(maze)
        if not accessible:
            return
        start_x, start_y = accessible[0]
        if len(self.get_path_neighbors(maze, start_x, start_y)) < 2:
            self.create_starting_paths(maze, start_x, start_y)
        self.create_starting_area(maze, start_x, start_y)

    def create_starting_paths(self, maze: Grid, start_x: int, start_y: int, target_paths: int = 2) -> None:
        created = 0
        for direction in self.shuffled(STEPS):
            if created >= target_paths:
                break
            nx, ny = start_x + direction[0], start_y + direction[1]
            if self.is_valid_position(nx, ny) and maze[ny][nx] == WALL:
                self.create_corridor(maze, start_x, start_y, direction, 3)
                created += 1

    def create_corridor(self, maze: Grid, start_x: int, start_y: int, direction: Cell, length: int) -> None:
        last: Cell | None = None
        for i in range(1, length + 1):
            nx, ny = start_x + direction[0] * i, start_y + direction[1] * i
            if not self.is_valid_position(nx, ny):
                break
            maze[ny][nx] = PATH
            last = (nx, ny)
        if last is not None:
            self.try_connect_to_existing_paths(maze, last[0], last[1])

    def create_starting_area(self, maze: Grid, start_x: int, start_y: int) -> None:
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                if self.is_valid_position(start_x + dx, start_y + dy):
                    maze[start_y + dy][start_x + dx] = PATH

        for dx, dy in STEPS:
            spoke_x, spoke_y = start_x + dx * 2, start_y + dy * 2
            if self.is_valid_position(spoke_x, spoke_y):
                maze[start_y + dy][start_x + dx] = PATH
                maze[spoke_y][spoke_x] = PATH
                self.create_corridor(maze, spoke_x, spoke_y, (dx, dy), 2)

    def try_connect_to_existing_paths(self, maze: Grid, x: int, y: int, search_radius: int = 3) -> None:
        """Stitch (x, y) to the nearest path cell that is not already adjacent."""
        best: Cell | None = None
        best_distance = 0
        for dy in range(-search_radius, search_radius + 1):
            for dx in range(-search_radius, search_radius + 1):
                distance = abs(dx) + abs(dy)
                cx, cy = x + dx, y + dy
                if distance < 2 or not self.is_valid_position(cx, cy) or maze[cy][cx] != PATH:
                    continue
                if best is None or distance < best_distance:
                    best, best_distance = (cx, cy), distance
        if best is None:
            return
        # L-shaped stitch keeps the carved cells contiguous
        tx, ty = best
        cx, cy = x, y
        while cx != tx:
            cx += 1 if tx > cx else -1
            maze[cy][cx] = PATH
        while cy != ty:
            cy += 1 if ty > cy else -1
            maze[cy][cx] = PATH

    def get_accessible_positions(self, maze: Grid) -> List[Cell]:
        return get_accessible_positions(maze)


def get_accessible_positions(maze: Grid) -> List[Cell]:
    """Every path cell of ``maze`` in row-major order."""
    return [(x, y) for y, row in enumerate(maze) for x, cell in enumerate(row) if cell == PATH]
