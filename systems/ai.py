from __future__ import annotations
from dataclasses import dataclass, field
from heapq import heappush, heappop
from itertools import count
from typing import Dict, List, Tuple, Optional, Iterable
from systems.collision import point_in_grid
from systems.grid import NavigableGrid

Node = Tuple[int, int]

# Expansion order: up, right, down, left
NEIGHBOR_STEPS: Tuple[Node, ...] = ((0, -1), (1, 0), (0, 1), (-1, 0))

def heuristic(a: Node, b: Node) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])

def neighbors(node: Node, grid: NavigableGrid) -> Iterable[Node]:
    x, y = node
    for dx, dy in NEIGHBOR_STEPS:
        nxt = (x + dx, y + dy)
        if point_in_grid(nxt, (grid.width, grid.height)) and not grid.is_wall_cell(nxt):
            yield nxt

def astar(start: Node, goal: Node, grid: NavigableGrid) -> List[Node]:
    """Shortest 4-connected route from ``start`` to ``goal`` inclusive; [] when unreachable.

    Frontier ties on f-score prefer the node closer to the goal, then the
    node pushed first, so equal-cost routes come out the same every run.
    """
    if grid.is_wall_cell(start) or grid.is_wall_cell(goal):
        return []

    order = count()
    open_set: List[Tuple[int, int, int, Node]] = []
    h0 = heuristic(start, goal)
    heappush(open_set, (h0, h0, next(order), start))
    came_from: Dict[Node, Optional[Node]] = {start: None}
    g_score: Dict[Node, int] = {start: 0}
    closed: set[Node] = set()

    while open_set:
        _, _, _, current = heappop(open_set)
        if current in closed:
            continue
        if current == goal:
            path: List[Node] = []
            node: Optional[Node] = current
            while node is not None:
                path.append(node)
                node = came_from[node]
            return list(reversed(path))
        closed.add(current)

        for nxt in neighbors(current, grid):
            if nxt in closed:
                continue
            tentative = g_score[current] + 1
            if tentative < g_score.get(nxt, 1_000_000):
                came_from[nxt] = current
                g_score[nxt] = tentative
                h = heuristic(nxt, goal)
                heappush(open_set, (tentative + h, h, next(order), nxt))
    return []


@dataclass
class PathPlan:
    """Waypoints computed by one enemy, walked with a cursor until replaced."""
    cells: List[Node] = field(default_factory=list)
    cursor: int = 0

    @property
    def exhausted(self) -> bool:
        return self.cursor >= len(self.cells)

    @property
    def current(self) -> Optional[Node]:
        return None if self.exhausted else self.cells[self.cursor]

    @property
    def goal(self) -> Optional[Node]:
        return self.cells[-1] if self.cells else None

    def advance(self) -> Optional[Node]:
        self.cursor += 1
        return self.current

    def clear(self) -> None:
        self.cells = []
        self.cursor = 0
