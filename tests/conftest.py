import os

# Headless pygame for every test module
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pytest  # noqa: E402

from systems.grid import NavigableGrid  # noqa: E402
from systems.maze import PATH, WALL  # noqa: E402


def rows_to_maze(rows: list[str]) -> list[list[int]]:
    return [[WALL if ch == "#" else PATH for ch in row] for row in rows]


def open_rows(width: int, height: int) -> list[str]:
    """Solid border around a fully open interior."""
    middle = "#" + "." * (width - 2) + "#"
    return ["#" * width] + [middle] * (height - 2) + ["#" * width]


@pytest.fixture
def make_grid():
    def build(rows: list[str], cell_size: int = 20) -> NavigableGrid:
        return NavigableGrid(rows_to_maze(rows), cell_size)

    return build


@pytest.fixture
def open_grid(make_grid) -> NavigableGrid:
    return make_grid(open_rows(7, 7))
