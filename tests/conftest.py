"""Shared test fixtures and helpers."""

import random

import pytest

from map_gen import generate_grid, reveal
from models import Action, Condition, Operator, Rule
from state import DEFAULT_CONFIG, initialize_mission

# --- Standard strategies ---

HOMEBODY_RULES = [
    Rule(id="h-1", condition=Condition.TURNS_REMAINING, operator=Operator.EQ, threshold=20,
         action=Action.MOVE_HIGHEST_KNOWN),
    Rule(id="h-2", condition=Condition.ALWAYS, operator=Operator.GE, threshold=0,
         action=Action.MINE_CURRENT),
]

ALWAYS_MINE_RULES = [
    Rule(id="m-1", condition=Condition.ALWAYS, operator=Operator.GE, threshold=0,
         action=Action.MINE_CURRENT),
]

# Corner start of a radius-2 sector; its grid neighbors are (2, -1), (1, 0), (1, 1)
CORNER_START = (2, 0)


# --- Fixtures ---


@pytest.fixture
def rng():
    """Deterministic RNG seeded at 42."""
    return random.Random(42)


@pytest.fixture
def small_grid():
    """Radius-2 sector, every tile worth 5 except a 10 start corner and a 30 next to it."""
    return make_grid(2, {CORNER_START: 10, (1, 1): 30})


@pytest.fixture
def small_mission(small_grid):
    """Mission on small_grid starting at the corner, nothing played yet."""
    return make_mission(small_grid, CORNER_START)


# --- Helper functions ---


def make_grid(radius, values=None, default=5):
    """Build a sector with fixed tile values; `values` maps coord -> value."""
    grid = generate_grid(radius, random.Random(0))
    for coord, tile in grid.items():
        tile.true_value = default
    for coord, value in (values or {}).items():
        grid[coord].true_value = value
    return grid


def make_mission(grid, start, max_turns=20):
    """Start a mission on a prepared grid."""
    config = dict(DEFAULT_CONFIG)
    config["max_turns"] = max_turns
    return initialize_mission(config=config, grid=grid, start=start)


def reveal_all(grid):
    for coord in list(grid):
        reveal(grid, coord)
    return grid
