"""
Map generation module for "Xplore vs. Xploit"
Implements the hexagonal sector grid with axial coordinates and a tiered
weighted ore value distribution.
"""

import math
import random
from typing import Dict, Tuple, List, Optional
from models import Tile, Coord, Grid

# Fixed neighbor enumeration order; every tie-break over neighbors follows it
HEX_DIRECTIONS: List[Coord] = [(1, 0), (1, -1), (0, -1), (-1, 0), (-1, 1), (0, 1)]

CENTER: Coord = (0, 0)

# Tier roll boundaries (cumulative probabilities)
RARE_VEIN_CHANCE = 0.025
RICH_VEIN_CHANCE = 0.075
HIGH_STANDARD_CHANCE = 0.175

RARE_VEIN_VALUES = (45, 50)
RICH_VEIN_VALUE = 40
HIGH_STANDARD_VALUE = 35
STANDARD_MIN = 5
STANDARD_MAX = 30


class InvalidCoordinateError(Exception):
    """Raised when a coordinate outside the generated grid is looked up."""
    pass


def get_hex_neighbors(coord: Coord) -> List[Coord]:
    """
    Get the 6 neighboring hex coordinates in axial system.

    Args:
        coord: Axial coordinate (q, r)

    Returns:
        List of (q, r) coordinates in HEX_DIRECTIONS order
    """
    q, r = coord
    return [(q + dq, r + dr) for dq, dr in HEX_DIRECTIONS]


def hex_distance(a: Coord, b: Coord) -> int:
    """
    Calculate distance between two hexes using axial coordinates.

    Args:
        a: Coordinates of first hex
        b: Coordinates of second hex

    Returns:
        Number of steps between the hexes
    """
    dq = a[0] - b[0]
    dr = a[1] - b[1]
    return (abs(dq) + abs(dq + dr) + abs(dr)) // 2


def distance_from_center(coord: Coord) -> int:
    """Distance from the sector center (0, 0)."""
    return hex_distance(coord, CENTER)


def corner_coords(radius: int) -> List[Coord]:
    """The six corner hexes of a hexagon of the given radius."""
    return [
        (radius, 0), (0, radius), (-radius, radius),
        (-radius, 0), (0, -radius), (radius, -radius),
    ]


def _round_to_multiple(value: float, step: int) -> int:
    # Halves round up, never to even
    return int(math.floor(value / step + 0.5)) * step


def generate_tile_value(rng: random.Random) -> int:
    """
    Draw one tile value from the tiered distribution.

    Targets:
    - 2.5% rare veins (45 or 50)
    - 5% rich veins (40)
    - 10% high-tier standard (35)
    - 82.5% standard values 5-30, bell-shaped around 15

    Args:
        rng: Random source for the draw

    Returns:
        Ore value of the tile
    """
    roll = rng.random()

    if roll < RARE_VEIN_CHANCE:
        return rng.choice(RARE_VEIN_VALUES)
    if roll < RICH_VEIN_CHANCE:
        return RICH_VEIN_VALUE
    if roll < HIGH_STANDARD_CHANCE:
        return HIGH_STANDARD_VALUE

    # Sum of 3 uniforms is in [0, 3]; center it on 0 and spread around 15
    samples = 3
    total = sum(rng.random() for _ in range(samples))
    raw_value = (total - samples / 2) * 14 + 15
    rounded = _round_to_multiple(raw_value, 5)
    return max(STANDARD_MIN, min(STANDARD_MAX, rounded))


def generate_grid(radius: int, rng: Optional[random.Random] = None) -> Grid:
    """
    Generate the hexagonal sector grid.

    Tiles are inserted in ascending (q, r) order, so iterating the returned
    dict is deterministic.

    Args:
        radius: Hexagon radius; the grid has 3r^2 + 3r + 1 tiles
        rng: Random source for tile values (a fresh unseeded one if omitted)

    Returns:
        Dictionary mapping (q, r) coordinates to Tile objects
    """
    if radius < 0:
        raise ValueError(f"Grid radius must be non-negative, got {radius}")
    if rng is None:
        rng = random.Random()

    grid: Grid = {}
    for q in range(-radius, radius + 1):
        for r in range(max(-radius, -q - radius), min(radius, -q + radius) + 1):
            grid[(q, r)] = Tile(q=q, r=r, true_value=generate_tile_value(rng))
    return grid


def get_tile(grid: Grid, coord: Coord) -> Tile:
    """Look up a tile, failing loudly for coordinates outside the grid."""
    try:
        return grid[coord]
    except KeyError:
        raise InvalidCoordinateError(f"Coordinate {coord} is outside the sector grid") from None


def grid_neighbors(grid: Grid, coord: Coord) -> List[Coord]:
    """Neighbors of `coord` present in the grid, in HEX_DIRECTIONS order."""
    return [n for n in get_hex_neighbors(coord) if n in grid]


def is_adjacent(current: Coord, target: Coord) -> bool:
    """Check if target hex is adjacent to current hex in axial coordinates."""
    return hex_distance(current, target) == 1


def reveal(grid: Grid, position: Coord) -> int:
    """
    Reveal a position and its neighbors (visibility radius 1).

    Args:
        grid: Sector grid, mutated in place
        position: Acting position

    Returns:
        Number of tiles that were newly revealed
    """
    revealed_count = 0
    for coord in [position] + grid_neighbors(grid, position):
        tile = get_tile(grid, coord)
        if not tile.revealed:
            tile.revealed = True
            revealed_count += 1
    return revealed_count


def create_map(radius: int, rng: random.Random, start_value: int = 10) -> Tuple[Grid, Coord]:
    """
    Create a fresh mission map with a start corner.

    The start corner is chosen at random, its value is fixed to `start_value`
    and it is revealed together with its neighbors.

    Args:
        radius: Sector radius
        rng: Random source for tile values and the start corner
        start_value: Ore value of the start tile

    Returns:
        (grid, start) tuple
    """
    grid = generate_grid(radius, rng)
    start = rng.choice(corner_coords(radius))
    grid[start].true_value = start_value
    reveal(grid, start)
    return grid, start


def grid_stats(grid: Grid) -> Dict[str, object]:
    """
    Summarize the value distribution of a grid.

    Returns:
        Dictionary with tile count, per-value counts and per-tier shares
    """
    value_counts: Dict[int, int] = {}
    for tile in grid.values():
        value_counts[tile.true_value] = value_counts.get(tile.true_value, 0) + 1

    total = len(grid)
    rare = sum(c for v, c in value_counts.items() if v in RARE_VEIN_VALUES)
    rich = value_counts.get(RICH_VEIN_VALUE, 0)
    high = value_counts.get(HIGH_STANDARD_VALUE, 0)
    standard = total - rare - rich - high

    return {
        'total_tiles': total,
        'value_counts': dict(sorted(value_counts.items())),
        'tier_shares': {
            'rare': rare / total if total else 0.0,
            'rich': rich / total if total else 0.0,
            'high_standard': high / total if total else 0.0,
            'standard': standard / total if total else 0.0,
        },
        'revealed': sum(1 for t in grid.values() if t.revealed),
    }


def print_map_stats(grid: Grid) -> None:
    """
    Print detailed statistics about a generated grid.

    Args:
        grid: Generated grid
    """
    stats = grid_stats(grid)

    print("\n" + "=" * 50)
    print("SECTOR STATISTICS")
    print("=" * 50)
    print(f"Total tiles: {stats['total_tiles']}")
    print(f"Revealed:    {stats['revealed']}")
    print("-" * 30)

    for value, count in stats['value_counts'].items():
        percentage = (count / stats['total_tiles']) * 100
        print(f"{value:5d} ore: {count:3d} tiles ({percentage:5.1f}%)")

    print("-" * 30)
    for tier, share in stats['tier_shares'].items():
        print(f"{tier:14}: {share:.1%}")
    print("=" * 50)


if __name__ == "__main__":
    # A large sector so the tier shares approach their targets
    for seed in [42, 123, 456]:
        print(f"\nTesting seed: {seed}")
        print_map_stats(generate_grid(20, random.Random(seed)))

    grid, start = create_map(4, random.Random(42))
    print(f"\nMission map: start corner {start}")
    print_map_stats(grid)
