"""
Test suite for sector grid generation in Xplore vs. Xploit
Tests grid shape, the tiered value distribution, neighbor queries and reveal propagation.
"""

import random

import pytest

from map_gen import (
    HEX_DIRECTIONS,
    InvalidCoordinateError,
    _round_to_multiple,
    corner_coords,
    create_map,
    distance_from_center,
    generate_grid,
    generate_tile_value,
    get_hex_neighbors,
    get_tile,
    grid_neighbors,
    grid_stats,
    hex_distance,
    is_adjacent,
    reveal,
)
from tests.conftest import make_grid

STANDARD_VALUES = {5, 10, 15, 20, 25, 30}
SPECIAL_VALUES = {35, 40, 45, 50}


class ScriptedRandom(random.Random):
    """Random whose random() returns a fixed script of values."""

    def __init__(self, values):
        super().__init__(0)
        self._values = list(values)

    def random(self):
        return self._values.pop(0)


class TestHexUtilities:
    """Test basic hex utility functions."""

    def test_get_hex_neighbors(self) -> None:
        neighbors = get_hex_neighbors((5, 5))
        assert neighbors == [(6, 5), (6, 4), (5, 4), (4, 5), (4, 6), (5, 6)]

    def test_hex_distance(self) -> None:
        assert hex_distance((0, 0), (0, 0)) == 0
        assert hex_distance((0, 0), (1, 0)) == 1
        assert hex_distance((0, 0), (1, -1)) == 1
        assert hex_distance((0, 0), (2, -1)) == 2
        assert hex_distance((-2, 0), (2, 0)) == 4
        assert hex_distance((4, 0), (-4, 4)) == 8

    def test_distance_is_symmetric(self) -> None:
        grid = generate_grid(3, random.Random(1))
        coords = list(grid)
        for a in coords[:10]:
            for b in coords:
                assert hex_distance(a, b) == hex_distance(b, a)

    def test_every_direction_is_adjacent(self) -> None:
        for d in HEX_DIRECTIONS:
            assert hex_distance((0, 0), d) == 1
            assert is_adjacent((3, -1), (3 + d[0], -1 + d[1]))
        assert not is_adjacent((0, 0), (0, 0))
        assert not is_adjacent((0, 0), (2, 0))

    def test_distance_from_center(self) -> None:
        assert distance_from_center((0, 0)) == 0
        assert distance_from_center((4, -4)) == 4
        assert distance_from_center((-1, 2)) == 2

    def test_corner_coords(self) -> None:
        corners = corner_coords(4)
        assert len(corners) == 6
        assert all(distance_from_center(c) == 4 for c in corners)
        assert corners[0] == (4, 0)


class TestGridGeneration:
    """Test grid shape and value distribution."""

    @pytest.mark.parametrize("radius", [0, 1, 2, 3, 4, 6])
    def test_tile_count(self, radius: int) -> None:
        grid = generate_grid(radius, random.Random(radius))
        assert len(grid) == 3 * radius * radius + 3 * radius + 1

    def test_tiles_lie_within_radius(self) -> None:
        grid = generate_grid(4, random.Random(7))
        for (q, r), tile in grid.items():
            assert (tile.q, tile.r) == (q, r)
            assert distance_from_center((q, r)) <= 4

    def test_tiles_start_hidden_and_unmined(self) -> None:
        grid = generate_grid(4, random.Random(7))
        assert all(not t.revealed and t.mined_count == 0 for t in grid.values())

    def test_iteration_order_is_ascending(self) -> None:
        grid = generate_grid(4, random.Random(3))
        assert list(grid) == sorted(grid)

    def test_values_are_in_allowed_set(self) -> None:
        for seed in range(20):
            grid = generate_grid(4, random.Random(seed))
            for tile in grid.values():
                assert tile.true_value in STANDARD_VALUES | SPECIAL_VALUES

    def test_same_seed_same_grid(self) -> None:
        a = generate_grid(4, random.Random(99))
        b = generate_grid(4, random.Random(99))
        assert a == b

    def test_negative_radius_rejected(self) -> None:
        with pytest.raises(ValueError):
            generate_grid(-1, random.Random(0))

    def test_tier_shares_roughly_match_targets(self) -> None:
        """Large sector: 2.5% rare, 5% rich, 10% high standard."""
        stats = grid_stats(generate_grid(30, random.Random(2024)))
        shares = stats["tier_shares"]
        assert stats["total_tiles"] == 2791
        assert 0.01 < shares["rare"] < 0.045
        assert 0.03 < shares["rich"] < 0.075
        assert 0.07 < shares["high_standard"] < 0.13
        assert 0.77 < shares["standard"] < 0.88


class TestTileValue:
    """Test each tier of the value draw."""

    def test_rare_vein(self) -> None:
        # The second value feeds the choice between the two rare values
        assert generate_tile_value(ScriptedRandom([0.01, 0.3])) in (45, 50)

    def test_rich_vein(self) -> None:
        assert generate_tile_value(ScriptedRandom([0.05])) == 40

    def test_high_standard(self) -> None:
        assert generate_tile_value(ScriptedRandom([0.1])) == 35

    def test_standard_center(self) -> None:
        # Sum 1.5 -> centered 0 -> 15
        assert generate_tile_value(ScriptedRandom([0.5, 0.5, 0.5, 0.5])) == 15

    def test_standard_rounds_half_up(self) -> None:
        assert _round_to_multiple(12.5, 5) == 15
        assert _round_to_multiple(7.5, 5) == 10
        assert _round_to_multiple(12.4, 5) == 10

    def test_standard_clamped_low(self) -> None:
        # Sum 0 -> raw -6 -> clamped to 5
        assert generate_tile_value(ScriptedRandom([0.9, 0.0, 0.0, 0.0])) == 5

    def test_standard_clamped_high(self) -> None:
        # Sum ~3 -> raw ~36 -> rounded 35 -> clamped to 30
        assert generate_tile_value(ScriptedRandom([0.9, 0.999, 0.999, 0.999])) == 30


class TestNeighbors:
    """Test neighbor queries against the grid boundary."""

    def test_interior_tiles_have_six_neighbors(self) -> None:
        radius = 4
        grid = generate_grid(radius, random.Random(5))
        for coord in grid:
            count = len(grid_neighbors(grid, coord))
            if distance_from_center(coord) < radius:
                assert count == 6
            else:
                assert count < 6

    def test_corner_has_three_neighbors(self) -> None:
        grid = generate_grid(4, random.Random(5))
        for corner in corner_coords(4):
            assert len(grid_neighbors(grid, corner)) == 3

    def test_neighbors_follow_direction_order(self) -> None:
        grid = generate_grid(2, random.Random(5))
        assert grid_neighbors(grid, (2, 0)) == [(2, -1), (1, 0), (1, 1)]

    def test_single_tile_grid_has_no_neighbors(self) -> None:
        grid = generate_grid(0, random.Random(5))
        assert grid_neighbors(grid, (0, 0)) == []

    def test_get_tile_outside_grid(self) -> None:
        grid = generate_grid(2, random.Random(5))
        assert get_tile(grid, (1, 1)).coord == (1, 1)
        with pytest.raises(InvalidCoordinateError):
            get_tile(grid, (3, 0))


class TestReveal:
    """Test reveal propagation (visibility radius 1)."""

    def test_reveal_center_and_neighbors(self) -> None:
        grid = make_grid(2)
        assert reveal(grid, (0, 0)) == 7
        assert sum(1 for t in grid.values() if t.revealed) == 7

    def test_reveal_is_idempotent(self) -> None:
        grid = make_grid(2)
        reveal(grid, (0, 0))
        assert reveal(grid, (0, 0)) == 0

    def test_reveal_counts_only_new_tiles(self) -> None:
        grid = make_grid(2)
        reveal(grid, (0, 0))
        # Only (2, 0), (2, -1) and (1, 1) are new
        assert reveal(grid, (1, 0)) == 3

    def test_reveal_at_corner(self) -> None:
        grid = make_grid(2)
        assert reveal(grid, (2, 0)) == 4


class TestCreateMap:
    """Test mission map creation."""

    def test_start_is_corner_with_fixed_value(self) -> None:
        for seed in range(10):
            grid, start = create_map(4, random.Random(seed))
            assert start in corner_coords(4)
            assert grid[start].true_value == 10

    def test_start_and_neighbors_revealed(self) -> None:
        grid, start = create_map(4, random.Random(1))
        revealed = {c for c, t in grid.items() if t.revealed}
        assert revealed == {start, *grid_neighbors(grid, start)}
        assert len(revealed) == 4

    def test_custom_start_value(self) -> None:
        grid, start = create_map(3, random.Random(1), start_value=25)
        assert grid[start].true_value == 25
        assert len(grid) == 37
