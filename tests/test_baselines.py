"""
Baseline agent tests.

Checks the epsilon-greedy reference agent and the mission summary that
compares a played mission with it.
"""

import copy
import random

import pytest

from benchmark.baselines import (
    BASELINE_STRATEGIES,
    EpsilonGreedyBaseline,
    MissionSummary,
    baseline_strategies,
    run_epsilon_greedy,
    summarize_mission,
)
from map_gen import create_map
from mission import apply_mine, apply_move, mine_remaining
from tests.conftest import CORNER_START, make_grid, make_mission


class TestEpsilonGreedy:
    def test_name(self):
        assert EpsilonGreedyBaseline().name == "baseline_epsilon_0.15"

    def test_spends_full_budget(self, rng):
        grid, start = create_map(4, random.Random(3))
        for _ in range(20):
            result = run_epsilon_greedy(grid, start, rng)
            assert result.moves + result.mines == 20
            assert result.mined_value == result.total_yield

    def test_grid_is_not_modified(self, rng):
        grid, start = create_map(4, random.Random(3))
        before = copy.deepcopy(grid)
        EpsilonGreedyBaseline().run(grid, start, rng)
        assert grid == before

    def test_pure_greedy_walks_to_best_known_and_mines(self, small_grid, rng):
        # With no exploration the agent heads for (1, 1) and mines it from then on
        result = EpsilonGreedyBaseline(epsilon=0.0).run(small_grid, CORNER_START, rng)
        assert result.moves == 1
        assert result.mines == 19
        assert result.total_yield == 19 * 30

    def test_pure_greedy_mines_when_start_is_best(self, rng):
        grid = make_grid(2, {CORNER_START: 40})
        result = EpsilonGreedyBaseline(epsilon=0.0).run(grid, CORNER_START, rng)
        assert (result.moves, result.mines, result.total_yield) == (0, 20, 800)

    def test_pure_exploration_always_moves(self, small_grid, rng):
        result = EpsilonGreedyBaseline(epsilon=1.0).run(small_grid, CORNER_START, rng)
        assert result.moves == 20
        assert result.total_yield == 0

    def test_single_tile_sector_only_mines(self, rng):
        grid = make_grid(0, {(0, 0): 15})
        result = EpsilonGreedyBaseline(epsilon=1.0).run(grid, (0, 0), rng)
        assert (result.moves, result.mines, result.total_yield) == (0, 20, 300)

    def test_reproducible_with_same_rng_seed(self):
        grid, start = create_map(4, random.Random(8))
        a = run_epsilon_greedy(grid, start, random.Random(1))
        b = run_epsilon_greedy(grid, start, random.Random(1))
        assert a == b


class TestSummarizeMission:
    def test_summary_of_homebody_play(self, small_mission, rng):
        apply_move(small_mission, (1, 1))
        mine_remaining(small_mission)

        summary = summarize_mission(small_mission, rng, runs=20)
        assert isinstance(summary, MissionSummary)
        assert summary.total_yield == 570
        assert summary.moves == 1
        assert summary.mines == 19
        assert summary.avg_yield == 30
        assert summary.score_diff == 570 - summary.baseline_score
        assert summary.baseline_moves + summary.baseline_mines in (19, 20, 21)

    def test_matches_greedy_baseline_exactly(self, small_mission, rng):
        apply_move(small_mission, (1, 1))
        mine_remaining(small_mission)

        summary = summarize_mission(small_mission, rng, runs=5, epsilon=0.0)
        assert summary.baseline_score == 570
        assert summary.baseline_avg_mined_value == 30
        assert summary.performance == 100
        assert summary.score_diff == 0

    def test_no_mining_means_zero_average(self, small_mission, rng):
        apply_move(small_mission, (1, 0))
        summary = summarize_mission(small_mission, rng, runs=3)
        assert summary.mines == 0
        assert summary.avg_yield == 0
        assert summary.moves == 1

    def test_performance_when_baseline_scores_nothing(self, rng):
        state = make_mission(make_grid(2, {CORNER_START: 10}), CORNER_START, max_turns=2)
        apply_mine(state)
        apply_mine(state)
        summary = summarize_mission(state, rng, runs=4, epsilon=1.0)
        assert summary.baseline_score == 0
        assert summary.performance == 2000

    def test_to_dict(self, small_mission, rng):
        d = summarize_mission(small_mission, rng, runs=2).to_dict()
        assert set(d) == {
            "total_yield", "moves", "mines", "avg_yield", "baseline_score", "baseline_moves",
            "baseline_mines", "baseline_avg_mined_value", "score_diff", "performance",
        }


class TestPresetBaselines:
    def test_empty_presets_excluded(self):
        assert list(baseline_strategies()) == ["recon", "value_hunter", "homebody"]

    def test_names(self):
        assert BASELINE_STRATEGIES["homebody"] == "Homebody"

    @pytest.mark.parametrize("key", ["recon", "value_hunter", "homebody"])
    def test_presets_are_non_empty(self, key):
        assert baseline_strategies()[key]
