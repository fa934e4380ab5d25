"""
Baseline agents for calibrating mission scores.

Two reference points make a strategy's score interpretable:

1. EpsilonGreedyBaseline: classic bandit agent, 15% exploration. It keeps its
   own knowledge of visited tiles and their neighbors, exploits the best
   known tile, and explores toward unvisited neighbors at random.
2. Preset strategies: the default rule sets (recon, jackpot hunter,
   homebody) run through the normal policy engine.

A finished mission is summarized against the epsilon-greedy baseline replayed
from the same start on the same sector.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from benchmark.metrics import average, round_half_up
from map_gen import get_tile, grid_neighbors, hex_distance
from models import Coord, Grid, MissionResult, Strategy
from state import MissionState
from strategy import DEFAULT_PRESETS, default_strategies

DEFAULT_EPSILON = 0.15
DEFAULT_BASELINE_RUNS = 100


def _best_known(grid: Grid, known: set[Coord], fallback: Coord) -> Coord:
    """Highest-valued known tile; ascending (q, r) order, first max wins."""
    best_value = -1
    best = fallback
    for coord in sorted(known):
        value = get_tile(grid, coord).true_value
        if value > best_value:
            best_value = value
            best = coord
    return best


class EpsilonGreedyBaseline:
    """Epsilon-greedy agent over the sector's tiles.

    The grid is only read: knowledge is tracked privately, so the same grid
    can be replayed many times.
    """

    def __init__(self, epsilon: float = DEFAULT_EPSILON):
        self.epsilon = epsilon

    @property
    def name(self) -> str:
        return f"baseline_epsilon_{self.epsilon:g}"

    def run(self, grid: Grid, start: Coord, rng: random.Random, turn_budget: int = 20) -> MissionResult:
        position = start
        known: set[Coord] = set()
        visited: set[Coord] = set()
        score = 0
        moves = 0
        mines = 0

        def add_knowledge(pos: Coord) -> None:
            visited.add(pos)
            known.add(pos)
            known.update(grid_neighbors(grid, pos))

        add_knowledge(position)

        for _ in range(turn_budget):
            exploring = rng.random() < self.epsilon
            best = _best_known(grid, known, position)
            neighbors = grid_neighbors(grid, position)

            if exploring and neighbors:
                # Prefer unvisited tiles to move away from ground already covered
                unvisited = [n for n in neighbors if n not in visited]
                position = rng.choice(unvisited) if unvisited else rng.choice(neighbors)
                moves += 1
                add_knowledge(position)
            elif position == best or not neighbors:
                score += get_tile(grid, position).true_value
                mines += 1
            else:
                min_distance = min(hex_distance(n, best) for n in neighbors)
                closest = [n for n in neighbors if hex_distance(n, best) == min_distance]
                position = rng.choice(closest)
                moves += 1
                add_knowledge(position)

        return MissionResult(total_yield=score, moves=moves, mines=mines, mined_value=score)


def run_epsilon_greedy(
    grid: Grid,
    start: Coord,
    rng: random.Random,
    epsilon: float = DEFAULT_EPSILON,
    turn_budget: int = 20,
) -> MissionResult:
    """Play one epsilon-greedy mission without modifying the grid."""
    return EpsilonGreedyBaseline(epsilon).run(grid, start, rng, turn_budget)


@dataclass
class MissionSummary:
    """Comparison of a finished mission with the epsilon-greedy baseline."""

    total_yield: int
    moves: int
    mines: int
    avg_yield: int
    baseline_score: int
    baseline_moves: int
    baseline_mines: int
    baseline_avg_mined_value: int
    score_diff: int
    performance: int  # Percent of the baseline score

    def to_dict(self) -> dict:
        return {
            "total_yield": self.total_yield,
            "moves": self.moves,
            "mines": self.mines,
            "avg_yield": self.avg_yield,
            "baseline_score": self.baseline_score,
            "baseline_moves": self.baseline_moves,
            "baseline_mines": self.baseline_mines,
            "baseline_avg_mined_value": self.baseline_avg_mined_value,
            "score_diff": self.score_diff,
            "performance": self.performance,
        }


def summarize_mission(
    state: MissionState,
    rng: random.Random,
    runs: int = DEFAULT_BASELINE_RUNS,
    epsilon: float = DEFAULT_EPSILON,
) -> MissionSummary:
    """Summarize a mission and compare it with `runs` baseline replays.

    Player mines are the sum of tile mined counts; moves are the remaining
    spent turns. The baseline replays from the mission's start on its grid.
    """
    user_mines = sum(tile.mined_count for tile in state.grid.values())
    user_moves = state.turns_spent - user_mines
    user_avg_yield = round_half_up(state.total_yield / user_mines) if user_mines > 0 else 0

    agent = EpsilonGreedyBaseline(epsilon)
    results = [agent.run(state.grid, state.start, rng, state.max_turns) for _ in range(runs)]

    baseline_score = round_half_up(average([r.total_yield for r in results]))
    total_mines = sum(r.mines for r in results)
    total_mined_value = sum(r.mined_value for r in results)

    return MissionSummary(
        total_yield=state.total_yield,
        moves=user_moves,
        mines=user_mines,
        avg_yield=user_avg_yield,
        baseline_score=baseline_score,
        baseline_moves=round_half_up(average([r.moves for r in results])),
        baseline_mines=round_half_up(average([r.mines for r in results])),
        baseline_avg_mined_value=round_half_up(total_mined_value / total_mines) if total_mines > 0 else 0,
        score_diff=state.total_yield - baseline_score,
        performance=round_half_up(state.total_yield / (baseline_score or 1) * 100),
    )


def baseline_strategies() -> dict[str, Strategy]:
    """Non-empty default presets, usable as rule-based baselines."""
    return {key: rules for key, rules in default_strategies().items() if rules}


# All baselines for easy import
BASELINE_STRATEGIES = {key: DEFAULT_PRESETS[key]["name"] for key in baseline_strategies()}
