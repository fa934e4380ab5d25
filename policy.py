"""
Policy engine for "Xplore vs. Xploit"
Turns an ordered strategy into one concrete action per turn, recording how
every rule evaluated along the way.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from map_gen import distance_from_center, get_tile, grid_neighbors, hex_distance
from models import (
    Action, Condition, Coord, Decision, Grid, Operator, Rule, RuleEvaluation,
    StepAction, Strategy,
)

# Number of center-most neighbors SEEK_FRONTIER chooses among
FRONTIER_CANDIDATES = 3


@dataclass
class PolicyView:
    """Minimal read-only snapshot the policy engine needs."""
    grid: Grid
    position: Coord
    turns_left: int

    @classmethod
    def from_state(cls, state) -> "PolicyView":
        return cls(grid=state.grid, position=state.position, turns_left=state.turns_left)


def compare(value: int, operator: Operator, threshold: int) -> bool:
    """Integer comparison for a rule operator."""
    if operator == Operator.LE:
        return value <= threshold
    if operator == Operator.GE:
        return value >= threshold
    return value == threshold


def find_highest_known(grid: Grid, fallback: Coord) -> Tuple[int, Coord]:
    """
    Find the highest-valued revealed tile.

    Revealed tiles are scanned in ascending (q, r) order and the first tile
    achieving the maximum wins ties.

    Args:
        grid: Sector grid
        fallback: Coordinate reported when nothing is revealed

    Returns:
        (value, coord), with value -1 when no tile is revealed
    """
    best_value = -1
    best_coord = fallback
    for coord in sorted(grid):
        tile = grid[coord]
        if tile.revealed and tile.true_value > best_value:
            best_value = tile.true_value
            best_coord = coord
    return best_value, best_coord


def evaluate_condition(rule: Rule, current_value: int, turns_left: int, highest_value: int) -> bool:
    """Evaluate one rule's predicate against the decision inputs."""
    if rule.condition == Condition.ALWAYS:
        return True
    if rule.condition == Condition.CURRENT_VALUE:
        threshold = highest_value if rule.compare_with_highest else rule.threshold
        return compare(current_value, rule.operator, threshold)
    if rule.condition == Condition.TURNS_REMAINING:
        return compare(turns_left, rule.operator, rule.threshold)
    if rule.condition == Condition.HIGHEST_VALUE:
        return compare(highest_value, rule.operator, rule.threshold)
    raise ValueError(f"Unhandled condition {rule.condition!r}")


def _move_toward(grid: Grid, position: Coord, target: Coord) -> Optional[Coord]:
    """Find the adjacent hex closest to target; first in direction order wins ties."""
    neighbors = grid_neighbors(grid, position)
    if not neighbors:
        return None
    return min(neighbors, key=lambda n: hex_distance(n, target))


def _seek_frontier(grid: Grid, position: Coord) -> Optional[Coord]:
    """Pick the richest of the neighbors nearest the sector center."""
    neighbors = grid_neighbors(grid, position)
    if not neighbors:
        return None
    # sorted() is stable, so direction order breaks both ties
    by_center = sorted(neighbors, key=distance_from_center)[:FRONTIER_CANDIDATES]
    by_value = sorted(by_center, key=lambda n: grid[n].true_value, reverse=True)
    return by_value[0]


def resolve_action(action: Action, grid: Grid, position: Coord, highest_coord: Coord) -> Tuple[StepAction, Optional[Coord]]:
    """
    Turn a rule action into a concrete step.

    Returns:
        (step action, target) with target None for MINE
    """
    if action == Action.MINE_CURRENT:
        return StepAction.MINE, None

    if action == Action.MOVE_HIGHEST_KNOWN:
        if position == highest_coord:
            return StepAction.MINE, None
        target = _move_toward(grid, position, highest_coord)
    elif action == Action.SEEK_FRONTIER:
        target = _seek_frontier(grid, position)
    else:
        raise ValueError(f"Unhandled action {action!r}")

    if target is None:
        return StepAction.MINE, None
    return StepAction.MOVE, target


def decide(state: PolicyView, strategy: Strategy) -> Decision:
    """
    Evaluate a strategy against a mission snapshot.

    Every rule is evaluated so the trace is complete; only the first rule
    whose condition holds is chosen. With no chosen rule the step is MINE.
    Neither the grid nor the strategy is modified.

    Args:
        state: Mission snapshot; any object with `grid`, `position` and
            `turns_left` (such as a MissionState) also works
        strategy: Ordered rules

    Returns:
        Decision with the action, optional move target and per-rule trace
    """
    grid = state.grid
    position = state.position
    current_value = get_tile(grid, position).true_value
    highest_value, highest_coord = find_highest_known(grid, position)

    trace: List[RuleEvaluation] = []
    chosen: Optional[Rule] = None
    for rule in strategy:
        met = evaluate_condition(rule, current_value, state.turns_left, highest_value)
        is_chosen = met and chosen is None
        if is_chosen:
            chosen = rule
        trace.append(RuleEvaluation(rule_id=rule.id, met=met, chosen=is_chosen))

    if chosen is None:
        return Decision(action=StepAction.MINE, target=None, trace=trace)

    step, target = resolve_action(chosen.action, grid, position, highest_coord)
    return Decision(action=step, target=target, trace=trace)
