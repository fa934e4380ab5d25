"""
Turn simulation for "Xplore vs. Xploit"
Handles single turns (mine or move), the bulk-mine shortcut and full
policy-driven missions.

Status flow: IDLE -> PLAYING on the first turn, PLAYING -> FINISHED exactly
when the last turn is spent. Nothing is processed once FINISHED.
"""

from typing import Dict, Optional

from map_gen import get_tile, is_adjacent, reveal
from models import Coord, Decision, Grid, MissionResult, MissionStatus, StepAction, Strategy
from policy import PolicyView, decide
from state import DEFAULT_CONFIG, MissionState, initialize_mission, log_event
from strategy import validate_strategy


class MissionFinishedError(Exception):
    """Raised when a turn is attempted on a finished mission."""
    pass


class IllegalMoveError(Exception):
    """Raised when a move target is not an adjacent sector tile."""
    pass


def _check_playable(state: MissionState) -> None:
    if state.status == MissionStatus.FINISHED or state.turns_left <= 0:
        raise MissionFinishedError(f"Mission {state.mission_id} is finished")


def _consume_turns(state: MissionState, turns: int = 1) -> None:
    """Spend turns and advance the mission status."""
    state.turns_left -= turns
    if state.turns_left == 0:
        state.status = MissionStatus.FINISHED
        log_event(state, f"Mission finished with {state.total_yield} ore",
                  total_yield=state.total_yield, moves=state.moves, mines=state.mines)
    else:
        state.status = MissionStatus.PLAYING


def apply_mine(state: MissionState) -> int:
    """
    Mine the current tile for one turn.

    Returns:
        Ore extracted this turn
    """
    _check_playable(state)
    tile = get_tile(state.grid, state.position)
    tile.mined_count += 1
    state.total_yield += tile.true_value
    state.mines += 1
    log_event(state, f"Mined {tile.true_value} ore at {state.position}",
              action='MINE', value=tile.true_value)
    _consume_turns(state)
    return tile.true_value


def apply_move(state: MissionState, target: Coord) -> int:
    """
    Move to an adjacent tile, revealing it and its neighbors.

    Returns:
        Number of newly revealed tiles

    Raises:
        IllegalMoveError: target is off the grid or not adjacent
    """
    _check_playable(state)
    if target not in state.grid:
        raise IllegalMoveError(f"Target hex {target} is outside the sector")
    if not is_adjacent(state.position, target):
        raise IllegalMoveError(f"Target hex {target} is not adjacent to position {state.position}")

    old_position = state.position
    state.position = target
    newly_revealed = reveal(state.grid, target)
    state.revealed_count += newly_revealed
    state.visited.add(target)
    state.moves += 1
    log_event(state, f"Moved from {old_position} to {target}",
              action='MOVE', revealed=newly_revealed)
    _consume_turns(state)
    return newly_revealed


def mine_remaining(state: MissionState) -> int:
    """
    Spend every remaining turn mining the current tile in one step.

    Matches repeating apply_mine once per remaining turn.

    Returns:
        Ore extracted
    """
    _check_playable(state)
    turns = state.turns_left
    tile = get_tile(state.grid, state.position)
    extracted = tile.true_value * turns
    tile.mined_count += turns
    state.total_yield += extracted
    state.mines += turns
    log_event(state, f"Mined {extracted} ore at {state.position} over {turns} turns",
              action='MINE_ALL', value=tile.true_value, turns=turns)
    _consume_turns(state, turns)
    return extracted


def apply_decision(state: MissionState, decision: Decision) -> None:
    """Carry out a policy decision for one turn."""
    if decision.action == StepAction.MOVE and decision.target is not None:
        apply_move(state, decision.target)
    else:
        apply_mine(state)


def play_turn(state: MissionState, strategy: Strategy) -> Decision:
    """
    Run one policy-driven turn.

    Returns:
        The decision that was applied, including its rule trace

    Raises:
        MalformedRuleError: the strategy fails validation; nothing is played
    """
    _check_playable(state)
    validate_strategy(strategy)
    decision = decide(PolicyView.from_state(state), strategy)
    apply_decision(state, decision)
    return decision


def complete_mission(state: MissionState, strategy: Strategy) -> MissionResult:
    """Play policy-driven turns until the mission is finished."""
    while not state.is_finished:
        play_turn(state, strategy)
    return MissionResult(total_yield=state.total_yield, moves=state.moves,
                         mines=state.mines, mined_value=state.total_yield)


def run_mission(strategy: Strategy, grid: Grid, start: Coord, turn_budget: int = 20,
                config: Optional[Dict] = None) -> MissionResult:
    """
    Run a full autonomous mission on a given grid.

    The grid is mutated (reveals, mined counts) and belongs to this mission.

    Args:
        strategy: Ordered rules driving every turn
        grid: Sector grid
        start: Start coordinate
        turn_budget: Number of turns in the mission

    Returns:
        MissionResult with total yield, moves and mines
    """
    validate_strategy(strategy)
    mission_config = dict(config or DEFAULT_CONFIG)
    mission_config['max_turns'] = turn_budget
    state = initialize_mission(config=mission_config, grid=grid, start=start)
    return complete_mission(state, strategy)
