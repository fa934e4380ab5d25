"""
Mission state management for "Xplore vs. Xploit"
Implements mission state, configuration loading and mission initialization.

Mission: 20 turns on a radius-4 hex sector, starting from a random corner
whose tile is worth 10 ore. Each turn either mines the current tile or moves
to a neighbor.
"""

from __future__ import annotations
import copy
import json
import os
import random
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from map_gen import create_map, get_tile, grid_neighbors, reveal
from models import Coord, Grid, MissionStatus

DEFAULT_CONFIG: Dict[str, Any] = {
    'max_turns': 20,
    'grid_radius': 4,
    'start_tile_value': 10,
    'monte_carlo_runs': 100,
    'progress_every': 20,
    'baseline_epsilon': 0.15,
    'baseline_runs': 100,
    'score_tiers': [700, 500, 300],
    'strategy_store_path': 'strategies.json',
}

CONFIG_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config.json')


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration, falling back to defaults for missing keys.

    A missing or invalid config file yields the defaults.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    try:
        with open(path or CONFIG_PATH, 'r') as f:
            loaded = json.load(f)
        if isinstance(loaded, dict):
            config.update(loaded)
    except (FileNotFoundError, json.JSONDecodeError):
        # Use defaults if config file is missing or invalid
        pass
    return config


@dataclass
class MissionState:
    """
    Complete state of one mission.

    The mission owns its grid exclusively: the turn simulator is the only
    writer for the mission's lifetime.
    """
    mission_id: str
    grid: Grid
    start: Coord
    position: Coord
    max_turns: int = 20
    turns_left: int = 20  # Strictly decreases by 1 per turn
    total_yield: int = 0
    status: MissionStatus = MissionStatus.IDLE
    visited: Set[Coord] = field(default_factory=set)
    revealed_count: int = 0
    moves: int = 0
    mines: int = 0
    log: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_finished(self) -> bool:
        return self.status == MissionStatus.FINISHED

    @property
    def turns_spent(self) -> int:
        return self.max_turns - self.turns_left

    @property
    def current_value(self) -> int:
        return get_tile(self.grid, self.position).true_value


def log_event(state: MissionState, event: str, **kwargs) -> None:
    """
    Add an event to the mission log.

    Args:
        state: Current mission state
        event: Description of the event
        **kwargs: Additional event data to include
    """
    log_entry = {
        'turn': state.turns_spent,
        'status': state.status.value,
        'event': event,
        **kwargs
    }
    state.log.append(log_entry)


def initialize_mission(seed: Optional[int] = None, rng: Optional[random.Random] = None,
                       config: Optional[Dict[str, Any]] = None, grid: Optional[Grid] = None,
                       start: Optional[Coord] = None) -> MissionState:
    """
    Initialize a new mission.

    Either generates a fresh map (from `rng`, or from `seed` when no rng is
    given) or adopts the provided grid and start. The start tile and its
    neighbors are revealed before the first turn.

    Args:
        seed: Seed for map generation when no rng is given
        rng: Random source for map generation
        config: Configuration dict (loaded from config.json if omitted)
        grid: Pre-built grid; requires `start`
        start: Start coordinate within `grid`

    Returns:
        New MissionState in IDLE status
    """
    if config is None:
        config = load_config()
    max_turns = config['max_turns']

    if grid is None:
        if rng is None:
            rng = random.Random(seed)
        grid, start = create_map(config['grid_radius'], rng, config['start_tile_value'])
    elif start is None:
        raise ValueError("A start coordinate is required when a grid is provided")

    get_tile(grid, start)  # Start must lie on the grid
    reveal(grid, start)

    state = MissionState(
        mission_id=str(uuid.uuid4()),
        grid=grid,
        start=start,
        position=start,
        max_turns=max_turns,
        turns_left=max_turns,
        visited={start},
        revealed_count=sum(1 for t in grid.values() if t.revealed),
        status=MissionStatus.FINISHED if max_turns <= 0 else MissionStatus.IDLE,
    )
    log_event(state, f"Mission started at {start} with {max_turns} turns",
              start_value=state.current_value, visible=len(grid_neighbors(grid, start)) + 1)
    return state


def get_mission_summary(state: MissionState) -> Dict[str, Any]:
    """
    Get a summary of the current mission state for API responses.

    Only revealed tiles expose their value.
    """
    return {
        'mission_id': state.mission_id,
        'status': state.status.value,
        'turns_left': state.turns_left,
        'max_turns': state.max_turns,
        'total_yield': state.total_yield,
        'position': {'q': state.position[0], 'r': state.position[1]},
        'start': {'q': state.start[0], 'r': state.start[1]},
        'moves': state.moves,
        'mines': state.mines,
        'revealed_count': state.revealed_count,
        'visited': [{'q': q, 'r': r} for q, r in sorted(state.visited)],
        'tiles': [
            {
                'q': tile.q,
                'r': tile.r,
                'revealed': tile.revealed,
                'minedCount': tile.mined_count,
                'trueValue': tile.true_value if tile.revealed else None,
            }
            for tile in state.grid.values()
        ],
    }
