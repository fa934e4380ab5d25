# Models for mission elements: tiles, strategy rules and policy decisions

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple, Optional, Any

Coord = Tuple[int, int]


class Condition(Enum):
    ALWAYS = "ALWAYS"
    CURRENT_VALUE = "CURRENT_VALUE"
    TURNS_REMAINING = "TURNS_REMAINING"
    HIGHEST_VALUE = "HIGHEST_VALUE"


class Operator(Enum):
    LE = "<="
    GE = ">="
    EQ = "="


class Action(Enum):
    MINE_CURRENT = "MINE_CURRENT"
    SEEK_FRONTIER = "SEEK_FRONTIER"
    MOVE_HIGHEST_KNOWN = "MOVE_HIGHEST_KNOWN"


class StepAction(Enum):
    """Concrete per-turn action produced by the policy engine."""
    MINE = "MINE"
    MOVE = "MOVE"


class MissionStatus(Enum):
    IDLE = "IDLE"
    PLAYING = "PLAYING"
    FINISHED = "FINISHED"


@dataclass
class Tile:
    """A sector hex with axial coordinates and a hidden ore value."""
    q: int  # Axial coordinate q
    r: int  # Axial coordinate r
    true_value: int  # Ore yield per mining turn, fixed at grid creation
    revealed: bool = False  # Only ever flips False -> True
    mined_count: int = 0  # Number of turns spent mining this tile

    @property
    def coord(self) -> Coord:
        return (self.q, self.r)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'q': self.q,
            'r': self.r,
            'trueValue': self.true_value,
            'revealed': self.revealed,
            'minedCount': self.mined_count,
        }


@dataclass
class Rule:
    """
    One condition -> action block of a strategy.

    Rules are evaluated in strategy order and the first rule whose condition
    holds decides the turn. `compare_with_highest` only affects CURRENT_VALUE
    rules, swapping the fixed threshold for the highest known tile value.
    """
    id: str
    condition: Condition
    operator: Operator
    threshold: int
    action: Action
    compare_with_highest: bool = False


@dataclass
class RuleEvaluation:
    """Trace record of one rule during one decision step."""
    rule_id: str
    met: bool
    chosen: bool

    def to_dict(self) -> Dict[str, Any]:
        return {'ruleId': self.rule_id, 'met': self.met, 'chosen': self.chosen}


@dataclass
class Decision:
    """Outcome of a policy evaluation: the action to take plus the full rule trace."""
    action: StepAction
    target: Optional[Coord] = None  # Set only for MOVE
    trace: List[RuleEvaluation] = field(default_factory=list)

    @property
    def chosen_rule_id(self) -> Optional[str]:
        for evaluation in self.trace:
            if evaluation.chosen:
                return evaluation.rule_id
        return None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            'action': self.action.value,
            'results': {e.rule_id: e.to_dict() for e in self.trace},
            'trace': [e.to_dict() for e in self.trace],
        }
        if self.target is not None:
            d['target'] = {'q': self.target[0], 'r': self.target[1]}
        return d


@dataclass
class MissionResult:
    """Final tallies of one completed mission."""
    total_yield: int
    moves: int
    mines: int
    mined_value: int = 0  # Sum of values mined; equals total_yield for rule-driven missions

    def to_dict(self) -> Dict[str, int]:
        return {
            'total_yield': self.total_yield,
            'moves': self.moves,
            'mines': self.mines,
        }


Strategy = List[Rule]
Grid = Dict[Coord, Tile]
