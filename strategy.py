"""
Strategy schema for "Xplore vs. Xploit"
Parses, validates and serializes ordered condition -> action rule lists,
and holds the default preset strategies.
"""

import uuid
from typing import Any, Dict, Iterable, List, Mapping

from models import Action, Condition, Operator, Rule, Strategy


class MalformedRuleError(Exception):
    """Exception raised when a rule fails schema validation."""
    pass


def new_rule(condition: Condition = Condition.ALWAYS, operator: Operator = Operator.LE,
             threshold: int = 15, action: Action = Action.MINE_CURRENT,
             compare_with_highest: bool = False) -> Rule:
    """Create a rule with a fresh unique id (defaults match a blank builder block)."""
    return Rule(
        id=uuid.uuid4().hex[:9],
        condition=condition,
        operator=operator,
        threshold=threshold,
        action=action,
        compare_with_highest=compare_with_highest,
    )


def _parse_enum(enum_cls, value: Any, field_name: str, rule_id: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise MalformedRuleError(
            f"Rule {rule_id}: unknown {field_name} {value!r} (expected one of {allowed})"
        ) from None


def rule_from_dict(data: Mapping[str, Any]) -> Rule:
    """
    Build a Rule from its serialized form.

    Accepts both the stored key `compareWithHighest` and `compare_with_highest`.

    Raises:
        MalformedRuleError: missing fields, unknown enum values or a non-integer threshold
    """
    if not isinstance(data, Mapping):
        raise MalformedRuleError(f"Rule must be an object, got {type(data).__name__}")

    missing = [key for key in ('id', 'condition', 'operator', 'threshold', 'action') if key not in data]
    if missing:
        raise MalformedRuleError(f"Rule is missing required fields: {', '.join(missing)}")

    rule_id = data['id']
    if not isinstance(rule_id, str) or not rule_id:
        raise MalformedRuleError(f"Rule id must be a non-empty string, got {rule_id!r}")

    threshold = data['threshold']
    # bool is an int subclass but never a meaningful threshold
    if isinstance(threshold, bool) or not isinstance(threshold, int):
        raise MalformedRuleError(f"Rule {rule_id}: threshold must be an integer, got {threshold!r}")

    compare = data.get('compareWithHighest', data.get('compare_with_highest', False))
    if not isinstance(compare, bool):
        raise MalformedRuleError(f"Rule {rule_id}: compareWithHighest must be a boolean")

    return Rule(
        id=rule_id,
        condition=_parse_enum(Condition, data['condition'], 'condition', rule_id),
        operator=_parse_enum(Operator, data['operator'], 'operator', rule_id),
        threshold=threshold,
        action=_parse_enum(Action, data['action'], 'action', rule_id),
        compare_with_highest=compare,
    )


def rule_to_dict(rule: Rule) -> Dict[str, Any]:
    """Serialize a rule using the stored key names."""
    d: Dict[str, Any] = {
        'id': rule.id,
        'condition': rule.condition.value,
        'operator': rule.operator.value,
        'threshold': rule.threshold,
        'action': rule.action.value,
    }
    if rule.compare_with_highest:
        d['compareWithHighest'] = True
    return d


def strategy_from_list(items: Iterable[Mapping[str, Any]]) -> Strategy:
    """Parse a serialized rule list, preserving order."""
    if isinstance(items, (str, bytes)) or not isinstance(items, Iterable):
        raise MalformedRuleError("Strategy must be a list of rules")
    return [rule_from_dict(item) for item in items]


def strategy_to_list(strategy: Strategy) -> List[Dict[str, Any]]:
    return [rule_to_dict(rule) for rule in strategy]


def validate_rule(rule: Rule) -> bool:
    """Validate an already-built rule (enum types and integer threshold)."""
    if not isinstance(rule.condition, Condition):
        raise MalformedRuleError(f"Rule {rule.id}: invalid condition {rule.condition!r}")
    if not isinstance(rule.operator, Operator):
        raise MalformedRuleError(f"Rule {rule.id}: invalid operator {rule.operator!r}")
    if not isinstance(rule.action, Action):
        raise MalformedRuleError(f"Rule {rule.id}: invalid action {rule.action!r}")
    if isinstance(rule.threshold, bool) or not isinstance(rule.threshold, int):
        raise MalformedRuleError(f"Rule {rule.id}: threshold must be an integer")
    return True


def validate_strategy(strategy: Strategy) -> bool:
    """
    Validate every rule of a strategy before it is simulated.

    An empty strategy is valid; callers decide what an empty strategy means.
    """
    for rule in strategy:
        if not isinstance(rule, Rule):
            raise MalformedRuleError(f"Strategy entries must be Rule objects, got {type(rule).__name__}")
        validate_rule(rule)
    return True


# Preset key -> name, description and serialized rules
DEFAULT_PRESETS: Dict[str, Dict[str, Any]] = {
    'recon': {
        'name': "Standard Recon",
        'description': "Move towards the center for 3 turns, then exploit the best known tile.",
        'blocks': [
            {'id': 'p1-1', 'condition': 'TURNS_REMAINING', 'operator': '>=', 'threshold': 17, 'action': 'SEEK_FRONTIER'},
            {'id': 'p1-2', 'condition': 'ALWAYS', 'operator': '>=', 'threshold': 0, 'action': 'MOVE_HIGHEST_KNOWN'},
        ],
    },
    'value_hunter': {
        'name': "Jackpot Hunter",
        'description': "Search until finding a 40+ tile, then exploit. Uses center-seeking to prioritize heart of the sector.",
        'blocks': [
            {'id': 'p2-1', 'condition': 'HIGHEST_VALUE', 'operator': '>=', 'threshold': 40, 'action': 'MOVE_HIGHEST_KNOWN'},
            {'id': 'p2-2', 'condition': 'ALWAYS', 'operator': '>=', 'threshold': 0, 'action': 'SEEK_FRONTIER'},
        ],
    },
    'custom': {
        'name': "Custom",
        'description': "Start from scratch. Build your own unique logic sequence here.",
        'blocks': [],
    },
    'homebody': {
        'name': "Homebody",
        'description': "Moves exactly once on Turn 1 to the best nearby tile, then exploits to the end.",
        'blocks': [
            {'id': 'p4-1', 'condition': 'TURNS_REMAINING', 'operator': '=', 'threshold': 20, 'action': 'MOVE_HIGHEST_KNOWN'},
            {'id': 'p4-2', 'condition': 'ALWAYS', 'operator': '>=', 'threshold': 0, 'action': 'MINE_CURRENT'},
        ],
    },
}


def default_strategies() -> Dict[str, Strategy]:
    """Fresh parsed copies of the default presets, in preset order."""
    return {key: strategy_from_list(preset['blocks']) for key, preset in DEFAULT_PRESETS.items()}


def preset_name(key: str) -> str:
    """Display name for a preset key, falling back to the key itself."""
    preset = DEFAULT_PRESETS.get(key)
    return preset['name'] if preset else key
