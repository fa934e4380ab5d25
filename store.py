"""
Named-strategy storage for "Xplore vs. Xploit"
Persists {preset key: rule list} as a JSON file.

A missing or undecodable file falls back to the default presets. Rules that
decode but do not fit the schema are rejected with MalformedRuleError.
"""

import json
import logging
import os
from typing import Dict, Mapping

from models import Strategy
from strategy import (
    DEFAULT_PRESETS, MalformedRuleError, default_strategies, preset_name,
    strategy_from_list, strategy_to_list, validate_strategy,
)

logger = logging.getLogger(__name__)


class StrategyStore:
    """JSON-file backed store of named strategies."""

    def __init__(self, path: str):
        self.path = path

    def load_all(self) -> Dict[str, Strategy]:
        """
        Load every named strategy, in stored order.

        Raises:
            MalformedRuleError: a stored rule does not fit the schema
        """
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except FileNotFoundError:
            return default_strategies()
        except json.JSONDecodeError as e:
            logger.warning("Failed to load strategies from %s: %s; using defaults", self.path, e)
            return default_strategies()

        if not isinstance(data, dict):
            raise MalformedRuleError(f"Strategy store {self.path} must hold an object of rule lists")
        return {key: strategy_from_list(rules) for key, rules in data.items()}

    def load(self, key: str) -> Strategy:
        """Load one named strategy; unknown keys yield an empty strategy."""
        return self.load_all().get(key, [])

    def save_all(self, strategies: Mapping[str, Strategy]) -> None:
        """Validate and persist every named strategy, replacing the file."""
        for rules in strategies.values():
            validate_strategy(rules)
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        with open(self.path, 'w') as f:
            json.dump({key: strategy_to_list(rules) for key, rules in strategies.items()}, f, indent=2)

    def save(self, key: str, strategy: Strategy) -> None:
        """Persist one named strategy, keeping the others."""
        validate_strategy(strategy)
        strategies = self.load_all()
        strategies[key] = strategy
        self.save_all(strategies)

    def reset(self) -> Dict[str, Strategy]:
        """Restore and persist the default presets."""
        fresh = default_strategies()
        self.save_all(fresh)
        return fresh

    @staticmethod
    def display_name(key: str) -> str:
        return preset_name(key)

    @staticmethod
    def description(key: str) -> str:
        preset = DEFAULT_PRESETS.get(key)
        return preset['description'] if preset else ""
