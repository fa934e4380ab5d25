"""
Score statistics for Monte Carlo strategy evaluation.

Computes aggregate metrics over per-trial mission scores:
- mean (rounded half-up to whole ore), min, max
- sample standard deviation and 95% confidence interval for the mean
- average moves and mines per mission
- score tier counts (tier1 >= 700, tier2 >= 500, tier3 >= 300, tier4 below)
"""

from __future__ import annotations

import math

import numpy as np

DEFAULT_TIER_THRESHOLDS = (700, 500, 300)

TIER_LABELS = {
    "tier1": "Diamond",
    "tier2": "Rich",
    "tier3": "Copper",
    "tier4": "Standard",
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return int(math.floor(value + 0.5))


def tier_for_score(score: int, thresholds: tuple[int, ...] | list[int] = DEFAULT_TIER_THRESHOLDS) -> str:
    """
    Bucket a mission score into a tier.

    Args:
        score: Final mission yield
        thresholds: Descending lower bounds of tier1..tierN-1

    Returns:
        Tier key, e.g. "tier1"
    """
    for i, bound in enumerate(thresholds):
        if score >= bound:
            return f"tier{i + 1}"
    return f"tier{len(thresholds) + 1}"


def tier_counts(scores: list[int], thresholds: tuple[int, ...] | list[int] = DEFAULT_TIER_THRESHOLDS) -> dict[str, int]:
    """Count scores per tier; every tier key is present."""
    counts = {f"tier{i + 1}": 0 for i in range(len(thresholds) + 1)}
    for score in scores:
        counts[tier_for_score(score, thresholds)] += 1
    return counts


def score_statistics(
    scores: list[int],
    thresholds: tuple[int, ...] | list[int] = DEFAULT_TIER_THRESHOLDS,
) -> dict[str, float | int | dict[str, int]]:
    """
    Aggregate a score sample.

    An empty sample yields zeros everywhere.

    Returns:
        Dict with mean, min, max, std, ci_lower, ci_upper, n and tier_counts
    """
    n = len(scores)
    if n == 0:
        return {
            "mean": 0,
            "min": 0,
            "max": 0,
            "std": 0.0,
            "ci_lower": 0.0,
            "ci_upper": 0.0,
            "n": 0,
            "tier_counts": tier_counts([], thresholds),
        }

    values = np.asarray(scores, dtype=float)
    raw_mean = float(values.mean())
    if n >= 2:
        std = float(values.std(ddof=1))
        # 95% CI using normal approximation (z=1.96)
        ci_margin = 1.96 * std / math.sqrt(n)
    else:
        std = 0.0
        ci_margin = 0.0

    return {
        "mean": round_half_up(raw_mean),
        "min": int(values.min()),
        "max": int(values.max()),
        "std": std,
        "ci_lower": raw_mean - ci_margin,
        "ci_upper": raw_mean + ci_margin,
        "n": n,
        "tier_counts": tier_counts(scores, thresholds),
    }


def average(values: list[int]) -> float:
    """Mean of a list, 0.0 when empty."""
    if not values:
        return 0.0
    return float(np.mean(values))
