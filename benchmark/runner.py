"""
Monte Carlo evaluation runner for mission strategies.

Runs N independent missions per strategy, aggregates score statistics, and
compares a set of named strategies side by side.

Usage:
    python -m benchmark.runner --help
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import random
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Mapping, Sequence

from benchmark.metrics import DEFAULT_TIER_THRESHOLDS, TIER_LABELS, average, round_half_up, score_statistics
from map_gen import create_map
from mission import run_mission
from models import Strategy
from strategy import preset_name, validate_strategy

logger = logging.getLogger(__name__)

DEFAULT_RUNS = 100
DEFAULT_TURN_BUDGET = 20
DEFAULT_RADIUS = 4
DEFAULT_START_VALUE = 10
DEFAULT_PROGRESS_EVERY = 20


@dataclass
class ProgressUpdate:
    """Progress notification for a running batch."""

    completed: int
    total: int

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 100
        return round_half_up(self.completed / self.total * 100)


@dataclass
class TrialResult:
    """Result of a single Monte Carlo trial."""

    index: int
    seed: int
    score: int
    moves: int
    mines: int

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "seed": self.seed,
            "score": self.score,
            "moves": self.moves,
            "mines": self.mines,
        }


@dataclass
class TrialFailure:
    """A trial that raised instead of completing."""

    index: int
    seed: int
    error: str


@dataclass
class MonteCarloReport:
    """Aggregate results from a Monte Carlo batch."""

    runs: int
    trials: list[TrialResult] = field(default_factory=list)
    failed_trials: int = 0
    errors: list[str] = field(default_factory=list)
    cancelled: bool = False
    mean: int = 0
    min: int = 0
    max: int = 0
    std: float = 0.0
    ci_lower: float = 0.0
    ci_upper: float = 0.0
    avg_moves: float = 0.0
    avg_mines: float = 0.0
    tier_counts: dict[str, int] = field(default_factory=dict)

    @property
    def scores(self) -> list[int]:
        return [t.score for t in self.trials]

    @property
    def completed(self) -> int:
        return len(self.trials)

    def to_dict(self) -> dict:
        return {
            "runs": self.runs,
            "completed": self.completed,
            "failed_trials": self.failed_trials,
            "errors": self.errors,
            "cancelled": self.cancelled,
            "scores": self.scores,
            "mean": self.mean,
            "min": self.min,
            "max": self.max,
            "std": self.std,
            "ci_lower": self.ci_lower,
            "ci_upper": self.ci_upper,
            "avg_moves": self.avg_moves,
            "avg_mines": self.avg_mines,
            "tier_counts": self.tier_counts,
        }


@dataclass
class BenchmarkResult:
    """One row of a strategy comparison."""

    key: str
    name: str
    defined: bool
    mean: int = 0
    min: int = 0
    max: int = 0
    runs: int = 0
    failed_trials: int = 0
    cancelled: bool = False
    tier_counts: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "name": self.name,
            "defined": self.defined,
            "mean": self.mean,
            "min": self.min,
            "max": self.max,
            "runs": self.runs,
            "failed_trials": self.failed_trials,
            "cancelled": self.cancelled,
            "tier_counts": self.tier_counts,
        }


def run_trial(
    strategy: Strategy,
    trial_rng: random.Random,
    turn_budget: int = DEFAULT_TURN_BUDGET,
    radius: int = DEFAULT_RADIUS,
    start_value: int = DEFAULT_START_VALUE,
):
    """Play one mission on a freshly generated map owned by this trial."""
    grid, start = create_map(radius, trial_rng, start_value)
    return run_mission(strategy, grid, start, turn_budget)


def iter_trials(
    strategy: Strategy,
    runs: int,
    rng: random.Random,
    turn_budget: int = DEFAULT_TURN_BUDGET,
    radius: int = DEFAULT_RADIUS,
    start_value: int = DEFAULT_START_VALUE,
) -> Iterator[TrialResult | TrialFailure]:
    """Yield one outcome per trial; the caller may stop between trials.

    Every trial gets its own seed from the master rng and its own
    random.Random, so trials are independent and individually reproducible.
    A trial that raises is yielded as a TrialFailure and the batch goes on.
    """
    for index in range(runs):
        trial_seed = rng.getrandbits(32)
        try:
            result = run_trial(strategy, random.Random(trial_seed), turn_budget, radius, start_value)
        except Exception as e:
            logger.warning("Trial %d (seed %d) failed: %s", index, trial_seed, e)
            yield TrialFailure(index=index, seed=trial_seed, error=f"{type(e).__name__}: {e}")
            continue
        yield TrialResult(
            index=index,
            seed=trial_seed,
            score=result.total_yield,
            moves=result.moves,
            mines=result.mines,
        )


def aggregate_trials(
    runs: int,
    trials: list[TrialResult],
    failures: list[TrialFailure] | None = None,
    cancelled: bool = False,
    thresholds: Sequence[int] = DEFAULT_TIER_THRESHOLDS,
) -> MonteCarloReport:
    """Build a report from completed trials."""
    failures = failures or []
    stats = score_statistics([t.score for t in trials], list(thresholds))
    return MonteCarloReport(
        runs=runs,
        trials=list(trials),
        failed_trials=len(failures),
        errors=[f"Trial {f.index} (seed {f.seed}): {f.error}" for f in failures],
        cancelled=cancelled,
        mean=stats["mean"],
        min=stats["min"],
        max=stats["max"],
        std=stats["std"],
        ci_lower=stats["ci_lower"],
        ci_upper=stats["ci_upper"],
        avg_moves=average([t.moves for t in trials]),
        avg_mines=average([t.mines for t in trials]),
        tier_counts=stats["tier_counts"],
    )


def run_monte_carlo(
    strategy: Strategy,
    runs: int = DEFAULT_RUNS,
    turn_budget: int = DEFAULT_TURN_BUDGET,
    rng: random.Random | None = None,
    seed: int | None = None,
    radius: int = DEFAULT_RADIUS,
    start_value: int = DEFAULT_START_VALUE,
    on_progress: Callable[[ProgressUpdate], None] | None = None,
    cancel_event: threading.Event | None = None,
    progress_every: int = DEFAULT_PROGRESS_EVERY,
    thresholds: Sequence[int] = DEFAULT_TIER_THRESHOLDS,
) -> MonteCarloReport:
    """Run `runs` independent missions under one strategy and aggregate them.

    Args:
        strategy: Ordered rules; validated before any trial runs
        runs: Number of trials
        turn_budget: Turns per mission
        rng: Master random source (takes precedence over `seed`)
        seed: Seed for the master random source
        on_progress: Called every `progress_every` trials and after the last
        cancel_event: Checked between trials; completed trials are kept

    Raises:
        MalformedRuleError: the strategy fails validation
    """
    validate_strategy(strategy)
    if runs < 0:
        raise ValueError(f"runs must be non-negative, got {runs}")
    if rng is None:
        rng = random.Random(seed)

    trials: list[TrialResult] = []
    failures: list[TrialFailure] = []
    cancelled = False
    done = 0

    outcomes = iter_trials(strategy, runs, rng, turn_budget, radius, start_value)
    try:
        while True:
            if cancel_event is not None and cancel_event.is_set():
                cancelled = done < runs
                break
            outcome = next(outcomes, None)
            if outcome is None:
                break
            if isinstance(outcome, TrialFailure):
                failures.append(outcome)
            else:
                trials.append(outcome)
            done += 1
            if on_progress is not None and (done % max(progress_every, 1) == 0 or done == runs):
                on_progress(ProgressUpdate(completed=done, total=runs))
    finally:
        outcomes.close()

    if runs == 0 and on_progress is not None:
        on_progress(ProgressUpdate(completed=0, total=0))

    report = aggregate_trials(runs, trials, failures, cancelled, thresholds)
    logger.info(
        "Monte Carlo batch: %d/%d trials, %d failed, mean %d%s",
        report.completed,
        runs,
        report.failed_trials,
        report.mean,
        " (cancelled)" if cancelled else "",
    )
    return report


def _normalize_named(named_strategies: Sequence[tuple[str, Strategy]] | Mapping[str, Strategy]) -> list[tuple[str, Strategy]]:
    if isinstance(named_strategies, Mapping):
        return list(named_strategies.items())
    return list(named_strategies)


def run_benchmark(
    named_strategies: Sequence[tuple[str, Strategy]] | Mapping[str, Strategy],
    runs: int = DEFAULT_RUNS,
    turn_budget: int = DEFAULT_TURN_BUDGET,
    rng: random.Random | None = None,
    seed: int | None = None,
    radius: int = DEFAULT_RADIUS,
    start_value: int = DEFAULT_START_VALUE,
    on_progress: Callable[[ProgressUpdate], None] | None = None,
    cancel_event: threading.Event | None = None,
    progress_every: int = DEFAULT_PROGRESS_EVERY,
    thresholds: Sequence[int] = DEFAULT_TIER_THRESHOLDS,
) -> list[BenchmarkResult]:
    """Run the Monte Carlo harness once per named strategy.

    Empty strategies are reported as undefined (all statistics 0) without
    simulating. Results keep the input order. Progress is reported across the
    whole benchmark. On cancellation the partial row is kept, flagged
    cancelled, and later strategies are not started.
    """
    entries = _normalize_named(named_strategies)
    # Reject malformed rules before anything is simulated
    for _, strategy in entries:
        validate_strategy(strategy)
    if rng is None:
        rng = random.Random(seed)

    total = len(entries) * runs
    results: list[BenchmarkResult] = []

    for idx, (key, strategy) in enumerate(entries):
        if cancel_event is not None and cancel_event.is_set():
            break

        if not strategy:
            results.append(BenchmarkResult(key=key, name=preset_name(key), defined=False))
            continue

        offset = idx * runs

        def forward(update: ProgressUpdate, offset: int = offset) -> None:
            if on_progress is not None:
                on_progress(ProgressUpdate(completed=offset + update.completed, total=total))

        report = run_monte_carlo(
            strategy,
            runs=runs,
            turn_budget=turn_budget,
            rng=rng,
            radius=radius,
            start_value=start_value,
            on_progress=forward,
            cancel_event=cancel_event,
            progress_every=progress_every,
            thresholds=thresholds,
        )
        results.append(
            BenchmarkResult(
                key=key,
                name=preset_name(key),
                defined=True,
                mean=report.mean,
                min=report.min,
                max=report.max,
                runs=report.completed,
                failed_trials=report.failed_trials,
                cancelled=report.cancelled,
                tier_counts=report.tier_counts,
            )
        )
        if report.cancelled:
            break

    if on_progress is not None and len(results) == len(entries) and not any(r.cancelled for r in results):
        on_progress(ProgressUpdate(completed=total, total=total))
    return results


@dataclass
class BenchmarkConfig:
    """Configuration for a benchmark experiment."""

    runs: int = DEFAULT_RUNS
    turn_budget: int = DEFAULT_TURN_BUDGET
    radius: int = DEFAULT_RADIUS
    start_value: int = DEFAULT_START_VALUE
    seed: int | None = None
    progress_every: int = DEFAULT_PROGRESS_EVERY
    thresholds: list[int] = field(default_factory=lambda: list(DEFAULT_TIER_THRESHOLDS))
    output_dir: str = "benchmark_results"

    @classmethod
    def from_game_config(cls, config: dict[str, Any], **overrides: Any) -> "BenchmarkConfig":
        """Build from the mission config.json values."""
        values = {
            "runs": config.get("monte_carlo_runs", DEFAULT_RUNS),
            "turn_budget": config.get("max_turns", DEFAULT_TURN_BUDGET),
            "radius": config.get("grid_radius", DEFAULT_RADIUS),
            "start_value": config.get("start_tile_value", DEFAULT_START_VALUE),
            "progress_every": config.get("progress_every", DEFAULT_PROGRESS_EVERY),
            "thresholds": list(config.get("score_tiers", DEFAULT_TIER_THRESHOLDS)),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class BenchmarkRunner:
    """Runs Monte Carlo batches and strategy comparisons under one config."""

    def __init__(self, config: BenchmarkConfig):
        self.config = config

    def _rng(self, rng: random.Random | None) -> random.Random:
        return rng if rng is not None else random.Random(self.config.seed)

    def run_strategy(
        self,
        strategy: Strategy,
        rng: random.Random | None = None,
        on_progress: Callable[[ProgressUpdate], None] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> MonteCarloReport:
        return run_monte_carlo(
            strategy,
            runs=self.config.runs,
            turn_budget=self.config.turn_budget,
            rng=self._rng(rng),
            radius=self.config.radius,
            start_value=self.config.start_value,
            on_progress=on_progress,
            cancel_event=cancel_event,
            progress_every=self.config.progress_every,
            thresholds=self.config.thresholds,
        )

    def run_comparison(
        self,
        named_strategies: Sequence[tuple[str, Strategy]] | Mapping[str, Strategy],
        rng: random.Random | None = None,
        on_progress: Callable[[ProgressUpdate], None] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> list[BenchmarkResult]:
        return run_benchmark(
            named_strategies,
            runs=self.config.runs,
            turn_budget=self.config.turn_budget,
            rng=self._rng(rng),
            radius=self.config.radius,
            start_value=self.config.start_value,
            on_progress=on_progress,
            cancel_event=cancel_event,
            progress_every=self.config.progress_every,
            thresholds=self.config.thresholds,
        )

    def generate_report(self, results: list[BenchmarkResult]) -> str:
        """Generate human-readable comparison table."""
        lines = [
            "=" * 70,
            f"  STRATEGY BENCHMARK (n={self.config.runs} missions per strategy)",
            "=" * 70,
            "",
            f"  {'Strategy':<22} {'Mean':>6} {'Floor':>6} {'Ceiling':>8}  Tiers",
            "-" * 70,
        ]
        for res in results:
            if not res.defined:
                lines.append(f"  {res.name:<22} {'N/A':>6} {'':>6} {'':>8}  undefined")
                continue
            tiers = " ".join(
                f"{TIER_LABELS.get(k, k)}={v}" for k, v in res.tier_counts.items()
            )
            flag = " (cancelled)" if res.cancelled else ""
            lines.append(f"  {res.name:<22} {res.mean:>6} {res.min:>6} {res.max:>8}  {tiers}{flag}")
            if res.failed_trials:
                lines.append(f"  {'':<22} {res.failed_trials} failed trial(s)")

        lines.append("\n" + "=" * 70)
        return "\n".join(lines)

    def write_results(self, results: list[BenchmarkResult], output_dir: str | None = None) -> None:
        """Write comparison results to disk."""
        out = output_dir or self.config.output_dir
        os.makedirs(out, exist_ok=True)

        with open(os.path.join(out, "summary_report.txt"), "w") as f:
            f.write(self.generate_report(results))

        with open(os.path.join(out, "benchmark_results.jsonl"), "w") as f:
            for result in results:
                f.write(json.dumps(result.to_dict()) + "\n")


def main(argv: list[str] | None = None) -> int:
    from state import load_config
    from store import StrategyStore

    parser = argparse.ArgumentParser(description="Compare stored strategies by Monte Carlo simulation.")
    parser.add_argument("--runs", type=int, default=None, help="Missions per strategy")
    parser.add_argument("--seed", type=int, default=None, help="Master seed for reproducible runs")
    parser.add_argument("--store", default=None, help="Path to the strategy store JSON file")
    parser.add_argument("--output-dir", default=None, help="Write report files to this directory")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    game_config = load_config()
    config = BenchmarkConfig.from_game_config(game_config, runs=args.runs, seed=args.seed)
    store = StrategyStore(args.store or game_config["strategy_store_path"])
    runner = BenchmarkRunner(config)

    def show(update: ProgressUpdate) -> None:
        print(f"Running cross-simulations... {update.percent}%")

    results = runner.run_comparison(store.load_all(), on_progress=show)
    print(runner.generate_report(results))
    if args.output_dir:
        runner.write_results(results, args.output_dir)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
