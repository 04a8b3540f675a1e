"""
lotto_engine/evaluation/backtest_engine.py
Chronological replay of a selection strategy over historical draws.

At trial i the strategy only ever sees draws strictly before i; its pick is
matched against draw i and priced through a configurable paytable.
"""
from __future__ import annotations

import math
import operator
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Mapping, Sequence

import numpy as np

from lotto_engine.models.types import BacktestResult, Draw, TrialDetail, is_valid_set
from lotto_engine.utils.errors import ConfigurationError, StrategyExecutionError
from lotto_engine.utils.logger import get_logger

log = get_logger("evaluation.backtest")

Strategy = Callable[[Sequence[Draw]], Iterable[int]]


@dataclass
class BacktestConfig:
    pick: int
    paytable: dict[int, float] = field(default_factory=dict)
    stake: float = 5.0
    min_history: int = 1
    window: int | None = None        # trailing history handed to the strategy
    start_index: int | None = None   # first trial index; defaults to min_history
    success_threshold: int = 3
    fail_fast: bool = False
    pool_size: int | None = None     # when set, predictions outside [1, pool_size] fail the trial
    strategy_name: str = "strategy"

    def __post_init__(self):
        # Host JSON paytables arrive with string tiers
        try:
            self.paytable = {int(k): float(v) for k, v in self.paytable.items()}
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid paytable {self.paytable!r}: {exc}") from exc

    def validate(self) -> None:
        if self.pick <= 0:
            raise ConfigurationError(f"pick must be positive, got {self.pick}")
        if self.stake <= 0:
            raise ConfigurationError(f"stake must be positive, got {self.stake}")
        if self.min_history < 0:
            raise ConfigurationError(f"min_history cannot be negative, got {self.min_history}")
        if self.window is not None and self.window <= 0:
            raise ConfigurationError(f"window must be positive, got {self.window}")
        if self.start_index is not None and self.start_index < 0:
            raise ConfigurationError(f"start_index cannot be negative, got {self.start_index}")
        if self.pool_size is not None and self.pick > self.pool_size:
            raise ConfigurationError(f"pick ({self.pick}) cannot exceed pool_size ({self.pool_size})")
        for matches, payoff in self.paytable.items():
            if not 0 <= matches <= self.pick:
                raise ConfigurationError(f"Paytable tier {matches} outside [0, {self.pick}]")
            if payoff < 0:
                raise ConfigurationError(f"Paytable payoff for {matches} matches is negative")

    @classmethod
    def from_params(cls, pick: int, params: Mapping, **overrides) -> "BacktestConfig":
        """Build from the `backtest` block of a lottery config."""
        kwargs = {
            "pick": pick,
            "paytable": dict(params.get("paytable", {})),
            "stake": float(params.get("stake", 5.0)),
            "min_history": int(params.get("min_history", 1)),
            "success_threshold": int(params.get("success_threshold", 3)),
        }
        kwargs.update(overrides)
        return cls(**kwargs)


def _ordered(draws: Sequence[Draw]) -> list[Draw]:
    """Chronological order, one draw per contest (first occurrence kept)."""
    ordered: list[Draw] = []
    seen: set[int] = set()
    for draw in sorted(draws, key=lambda d: d.contest_number):
        if draw.contest_number in seen:
            log.warning(f"Duplicate contest {draw.contest_number} dropped from backtest input")
            continue
        seen.add(draw.contest_number)
        ordered.append(draw)
    return ordered


def _max_drawdown(cumulative: Sequence[float]) -> float:
    peak = 0.0
    worst = 0.0
    for value in cumulative:
        peak = max(peak, value)
        worst = max(worst, peak - value)
    return worst


def _sharpe(returns: Sequence[float]) -> float:
    if not returns:
        return 0.0
    arr = np.asarray(returns, dtype=float)
    std = float(arr.std())
    return float(arr.mean() / std) if std > 0 else 0.0


def _profit_factor(nets: Sequence[float]) -> float:
    """Average win over average loss; with no losing trials the average loss counts as 1."""
    wins = [n for n in nets if n > 0]
    losses = [n for n in nets if n < 0]
    avg_win = sum(wins) / len(wins) if wins else 0.0
    avg_loss = abs(sum(losses) / len(losses)) if losses else 1.0
    return avg_win / avg_loss if avg_loss > 0 else 0.0


def run_backtest(strategy_fn: Strategy, draws: Sequence[Draw], config: BacktestConfig) -> BacktestResult:
    config.validate()
    ordered = _ordered(draws)
    start = max(config.start_index if config.start_index is not None else config.min_history, config.min_history)

    log.info(f"[BACKTEST] {config.strategy_name}: {max(0, len(ordered) - start)} trials over {len(ordered)} draws")

    trials: list[TrialDetail] = []
    cumulative = 0.0
    errors = 0

    for i in range(start, len(ordered)):
        target = ordered[i]
        history = tuple(ordered[:i])
        if config.window is not None:
            history = history[-config.window:]

        error: str | None = None
        predicted: tuple[int, ...] = ()
        try:
            predicted = tuple(operator.index(n) for n in strategy_fn(history))
            pool = config.pool_size if config.pool_size is not None else max(predicted + (1,))
            if not is_valid_set(predicted, pool, config.pick):
                raise ValueError(f"invalid prediction {predicted} for pick={config.pick}")
        except Exception as exc:
            if config.fail_fast:
                raise StrategyExecutionError(target.contest_number, exc) from exc
            errors += 1
            error = f"{type(exc).__name__}: {exc}"
            log.warning(f"Strategy failed on contest {target.contest_number}: {error}")
            predicted = ()

        matches = len(set(predicted) & target.numbers) if error is None else 0
        payoff = float(config.paytable.get(matches, 0.0))
        net = payoff - config.stake
        cumulative += net
        trials.append(TrialDetail(
            contest_number=target.contest_number,
            predicted=tuple(sorted(predicted)),
            actual=tuple(target.sorted_numbers),
            matches=matches,
            payoff=payoff,
            cost=config.stake,
            net=net,
            cumulative=cumulative,
            error=error,
            draw_date=target.draw_date,
        ))

    return summarize(config, trials, errors)


def summarize(config: BacktestConfig, trials: Sequence[TrialDetail], errors: int = 0) -> BacktestResult:
    total = len(trials)
    if total == 0:
        log.warning(f"[BACKTEST] {config.strategy_name}: no trials, not enough history")
        return BacktestResult(
            strategy_name=config.strategy_name, total_tests=0, successful_predictions=0,
            average_accuracy=0.0, profitability=0.0, max_drawdown=0.0, sharpe_ratio=0.0,
            per_trial_detail=[], error_count=errors,
        )

    nets = [t.net for t in trials]
    total_payoff = sum(t.payoff for t in trials)
    total_cost = sum(t.cost for t in trials)
    successes = sum(1 for t in trials if t.matches >= config.success_threshold)
    success_rate = successes / total

    result = BacktestResult(
        strategy_name=config.strategy_name,
        total_tests=total,
        successful_predictions=successes,
        average_accuracy=sum(t.matches / config.pick for t in trials) / total,
        profitability=(total_payoff - total_cost) / total_cost,
        max_drawdown=_max_drawdown([t.cumulative for t in trials]),
        sharpe_ratio=_sharpe(nets),
        profit_factor=_profit_factor(nets),
        per_trial_detail=list(trials),
        error_count=errors,
        win_rate=sum(1 for n in nets if n > 0) / total,
        expected_value=sum(nets) / total,
        total_payoff=total_payoff,
        total_cost=total_cost,
        # 1 minus the 95% interval half-width on the success rate
        confidence=1 - 1.96 * math.sqrt(success_rate * (1 - success_rate) / total),
        period_start=trials[0].draw_date,
        period_end=trials[-1].draw_date,
    )
    log.info(
        f"[BACKTEST] {config.strategy_name}: {total} trials, accuracy={result.average_accuracy:.3f}, "
        f"profitability={result.profitability:.3f}, errors={errors}"
    )
    return result


# ── Strategy comparison ───────────────────────────────────────────

def compare_strategies(
    strategies: Mapping[str, Strategy],
    draws: Sequence[Draw],
    config: BacktestConfig,
) -> dict:
    """
    Backtest every strategy on the same draws and rank them by risk-adjusted
    expected value (expected_value * sharpe), profitability breaking ties.
    """
    if not strategies:
        raise ConfigurationError("No strategies to compare")

    results = []
    for name, fn in strategies.items():
        cfg = replace(config, strategy_name=name)
        results.append(run_backtest(fn, draws, cfg))

    ranked = sorted(
        results,
        key=lambda r: (r.expected_value * r.sharpe_ratio, r.profitability),
        reverse=True,
    )
    best = ranked[0]
    return {
        "best_strategy": best.strategy_name,
        "results": ranked,
        "recommendation": _recommendation(best),
    }


def _recommendation(result: BacktestResult) -> str:
    success_rate = result.successful_predictions / result.total_tests if result.total_tests else 0.0
    if result.expected_value > 0 and result.sharpe_ratio > 1:
        return (
            f"{result.strategy_name}: Sharpe {result.sharpe_ratio:.2f} with positive expected value "
            f"{result.expected_value:.2f} per stake. RECOMMENDED."
        )
    if success_rate > 0.3:
        return f"{result.strategy_name}: moderate, {success_rate:.1%} successful trials. Consider blending."
    return f"{result.strategy_name}: no statistically meaningful edge. NOT RECOMMENDED."


def analyze_time_windows(
    strategy_fn: Strategy,
    draws: Sequence[Draw],
    pick: int,
    windows: Sequence[int] = (10, 30, 50, 100),
) -> dict[int, dict[str, float]]:
    """
    Accuracy and consistency (1 / (1 + std)) of a strategy fed only the last
    `w` draws, for each window size `w`. Strategy errors count as zero matches.
    """
    ordered = _ordered(draws)
    out: dict[int, dict[str, float]] = {}
    for w in windows:
        accuracies: list[float] = []
        for i in range(w, len(ordered)):
            target = ordered[i]
            try:
                predicted = set(strategy_fn(tuple(ordered[i - w:i])))
            except Exception as exc:
                log.warning(f"Strategy failed on contest {target.contest_number} (window {w}): {exc}")
                predicted = set()
            accuracies.append(len(predicted & target.numbers) / pick)
        if accuracies:
            arr = np.asarray(accuracies)
            out[w] = {"accuracy": float(arr.mean()), "consistency": float(1 / (1 + arr.std()))}
        else:
            out[w] = {"accuracy": 0.0, "consistency": 0.0}
    return out
