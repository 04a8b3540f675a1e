"""
lotto_engine/pipeline/engine.py
Function boundary consumed by the host application, plus the end-to-end
flows for a configured lottery:

  draws → correlation map → hybrid scores → GA candidates   (recommend)
  draws → strategy → no-leakage replay → report             (backtest_lottery)
"""
from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, Mapping, Sequence

from lotto_engine.evaluation.backtest_engine import BacktestConfig, Strategy, run_backtest
from lotto_engine.evaluation.leakage import check_data_leakage
from lotto_engine.models.hybrid_scoring import HybridScoringService
from lotto_engine.models.statistical.correlation_engine import SIGNIFICANCE_THRESHOLD, CorrelationEngine
from lotto_engine.models.statistical.frequency_analyzer import FrequencyAnalyzer
from lotto_engine.models.statistical.gap_analyzer import GapAnalyzer
from lotto_engine.models.types import (
    BacktestAnalysis,
    CorrelationAnalysis,
    CorrelationMap,
    Draw,
    FrequencyAnalysis,
    GeneticAnalysis,
    NumberFrequency,
    NumberScore,
    ScoringAnalysis,
    validate_draw,
)
from lotto_engine.optimization.genetic_optimizer import GAConfig, GeneticOptimizer, generate_candidates
from lotto_engine.pipeline.strategies import (
    correlated_strategy,
    genetic_strategy,
    hybrid_strategy,
    most_frequent_strategy,
    random_strategy,
)
from lotto_engine.utils.cache import CorrelationCache
from lotto_engine.utils.config import (
    LOTTERY_LABELS,
    get_backtest_params,
    get_correlation_threshold,
    get_ga_params,
    get_lottery_config,
    get_paytable,
    get_pick_count,
    get_pool_size,
    get_scoring_params,
    get_temperature_k,
)
from lotto_engine.utils.errors import ConfigurationError
from lotto_engine.utils.logger import get_logger

log = get_logger("pipeline.engine")

__all__ = [
    "build_correlation_map",
    "score_number",
    "score_all",
    "generate_candidates",
    "run_backtest",
    "check_data_leakage",
    "prepare_draws",
    "make_strategy",
    "recommend",
    "backtest_lottery",
    "STRATEGY_NAMES",
]

STRATEGY_NAMES = ("most_frequent", "random", "hybrid", "correlated", "genetic")


# ── Boundary functions ────────────────────────────────────────────

def build_correlation_map(draws: Sequence[Draw], pool_size: int,
                          threshold: float = SIGNIFICANCE_THRESHOLD) -> CorrelationMap:
    return CorrelationEngine(threshold).build_correlation_map(draws, pool_size)


def score_number(
    number: int,
    draws: Sequence[Draw],
    frequencies: Sequence[NumberFrequency] | None,
    correlation_map: CorrelationMap | None,
    weights: Mapping[str, float] | None = None,
    reference: Iterable[int] | None = None,
) -> NumberScore:
    return HybridScoringService().score_number(
        number, draws, frequencies, correlation_map,
        dict(weights) if weights is not None else None, reference,
    )


def score_all(
    draws: Sequence[Draw],
    pool_size: int,
    frequencies: Sequence[NumberFrequency] | None = None,
    correlation_map: CorrelationMap | None = None,
    weights: Mapping[str, float] | None = None,
) -> list[NumberScore]:
    return HybridScoringService().score_all(
        draws, pool_size, frequencies, correlation_map, dict(weights) if weights is not None else None,
    )


# ── Input hygiene ─────────────────────────────────────────────────

def prepare_draws(draws: Iterable[Draw | Mapping[str, Any]], pool_size: int, pick: int) -> list[Draw]:
    """
    Coerce host records into Draws, drop ones violating the entity invariant
    and return them in contest order.
    """
    prepared: list[Draw] = []
    for raw in draws:
        draw = raw if isinstance(raw, Draw) else Draw.from_record(dict(raw))
        if not validate_draw(draw, pool_size, pick):
            log.error(f"Invalid draw {draw.contest_number}: {draw.sorted_numbers} (expected {pick} of 1..{pool_size})")
            continue
        prepared.append(draw)
    prepared.sort(key=lambda d: d.contest_number)
    return prepared


# ── Configured flows ──────────────────────────────────────────────

def _correlation_window(lottery_id: str) -> int:
    return int(get_lottery_config(lottery_id).get("correlation", {}).get("window", 300))


def make_strategy(name: str, lottery_id: str, seed: int | None = None) -> Strategy:
    pool_size = get_pool_size(lottery_id)
    pick = get_pick_count(lottery_id)
    scoring_params = get_scoring_params(lottery_id)
    correlation = CorrelationEngine(get_correlation_threshold(lottery_id))

    if name == "most_frequent":
        return most_frequent_strategy(pool_size, pick, scoring_params.get("recent_window", 100))
    if name == "random":
        return random_strategy(pool_size, pick, seed)
    if name == "hybrid":
        return hybrid_strategy(pool_size, pick, HybridScoringService.from_params(scoring_params), correlation)
    if name == "correlated":
        return correlated_strategy(
            pool_size, pick, seed=seed, correlation=correlation,
            window=scoring_params.get("recent_window", 100),
        )
    if name == "genetic":
        ga_config = GAConfig.from_params(pool_size, pick, get_ga_params(lottery_id))
        if seed is not None:
            ga_config = replace(ga_config, seed=seed)
        return genetic_strategy(ga_config, HybridScoringService.from_params(scoring_params), correlation)
    raise ConfigurationError(f"Unknown strategy: {name} (expected one of {', '.join(STRATEGY_NAMES)})")


def recommend(
    lottery_id: str,
    draws: Iterable[Draw | Mapping[str, Any]],
    games_count: int = 5,
    cache: CorrelationCache | None = None,
    seed: int | None = None,
    ga_overrides: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Full recommendation flow:
    1. Validate + order draws
    2. Correlation map over the configured window (through the cache if given)
    3. Frequencies / temperatures / overdue numbers
    4. Hybrid scores for every number
    5. GA search → `games_count` candidates
    6. Return result dict with the typed analyses
    """
    log.info(f"[RECOMMEND] Starting for {lottery_id}")

    pool_size = get_pool_size(lottery_id)
    pick = get_pick_count(lottery_id)
    scoring_params = get_scoring_params(lottery_id)
    ga_params = {**get_ga_params(lottery_id), **(ga_overrides or {})}
    if seed is not None:
        ga_params["seed"] = seed
    ga_config = GAConfig.from_params(pool_size, pick, ga_params)
    ga_config.validate()
    if games_count <= 0:
        raise ConfigurationError(f"games_count must be positive, got {games_count}")
    prepared = prepare_draws(draws, pool_size, pick)

    window = _correlation_window(lottery_id)
    window_draws = prepared[-window:]
    engine = CorrelationEngine(get_correlation_threshold(lottery_id))
    if cache is not None:
        cmap = cache.get_or_build(
            lottery_id, window, window_draws,
            lambda: engine.build_correlation_map(window_draws, pool_size),
        )
    else:
        cmap = engine.build_correlation_map(window_draws, pool_size)

    freq = FrequencyAnalyzer(
        pool_size=pool_size,
        window=scoring_params.get("recent_window", 100),
        temperature_k=get_temperature_k(lottery_id),
    )
    frequencies = freq.get_frequencies(prepared)
    gaps = GapAnalyzer(pool_size=pool_size)

    scoring = HybridScoringService.from_params(scoring_params)
    scores = scoring.score_all(prepared, pool_size, frequencies, cmap)

    optimizer = GeneticOptimizer(ga_config, scores=scores, correlation_map=cmap)
    candidates = optimizer.run(games_count)

    analyses = [
        FrequencyAnalysis(
            frequencies=frequencies,
            hot=freq.get_hot_numbers(prepared, top_n=pick),
            cold=freq.get_cold_numbers(prepared, bottom_n=pick),
            overdue=gaps.get_overdue_numbers(prepared, top_n=pick),
        ),
        CorrelationAnalysis(pairs=cmap.entries(), window_size=len(window_draws)),
        ScoringAnalysis(scores=scores, weights=dict(scoring.weights)),
        GeneticAnalysis(
            candidates=candidates,
            generations=optimizer.generation,
            population_size=ga_config.population_size,
            repairs=optimizer.repairs,
        ),
    ]

    result = {
        "lottery_id": lottery_id,
        "lottery_label": LOTTERY_LABELS.get(lottery_id, lottery_id),
        "draws_used": len(prepared),
        "candidates": candidates,
        "analyses": analyses,
        "success": True,
    }
    log.info(f"[RECOMMEND] {lottery_id} → {[list(c.numbers) for c in candidates]}")
    return result


def backtest_lottery(
    lottery_id: str,
    draws: Iterable[Draw | Mapping[str, Any]],
    strategy: str = "hybrid",
    seed: int | None = None,
    **overrides: Any,
) -> BacktestAnalysis:
    """Replay a named strategy over the lottery's history and check the split for leakage."""
    pool_size = get_pool_size(lottery_id)
    pick = get_pick_count(lottery_id)
    prepared = prepare_draws(draws, pool_size, pick)

    overrides.setdefault("paytable", get_paytable(lottery_id))
    config = BacktestConfig.from_params(
        pick, get_backtest_params(lottery_id),
        pool_size=pool_size, strategy_name=strategy, **overrides,
    )
    config.validate()
    start = max(config.start_index or 0, config.min_history)
    leakage = check_data_leakage(prepared[:start], prepared[start:])

    result = run_backtest(make_strategy(strategy, lottery_id, seed), prepared, config)
    return BacktestAnalysis(result=result, leakage=leakage)
