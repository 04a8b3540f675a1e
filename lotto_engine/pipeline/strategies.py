"""
lotto_engine/pipeline/strategies.py
Selection strategies usable by the backtester: each is a callable taking the
prior draws (chronological) and returning `pick` numbers.
"""
from __future__ import annotations

import random
from dataclasses import replace
from typing import Sequence

from lotto_engine.evaluation.backtest_engine import Strategy
from lotto_engine.models.hybrid_scoring import HybridScoringService
from lotto_engine.models.statistical.correlation_engine import CorrelationEngine
from lotto_engine.models.statistical.frequency_analyzer import FrequencyAnalyzer
from lotto_engine.models.types import Draw
from lotto_engine.optimization.genetic_optimizer import GAConfig, GeneticOptimizer


def most_frequent_strategy(pool_size: int, pick: int, window: int = 100) -> Strategy:
    analyzer = FrequencyAnalyzer(pool_size=pool_size, window=window)

    def _strategy(history: Sequence[Draw]) -> list[int]:
        return sorted(analyzer.most_frequent(history, pick))

    return _strategy


def random_strategy(pool_size: int, pick: int, seed: int | None = None) -> Strategy:
    rng = random.Random(seed)

    def _strategy(history: Sequence[Draw]) -> list[int]:
        return sorted(rng.sample(range(1, pool_size + 1), pick))

    return _strategy


def hybrid_strategy(pool_size: int, pick: int, scoring: HybridScoringService | None = None,
                    correlation: CorrelationEngine | None = None) -> Strategy:
    """Top `pick` numbers by hybrid score."""
    scoring = scoring or HybridScoringService()
    correlation = correlation or CorrelationEngine()
    freq = FrequencyAnalyzer(pool_size=pool_size, window=scoring.recent_window)

    def _strategy(history: Sequence[Draw]) -> list[int]:
        cmap = correlation.build_correlation_map(history, pool_size)
        scores = scoring.score_all(history, pool_size, freq.get_frequencies(history), cmap)
        ranked = sorted(scores, key=lambda s: (-s.total_score, s.number))
        return sorted(s.number for s in ranked[:pick])

    return _strategy


def correlated_strategy(pool_size: int, pick: int, seeds: int = 2, seed: int | None = None,
                        correlation: CorrelationEngine | None = None, window: int = 100) -> Strategy:
    """Hottest `seeds` numbers, completed with their strongest co-occurring partners."""
    correlation = correlation or CorrelationEngine()
    freq = FrequencyAnalyzer(pool_size=pool_size, window=window)
    rng = random.Random(seed)

    def _strategy(history: Sequence[Draw]) -> list[int]:
        base = freq.most_frequent(history, min(seeds, pick))
        cmap = correlation.build_correlation_map(history, pool_size)
        rest = correlation.select_correlated_set(base, cmap, pick - len(base), pool_size, rng=rng)
        return sorted(set(base) | set(rest))

    return _strategy


def genetic_strategy(config: GAConfig, scoring: HybridScoringService | None = None,
                     correlation: CorrelationEngine | None = None) -> Strategy:
    """Best GA candidate, re-optimized on every trial's prior draws."""
    scoring = scoring or HybridScoringService()
    correlation = correlation or CorrelationEngine()
    rng = random.Random(config.seed)

    def _strategy(history: Sequence[Draw]) -> list[int]:
        cmap = correlation.build_correlation_map(history, config.pool_size)
        scores = scoring.score_all(history, config.pool_size, None, cmap)
        trial_config = replace(config, seed=rng.randrange(2**31))
        best = GeneticOptimizer(trial_config, scores=scores, correlation_map=cmap).run(1)[0]
        return list(best.numbers)

    return _strategy

