"""
lotto_engine/models/hybrid_scoring.py
Weighted fusion of frequency, multi-window temporal trend and correlation
into one comparable score per number.
"""
from __future__ import annotations

from typing import Any, Iterable, Sequence

import numpy as np

from lotto_engine.models.types import (
    CorrelationMap,
    Draw,
    NumberFrequency,
    NumberScore,
    ScoreComponents,
    TemporalProfile,
)
from lotto_engine.utils.errors import ConfigurationError, InsufficientDataWarning
from lotto_engine.utils.logger import get_logger

log = get_logger("model.scoring")

WEIGHT_MIN = 0.10
WEIGHT_MAX = 0.60

DEFAULT_WEIGHTS = {"frequency": 0.40, "temporal": 0.30, "correlation": 0.30}
DEFAULT_WINDOWS = {"short": 20, "medium": 60, "long": 150}
DEFAULT_TEMPORAL_WEIGHTS = {"short": 0.40, "medium": 0.35, "long": 0.25}


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def _window_ratio(number: int, draws: Sequence[Draw], window: int) -> float:
    """Share of the last `window` draws containing `number`; empty window → 0."""
    recent = draws[-window:] if window > 0 else draws[:0]
    if len(recent) == 0:
        return 0.0
    hits = sum(1 for draw in recent if number in draw.numbers)
    return _clamp01(hits / len(recent))


def normalize_weights(weights: dict[str, float]) -> dict[str, float]:
    missing = set(DEFAULT_WEIGHTS) - weights.keys()
    if missing:
        raise ConfigurationError(f"Missing scoring weights: {sorted(missing)}")
    if any(weights[k] < 0 for k in DEFAULT_WEIGHTS):
        raise ConfigurationError(f"Scoring weights must be non-negative: {weights}")
    total = sum(weights[k] for k in DEFAULT_WEIGHTS)
    if total <= 0:
        raise ConfigurationError("Scoring weights sum to zero")
    if abs(total - 1.0) > 0.01:
        log.warning(f"Scoring weights sum to {total:.3f}, normalizing.")
    return {k: weights[k] / total for k in DEFAULT_WEIGHTS}


class HybridScoringService:
    """
    Each component is normalized to [0, 1]:
      frequency   : occurrences in the last `recent_window` draws / window,
                    averaged with frequency / max frequency when the caller
                    passes a precomputed frequency table
      temporal    : weighted short/medium/long window ratios
      correlation : mean correlation against a reference set (or against
                    every retained partner when no reference is given)
    Total = weighted sum, weights summing to 1. Draws are chronological.
    """

    def __init__(
        self,
        weights: dict[str, float] | None = None,
        recent_window: int = 100,
        windows: dict[str, int] | None = None,
        temporal_weights: dict[str, float] | None = None,
    ):
        self.weights = normalize_weights(dict(weights or DEFAULT_WEIGHTS))
        self.recent_window = recent_window
        self.windows = dict(windows or DEFAULT_WINDOWS)
        tw = dict(temporal_weights or DEFAULT_TEMPORAL_WEIGHTS)
        tw_total = sum(tw.values()) or 1.0
        self.temporal_weights = {k: v / tw_total for k, v in tw.items()}

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> "HybridScoringService":
        """Build from the `scoring` block of a lottery config."""
        return cls(
            weights=params.get("weights"),
            recent_window=params.get("recent_window", 100),
            windows=params.get("temporal_windows"),
            temporal_weights=params.get("temporal_weights"),
        )

    # ── Weights ───────────────────────────────────────────────────

    def update_weights(self, frequency: float, temporal: float, correlation: float) -> None:
        """Adjust weights with min/max constraints."""
        clamped = {
            "frequency": max(WEIGHT_MIN, min(WEIGHT_MAX, frequency)),
            "temporal": max(WEIGHT_MIN, min(WEIGHT_MAX, temporal)),
            "correlation": max(WEIGHT_MIN, min(WEIGHT_MAX, correlation)),
        }
        total = sum(clamped.values())
        self.weights = {k: v / total for k, v in clamped.items()}
        log.info(
            f"Weights updated: FREQ={self.weights['frequency']:.3f} "
            f"TEMP={self.weights['temporal']:.3f} CORR={self.weights['correlation']:.3f}"
        )

    def adjust_weights(self, actual_numbers: Iterable[int], scores: Sequence[NumberScore]) -> None:
        """Shift weight towards the components that rated the drawn numbers highest."""
        by_number = {s.number: s for s in scores}
        totals = {"frequency": 0.0, "temporal": 0.0, "correlation": 0.0}
        for num in actual_numbers:
            score = by_number.get(num)
            if score is None:
                continue
            totals["frequency"] += score.components.frequency
            totals["temporal"] += score.components.temporal
            totals["correlation"] += score.components.correlation

        grand = sum(totals.values())
        if grand <= 0:
            log.info("No component signal on drawn numbers, weights unchanged")
            return
        self.update_weights(**{k: v / grand for k, v in totals.items()})

    # ── Components ────────────────────────────────────────────────

    def multi_temporal_analysis(self, number: int, draws: Sequence[Draw]) -> TemporalProfile:
        return TemporalProfile(
            short_term=_window_ratio(number, draws, self.windows["short"]),
            medium_term=_window_ratio(number, draws, self.windows["medium"]),
            long_term=_window_ratio(number, draws, self.windows["long"]),
        )

    def _frequency_component(
        self, number: int, draws: Sequence[Draw], frequencies: Sequence[NumberFrequency] | None
    ) -> float:
        recent_ratio = _window_ratio(number, draws, self.recent_window)
        if not frequencies:
            return recent_ratio
        max_freq = max(f.frequency for f in frequencies)
        own = next((f.frequency for f in frequencies if f.number == number), 0)
        table_ratio = own / max_freq if max_freq > 0 else 0.0
        return _clamp01((recent_ratio + table_ratio) / 2)

    def _temporal_component(self, profile: TemporalProfile) -> float:
        tw = self.temporal_weights
        return _clamp01(
            profile.short_term * tw.get("short", 0.0)
            + profile.medium_term * tw.get("medium", 0.0)
            + profile.long_term * tw.get("long", 0.0)
        )

    @staticmethod
    def _correlation_component(
        number: int, cmap: CorrelationMap | None, reference: Iterable[int] | None
    ) -> float:
        if cmap is None:
            return 0.0
        if reference is not None:
            others = [r for r in set(reference) if r != number]
            if not others:
                return 0.0
            return _clamp01(sum(cmap.lookup(number, r) for r in others) / len(others))
        partners = cmap.partners(number)
        if not partners:
            return 0.0
        return _clamp01(sum(partners.values()) / len(partners))

    # ── Scoring ───────────────────────────────────────────────────

    def score_number(
        self,
        number: int,
        draws: Sequence[Draw],
        frequencies: Sequence[NumberFrequency] | None,
        correlation_map: CorrelationMap | None,
        weights: dict[str, float] | None = None,
        reference: Iterable[int] | None = None,
    ) -> NumberScore:
        w = normalize_weights(dict(weights)) if weights is not None else self.weights
        components = ScoreComponents(
            frequency=self._frequency_component(number, draws, frequencies),
            temporal=self._temporal_component(self.multi_temporal_analysis(number, draws)),
            correlation=self._correlation_component(number, correlation_map, reference),
        )
        total = (
            components.frequency * w["frequency"]
            + components.temporal * w["temporal"]
            + components.correlation * w["correlation"]
        )
        values = np.array([components.frequency, components.temporal, components.correlation])
        confidence = float(1.0 / (1.0 + values.var()))
        combined = total * confidence
        if combined > 0.7:
            recommendation = "strong"
        elif combined > 0.4:
            recommendation = "moderate"
        else:
            recommendation = "weak"

        return NumberScore(
            number=number,
            components=components,
            total_score=_clamp01(total),
            confidence=confidence,
            recommendation=recommendation,
            sufficient_data=len(draws) >= self.windows["short"],
        )

    def score_all(
        self,
        draws: Sequence[Draw],
        pool_size: int,
        frequencies: Sequence[NumberFrequency] | None = None,
        correlation_map: CorrelationMap | None = None,
        weights: dict[str, float] | None = None,
    ) -> list[NumberScore]:
        """Score every number in [1, pool_size], ordered by number."""
        if len(draws) < self.windows["short"]:
            log.warning(
                f"{InsufficientDataWarning.__name__}: {len(draws)} draws, "
                f"short window needs {self.windows['short']}, scores are low-confidence"
            )
        return [
            self.score_number(n, draws, frequencies, correlation_map, weights)
            for n in range(1, pool_size + 1)
        ]


def score_map(scores: Sequence[NumberScore]) -> dict[int, float]:
    return {s.number: s.total_score for s in scores}
