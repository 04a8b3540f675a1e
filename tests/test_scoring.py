"""tests/test_scoring.py"""
from datetime import date, timedelta

import pytest

from lotto_engine.models.hybrid_scoring import (
    DEFAULT_WEIGHTS,
    HybridScoringService,
    normalize_weights,
    score_map,
)
from lotto_engine.models.statistical.correlation_engine import CorrelationEngine
from lotto_engine.models.statistical.frequency_analyzer import FrequencyAnalyzer
from lotto_engine.models.types import Draw
from lotto_engine.utils.errors import ConfigurationError


def _draws(sets):
    return [
        Draw(i + 1, date(2020, 1, 1) + timedelta(days=i), frozenset(s))
        for i, s in enumerate(sets)
    ]


# 130 old draws of 1..6, then 20 recent draws of 7..12
TREND = _draws([[1, 2, 3, 4, 5, 6]] * 130 + [[7, 8, 9, 10, 11, 12]] * 20)
SMALL = _draws([[1, 2, 3], [2, 3, 4], [1, 3, 5]])


class TestWeights:
    def test_defaults_sum_to_one(self):
        assert sum(HybridScoringService().weights.values()) == pytest.approx(1.0)
        assert HybridScoringService().weights == pytest.approx(DEFAULT_WEIGHTS)

    def test_normalize_rescales(self):
        w = normalize_weights({"frequency": 2.0, "temporal": 1.0, "correlation": 1.0})
        assert w == pytest.approx({"frequency": 0.5, "temporal": 0.25, "correlation": 0.25})

    def test_negative_weight_rejected(self):
        with pytest.raises(ConfigurationError):
            normalize_weights({"frequency": -0.1, "temporal": 0.6, "correlation": 0.5})

    def test_zero_weights_rejected(self):
        with pytest.raises(ConfigurationError):
            HybridScoringService(weights={"frequency": 0, "temporal": 0, "correlation": 0})

    def test_missing_weight_rejected(self):
        with pytest.raises(ConfigurationError):
            normalize_weights({"frequency": 0.5, "temporal": 0.5})

    def test_update_weights_clamped(self):
        svc = HybridScoringService()
        svc.update_weights(frequency=0.9, temporal=0.0, correlation=0.1)
        assert sum(svc.weights.values()) == pytest.approx(1.0)
        # 0.9 → 0.6 and 0.0 → 0.1 before renormalizing
        assert svc.weights["frequency"] == pytest.approx(0.6 / 0.8)
        assert svc.weights["temporal"] == pytest.approx(svc.weights["correlation"])

    def test_adjust_weights_moves_towards_signal(self):
        svc = HybridScoringService()
        scores = svc.score_all(TREND, pool_size=12)
        before = dict(svc.weights)
        svc.adjust_weights([7, 8, 9], scores)
        assert svc.weights != before
        assert sum(svc.weights.values()) == pytest.approx(1.0)

    def test_adjust_weights_without_signal(self):
        svc = HybridScoringService()
        svc.adjust_weights([40], [])
        assert svc.weights == pytest.approx(DEFAULT_WEIGHTS)

    def test_from_params(self):
        svc = HybridScoringService.from_params({
            "weights": {"frequency": 0.5, "temporal": 0.25, "correlation": 0.25},
            "recent_window": 50,
            "temporal_windows": {"short": 10, "medium": 30, "long": 90},
        })
        assert svc.recent_window == 50
        assert svc.windows["short"] == 10
        assert svc.weights["frequency"] == pytest.approx(0.5)


class TestTemporalAnalysis:
    def setup_method(self):
        self.svc = HybridScoringService()

    def test_windows_are_independent(self):
        profile = self.svc.multi_temporal_analysis(7, TREND)
        assert profile.short_term == pytest.approx(1.0)
        assert profile.medium_term == pytest.approx(20 / 60)
        assert profile.long_term == pytest.approx(20 / 150)

    def test_faded_number(self):
        profile = self.svc.multi_temporal_analysis(1, TREND)
        assert profile.short_term == 0.0
        assert profile.long_term == pytest.approx(130 / 150)

    def test_short_history_uses_what_exists(self):
        profile = self.svc.multi_temporal_analysis(3, SMALL)
        assert profile.short_term == pytest.approx(1.0)
        assert profile.long_term == pytest.approx(1.0)

    def test_empty_history(self):
        profile = self.svc.multi_temporal_analysis(3, [])
        assert (profile.short_term, profile.medium_term, profile.long_term) == (0.0, 0.0, 0.0)


class TestScoreNumber:
    def setup_method(self):
        self.svc = HybridScoringService()
        self.cmap = CorrelationEngine().build_correlation_map(SMALL, pool_size=5)

    def test_components_bounded(self):
        for n in range(1, 13):
            s = self.svc.score_number(n, TREND, None, None)
            for value in (s.components.frequency, s.components.temporal, s.components.correlation, s.total_score):
                assert 0.0 <= value <= 1.0

    def test_trending_component_values(self):
        s = self.svc.score_number(7, TREND, None, None)
        assert s.components.frequency == pytest.approx(20 / 100)
        assert s.components.temporal == pytest.approx(0.4 + 0.35 / 3 + 0.25 * 20 / 150)
        assert s.components.correlation == 0.0

    def test_deterministic(self):
        a = self.svc.score_number(3, SMALL, None, self.cmap)
        b = self.svc.score_number(3, SMALL, None, self.cmap)
        assert a == b

    def test_correlation_against_reference(self):
        s = self.svc.score_number(3, SMALL, None, self.cmap, reference=[1, 2])
        assert s.components.correlation == pytest.approx(2 / 3)

    def test_correlation_against_all_partners(self):
        s = self.svc.score_number(3, SMALL, None, self.cmap)
        assert s.components.correlation == pytest.approx(0.5)

    def test_reference_without_partners(self):
        s = self.svc.score_number(3, SMALL, None, self.cmap, reference=[3])
        assert s.components.correlation == 0.0

    def test_frequency_table_blended(self):
        freqs = FrequencyAnalyzer(pool_size=5).get_frequencies(SMALL)
        s = self.svc.score_number(4, SMALL, freqs, None)
        # recent ratio 1/3, table ratio 1/3 (4 drawn once, 3 drawn three times)
        assert s.components.frequency == pytest.approx(1 / 3)

    def test_weights_override(self):
        s = self.svc.score_number(7, TREND, None, None, weights={"frequency": 0, "temporal": 1, "correlation": 0})
        assert s.total_score == pytest.approx(s.components.temporal)

    def test_total_is_weighted_sum(self):
        s = self.svc.score_number(3, SMALL, None, self.cmap)
        w = self.svc.weights
        expected = (
            s.components.frequency * w["frequency"]
            + s.components.temporal * w["temporal"]
            + s.components.correlation * w["correlation"]
        )
        assert s.total_score == pytest.approx(expected)

    def test_sufficient_data_flag(self):
        assert self.svc.score_number(3, SMALL, None, None).sufficient_data is False
        assert self.svc.score_number(3, TREND, None, None).sufficient_data is True

    def test_recommendation_levels(self):
        assert self.svc.score_number(40, TREND, None, None).recommendation == "weak"


class TestScoreAll:
    def test_covers_pool_in_order(self):
        scores = HybridScoringService().score_all(TREND, pool_size=60)
        assert [s.number for s in scores] == list(range(1, 61))

    def test_trending_beats_absent(self):
        by_number = score_map(HybridScoringService().score_all(TREND, pool_size=60))
        assert by_number[7] > by_number[30]
        assert by_number[30] == 0.0

    def test_empty_history_scores_zero(self):
        scores = HybridScoringService().score_all([], pool_size=10)
        assert all(s.total_score == 0.0 for s in scores)
