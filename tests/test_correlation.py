"""tests/test_correlation.py"""
import random
from datetime import date, timedelta

import pytest

from lotto_engine.models.statistical.correlation_engine import CorrelationEngine
from lotto_engine.models.types import CorrelationMap, Draw, NumberFrequency, Temperature


def _draws(sets):
    return [
        Draw(i + 1, date(2024, 1, 1) + timedelta(days=i), frozenset(s))
        for i, s in enumerate(sets)
    ]


SMALL = _draws([[1, 2, 3], [2, 3, 4], [1, 3, 5]])


class TestCorrelationMap:
    def setup_method(self):
        self.engine = CorrelationEngine()
        self.cmap = self.engine.build_correlation_map(SMALL, pool_size=5)

    def test_co_occurring_pairs_positive(self):
        assert self.cmap.lookup(1, 3) == pytest.approx(2 / 3)
        assert self.cmap.lookup(2, 3) == pytest.approx(2 / 3)
        assert self.cmap.lookup(1, 2) == pytest.approx(1 / 3)
        assert self.cmap.lookup(2, 4) == pytest.approx(0.5)

    def test_never_together_is_absent(self):
        assert (4, 5) not in self.cmap
        assert self.cmap.lookup(4, 5) == 0.0
        assert self.cmap.lookup(1, 4) == 0.0

    def test_symmetric(self):
        for a in range(1, 6):
            for b in range(1, 6):
                assert self.cmap.lookup(a, b) == self.cmap.lookup(b, a)

    def test_self_pair_is_zero(self):
        assert self.cmap.lookup(3, 3) == 0.0

    def test_values_bounded(self):
        values = self.cmap.as_dict().values()
        assert len(self.cmap) == 7
        assert all(0.0 < v <= 1.0 for v in values)

    def test_idempotent(self):
        again = self.engine.build_correlation_map(SMALL, pool_size=5)
        assert again == self.cmap

    def test_threshold_keeps_map_sparse(self):
        strict = CorrelationEngine(threshold=0.5).build_correlation_map(SMALL, pool_size=5)
        # 0.5 itself is not above the threshold
        assert set(strict.as_dict()) == {(1, 3), (2, 3)}

    def test_empty_history(self):
        cmap = self.engine.build_correlation_map([], pool_size=60)
        assert len(cmap) == 0
        assert cmap.lookup(1, 2) == 0.0

    def test_out_of_range_numbers_ignored(self):
        cmap = self.engine.build_correlation_map(_draws([[1, 2, 99]]), pool_size=5)
        assert set(cmap.as_dict()) == {(1, 2)}

    def test_entries_are_sorted_pairs(self):
        entries = self.cmap.entries()
        assert [(e.number_a, e.number_b) for e in entries] == sorted(self.cmap.as_dict())
        assert all(e.number_a < e.number_b for e in entries)

    def test_partners(self):
        assert self.cmap.partners(4) == {2: pytest.approx(0.5), 3: pytest.approx(1 / 3)}

    def test_equality_against_other_types(self):
        assert (self.cmap == {}) is False
        assert self.cmap != CorrelationMap(pool_size=5, threshold=0.05)


class TestCorrelationQueries:
    def setup_method(self):
        self.engine = CorrelationEngine()
        self.cmap = self.engine.build_correlation_map(SMALL, pool_size=5)

    def test_top_correlated_order(self):
        assert self.engine.top_correlated(1, self.cmap, pool_size=5) == [3, 5, 2]

    def test_top_correlated_tie_break(self):
        # 1 and 2 tie at 2/3, 4 and 5 tie at 1/3
        assert self.engine.top_correlated(3, self.cmap, pool_size=5) == [1, 2, 4, 5]
        assert self.engine.top_correlated(3, self.cmap, pool_size=5, top_n=2) == [1, 2]

    def test_top_correlated_unknown_number(self):
        assert self.engine.top_correlated(4, CorrelationMap(5, 0.05), pool_size=5) == []

    def test_select_correlated_set(self):
        picked = self.engine.select_correlated_set([1], self.cmap, count=2, pool_size=5)
        assert picked == [3, 5]

    def test_select_respects_excluded(self):
        picked = self.engine.select_correlated_set([1], self.cmap, count=2, pool_size=5, excluded=[3])
        assert picked == [2, 5]

    def test_select_fills_randomly_when_votes_run_out(self):
        picked = self.engine.select_correlated_set(
            [1], self.cmap, count=4, pool_size=5, rng=random.Random(1)
        )
        assert picked == [2, 3, 4, 5]

    def test_select_never_returns_base_or_duplicates(self):
        history = _draws([random.Random(i).sample(range(1, 31), 6) for i in range(40)])
        cmap = self.engine.build_correlation_map(history, pool_size=30)
        picked = self.engine.select_correlated_set(
            [4, 9], cmap, count=6, pool_size=30, excluded=[1, 2], rng=random.Random(5)
        )
        assert len(picked) == 6
        assert len(set(picked)) == 6
        assert picked == sorted(picked)
        assert not set(picked) & {1, 2, 4, 9}

    def test_select_caps_at_available_numbers(self):
        picked = self.engine.select_correlated_set(
            [1], self.cmap, count=10, pool_size=5, excluded=[2], rng=random.Random(0)
        )
        assert picked == [3, 4, 5]

    def test_set_correlation_score(self):
        score = CorrelationEngine.set_correlation_score([1, 2, 3], self.cmap)
        assert score == pytest.approx(5 / 9)

    def test_set_correlation_score_small_sets(self):
        assert CorrelationEngine.set_correlation_score([], self.cmap) == 0.0
        assert CorrelationEngine.set_correlation_score([3], self.cmap) == 0.0
        assert CorrelationEngine.set_correlation_score([3, 3], self.cmap) == 0.0


class TestPatternAnalyses:
    def test_temporal_followers(self):
        followers = CorrelationEngine.temporal_followers(SMALL, lookback=2)
        assert followers[3] == [3, 1]
        assert followers[1] == [2, 3]
        # 5 only appears in the last draw
        assert 5 not in followers

    def test_find_trios(self):
        trios = CorrelationEngine.find_trios(SMALL, min_frequency=1)
        assert [t for t, _, _ in trios] == [(1, 2, 3), (1, 3, 5), (2, 3, 4)]
        assert trios[0][2] == pytest.approx(1 / 3)
        assert CorrelationEngine.find_trios(SMALL, min_frequency=2) == []

    def test_dispersion_metrics(self):
        freqs = [NumberFrequency(n, f, Temperature.WARM) for n, f in [(1, 2), (2, 4), (3, 6)]]
        metrics = CorrelationEngine.dispersion_metrics(freqs)
        assert metrics["mean"] == pytest.approx(4.0)
        assert metrics["median"] == pytest.approx(4.0)
        assert metrics["variance"] == pytest.approx(8 / 3)
        assert metrics["coefficient_of_variation"] == pytest.approx((8 / 3) ** 0.5 / 4 * 100)

    def test_dispersion_metrics_empty(self):
        assert CorrelationEngine.dispersion_metrics([])["std"] == 0.0
