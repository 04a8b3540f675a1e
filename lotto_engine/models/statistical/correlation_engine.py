"""
lotto_engine/models/statistical/correlation_engine.py
Pairwise co-occurrence (Jaccard) correlation between numbers, plus the
selection and set-scoring helpers built on top of it.
"""
from __future__ import annotations

import random
from collections import Counter, defaultdict
from itertools import combinations
from typing import Iterable, Sequence

import numpy as np

from lotto_engine.models.types import CorrelationMap, Draw, NumberFrequency
from lotto_engine.utils.logger import get_logger

log = get_logger("model.correlation")

SIGNIFICANCE_THRESHOLD = 0.05
SELECTION_DEPTH = 20  # correlated partners considered per base number


class CorrelationEngine:
    """
    Jaccard co-occurrence over a draw history:
        corr(i, j) = both(i, j) / (count(i) + count(j) - both(i, j))
    Pairs at or below `threshold` are dropped so the map stays sparse.
    Missing data never raises; absent pairs read as 0.
    """

    def __init__(self, threshold: float = SIGNIFICANCE_THRESHOLD):
        self.threshold = threshold

    # ── Map construction ──────────────────────────────────────────

    def build_correlation_map(self, draws: Sequence[Draw], pool_size: int) -> CorrelationMap:
        individual: Counter = Counter()
        co_occurrence: Counter = Counter()

        for draw in draws:
            numbers = sorted(n for n in draw.numbers if 1 <= n <= pool_size)
            individual.update(numbers)
            co_occurrence.update(combinations(numbers, 2))

        values: dict[tuple[int, int], float] = {}
        # Only pairs that co-occurred can be above the threshold; the rest are 0
        for (i, j), both in co_occurrence.items():
            union = individual[i] + individual[j] - both
            correlation = both / union if union > 0 else 0.0
            if correlation > self.threshold:
                values[(i, j)] = correlation

        if not draws:
            log.warning("No draws supplied, correlation map is empty")
        log.debug(f"Correlation map built: {len(values)} significant pairs from {len(draws)} draws")
        return CorrelationMap(pool_size=pool_size, threshold=self.threshold, values=values)

    # ── Queries ───────────────────────────────────────────────────

    def top_correlated(self, target: int, cmap: CorrelationMap, pool_size: int, top_n: int = 10) -> list[int]:
        """Numbers most correlated with `target`, ties broken by the lower number."""
        scored = [
            (n, cmap.lookup(target, n))
            for n in range(1, pool_size + 1)
            if n != target
        ]
        scored = [(n, c) for n, c in scored if c > 0]
        scored.sort(key=lambda item: (-item[1], item[0]))
        return [n for n, _ in scored[:top_n]]

    def select_correlated_set(
        self,
        base_numbers: Iterable[int],
        cmap: CorrelationMap,
        count: int,
        pool_size: int,
        excluded: Iterable[int] = (),
        rng: random.Random | None = None,
    ) -> list[int]:
        """
        Pick `count` numbers that co-occur with the base numbers. Each base
        number votes for its top partners with weight 1/(rank+1); numbers the
        votes cannot cover are drawn uniformly from what is left.
        """
        rng = rng or random.Random()
        base = list(base_numbers)
        used = set(excluded) | set(base)
        weights: dict[int, float] = defaultdict(float)

        for base_num in base:
            for rank, num in enumerate(self.top_correlated(base_num, cmap, pool_size, SELECTION_DEPTH)):
                if num not in used:
                    weights[num] += 1.0 / (rank + 1)

        ranked = sorted(weights, key=lambda n: (-weights[n], n))
        selected = ranked[:count]

        if len(selected) < count:
            remaining = [n for n in range(1, pool_size + 1) if n not in used and n not in selected]
            fill = min(count - len(selected), len(remaining))
            if fill < count - len(selected):
                log.warning(f"Only {len(selected) + fill}/{count} numbers available outside the excluded set")
            selected.extend(rng.sample(remaining, fill))

        return sorted(selected)

    @staticmethod
    def set_correlation_score(numbers: Iterable[int], cmap: CorrelationMap) -> float:
        """Mean correlation over all pairs in the set; 0 for fewer than two numbers."""
        nums = sorted(set(numbers))
        if len(nums) < 2:
            return 0.0
        pairs = list(combinations(nums, 2))
        return sum(cmap.lookup(a, b) for a, b in pairs) / len(pairs)

    # ── Extra pattern analyses ────────────────────────────────────

    @staticmethod
    def temporal_followers(draws: Sequence[Draw], lookback: int = 5) -> dict[int, list[int]]:
        """
        For each number, the numbers most often drawn in the contest right
        after one containing it.
        """
        followers: dict[int, Counter] = defaultdict(Counter)
        for current, following in zip(draws, draws[1:]):
            for leader in current.numbers:
                followers[leader].update(following.numbers)

        return {
            leader: [n for n, _ in sorted(counter.items(), key=lambda item: (-item[1], item[0]))[:lookback]]
            for leader, counter in sorted(followers.items())
        }

    @staticmethod
    def find_trios(draws: Sequence[Draw], min_frequency: int = 3) -> list[tuple[tuple[int, int, int], int, float]]:
        """Triples drawn together at least `min_frequency` times, most frequent first."""
        trios: Counter = Counter()
        for draw in draws:
            trios.update(combinations(sorted(draw.numbers), 3))

        total = len(draws) or 1
        found = [(trio, freq, freq / total) for trio, freq in trios.items() if freq >= min_frequency]
        found.sort(key=lambda item: (-item[1], item[0]))
        return found

    @staticmethod
    def dispersion_metrics(frequencies: Sequence[NumberFrequency]) -> dict[str, float]:
        values = np.array([f.frequency for f in frequencies], dtype=float)
        if values.size == 0:
            return {"mean": 0.0, "median": 0.0, "variance": 0.0, "std": 0.0, "coefficient_of_variation": 0.0}
        mean = float(values.mean())
        std = float(values.std())
        return {
            "mean": mean,
            "median": float(np.median(values)),
            "variance": float(values.var()),
            "std": std,
            "coefficient_of_variation": (std / mean) * 100 if mean else 0.0,
        }

