"""
lotto_engine/models/statistical/frequency_analyzer.py
Hot/warm/cold classification and recency-weighted frequency scores over the
last N draws.
"""
from __future__ import annotations

from collections import Counter
from typing import Sequence

import numpy as np

from lotto_engine.models.types import Draw, NumberFrequency, Temperature


class FrequencyAnalyzer:
    """Score each number by how often it appears in recent draws."""

    def __init__(self, pool_size: int, window: int = 100, weight_recency: float = 0.97, temperature_k: float = 0.8):
        self.pool_size = pool_size
        self.window = window
        self.weight_recency = weight_recency  # per-draw decay, newest draw weighs 1.0
        self.temperature_k = temperature_k

    def _recent(self, draws: Sequence[Draw]) -> Sequence[Draw]:
        # Draws are chronological: the tail is the most recent
        return draws[-self.window:] if self.window > 0 else draws[:0]

    def get_counts(self, draws: Sequence[Draw]) -> dict[int, int]:
        counter: Counter = Counter()
        for draw in self._recent(draws):
            counter.update(n for n in draw.numbers if 1 <= n <= self.pool_size)
        return {n: counter.get(n, 0) for n in range(1, self.pool_size + 1)}

    def get_frequencies(self, draws: Sequence[Draw]) -> list[NumberFrequency]:
        """
        Count occurrences in the window and discretize into temperatures:
        hot above mean + k*std, cold below mean - k*std, warm otherwise.
        """
        counts = self.get_counts(draws)
        values = np.array(list(counts.values()), dtype=float)
        mean = float(values.mean()) if values.size else 0.0
        std = float(values.std()) if values.size else 0.0
        hot_cut = mean + self.temperature_k * std
        cold_cut = mean - self.temperature_k * std

        out: list[NumberFrequency] = []
        for num, freq in counts.items():
            if freq > hot_cut:
                temp = Temperature.HOT
            elif freq < cold_cut:
                temp = Temperature.COLD
            else:
                temp = Temperature.WARM
            out.append(NumberFrequency(number=num, frequency=freq, temperature=temp))
        return out

    def get_scores(self, draws: Sequence[Draw]) -> dict[int, float]:
        """
        Returns a score dict {number: score} for all numbers in range.
        Higher score = more frequent recently (hot).
        """
        recent = self._recent(draws)
        if len(recent) == 0:
            return {n: 0.0 for n in range(1, self.pool_size + 1)}

        scores: dict[int, float] = {n: 0.0 for n in range(1, self.pool_size + 1)}
        last = len(recent) - 1
        for idx, draw in enumerate(recent):
            recency_weight = self.weight_recency ** (last - idx)
            for num in draw.numbers:
                if 1 <= num <= self.pool_size:
                    scores[num] += recency_weight

        # Normalize to [0, 1]
        max_score = max(scores.values()) or 1.0
        return {n: v / max_score for n, v in scores.items()}

    def get_hot_numbers(self, draws: Sequence[Draw], top_n: int = 15) -> list[int]:
        scores = self.get_scores(draws)
        return sorted(scores, key=lambda n: (-scores[n], n))[:top_n]

    def get_cold_numbers(self, draws: Sequence[Draw], bottom_n: int = 15) -> list[int]:
        scores = self.get_scores(draws)
        return sorted(scores, key=lambda n: (scores[n], n))[:bottom_n]

    def most_frequent(self, draws: Sequence[Draw], top_n: int) -> list[int]:
        """Plain count ranking, ties broken by the lower number."""
        counts = self.get_counts(draws)
        return sorted(counts, key=lambda n: (-counts[n], n))[:top_n]
