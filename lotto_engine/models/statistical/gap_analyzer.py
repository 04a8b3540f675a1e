"""
lotto_engine/models/statistical/gap_analyzer.py
Score numbers by their gap (draws since last appearance).
Numbers with larger-than-average gaps are "overdue".
"""
from __future__ import annotations

from typing import Sequence

from lotto_engine.models.types import Draw


class GapAnalyzer:
    """Score each number based on draws since last appearance."""

    def __init__(self, pool_size: int, window: int = 50):
        self.pool_size = pool_size
        self.window = window

    def get_gaps(self, draws: Sequence[Draw]) -> dict[int, int]:
        """
        Returns {number: draws_since_last_appearance}.
        If never seen in window, gap = window + 1 (extremely overdue).
        """
        recent = list(draws[-self.window:]) if self.window > 0 else []
        gaps: dict[int, int] = {}

        for num in range(1, self.pool_size + 1):
            gap = None
            for idx, draw in enumerate(reversed(recent)):
                if num in draw.numbers:
                    gap = idx
                    break
            gaps[num] = gap if gap is not None else self.window + 1

        return gaps

    def get_delay_metrics(self, draws: Sequence[Draw]) -> dict[int, dict[str, float]]:
        """
        Per number over the full history: current delay plus average, min and
        max interval between consecutive appearances (0 when seen fewer than
        twice).
        """
        last_seen: dict[int, int] = {}
        intervals: dict[int, list[int]] = {n: [] for n in range(1, self.pool_size + 1)}

        for idx, draw in enumerate(draws):
            for num in draw.numbers:
                if num not in intervals:
                    continue
                if num in last_seen:
                    intervals[num].append(idx - last_seen[num])
                last_seen[num] = idx

        total = len(draws)
        metrics: dict[int, dict[str, float]] = {}
        for num, gaps in intervals.items():
            current = total - 1 - last_seen[num] if num in last_seen else total
            metrics[num] = {
                "current_delay": float(current),
                "average_delay": sum(gaps) / len(gaps) if gaps else 0.0,
                "max_delay": float(max(gaps)) if gaps else 0.0,
                "min_delay": float(min(gaps)) if gaps else 0.0,
            }
        return metrics

    def get_scores(self, draws: Sequence[Draw]) -> dict[int, float]:
        """
        Numbers with above-average gap → higher score (overdue).
        Normalized to [0, 1].
        """
        gaps = self.get_gaps(draws)
        avg_gap = sum(gaps.values()) / len(gaps) if gaps else 1
        avg_gap = avg_gap or 1

        scores = {n: g / avg_gap for n, g in gaps.items()}
        max_score = max(scores.values(), default=0.0) or 1.0
        return {n: v / max_score for n, v in scores.items()}

    def get_overdue_numbers(self, draws: Sequence[Draw], top_n: int = 15) -> list[int]:
        scores = self.get_scores(draws)
        return sorted(scores, key=lambda n: (-scores[n], n))[:top_n]
