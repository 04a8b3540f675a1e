"""
lotto_engine/evaluation/leakage.py
Detect training/test contamination before a backtest result is trusted.
"""
from __future__ import annotations

from typing import Sequence

from lotto_engine.models.types import Draw, LeakageReport
from lotto_engine.utils.logger import get_logger

log = get_logger("evaluation.leakage")


def check_data_leakage(training: Sequence[Draw], test: Sequence[Draw]) -> LeakageReport:
    """
    Flags:
      - a test draw whose contest number or date also appears in training
      - any test date earlier than the latest training date
      - any test contest numbered below the latest training contest
    """
    details: list[str] = []
    overlapping = 0

    train_contests = {d.contest_number for d in training}
    train_dates = {d.draw_date for d in training}

    for draw in test:
        if draw.contest_number in train_contests:
            overlapping += 1
            details.append(f"Contest {draw.contest_number} present in both sets")
        elif draw.draw_date in train_dates:
            overlapping += 1
            details.append(f"Contest {draw.contest_number} shares date {draw.draw_date.isoformat()} with training")

    out_of_order = False
    if training and test:
        max_train_date = max(d.draw_date for d in training)
        min_test_date = min(d.draw_date for d in test)
        if min_test_date < max_train_date:
            out_of_order = True
            details.append(
                f"Test data contains dates ({min_test_date.isoformat()}) earlier than training "
                f"({max_train_date.isoformat()})"
            )
        max_train_contest = max(train_contests)
        min_test_contest = min(d.contest_number for d in test)
        if min_test_contest < max_train_contest:
            out_of_order = True
            details.append(f"Test contest {min_test_contest} precedes training contest {max_train_contest}")

    rate = overlapping / len(test) if test else 0.0
    has_leakage = overlapping > 0 or out_of_order
    if has_leakage:
        log.warning(f"Data leakage detected: {len(details)} issue(s), rate={rate:.2%}")
    return LeakageReport(has_leakage=has_leakage, leakage_rate=rate, details=details)
