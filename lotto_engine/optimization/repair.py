"""
lotto_engine/optimization/repair.py
Bring any intermediate number list back to a valid pick-sized set.
"""
from __future__ import annotations

import random
from typing import Iterable, Mapping


def repair(
    numbers: Iterable[int],
    pool_size: int,
    pick: int,
    rng: random.Random,
    weights: Mapping[int, float] | None = None,
) -> tuple[int, ...]:
    """
    Drop out-of-range values and duplicates (first occurrence wins), truncate
    to `pick`, then pad with unused numbers drawn in proportion to `weights`.
    When no unused number carries positive weight the pad is uniform over
    whatever valid numbers remain. Returns a sorted tuple.

    Assumes pick <= pool_size; with fewer valid numbers than `pick` the
    result is simply every number in the pool.
    """
    kept: list[int] = []
    seen: set[int] = set()
    for num in numbers:
        if 1 <= num <= pool_size and num not in seen:
            kept.append(num)
            seen.add(num)
    kept = kept[:pick]
    seen = set(kept)

    while len(kept) < pick:
        remaining = [n for n in range(1, pool_size + 1) if n not in seen]
        if not remaining:
            break
        choice = None
        if weights:
            w = [max(float(weights.get(n, 0.0)), 0.0) for n in remaining]
            if sum(w) > 0:
                choice = rng.choices(remaining, weights=w, k=1)[0]
        if choice is None:
            choice = rng.choice(remaining)
        kept.append(choice)
        seen.add(choice)

    return tuple(sorted(kept))

