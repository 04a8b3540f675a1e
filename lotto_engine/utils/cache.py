"""
lotto_engine/utils/cache.py
In-memory TTL cache for correlation maps, constructed by the host and passed
in explicitly. Keyed by (lottery_id, window_size); an entry also remembers a
fingerprint of the draws it was built from, so a caller handing in a
different draw list never gets a stale map back.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Sequence

from lotto_engine.models.types import CorrelationMap, Draw
from lotto_engine.utils.logger import get_logger

log = get_logger("cache")

CacheKey = tuple[str, int]


def fingerprint(draws: Sequence[Draw]) -> int:
    return hash(tuple((d.contest_number, tuple(d.sorted_numbers)) for d in draws))


@dataclass
class _Entry:
    value: CorrelationMap
    fingerprint: int
    expires_at: float


class CorrelationCache:
    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[CacheKey, _Entry] = {}
        self.hits = 0
        self.misses = 0

    def get(self, lottery_id: str, window_size: int, draws: Sequence[Draw]) -> CorrelationMap | None:
        key = (lottery_id, window_size)
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        if self._clock() > entry.expires_at:
            del self._entries[key]
            self.misses += 1
            return None
        if entry.fingerprint != fingerprint(draws):
            log.debug(f"Cache entry {key} built from different draws, ignoring")
            self.misses += 1
            return None
        self.hits += 1
        return entry.value

    def put(self, lottery_id: str, window_size: int, draws: Sequence[Draw], value: CorrelationMap) -> None:
        self._purge_expired()
        self._entries[(lottery_id, window_size)] = _Entry(
            value=value,
            fingerprint=fingerprint(draws),
            expires_at=self._clock() + self.ttl_seconds,
        )

    def get_or_build(
        self,
        lottery_id: str,
        window_size: int,
        draws: Sequence[Draw],
        builder: Callable[[], CorrelationMap],
    ) -> CorrelationMap:
        cached = self.get(lottery_id, window_size, draws)
        if cached is not None:
            return cached
        value = builder()
        self.put(lottery_id, window_size, draws, value)
        return value

    def invalidate(self, lottery_id: str | None = None) -> int:
        """Drop entries for one lottery (or all). Returns how many were removed."""
        doomed = [k for k in self._entries if lottery_id is None or k[0] == lottery_id]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def stats(self) -> dict[str, int]:
        return {"size": len(self._entries), "hits": self.hits, "misses": self.misses}

    def _purge_expired(self) -> None:
        now = self._clock()
        for key in [k for k, e in self._entries.items() if now > e.expires_at]:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)
