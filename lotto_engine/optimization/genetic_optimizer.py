"""
lotto_engine/optimization/genetic_optimizer.py
Genetic-algorithm search over valid number-sets.

Fitness = summed per-number hybrid scores + correlation bonus, penalized for
crowding a decile, consecutive runs, odd/even imbalance and a sum far from the
pool midpoint. Without scores the structural terms alone drive the search.
"""
from __future__ import annotations

import math
import random
from dataclasses import dataclass
from numbers import Integral
from typing import Any, Callable, Mapping, Sequence

from lotto_engine.models.hybrid_scoring import score_map
from lotto_engine.models.statistical.correlation_engine import CorrelationEngine
from lotto_engine.models.types import Candidate, CorrelationMap, NumberScore, is_valid_set
from lotto_engine.optimization.repair import repair
from lotto_engine.utils.errors import ConfigurationError
from lotto_engine.utils.logger import get_logger

log = get_logger("optimization.genetic")

CORRELATION_WEIGHT = 2.0
DIVERSITY_WEIGHT = 0.15
SEQUENCE_WEIGHT = 0.10
PARITY_WEIGHT = 0.05
SUM_WEIGHT = 0.50

LOG_EVERY = 20  # generations


@dataclass
class GAConfig:
    pool_size: int
    pick: int
    population_size: int = 200
    generations: int = 100
    mutation_rate: float = 0.15
    elite_percent: float = 0.10
    tournament_size: int = 3
    seed: int | None = None

    def validate(self) -> None:
        for name in ("pool_size", "pick", "population_size", "generations", "tournament_size"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, Integral) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
            setattr(self, name, int(value))
        if self.pick > self.pool_size:
            raise ConfigurationError(f"pick ({self.pick}) cannot exceed pool_size ({self.pool_size})")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ConfigurationError(f"mutation_rate must be in [0, 1], got {self.mutation_rate}")
        if not 0.0 <= self.elite_percent <= 1.0:
            raise ConfigurationError(f"elite_percent must be in [0, 1], got {self.elite_percent}")

    @classmethod
    def from_params(cls, pool_size: int, pick: int, params: Mapping[str, Any]) -> "GAConfig":
        """Build from the `genetic` block of a lottery config."""
        known = {k: params[k] for k in (
            "population_size", "generations", "mutation_rate", "elite_percent", "tournament_size", "seed",
        ) if k in params}
        return cls(pool_size=pool_size, pick=pick, **known)


def _decile(number: int, pool_size: int) -> int:
    return min(9, (number - 1) * 10 // pool_size)


def hamming_distance(a: Sequence[int], b: Sequence[int]) -> int:
    return len(set(a) ^ set(b))


class GeneticOptimizer:
    """
    One optimization run. `run()` drives the whole loop; callers that need
    cancellation call `initialize()` then `run_generation()` themselves and
    collect with `best()`.
    """

    def __init__(
        self,
        config: GAConfig,
        scores: Mapping[int, float] | Sequence[NumberScore] | None = None,
        correlation_map: CorrelationMap | None = None,
        on_generation: Callable[[int, Candidate], None] | None = None,
    ):
        config.validate()
        self.config = config
        if scores is None:
            self.scores: dict[int, float] = {}
        elif isinstance(scores, Mapping):
            self.scores = {int(n): float(s) for n, s in scores.items()}
        else:
            self.scores = score_map(scores)
        self.correlation_map = correlation_map
        self.on_generation = on_generation
        self.rng = random.Random(config.seed)
        self.population: list[tuple[int, ...]] = []
        self.generation = 0
        self.repairs = 0

    # ── Fitness ───────────────────────────────────────────────────

    def evaluate(self, numbers: tuple[int, ...]) -> Candidate:
        pool, pick = self.config.pool_size, self.config.pick

        score_sum = sum(self.scores.get(n, 0.0) for n in numbers)
        correlation_bonus = (
            CorrelationEngine.set_correlation_score(numbers, self.correlation_map)
            if self.correlation_map is not None else 0.0
        )

        buckets: dict[int, int] = {}
        for n in numbers:
            d = _decile(n, pool)
            buckets[d] = buckets.get(d, 0) + 1
        bucket_diversity = len(buckets)
        diversity_penalty = sum(c - 1 for c in buckets.values())

        sequence_penalty = sum(1 for a, b in zip(numbers, numbers[1:]) if b == a + 1)
        evens = sum(1 for n in numbers if n % 2 == 0)
        parity_imbalance = abs(evens - (len(numbers) - evens))
        sum_deviation = abs(sum(numbers) - (pool / 2) * pick) / pool

        fitness = (
            score_sum
            + CORRELATION_WEIGHT * correlation_bonus
            - DIVERSITY_WEIGHT * diversity_penalty
            - SEQUENCE_WEIGHT * sequence_penalty
            - PARITY_WEIGHT * parity_imbalance
            - SUM_WEIGHT * sum_deviation
        )
        metrics = {
            "score_sum": score_sum,
            "correlation_bonus": correlation_bonus,
            "diversity_penalty": float(diversity_penalty),
            "bucket_diversity": float(bucket_diversity),
            "sequence_penalty": float(sequence_penalty),
            "parity_imbalance": float(parity_imbalance),
            "sum_deviation": sum_deviation,
            "fitness": fitness,
        }
        return Candidate(numbers=numbers, score=fitness, metrics=metrics)

    def _evaluate_population(self) -> list[Candidate]:
        scored = [self.evaluate(chrom) for chrom in self.population]
        scored.sort(key=lambda c: (-c.score, c.numbers))
        return scored

    # ── Operators ─────────────────────────────────────────────────

    def _random_chromosome(self) -> tuple[int, ...]:
        return tuple(sorted(self.rng.sample(range(1, self.config.pool_size + 1), self.config.pick)))

    def _tournament(self, scored: list[Candidate]) -> Candidate:
        contestants = [self.rng.choice(scored) for _ in range(self.config.tournament_size)]
        return max(contestants, key=lambda c: c.score)

    def _crossover(self, parent1: tuple[int, ...], parent2: tuple[int, ...]) -> tuple[int, ...]:
        """Head of one parent + tail of the other, duplicates repaired away."""
        cut = self.rng.randrange(1, self.config.pick) if self.config.pick > 1 else 1
        merged = list(parent1[:cut]) + list(parent2[cut:])
        return repair(merged, self.config.pool_size, self.config.pick, self.rng, self.scores)

    def _mutate(self, chromosome: tuple[int, ...]) -> tuple[int, ...]:
        """Swap one random number for one not already present."""
        unused = [n for n in range(1, self.config.pool_size + 1) if n not in chromosome]
        if not unused:
            return chromosome
        genes = list(chromosome)
        genes[self.rng.randrange(len(genes))] = self.rng.choice(unused)
        return tuple(sorted(genes))

    def _enforce_invariants(self, population: list[tuple[int, ...]]) -> list[tuple[int, ...]]:
        checked = []
        for chrom in population:
            if not is_valid_set(chrom, self.config.pool_size, self.config.pick):
                self.repairs += 1
                log.debug(f"Structural repair at generation {self.generation}: {chrom}")
                chrom = repair(chrom, self.config.pool_size, self.config.pick, self.rng, self.scores)
            checked.append(chrom)
        return checked

    # ── Loop ──────────────────────────────────────────────────────

    def initialize(self) -> None:
        self.population = [self._random_chromosome() for _ in range(self.config.population_size)]
        self.generation = 0
        self.repairs = 0

    def run_generation(self) -> Candidate:
        """Evaluate, select, breed and mutate once. Returns the generation's best."""
        if not self.population:
            self.initialize()
        cfg = self.config
        scored = self._evaluate_population()

        elite_count = int(cfg.population_size * cfg.elite_percent)
        next_gen = [c.numbers for c in scored[:elite_count]]

        while len(next_gen) < cfg.population_size:
            parent1 = self._tournament(scored)
            parent2 = self._tournament(scored)
            child = self._crossover(parent1.numbers, parent2.numbers)
            if self.rng.random() < cfg.mutation_rate:
                child = self._mutate(child)
            next_gen.append(child)

        self.population = self._enforce_invariants(next_gen)
        self.generation += 1

        best = scored[0]
        if self.generation % LOG_EVERY == 0:
            log.info(f"  Generation {self.generation}: best fitness = {best.score:.3f}")
        if self.on_generation is not None:
            self.on_generation(self.generation, best)
        return best

    def best(self, games_count: int, min_distance: int | None = None) -> list[Candidate]:
        """
        Top `games_count` distinct candidates of the current population,
        preferring ones at least `min_distance` apart.
        """
        cfg = self.config
        if min_distance is None:
            min_distance = cfg.pick // 2
        limit = min(games_count, math.comb(cfg.pool_size, cfg.pick))
        if limit < games_count:
            log.warning(f"Only {limit} distinct sets exist for {cfg.pick}/{cfg.pool_size}")

        unique: list[Candidate] = []
        seen: set[tuple[int, ...]] = set()
        for cand in self._evaluate_population():
            if cand.numbers not in seen:
                unique.append(cand)
                seen.add(cand.numbers)

        chosen: list[Candidate] = []
        for cand in unique[: limit * 3]:
            if all(hamming_distance(cand.numbers, c.numbers) >= min_distance for c in chosen):
                chosen.append(cand)
            if len(chosen) == limit:
                break

        # Top up when diversity filtering or convergence left gaps
        taken = {c.numbers for c in chosen}
        for cand in unique:
            if len(chosen) >= limit:
                break
            if cand.numbers not in taken:
                chosen.append(cand)
                taken.add(cand.numbers)

        while len(chosen) < limit:
            seed = chosen[self.rng.randrange(len(chosen))].numbers if chosen else self._random_chromosome()
            neighbour = self._mutate(seed)
            if neighbour not in taken:
                taken.add(neighbour)
                chosen.append(self.evaluate(neighbour))

        chosen.sort(key=lambda c: (-c.score, c.numbers))
        return chosen[:limit]

    def run(self, games_count: int, min_distance: int | None = None) -> list[Candidate]:
        if games_count <= 0:
            raise ConfigurationError(f"games_count must be positive, got {games_count}")
        cfg = self.config
        log.info(
            f"GA start: pool={cfg.pool_size} pick={cfg.pick} "
            f"population={cfg.population_size} generations={cfg.generations}"
        )
        self.initialize()
        for _ in range(cfg.generations):
            self.run_generation()
        result = self.best(games_count, min_distance)
        log.info(f"GA done: {len(result)} candidates, {self.repairs} structural repairs")
        return result


def generate_candidates(
    config: GAConfig,
    games_count: int,
    scores: Mapping[int, float] | Sequence[NumberScore] | None = None,
    correlation_map: CorrelationMap | None = None,
    min_distance: int | None = None,
) -> list[Candidate]:
    optimizer = GeneticOptimizer(config, scores=scores, correlation_map=correlation_map)
    return optimizer.run(games_count, min_distance)
