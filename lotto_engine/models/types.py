"""
lotto_engine/models/types.py
Entities shared by every engine component, plus the tagged analysis payloads
handed back to the host.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Literal, Union


# ── Draws ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Draw:
    contest_number: int
    draw_date: date
    numbers: frozenset[int]

    @property
    def sorted_numbers(self) -> list[int]:
        return sorted(self.numbers)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Draw":
        """Build a Draw from a host record (camelCase or snake_case keys)."""
        contest = record.get("contestNumber", record.get("contest_number"))
        raw_date = record.get("date", record.get("drawDate", record.get("draw_date")))
        numbers = record.get("drawnNumbers", record.get("numbers"))
        if contest is None or raw_date is None or numbers is None:
            raise ValueError(f"Incomplete draw record: {record}")
        if isinstance(raw_date, str):
            raw_date = date.fromisoformat(raw_date[:10])
        elif isinstance(raw_date, datetime):
            raw_date = raw_date.date()
        return cls(contest_number=int(contest), draw_date=raw_date, numbers=frozenset(int(n) for n in numbers))


def validate_draw(draw: Draw, pool_size: int, pick: int) -> bool:
    """True if the draw has exactly `pick` numbers, all within [1, pool_size]."""
    return len(draw.numbers) == pick and all(1 <= n <= pool_size for n in draw.numbers)


def is_valid_set(numbers, pool_size: int, pick: int) -> bool:
    nums = list(numbers)
    return len(nums) == pick and len(set(nums)) == pick and all(1 <= n <= pool_size for n in nums)


# ── Frequencies ───────────────────────────────────────────────────

class Temperature(str, Enum):
    HOT = "hot"
    WARM = "warm"
    COLD = "cold"


@dataclass(frozen=True)
class NumberFrequency:
    number: int
    frequency: int
    temperature: Temperature


# ── Correlation ───────────────────────────────────────────────────

@dataclass(frozen=True)
class CorrelationEntry:
    number_a: int
    number_b: int
    correlation: float


def pair_key(a: int, b: int) -> tuple[int, int]:
    return (a, b) if a < b else (b, a)


class CorrelationMap:
    """
    Sparse, symmetric pair -> correlation map.
    Only pairs above the significance threshold are stored; everything else
    reads as 0.0.
    """

    def __init__(self, pool_size: int, threshold: float, values: dict[tuple[int, int], float] | None = None):
        self.pool_size = pool_size
        self.threshold = threshold
        self._values: dict[tuple[int, int], float] = dict(values or {})

    def lookup(self, a: int, b: int) -> float:
        if a == b:
            return 0.0
        return self._values.get(pair_key(a, b), 0.0)

    def partners(self, number: int) -> dict[int, float]:
        """All retained correlations involving `number`."""
        out: dict[int, float] = {}
        for (a, b), value in self._values.items():
            if a == number:
                out[b] = value
            elif b == number:
                out[a] = value
        return out

    def entries(self) -> list[CorrelationEntry]:
        return [CorrelationEntry(a, b, v) for (a, b), v in sorted(self._values.items())]

    def as_dict(self) -> dict[tuple[int, int], float]:
        return dict(self._values)

    def __contains__(self, pair: tuple[int, int]) -> bool:
        return pair_key(*pair) in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CorrelationMap):
            return NotImplemented
        return self.pool_size == other.pool_size and self._values == other._values

    def __repr__(self) -> str:
        return f"CorrelationMap(pool_size={self.pool_size}, pairs={len(self._values)})"


# ── Scores ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScoreComponents:
    frequency: float
    temporal: float
    correlation: float


@dataclass(frozen=True)
class TemporalProfile:
    short_term: float
    medium_term: float
    long_term: float


@dataclass(frozen=True)
class NumberScore:
    number: int
    components: ScoreComponents
    total_score: float
    confidence: float = 1.0
    recommendation: Literal["strong", "moderate", "weak"] = "weak"
    sufficient_data: bool = True


# ── GA output ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class Candidate:
    numbers: tuple[int, ...]
    score: float
    metrics: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"numbers": list(self.numbers), "score": self.score, "metrics": dict(self.metrics)}


# ── Backtest output ───────────────────────────────────────────────

@dataclass(frozen=True)
class TrialDetail:
    contest_number: int
    predicted: tuple[int, ...]
    actual: tuple[int, ...]
    matches: int
    payoff: float
    cost: float
    net: float
    cumulative: float
    error: str | None = None
    draw_date: date | None = None


@dataclass
class BacktestResult:
    strategy_name: str
    total_tests: int
    successful_predictions: int
    average_accuracy: float
    profitability: float
    max_drawdown: float
    sharpe_ratio: float
    per_trial_detail: list[TrialDetail] = field(default_factory=list)
    error_count: int = 0
    win_rate: float = 0.0
    expected_value: float = 0.0
    total_payoff: float = 0.0
    total_cost: float = 0.0
    confidence: float = 0.0
    profit_factor: float = 0.0
    period_start: date | None = None
    period_end: date | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LeakageReport:
    has_leakage: bool
    leakage_rate: float
    details: list[str]


# ── Analysis payloads (tagged union) ──────────────────────────────

@dataclass(frozen=True)
class FrequencyAnalysis:
    frequencies: list[NumberFrequency]
    hot: list[int]
    cold: list[int]
    overdue: list[int]
    kind: Literal["frequency"] = "frequency"


@dataclass(frozen=True)
class CorrelationAnalysis:
    pairs: list[CorrelationEntry]
    window_size: int
    kind: Literal["correlation"] = "correlation"


@dataclass(frozen=True)
class ScoringAnalysis:
    scores: list[NumberScore]
    weights: dict[str, float]
    kind: Literal["scoring"] = "scoring"


@dataclass(frozen=True)
class GeneticAnalysis:
    candidates: list[Candidate]
    generations: int
    population_size: int
    repairs: int
    kind: Literal["genetic"] = "genetic"


@dataclass(frozen=True)
class BacktestAnalysis:
    result: BacktestResult
    leakage: LeakageReport
    kind: Literal["backtest"] = "backtest"


AnalysisResult = Union[FrequencyAnalysis, CorrelationAnalysis, ScoringAnalysis, GeneticAnalysis, BacktestAnalysis]


def analysis_to_dict(analysis: AnalysisResult) -> dict[str, Any]:
    """Serialize any analysis payload; enum members collapse to their value."""
    def _clean(value: Any) -> Any:
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, dict):
            return {str(k): _clean(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [_clean(v) for v in value]
        if isinstance(value, date):
            return value.isoformat()
        return value

    return _clean(asdict(analysis))
