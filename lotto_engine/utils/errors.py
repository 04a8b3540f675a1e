"""
lotto_engine/utils/errors.py
Error taxonomy. Only configuration problems reach the caller; data sparsity
and mid-run irregularities are absorbed with neutral fallbacks.
"""
from __future__ import annotations


class EngineError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(EngineError, ValueError):
    """Invalid GA / backtest / lottery parameters. Raised before any computation."""


class StrategyExecutionError(EngineError):
    """A backtest strategy failed on a trial while fail-fast mode was requested."""

    def __init__(self, contest_number: int, cause: BaseException):
        super().__init__(f"Strategy failed predicting contest {contest_number}: {cause}")
        self.contest_number = contest_number
        self.cause = cause


class InsufficientDataWarning(UserWarning):
    """Too few draws for a meaningful signal. Logged, never raised."""
