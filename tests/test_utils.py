"""tests/test_utils.py"""
from datetime import date, timedelta
from unittest.mock import patch

import pytest

from lotto_engine.models.types import CorrelationMap, Draw
from lotto_engine.utils import config
from lotto_engine.utils.cache import CorrelationCache, fingerprint
from lotto_engine.utils.errors import ConfigurationError, EngineError, StrategyExecutionError
from lotto_engine.utils.logger import get_logger


def _draws(sets, first_contest=1):
    return [
        Draw(first_contest + i, date(2024, 1, 1) + timedelta(days=i), frozenset(s))
        for i, s in enumerate(sets)
    ]


DRAWS = _draws([[1, 2, 3], [2, 3, 4]])


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestCorrelationCache:
    def setup_method(self):
        self.clock = FakeClock()
        self.cache = CorrelationCache(ttl_seconds=60, clock=self.clock)
        self.cmap = CorrelationMap(pool_size=5, threshold=0.05, values={(2, 3): 1.0})

    def test_miss_then_hit(self):
        assert self.cache.get("megasena", 300, DRAWS) is None
        self.cache.put("megasena", 300, DRAWS, self.cmap)
        assert self.cache.get("megasena", 300, DRAWS) is self.cmap
        assert self.cache.stats() == {"size": 1, "hits": 1, "misses": 1}

    def test_expires_after_ttl(self):
        self.cache.put("megasena", 300, DRAWS, self.cmap)
        self.clock.now = 59
        assert self.cache.get("megasena", 300, DRAWS) is self.cmap
        self.clock.now = 61
        assert self.cache.get("megasena", 300, DRAWS) is None
        assert len(self.cache) == 0

    def test_key_includes_window(self):
        self.cache.put("megasena", 300, DRAWS, self.cmap)
        assert self.cache.get("megasena", 100, DRAWS) is None
        assert self.cache.get("quina", 300, DRAWS) is None

    def test_different_draws_do_not_hit(self):
        self.cache.put("megasena", 300, DRAWS, self.cmap)
        newer = DRAWS + _draws([[1, 4, 5]], first_contest=3)
        assert self.cache.get("megasena", 300, newer) is None

    def test_get_or_build_calls_builder_once(self):
        calls = []

        def build():
            calls.append(1)
            return self.cmap

        first = self.cache.get_or_build("megasena", 300, DRAWS, build)
        second = self.cache.get_or_build("megasena", 300, DRAWS, build)
        assert first is second is self.cmap
        assert len(calls) == 1

    def test_invalidate(self):
        self.cache.put("megasena", 300, DRAWS, self.cmap)
        self.cache.put("megasena", 100, DRAWS, self.cmap)
        self.cache.put("quina", 300, DRAWS, self.cmap)
        assert self.cache.invalidate("megasena") == 2
        assert len(self.cache) == 1
        assert self.cache.invalidate() == 1

    def test_put_purges_expired(self):
        self.cache.put("megasena", 300, DRAWS, self.cmap)
        self.clock.now = 120
        self.cache.put("quina", 300, DRAWS, self.cmap)
        assert len(self.cache) == 1

    def test_non_positive_ttl_rejected(self):
        with pytest.raises(ValueError):
            CorrelationCache(ttl_seconds=0)

    def test_fingerprint_ignores_number_order(self):
        a = [Draw(1, date(2024, 1, 1), frozenset([3, 1, 2]))]
        b = [Draw(1, date(2024, 1, 1), frozenset([1, 2, 3]))]
        assert fingerprint(a) == fingerprint(b)
        assert fingerprint(a) != fingerprint(DRAWS)


class TestConfig:
    def test_known_lotteries(self):
        assert config.get_pool_size("megasena") == 60
        assert config.get_pick_count("megasena") == 6
        assert config.get_pool_size("lotofacil") == 25
        assert config.get_pick_count("lotofacil") == 15
        assert config.get_pool_size("quina") == 80
        assert config.get_pick_count("quina") == 5

    def test_unknown_lottery(self):
        with pytest.raises(ConfigurationError):
            config.get_lottery_config("powerball")

    def test_configuration_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)
        assert issubclass(ConfigurationError, EngineError)

    def test_paytable_keys_are_ints(self):
        table = config.get_paytable("megasena")
        assert set(table) == {4, 5, 6}
        assert all(isinstance(v, float) for v in table.values())

    def test_scoring_and_correlation_params(self):
        assert config.get_correlation_threshold("megasena") == pytest.approx(0.05)
        assert config.get_temperature_k("quina") == pytest.approx(0.8)
        scoring = config.get_scoring_params("lotofacil")
        assert sum(scoring["weights"].values()) == pytest.approx(1.0)

    @patch("lotto_engine.utils.config.GA_SEED", 1234)
    def test_ga_seed_from_env(self):
        assert config.get_ga_params("megasena")["seed"] == 1234

    def test_missing_config_file(self, tmp_path):
        with patch.object(config, "CONFIG_DIR", tmp_path), \
             patch.dict(config._lottery_config_cache, clear=True):
            with pytest.raises(ConfigurationError):
                config.get_lottery_config("quina")


class TestErrors:
    def test_strategy_execution_error_keeps_cause(self):
        cause = RuntimeError("boom")
        err = StrategyExecutionError(2701, cause)
        assert err.contest_number == 2701
        assert err.cause is cause
        assert "2701" in str(err)


class TestLogger:
    def test_same_logger_per_name(self, tmp_path):
        with patch.dict("os.environ", {"LOG_DIR": str(tmp_path)}):
            first = get_logger("test.utils")
            second = get_logger("test.utils")
        assert first is second
        assert len(first.handlers) == 2
