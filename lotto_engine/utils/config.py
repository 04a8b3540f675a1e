"""
lotto_engine/utils/config.py
Load env vars and per-lottery parameter JSON files.
"""
import json
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from lotto_engine.utils.errors import ConfigurationError

load_dotenv()

ROOT = Path(__file__).parent.parent.parent
CONFIG_DIR = Path(os.getenv("ENGINE_CONFIG_DIR", str(ROOT / "config")))

# ── Engine ────────────────────────────────────────────────────────
CORRELATION_CACHE_TTL: float = float(os.getenv("CORRELATION_CACHE_TTL", "300"))
GA_SEED: int | None = int(os.environ["GA_SEED"]) if os.getenv("GA_SEED") else None

# ── Lottery types ─────────────────────────────────────────────────
LOTTERY_CONFIG_FILES: dict[str, str] = {
    "megasena":  "lottery_params_megasena.json",
    "lotofacil": "lottery_params_lotofacil.json",
    "quina":     "lottery_params_quina.json",
}

LOTTERY_LABELS: dict[str, str] = {
    "megasena":  "Mega-Sena 6/60",
    "lotofacil": "Lotofácil 15/25",
    "quina":     "Quina 5/80",
}

_lottery_config_cache: dict[str, Any] = {}


def get_lottery_config(lottery_id: str) -> dict[str, Any]:
    """Load and cache the parameter JSON for a given lottery."""
    if lottery_id in _lottery_config_cache:
        return _lottery_config_cache[lottery_id]
    filename = LOTTERY_CONFIG_FILES.get(lottery_id)
    if not filename:
        raise ConfigurationError(f"Unknown lottery: {lottery_id}")
    path = CONFIG_DIR / filename
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        config = json.load(f)
    _lottery_config_cache[lottery_id] = config
    return config


def get_number_range(lottery_id: str) -> tuple[int, int]:
    cfg = get_lottery_config(lottery_id)
    lo, hi = cfg["number_range"]
    return lo, hi


def get_pool_size(lottery_id: str) -> int:
    """Numbers are always drawn from [1, pool_size]."""
    return get_number_range(lottery_id)[1]


def get_pick_count(lottery_id: str) -> int:
    """Return how many numbers make up one draw / one game."""
    cfg = get_lottery_config(lottery_id)
    return cfg.get("pick_count", 6)


def get_ga_params(lottery_id: str) -> dict[str, Any]:
    cfg = get_lottery_config(lottery_id)
    params = dict(cfg.get("genetic", {}))
    if GA_SEED is not None:
        params.setdefault("seed", GA_SEED)
    return params


def get_scoring_params(lottery_id: str) -> dict[str, Any]:
    cfg = get_lottery_config(lottery_id)
    return cfg.get("scoring", {})


def get_correlation_threshold(lottery_id: str) -> float:
    cfg = get_lottery_config(lottery_id)
    return float(cfg.get("correlation", {}).get("threshold", 0.05))


def get_temperature_k(lottery_id: str) -> float:
    cfg = get_lottery_config(lottery_id)
    return float(cfg.get("temperature", {}).get("k", 0.8))


def get_backtest_params(lottery_id: str) -> dict[str, Any]:
    cfg = get_lottery_config(lottery_id)
    return cfg.get("backtest", {})


def get_paytable(lottery_id: str) -> dict[int, float]:
    """Return {match_count: payoff}. JSON keys are strings, so convert."""
    raw = get_backtest_params(lottery_id).get("paytable", {})
    return {int(k): float(v) for k, v in raw.items()}
