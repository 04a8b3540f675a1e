"""
scripts/run_engine.py
Run candidate generation or a backtest over a pre-loaded draw history.

The history file is JSONL, one draw per line:
  {"contestNumber": 2701, "date": "2024-04-20", "drawnNumbers": [4, 11, 23, 36, 41, 58]}
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from lotto_engine.models.types import Draw, analysis_to_dict
from lotto_engine.pipeline.engine import STRATEGY_NAMES, backtest_lottery, recommend
from lotto_engine.utils.cache import CorrelationCache
from lotto_engine.utils.config import CORRELATION_CACHE_TTL, LOTTERY_CONFIG_FILES
from lotto_engine.utils.logger import get_logger

log = get_logger("run_engine")


def load_draws(path: Path) -> list[Draw]:
    draws: list[Draw] = []
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                draws.append(Draw.from_record(json.loads(line)))
            except (ValueError, TypeError) as exc:
                log.error(f"{path}:{line_no}: skipped ({exc})")
    log.info(f"Loaded {len(draws)} draws from {path}")
    return draws


def cmd_generate(args: argparse.Namespace) -> dict:
    draws = load_draws(Path(args.draws))
    overrides = {}
    if args.population:
        overrides["population_size"] = args.population
    if args.generations:
        overrides["generations"] = args.generations
    result = recommend(
        args.lottery, draws,
        games_count=args.games,
        cache=CorrelationCache(ttl_seconds=CORRELATION_CACHE_TTL),
        seed=args.seed,
        ga_overrides=overrides,
    )
    return {
        "lottery_id": result["lottery_id"],
        "draws_used": result["draws_used"],
        "candidates": [c.to_dict() for c in result["candidates"]],
    }


def cmd_backtest(args: argparse.Namespace) -> dict:
    draws = load_draws(Path(args.draws))
    overrides = {}
    if args.window:
        overrides["window"] = args.window
    if args.fail_fast:
        overrides["fail_fast"] = True
    analysis = backtest_lottery(args.lottery, draws, strategy=args.strategy, seed=args.seed, **overrides)
    payload = analysis_to_dict(analysis)
    if not args.details:
        payload["result"].pop("per_trial_detail", None)
    return payload


def main():
    parser = argparse.ArgumentParser(description="Lottery statistics engine")
    parser.add_argument("--lottery", choices=sorted(LOTTERY_CONFIG_FILES), required=True)
    parser.add_argument("--draws", required=True, help="JSONL file with historical draws")
    parser.add_argument("--seed", type=int, default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate candidate games with the genetic optimizer")
    gen.add_argument("--games", type=int, default=5)
    gen.add_argument("--population", type=int, default=None)
    gen.add_argument("--generations", type=int, default=None)
    gen.set_defaults(func=cmd_generate)

    bt = sub.add_parser("backtest", help="Replay a strategy over the history")
    bt.add_argument("--strategy", choices=STRATEGY_NAMES, default="hybrid")
    bt.add_argument("--window", type=int, default=None, help="Trailing draws visible to the strategy")
    bt.add_argument("--fail-fast", action="store_true")
    bt.add_argument("--details", action="store_true", help="Include per-trial detail")
    bt.set_defaults(func=cmd_backtest)

    args = parser.parse_args()
    output = args.func(args)
    print(json.dumps(output, indent=2, ensure_ascii=False, default=str))


if __name__ == "__main__":
    main()
