"""Backtest prediction algorithms on the stored draw history.

Usage:
  python scripts/backtest.py --source json --test-size 100
  python scripts/backtest.py --algorithms hybrid markov --seed 42
"""

from __future__ import annotations

import argparse
import logging
import os
import pathlib
import sys
from collections.abc import Sequence

from dotenv import load_dotenv
from sqlalchemy.orm import sessionmaker
from tqdm import tqdm

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from eurojackpot.algorithms import ADAPTIVE_ALGORITHMS, CLASSIC_ALGORITHMS, get_algorithm  # noqa: E402
from eurojackpot.config import resolve_database_url  # noqa: E402
from eurojackpot.db import create_app_engine  # noqa: E402
from eurojackpot.domain import Draw, load_draws_json  # noqa: E402
from eurojackpot.errors import AppError  # noqa: E402
from eurojackpot.repositories.draw_repository import DrawRepository  # noqa: E402
from eurojackpot.services.backtest_service import AlgorithmPerformance, backtest_algorithm  # noqa: E402

logger = logging.getLogger(__name__)

_GROUPS = {"adaptive": ADAPTIVE_ALGORITHMS, "classic": CLASSIC_ALGORITHMS}


def _load_history(source: str, json_path: str, database_url: str | None) -> list[Draw]:
    if source == "json":
        return load_draws_json(json_path)

    engine = create_app_engine(database_url or resolve_database_url())
    session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    with session_factory() as db:
        return [d for d in DrawRepository().list_all(db) if d.is_complete()]


def _print_table(results: list[AlgorithmPerformance]) -> None:
    header = f"{'algorithm':<22} {'tests':>5} {'avg main':>8} {'avg euro':>8} {'avg score':>9} {'5':>3} {'4':>3} {'3':>3} {'2e':>3}"
    print(header)
    print("-" * len(header))
    for r in results:
        print(
            f"{r.name:<22} {r.total_tests:>5} {r.avg_main_matches:>8.3f} {r.avg_bonus_matches:>8.3f} "
            f"{r.avg_score:>9.2f} {r.main_match_5:>3} {r.main_match_4:>3} {r.main_match_3:>3} {r.bonus_match_2:>3}"
        )


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    env_local = PROJECT_ROOT / ".env.local"
    if env_local.exists():
        load_dotenv(dotenv_path=env_local, override=True)

    parser = argparse.ArgumentParser(description="Walk-forward backtest of prediction algorithms")
    parser.add_argument("--algorithms", nargs="*", default=None, help="Algorithm names (default: --group)")
    parser.add_argument("--group", choices=sorted(_GROUPS), default="adaptive")
    parser.add_argument("--test-size", dest="test_size", type=int, default=100)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--source", choices=("db", "json"), default=os.getenv("DRAW_SOURCE", "db"))
    parser.add_argument("--json-path", dest="json_path", default=os.getenv("DRAWS_JSON_PATH", "eurojackpot_draws.json"))
    parser.add_argument("--database-url", dest="database_url", type=str, default=None)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    names = list(args.algorithms or _GROUPS[args.group])
    try:
        for name in names:
            get_algorithm(name)
    except AppError as exc:
        raise SystemExit(exc.message) from exc

    history = _load_history(args.source, args.json_path, args.database_url)
    logger.info("Backtesting %s algorithms on %s draws", len(names), len(history))

    results: list[AlgorithmPerformance] = []
    try:
        for name in tqdm(names, desc="Backtesting"):
            results.append(backtest_algorithm(history, name, test_size=args.test_size, seed=args.seed))
    except AppError as exc:
        raise SystemExit(f"{exc.message}: {exc.details}") from exc

    results.sort(key=lambda r: (-r.avg_score, r.name))
    _print_table(results)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
