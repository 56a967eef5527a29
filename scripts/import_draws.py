"""Fetch EuroJackpot results by draw date and store them in the database.

Usage:
  python scripts/import_draws.py --skip-existing
  python scripts/import_draws.py --start 2024-01-01 --end 2024-06-30 --delay-ms 250
"""

from __future__ import annotations

import argparse
import logging
import os
import pathlib
import sys
import time
from collections.abc import Sequence
from datetime import date, datetime

from dotenv import load_dotenv
from sqlalchemy.orm import sessionmaker
from tqdm import tqdm

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from eurojackpot.clients.lotto_api import LottoClient, build_http_session, draw_dates  # noqa: E402
from eurojackpot.config import resolve_database_url  # noqa: E402
from eurojackpot.db import create_app_engine  # noqa: E402
from eurojackpot.domain import parse_date  # noqa: E402
from eurojackpot.errors import UpstreamError  # noqa: E402
from eurojackpot.models.base import Base  # noqa: E402
from eurojackpot.repositories.draw_repository import DrawRepository  # noqa: E402
from eurojackpot.services.draw_history_service import invalidate_history_cache  # noqa: E402

logger = logging.getLogger(__name__)


def _load_env() -> None:
    load_dotenv()
    env_local = PROJECT_ROOT / ".env.local"
    if env_local.exists():
        load_dotenv(dotenv_path=env_local, override=True)


def _arg_date(value: str) -> date:
    try:
        return parse_date(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid date: {value}") from exc


def main(argv: Sequence[str] | None = None) -> int:
    """Import draws into the database."""

    _load_env()

    parser = argparse.ArgumentParser(description="Fetch EuroJackpot draws and insert them into the DB")
    parser.add_argument(
        "--start",
        type=_arg_date,
        default=os.getenv("DRAW_HISTORY_START", "2017-01-03"),
        help="First draw date (default: DRAW_HISTORY_START)",
    )
    parser.add_argument("--end", type=_arg_date, default=None, help="Last draw date (default: today)")
    parser.add_argument("--skip-existing", action="store_true", help="Skip dates already stored")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop & recreate tables before importing (DANGEROUS)",
    )
    parser.add_argument(
        "--delay-ms",
        dest="delay_ms",
        type=int,
        default=int(os.getenv("REQUEST_DELAY_MS", "500")),
        help="Pause between requests",
    )
    parser.add_argument("--timeout", dest="timeout_seconds", type=float, default=10.0)
    parser.add_argument("--retries", dest="retries", type=int, default=3)
    parser.add_argument("--backoff", dest="backoff", type=float, default=0.5)
    parser.add_argument(
        "--database-url",
        dest="database_url",
        type=str,
        default=None,
        help="Override DB connection string (e.g. sqlite:///./eurojackpot.db)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    start = args.start if isinstance(args.start, date) else _arg_date(str(args.start))
    results_hour = int(os.getenv("RESULTS_AVAILABLE_HOUR", "23"))
    dates = draw_dates(start, datetime.now(), results_hour=results_hour)
    if args.end is not None:
        dates = [d for d in dates if d <= args.end]
    if not dates:
        logger.info("No draw dates in range")
        return 0

    database_url = str(args.database_url) if args.database_url else resolve_database_url()
    engine = create_app_engine(database_url)
    if args.reset:
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    client = LottoClient(
        base_url=os.getenv("LOTTO_API_BASE_URL", "https://developers.lotto.pl/api/open/v1"),
        api_key=os.getenv("LOTTO_API_KEY", ""),
        game_type=os.getenv("LOTTO_GAME_TYPE", "EuroJackpot"),
        timeout_seconds=float(args.timeout_seconds),
        http=build_http_session(retries=args.retries, backoff_factor=args.backoff),
    )
    repo = DrawRepository()

    imported = 0
    skipped = 0
    missing = 0
    incomplete = 0
    failed = 0
    with session_factory() as db:
        existing = repo.existing_dates(db) if args.skip_existing else set()
        logger.info("Import range: %s..%s (%s dates)", dates[0], dates[-1], len(dates))

        for day in tqdm(dates, desc="Importing"):
            if day in existing:
                skipped += 1
                continue

            try:
                draw = client.fetch_draw_on(day)
            except UpstreamError as exc:
                logger.error("Failed to fetch %s: %s", day, exc.message)
                failed += 1
                continue
            finally:
                if args.delay_ms > 0:
                    time.sleep(args.delay_ms / 1000)

            if draw is None:
                missing += 1
                continue
            # Not stored, so the next run fetches it again.
            if not draw.is_complete():
                logger.warning("Incomplete results for %s; will retry next run", day)
                incomplete += 1
                continue

            repo.upsert(db, draw)
            db.commit()
            imported += 1

    invalidate_history_cache()
    logger.info(
        "Imported %s draws (skipped %s, no draw %s, incomplete %s, failed %s)",
        imported,
        skipped,
        missing,
        incomplete,
        failed,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
