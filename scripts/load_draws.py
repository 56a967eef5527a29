"""Load the JSON draws file into the database.

Usage:
  python scripts/load_draws.py --input eurojackpot_draws.json [--reset]
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

from eurojackpot.config import resolve_database_url  # noqa: E402
from eurojackpot.db import create_app_engine  # noqa: E402
from eurojackpot.domain import load_draws_json  # noqa: E402
from eurojackpot.models.base import Base  # noqa: E402
from eurojackpot.repositories.draw_repository import DrawRepository  # noqa: E402
from eurojackpot.services.draw_history_service import invalidate_history_cache  # noqa: E402

logger = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    env_local = PROJECT_ROOT / ".env.local"
    if env_local.exists():
        load_dotenv(dotenv_path=env_local, override=True)

    parser = argparse.ArgumentParser(description="Upsert draws from a JSON file into the DB")
    parser.add_argument("--input", type=str, default=os.getenv("DRAWS_JSON_PATH", "eurojackpot_draws.json"))
    parser.add_argument("--database-url", dest="database_url", type=str, default=None)
    parser.add_argument("--reset", action="store_true", help="Delete stored draws before loading")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    draws = load_draws_json(args.input)

    engine = create_app_engine(str(args.database_url) if args.database_url else resolve_database_url())
    Base.metadata.create_all(bind=engine)
    session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    repo = DrawRepository()

    with session_factory() as db:
        if args.reset:
            repo.delete_all(db)
        for draw in tqdm(draws, desc="Loading"):
            repo.upsert(db, draw)
        db.commit()

    invalidate_history_cache()
    logger.info("Loaded %s draws from %s", len(draws), args.input)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
