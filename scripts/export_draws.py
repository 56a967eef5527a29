"""Export stored draws to the JSON draws file.

Usage:
  python scripts/export_draws.py --output eurojackpot_draws.json
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

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from eurojackpot.config import resolve_database_url  # noqa: E402
from eurojackpot.db import create_app_engine  # noqa: E402
from eurojackpot.domain import dump_draws_json  # noqa: E402
from eurojackpot.models.base import Base  # noqa: E402
from eurojackpot.repositories.draw_repository import DrawRepository  # noqa: E402

logger = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    env_local = PROJECT_ROOT / ".env.local"
    if env_local.exists():
        load_dotenv(dotenv_path=env_local, override=True)

    parser = argparse.ArgumentParser(description="Write stored draws to a JSON file")
    parser.add_argument("--output", type=str, default=os.getenv("DRAWS_JSON_PATH", "eurojackpot_draws.json"))
    parser.add_argument("--database-url", dest="database_url", type=str, default=None)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    engine = create_app_engine(str(args.database_url) if args.database_url else resolve_database_url())
    Base.metadata.create_all(bind=engine)
    session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    with session_factory() as db:
        draws = [d for d in DrawRepository().list_all(db) if d.is_complete()]

    written = dump_draws_json(draws, args.output)
    logger.info("Wrote %s draws to %s", written, args.output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
