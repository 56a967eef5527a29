"""Loading the draw history (newest first) from the configured source."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from threading import Lock
from typing import Any

from sqlalchemy.orm import Session

from eurojackpot.domain import Draw, load_draws_json
from eurojackpot.errors import ValidationError
from eurojackpot.repositories.draw_repository import DrawRepository

logger = logging.getLogger(__name__)

DRAW_SOURCES = ("db", "json")


class _HistoryCache:
    """Memoised history, reloaded when the source fingerprint changes.

    The fingerprint is cheap to compute (row count + newest date for the
    database, mtime for the JSON file), so draws imported by another
    process are picked up on the next request.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._key: tuple[Any, ...] | None = None
        self._draws: list[Draw] = []

    def get(self, key: tuple[Any, ...]) -> list[Draw] | None:
        with self._lock:
            if self._key == key:
                return self._draws
            return None

    def put(self, key: tuple[Any, ...], draws: list[Draw]) -> None:
        with self._lock:
            self._key = key
            self._draws = draws

    def invalidate(self) -> None:
        with self._lock:
            self._key = None
            self._draws = []


_CACHE = _HistoryCache()


def _require_session(session: Session | None) -> Session:
    if session is None:
        raise RuntimeError("A database session is required for the db draw source")
    return session


def invalidate_history_cache() -> None:
    _CACHE.invalidate()


class DrawHistoryService:
    """Read the draw history from the database or the bundled JSON file."""

    def __init__(self, source: str = "db", json_path: str = "eurojackpot_draws.json") -> None:
        source = (source or "db").lower().strip()
        if source not in DRAW_SOURCES:
            raise ValueError(f"Unknown draw source: {source}")
        self.source = source
        self.json_path = json_path
        self._repo = DrawRepository()

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "DrawHistoryService":
        return cls(
            source=str(config.get("DRAW_SOURCE") or "db"),
            json_path=str(config.get("DRAWS_JSON_PATH") or "eurojackpot_draws.json"),
        )

    def _fingerprint(self, session: Session | None) -> tuple[Any, ...]:
        if self.source == "json":
            path = Path(self.json_path)
            if not path.exists():
                raise ValidationError(
                    message="Draw history file not found",
                    details={"draws_json_path": [str(path)]},
                )
            return ("json", str(path.resolve()), path.stat().st_mtime_ns)

        db = _require_session(session)
        latest = self._repo.get_latest(db)
        return ("db", self._repo.count(db), latest.draw_date if latest else None)

    def get_history(self, session: Session | None = None) -> list[Draw]:
        """All known draws, newest first."""

        key = self._fingerprint(session)
        cached = _CACHE.get(key)
        if cached is not None:
            return cached

        if self.source == "json":
            draws = load_draws_json(self.json_path)
        else:
            draws = [d for d in self._repo.list_all(_require_session(session)) if d.is_complete()]

        logger.info("Loaded %s draws from %s", len(draws), self.source)
        _CACHE.put(key, draws)
        return draws

    def get_recent(self, session: Session | None, limit: int) -> list[Draw]:
        return self.get_history(session)[:limit]
