"""Repository layer for EuroJackpot draw persistence."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from eurojackpot.domain import Draw
from eurojackpot.models.draw_result import DrawResult


class DrawRepository:
    """Read/write operations for stored draws."""

    def list_all(self, session: Session) -> list[Draw]:
        """All stored draws, newest first."""

        stmt = select(DrawResult).order_by(DrawResult.draw_date.desc())
        return [row.to_draw() for row in session.scalars(stmt).all()]

    def list_recent(self, session: Session, limit: int) -> list[Draw]:
        stmt = select(DrawResult).order_by(DrawResult.draw_date.desc()).limit(limit)
        return [row.to_draw() for row in session.scalars(stmt).all()]

    def get_latest(self, session: Session) -> Draw | None:
        rows = self.list_recent(session, 1)
        return rows[0] if rows else None

    def count(self, session: Session) -> int:
        return int(session.scalar(select(func.count()).select_from(DrawResult)) or 0)

    def existing_dates(self, session: Session) -> set[date]:
        return set(session.scalars(select(DrawResult.draw_date)).all())

    def upsert(self, session: Session, draw: Draw) -> DrawResult:
        """Insert or replace the row for ``draw.draw_date``."""

        return session.merge(DrawResult.from_draw(draw))

    def upsert_many(self, session: Session, draws: Iterable[Draw]) -> int:
        count = 0
        for draw in draws:
            self.upsert(session, draw)
            count += 1
        return count

    def delete_all(self, session: Session) -> None:
        session.execute(delete(DrawResult))
