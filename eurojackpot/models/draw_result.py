"""EuroJackpot results stored in one wide table.

Columns:
- draw_date (PK)
- draw_system_id (unique, nullable)
- number1..number5
- euro1..euro2
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Date, Integer, SmallInteger
from sqlalchemy.orm import Mapped, mapped_column

from eurojackpot.domain import Draw
from eurojackpot.models.base import Base


class DrawResult(Base):
    """One row per draw with 5 main numbers + 2 euro numbers."""

    __tablename__ = "eurojackpot_draws"

    draw_date: Mapped[date] = mapped_column(Date, primary_key=True)
    draw_system_id: Mapped[int | None] = mapped_column(Integer, unique=True, nullable=True)

    number1: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    number2: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    number3: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    number4: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    number5: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    euro1: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    euro2: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    @classmethod
    def from_draw(cls, draw: Draw) -> "DrawResult":
        main = sorted(draw.main_numbers)
        bonus = sorted(draw.bonus_numbers)
        return cls(
            draw_date=draw.draw_date,
            draw_system_id=draw.draw_system_id,
            number1=main[0],
            number2=main[1],
            number3=main[2],
            number4=main[3],
            number5=main[4],
            euro1=bonus[0],
            euro2=bonus[1],
        )

    def to_draw(self) -> Draw:
        return Draw(
            draw_date=self.draw_date,
            main_numbers=(
                int(self.number1),
                int(self.number2),
                int(self.number3),
                int(self.number4),
                int(self.number5),
            ),
            bonus_numbers=(int(self.euro1), int(self.euro2)),
            draw_system_id=self.draw_system_id,
        )
