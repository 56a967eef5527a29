"""ORM models."""

from eurojackpot.models.draw_result import DrawResult

__all__ = ["DrawResult"]
