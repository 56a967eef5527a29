"""Core value types for EuroJackpot draws and predictions.

A draw history is always handled newest first (index 0 is the latest draw).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from eurojackpot.errors import ValidationError

logger = logging.getLogger(__name__)

MAIN_COUNT = 5
BONUS_COUNT = 2
MAIN_MAX = 50
BONUS_MAX = 12
MAIN_POOL = range(1, MAIN_MAX + 1)
BONUS_POOL = range(1, BONUS_MAX + 1)


def parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    # Upstream sends full timestamps ("2024-05-10T20:00:00Z"), the JSON file plain dates.
    return date.fromisoformat(text[:10])


def _int_list(value: Any) -> tuple[int, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    out: list[int] = []
    for item in value:
        try:
            out.append(int(item))
        except (TypeError, ValueError):
            continue
    return tuple(out)


def _valid_set(numbers: Sequence[int], count: int, upper: int) -> bool:
    return len(numbers) == count and len(set(numbers)) == count and all(1 <= n <= upper for n in numbers)


@dataclass(frozen=True)
class Draw:
    """One historical draw."""

    draw_date: date
    main_numbers: tuple[int, ...]
    bonus_numbers: tuple[int, ...]
    draw_system_id: int | None = None

    def is_complete(self) -> bool:
        return _valid_set(self.main_numbers, MAIN_COUNT, MAIN_MAX) and _valid_set(
            self.bonus_numbers, BONUS_COUNT, BONUS_MAX
        )

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Draw":
        """Build a draw from the JSON file format (camelCase or snake_case keys)."""

        raw_date = payload.get("drawDate", payload.get("draw_date"))
        if raw_date is None:
            raise ValidationError(message="Invalid draw", details={"drawDate": ["Missing draw date"]})
        try:
            draw_date = parse_date(raw_date)
        except ValueError as exc:
            raise ValidationError(message="Invalid draw", details={"drawDate": [str(exc)]}) from exc

        raw_id = payload.get("drawSystemId", payload.get("draw_system_id"))
        try:
            draw_system_id = int(raw_id) if raw_id is not None else None
        except (TypeError, ValueError):
            draw_system_id = None

        return cls(
            draw_date=draw_date,
            main_numbers=_int_list(payload.get("numbers", payload.get("main_numbers"))),
            bonus_numbers=_int_list(payload.get("euroNumbers", payload.get("bonus_numbers"))),
            draw_system_id=draw_system_id,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "drawDate": self.draw_date.isoformat(),
            "drawSystemId": self.draw_system_id,
            "numbers": list(self.main_numbers),
            "euroNumbers": list(self.bonus_numbers),
        }


@dataclass(frozen=True)
class ScoredCandidate:
    number: int
    score: float


@dataclass(frozen=True)
class Prediction:
    """Predicted numbers in rank order (best candidate first)."""

    main_numbers: tuple[int, ...]
    bonus_numbers: tuple[int, ...]
    meta: dict[str, Any] = field(default_factory=dict, compare=False)

    def sorted_main(self) -> list[int]:
        return sorted(self.main_numbers)

    def sorted_bonus(self) -> list[int]:
        return sorted(self.bonus_numbers)

    def to_dict(self) -> dict[str, Any]:
        return {
            "main_numbers": list(self.main_numbers),
            "bonus_numbers": list(self.bonus_numbers),
            "sorted_main_numbers": self.sorted_main(),
            "sorted_bonus_numbers": self.sorted_bonus(),
        }


def validate_numbers(main: Sequence[int], bonus: Sequence[int], *, partial: bool = False) -> None:
    """Validate a (possibly partial) set of main and bonus numbers.

    Raises:
        ValidationError: with per-field details.
    """

    errors: dict[str, list[str]] = {}

    def _check(name: str, numbers: Sequence[int], count: int, upper: int) -> None:
        problems: list[str] = []
        if partial:
            if len(numbers) > count:
                problems.append(f"At most {count} numbers allowed")
        elif len(numbers) != count:
            problems.append(f"Exactly {count} numbers required")
        if len(set(numbers)) != len(numbers):
            problems.append("Numbers must be unique")
        if any(n < 1 or n > upper for n in numbers):
            problems.append(f"All numbers must be within 1..{upper}")
        if problems:
            errors[name] = problems

    _check("main_numbers", list(main), MAIN_COUNT, MAIN_MAX)
    _check("bonus_numbers", list(bonus), BONUS_COUNT, BONUS_MAX)

    if errors:
        raise ValidationError(message="Invalid numbers", details=errors)


def sort_and_deduplicate(draws: Iterable[Draw]) -> list[Draw]:
    """Drop duplicate draws (by system id, else by date) and sort newest first."""

    seen: set[tuple[str, Any]] = set()
    unique: list[Draw] = []
    for draw in draws:
        key = ("id", draw.draw_system_id) if draw.draw_system_id is not None else ("date", draw.draw_date)
        if key in seen:
            continue
        seen.add(key)
        unique.append(draw)

    unique.sort(key=lambda d: d.draw_date, reverse=True)
    return unique


def require_history(draws: Sequence[Draw], minimum: int) -> None:
    if len(draws) < minimum:
        raise ValidationError(
            message="Not enough draw history",
            details={"history": [f"Input array too short: need at least {minimum} draws, got {len(draws)}"]},
        )


def load_draws_json(path: str | Path) -> list[Draw]:
    """Read the bundled draws file. Incomplete draws are skipped."""

    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    items = raw.get("draws", []) if isinstance(raw, dict) else raw

    draws: list[Draw] = []
    skipped = 0
    for item in items or []:
        if not isinstance(item, dict):
            skipped += 1
            continue
        try:
            draw = Draw.from_dict(item)
        except ValidationError:
            skipped += 1
            continue
        if not draw.is_complete():
            skipped += 1
            continue
        draws.append(draw)

    if skipped:
        logger.warning("Skipped %s incomplete draws from %s", skipped, path)

    return sort_and_deduplicate(draws)


def dump_draws_json(draws: Iterable[Draw], path: str | Path) -> int:
    items = [d.to_dict() for d in sort_and_deduplicate(draws)]
    Path(path).write_text(json.dumps(items, indent=2) + "\n", encoding="utf-8")
    return len(items)
