"""Check a (partial) ticket against every past draw."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

from eurojackpot.domain import Draw, validate_numbers
from eurojackpot.errors import ValidationError
from eurojackpot.services.combination_analysis_service import OccurrenceTiming, occurrence_timing


@dataclass(frozen=True)
class CombinationMatch:
    draw_date: date
    matched_main: list[int]
    matched_bonus: list[int]
    main_numbers: list[int]
    bonus_numbers: list[int]

    def to_dict(self) -> dict:
        return {
            "draw_date": self.draw_date.isoformat(),
            "main_matches": len(self.matched_main),
            "bonus_matches": len(self.matched_bonus),
            "matched_main": self.matched_main,
            "matched_bonus": self.matched_bonus,
            "main_numbers": self.main_numbers,
            "bonus_numbers": self.bonus_numbers,
        }


@dataclass(frozen=True)
class CombinationCheckResult:
    main_numbers: list[int]
    bonus_numbers: list[int]
    draws_checked: int
    matches: list[CombinationMatch] = field(default_factory=list)
    timing: OccurrenceTiming = field(default_factory=lambda: occurrence_timing([]))

    def breakdown(self) -> dict[str, int]:
        """Counts of ``"<main>+<bonus>"`` match levels, e.g. ``"5+2"``."""

        out: dict[str, int] = {}
        for m in self.matches:
            key = f"{len(m.matched_main)}+{len(m.matched_bonus)}"
            out[key] = out.get(key, 0) + 1
        return dict(sorted(out.items(), reverse=True))

    def to_dict(self) -> dict:
        return {
            "main_numbers": self.main_numbers,
            "bonus_numbers": self.bonus_numbers,
            "draws_checked": self.draws_checked,
            "total": len(self.matches),
            "breakdown": self.breakdown(),
            "matches": [m.to_dict() for m in self.matches],
            "last_date": self.matches[0].draw_date.isoformat() if self.matches else None,
            "draws_since_last": self.timing.draws_since_last if self.matches else None,
            "avg_draws_between": self.timing.avg_draws_between,
        }


class CombinationService:
    """Find draws containing ALL of the given numbers."""

    def check(self, history: Sequence[Draw], main: Sequence[int], bonus: Sequence[int]) -> CombinationCheckResult:
        main = [int(n) for n in main]
        bonus = [int(n) for n in bonus]
        validate_numbers(main, bonus, partial=True)
        if not main and not bonus:
            raise ValidationError(
                message="Select at least one number",
                details={"main_numbers": ["At least one main or euro number is required"]},
            )

        wanted_main = set(main)
        wanted_bonus = set(bonus)
        matches: list[CombinationMatch] = []
        indices: list[int] = []
        for idx, draw in enumerate(history):
            if not wanted_main.issubset(draw.main_numbers) or not wanted_bonus.issubset(draw.bonus_numbers):
                continue
            indices.append(idx)
            matches.append(
                CombinationMatch(
                    draw_date=draw.draw_date,
                    matched_main=sorted(wanted_main),
                    matched_bonus=sorted(wanted_bonus),
                    main_numbers=sorted(draw.main_numbers),
                    bonus_numbers=sorted(draw.bonus_numbers),
                )
            )

        return CombinationCheckResult(
            main_numbers=sorted(main),
            bonus_numbers=sorted(bonus),
            draws_checked=len(history),
            matches=matches,
            timing=occurrence_timing(indices),
        )
