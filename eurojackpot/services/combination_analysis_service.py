"""Recurring number combinations and how long they tend to stay away.

A main-number combination of 2..5 numbers counts as recurring once at
least two draws contain all of it. Euro pairs are counted for every
draw. For each combination the gaps between occurrences are averaged,
and combinations whose current absence is closest to that average are
reported as "due".
"""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from itertools import combinations

from eurojackpot.domain import Draw

TOP_COMBINATIONS = 10
TOP_DUE = 3
COMBINATION_SIZES = (5, 4, 3, 2)


@dataclass(frozen=True)
class OccurrenceTiming:
    count: int
    last_index: int | None
    avg_draws_between: int

    @property
    def draws_since_last(self) -> int:
        return self.last_index if self.last_index is not None else 0

    @property
    def overdue_percentage(self) -> float:
        """How far the current absence runs past the average gap, as a percentage (never negative)."""

        if self.last_index is None or self.avg_draws_between == 0:
            return 0.0
        return max(0.0, (self.draws_since_last - self.avg_draws_between) / self.avg_draws_between * 100)

    @property
    def distance_from_average(self) -> int:
        return abs(self.draws_since_last - self.avg_draws_between)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def occurrence_timing(indices: Sequence[int]) -> OccurrenceTiming:
    """Timing of a combination seen at ``indices`` of a newest-first history."""

    ordered = sorted(indices)
    if not ordered:
        return OccurrenceTiming(count=0, last_index=None, avg_draws_between=0)
    avg = 0
    if len(ordered) > 1:
        between = sum(b - a - 1 for a, b in zip(ordered, ordered[1:]))
        avg = _round_half_up(between / (len(ordered) - 1))
    return OccurrenceTiming(count=len(ordered), last_index=ordered[0], avg_draws_between=avg)


@dataclass(frozen=True)
class RecurringCombination:
    numbers: tuple[int, ...]
    timing: OccurrenceTiming
    last_draw: Draw

    def to_dict(self) -> dict:
        return {
            "numbers": list(self.numbers),
            "count": self.timing.count,
            "last_date": self.last_draw.draw_date.isoformat(),
            "draws_since_last": self.timing.draws_since_last,
            "avg_draws_between": self.timing.avg_draws_between,
            "overdue_percentage": self.timing.overdue_percentage,
        }


@dataclass(frozen=True)
class CombinationGroup:
    size: int
    top: list[RecurringCombination]
    due: list[RecurringCombination]
    total: int

    def to_dict(self) -> dict:
        return {
            "size": self.size,
            "total": self.total,
            "top": [c.to_dict() for c in self.top],
            "due": [c.to_dict() for c in self.due],
        }


@dataclass(frozen=True)
class CombinationAnalysis:
    draws_analyzed: int
    main: list[CombinationGroup]
    euro_pairs: CombinationGroup

    def to_dict(self) -> dict:
        return {
            "draws_analyzed": self.draws_analyzed,
            "main": {str(g.size): g.to_dict() for g in self.main},
            "euro_pairs": self.euro_pairs.to_dict(),
        }


def _occurrences(history: Sequence[Draw], size: int, euro: bool = False) -> dict[tuple[int, ...], list[int]]:
    seen: dict[tuple[int, ...], list[int]] = defaultdict(list)
    for idx, draw in enumerate(history):
        numbers = sorted(draw.bonus_numbers if euro else draw.main_numbers)
        for combo in combinations(numbers, size):
            seen[combo].append(idx)
    return seen


def _recurring(history: Sequence[Draw], seen: dict[tuple[int, ...], list[int]], minimum: int) -> list[RecurringCombination]:
    found = []
    for numbers, indices in seen.items():
        if len(indices) < minimum:
            continue
        timing = occurrence_timing(indices)
        found.append(RecurringCombination(numbers=numbers, timing=timing, last_draw=history[timing.draws_since_last]))
    return found


def _due(candidates: Sequence[RecurringCombination]) -> list[RecurringCombination]:
    timed = [c for c in candidates if c.timing.avg_draws_between > 0]
    return sorted(timed, key=lambda c: (c.timing.distance_from_average, c.numbers))[:TOP_DUE]


def _group(size: int, found: list[RecurringCombination], covered: set[tuple[int, ...]]) -> CombinationGroup:
    """Top combinations by count plus the due ones.

    Due combinations skip subsets of larger recurring combinations and are
    not repeated in the top list.
    """

    due = _due([c for c in found if c.numbers not in covered])
    due_keys = {c.numbers for c in due}
    ranked = sorted(found, key=lambda c: (-c.timing.count, c.numbers))[:TOP_COMBINATIONS]
    return CombinationGroup(
        size=size,
        top=[c for c in ranked if c.numbers not in due_keys],
        due=due,
        total=len(found),
    )


def analyze_combinations(history: Sequence[Draw]) -> CombinationAnalysis:
    groups: list[CombinationGroup] = []
    larger: set[tuple[int, ...]] = set()
    for size in COMBINATION_SIZES:
        found = _recurring(history, _occurrences(history, size), minimum=2)
        covered = {sub for big in larger for sub in combinations(big, size)}
        groups.append(_group(size, found, covered))
        larger |= {c.numbers for c in found}

    euro_found = _recurring(history, _occurrences(history, 2, euro=True), minimum=1)
    return CombinationAnalysis(
        draws_analyzed=len(history),
        main=groups,
        euro_pairs=_group(2, euro_found, set()),
    )
