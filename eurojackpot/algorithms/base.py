"""Shared helpers for scoring algorithms.

Algorithms see the history newest first. ``history[0]`` is the reference
draw: the most recent draw known when the prediction is made.
"""

from __future__ import annotations

import random
from collections import Counter
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass

from eurojackpot.domain import BONUS_COUNT, BONUS_MAX, MAIN_COUNT, MAIN_MAX, Draw, Prediction

Presence = Sequence[frozenset[int]]


@dataclass(frozen=True)
class NumberPool:
    """One side of a ticket: the five main numbers or the two euro numbers."""

    kind: str
    upper: int
    pick: int

    @property
    def numbers(self) -> range:
        return range(1, self.upper + 1)

    @property
    def is_bonus(self) -> bool:
        return self.kind == "bonus"

    def of(self, draw: Draw) -> tuple[int, ...]:
        return draw.bonus_numbers if self.is_bonus else draw.main_numbers

    def presence(self, history: Sequence[Draw]) -> list[frozenset[int]]:
        return [frozenset(self.of(d)) for d in history]


MAIN = NumberPool(kind="main", upper=MAIN_MAX, pick=MAIN_COUNT)
BONUS = NumberPool(kind="bonus", upper=BONUS_MAX, pick=BONUS_COUNT)

ScoreFn = Callable[[Presence, NumberPool], Mapping[int, float]]
Algorithm = Callable[[Sequence[Draw], random.Random], Prediction]


def top_numbers(scores: Mapping[int, float], k: int) -> list[int]:
    """Best ``k`` numbers: highest score first, ties to the lower number."""

    return [n for n, _ in sorted(scores.items(), key=lambda kv: (-kv[1], kv[0]))[:k]]


def count_in(presence: Presence, pool: NumberPool) -> dict[int, int]:
    counts = Counter(n for s in presence for n in s)
    return {n: counts.get(n, 0) for n in pool.numbers}


def frequency(presence: Presence, num: int) -> float:
    """Share of draws containing ``num``."""

    if not presence:
        return 0.0
    return sum(1 for s in presence if num in s) / len(presence)


def recent_count(presence: Presence, num: int, window: int) -> int:
    return sum(1 for s in presence[:window] if num in s)


def last_seen(presence: Presence, num: int, default: int = 0) -> int:
    """Index of the newest draw containing ``num`` (``default`` if never)."""

    for i, s in enumerate(presence):
        if num in s:
            return i
    return default


def series(presence: Presence, num: int) -> list[int]:
    """0/1 presence series, newest first."""

    return [1 if num in s else 0 for s in presence]


def window_counts(presence: Presence, num: int, size: int, windows: int | None = None) -> list[int]:
    """Appearances of ``num`` in consecutive windows of ``size`` draws (newest window first)."""

    if size <= 0:
        return []
    total = len(presence) // size
    if windows is not None:
        total = min(total, windows)
    return [sum(1 for s in presence[i * size : (i + 1) * size] if num in s) for i in range(total)]


def mean_variance(values: Sequence[float]) -> tuple[float, float]:
    if not values:
        return 0.0, 0.0
    mean = sum(values) / len(values)
    return mean, sum((v - mean) ** 2 for v in values) / len(values)


def frequency_ranking(history: Sequence[Draw], pool: NumberPool) -> list[int]:
    counts = count_in(pool.presence(history), pool)
    return top_numbers(counts, pool.upper)


def _fill(ranked: Iterable[int], pool: NumberPool, fallback: Sequence[int]) -> tuple[int, ...]:
    picked: list[int] = []
    for n in ranked:
        n = int(n)
        if 1 <= n <= pool.upper and n not in picked:
            picked.append(n)
        if len(picked) == pool.pick:
            return tuple(picked)
    for n in fallback:
        if n not in picked:
            picked.append(n)
        if len(picked) == pool.pick:
            break
    return tuple(picked)


def finalize_prediction(history: Sequence[Draw], main: Iterable[int], bonus: Iterable[int]) -> Prediction:
    """Force a valid ticket out of two ranked candidate lists.

    Keeps the first distinct in-range numbers in rank order and tops up
    from the most frequent numbers in ``history``.
    """

    return Prediction(
        main_numbers=_fill(main, MAIN, frequency_ranking(history, MAIN)),
        bonus_numbers=_fill(bonus, BONUS, frequency_ranking(history, BONUS)),
    )


def scored(history: Sequence[Draw], score_fn: ScoreFn) -> Prediction:
    """Run a per-pool scoring function on both pools and keep the top picks."""

    main = top_numbers(score_fn(MAIN.presence(history), MAIN), MAIN.pick)
    bonus = top_numbers(score_fn(BONUS.presence(history), BONUS), BONUS.pick)
    return finalize_prediction(history, main, bonus)


def per_number(fn: Callable[[Presence, NumberPool, int], float]) -> ScoreFn:
    """Lift a ``(presence, pool, num) -> score`` function to a whole-pool scorer."""

    def _score(presence: Presence, pool: NumberPool) -> dict[int, float]:
        return {n: fn(presence, pool, n) for n in pool.numbers}

    return _score
