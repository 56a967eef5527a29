"""Business logic for number frequency analysis (heatmap data)."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from math import ceil

from eurojackpot.domain import BONUS_MAX, MAIN_MAX, Draw


@dataclass(frozen=True)
class PoolFrequency:
    counts: dict[int, int]
    last_seen: dict[int, int]
    min_count: int
    max_count: int
    cold_numbers: list[int]
    hot_numbers: list[int]


@dataclass(frozen=True)
class FrequencyAnalysisResult:
    total_draws: int
    draws_used: int
    recent_n: int | None
    percent: float
    main: PoolFrequency
    bonus: PoolFrequency


def _pool_frequency(numbers_per_draw: Sequence[Sequence[int]], upper: int, percent: float) -> PoolFrequency:
    counts: dict[int, int] = {n: 0 for n in range(1, upper + 1)}
    last_seen: dict[int, int] = {n: -1 for n in range(1, upper + 1)}
    for idx, numbers in enumerate(numbers_per_draw):
        for n in numbers:
            if 1 <= n <= upper:
                counts[n] += 1
                if last_seen[n] == -1:
                    last_seen[n] = idx

    values = list(counts.values())
    min_count = min(values) if values else 0
    max_count = max(values) if values else 0

    k = max(1, int(ceil(upper * float(percent))))
    cold_numbers = [n for n, _ in sorted(counts.items(), key=lambda kv: (kv[1], kv[0]))[:k]]
    hot_numbers = [n for n, _ in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))[:k]]

    return PoolFrequency(
        counts=counts,
        last_seen=last_seen,
        min_count=int(min_count),
        max_count=int(max_count),
        cold_numbers=cold_numbers,
        hot_numbers=hot_numbers,
    )


class FrequencyAnalysisService:
    """Compute number frequency across all or recent draws."""

    def analyze(
        self, history: Sequence[Draw], *, recent_n: int | None = None, percent: float = 0.2
    ) -> FrequencyAnalysisResult:
        if recent_n is not None and recent_n <= 0:
            raise ValueError("recent_n must be positive")
        if not (0.0 < float(percent) < 1.0):
            raise ValueError("percent must be between 0 and 1")

        draws = list(history[:recent_n]) if recent_n is not None else list(history)

        return FrequencyAnalysisResult(
            total_draws=len(history),
            draws_used=len(draws),
            recent_n=int(recent_n) if recent_n is not None else None,
            percent=float(percent),
            main=_pool_frequency([d.main_numbers for d in draws], MAIN_MAX, percent),
            bonus=_pool_frequency([d.bonus_numbers for d in draws], BONUS_MAX, percent),
        )
