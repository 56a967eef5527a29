"""Walk-forward backtesting of prediction algorithms.

History is newest first, so a backtest step at index ``i`` trains on
``history[i:]`` and is scored against the draw that came right after it,
``history[i - 1]``.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from eurojackpot.algorithms import CLASSIC_ALGORITHMS, MIN_HISTORY, get_algorithm, member_rng
from eurojackpot.domain import BONUS_MAX, MAIN_MAX, Draw, Prediction, require_history

WARMUP_DRAWS = 30
MIN_TRAINING_DRAWS = 5

# (max distance, points) for the nearest actual number.
BACKTEST_PROXIMITY = ((0, 10.0), (2, 5.0), (5, 3.0), (10, 1.0))


def count_matches(predicted: Iterable[int], actual: Iterable[int]) -> int:
    actual_set = set(actual)
    return sum(1 for n in predicted if n in actual_set)


def proximity_score(
    predicted: Sequence[int],
    actual: Sequence[int],
    table: Sequence[tuple[int, float]] = BACKTEST_PROXIMITY,
) -> float:
    """Points for how close each predicted number lands to an actual one."""

    if not actual:
        return 0.0
    total = 0.0
    for num in predicted:
        distance = min(abs(num - a) for a in actual)
        for limit, points in table:
            if distance <= limit:
                total += points
                break
    return total


@dataclass(frozen=True)
class BacktestStep:
    index: int
    prediction: Prediction
    actual: Draw
    main_matches: int
    bonus_matches: int
    proximity: float
    score: float

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "prediction": self.prediction.to_dict(),
            "actual": self.actual.to_dict(),
            "main_matches": self.main_matches,
            "bonus_matches": self.bonus_matches,
            "proximity": self.proximity,
            "score": self.score,
        }


@dataclass(frozen=True)
class AlgorithmPerformance:
    name: str
    total_tests: int
    avg_main_matches: float
    avg_bonus_matches: float
    avg_score: float
    avg_proximity: float
    main_match_5: int
    main_match_4: int
    main_match_3: int
    bonus_match_2: int
    best: BacktestStep | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "total_tests": self.total_tests,
            "avg_main_matches": self.avg_main_matches,
            "avg_bonus_matches": self.avg_bonus_matches,
            "avg_score": self.avg_score,
            "avg_proximity": self.avg_proximity,
            "main_match_5": self.main_match_5,
            "main_match_4": self.main_match_4,
            "main_match_3": self.main_match_3,
            "bonus_match_2": self.bonus_match_2,
            "best": self.best.to_dict() if self.best else None,
        }


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def backtest_algorithm(
    history: Sequence[Draw], name: str, test_size: int = 100, seed: int | None = None
) -> AlgorithmPerformance:
    """Score ``name`` on up to ``test_size`` past draws.

    Raises:
        ValidationError: if the history has no draws beyond the warm-up.
        NotFoundError: for an unknown algorithm.
    """

    fn = get_algorithm(name)
    require_history(history, WARMUP_DRAWS + 1)
    test_count = max(0, min(int(test_size), len(history) - WARMUP_DRAWS))
    rng = member_rng(seed, name)

    steps: list[BacktestStep] = []
    for i in range(WARMUP_DRAWS, WARMUP_DRAWS + test_count):
        actual = history[i - 1]
        prediction = fn(history[i:], rng)

        main_matches = count_matches(prediction.main_numbers, actual.main_numbers)
        bonus_matches = count_matches(prediction.bonus_numbers, actual.bonus_numbers)
        proximity = proximity_score(prediction.main_numbers, actual.main_numbers)
        steps.append(
            BacktestStep(
                index=i,
                prediction=prediction,
                actual=actual,
                main_matches=main_matches,
                bonus_matches=bonus_matches,
                proximity=proximity,
                score=main_matches * 10 + bonus_matches * 5 + proximity * 0.5,
            )
        )

    best: BacktestStep | None = None
    for step in steps:
        if best is None or step.score > best.score:
            best = step

    return AlgorithmPerformance(
        name=name,
        total_tests=len(steps),
        avg_main_matches=_mean([s.main_matches for s in steps]),
        avg_bonus_matches=_mean([s.bonus_matches for s in steps]),
        avg_score=_mean([s.score for s in steps]),
        avg_proximity=_mean([s.proximity for s in steps]),
        main_match_5=sum(1 for s in steps if s.main_matches == 5),
        main_match_4=sum(1 for s in steps if s.main_matches == 4),
        main_match_3=sum(1 for s in steps if s.main_matches == 3),
        bonus_match_2=sum(1 for s in steps if s.bonus_matches == 2),
        best=best,
    )


@dataclass(frozen=True)
class HistoricalScore:
    name: str
    total_score: int
    average_score: float
    best_score: int
    tests: int
    consistency: float
    scores: list[int] = field(default_factory=list, repr=False)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "total_score": self.total_score,
            "average_score": self.average_score,
            "best_score": self.best_score,
            "tests": self.tests,
            "consistency": self.consistency,
        }


def consistency_score(scores: Sequence[float]) -> float:
    """100 for perfectly steady scores, falling as the spread grows."""

    avg = _mean(scores)
    if avg == 0:
        return 0.0
    sd = math.sqrt(sum((s - avg) ** 2 for s in scores) / len(scores))
    return max(0.0, (1 - sd / avg) * 100)


def historical_performance(
    history: Sequence[Draw],
    names: Iterable[str] = CLASSIC_ALGORITHMS,
    max_targets: int = 20,
    seed: int | None = None,
) -> list[HistoricalScore]:
    """Walk-forward score (main·2 + bonus) of each algorithm on the newest draws."""

    names = list(names)
    targets = max(0, min(int(max_targets), len(history) - 2))
    results: list[HistoricalScore] = []
    for name in names:
        fn = get_algorithm(name)
        rng = member_rng(seed, name)
        scores: list[int] = []
        for i in range(1, targets + 1):
            training = history[i:]
            if len(training) < MIN_TRAINING_DRAWS:
                continue
            actual = history[i - 1]
            prediction = fn(training, rng)
            scores.append(
                count_matches(prediction.main_numbers, actual.main_numbers) * 2
                + count_matches(prediction.bonus_numbers, actual.bonus_numbers)
            )

        results.append(
            HistoricalScore(
                name=name,
                total_score=sum(scores),
                average_score=_mean(scores),
                best_score=max(scores) if scores else 0,
                tests=len(scores),
                consistency=consistency_score(scores),
                scores=scores,
            )
        )

    results.sort(key=lambda r: (-r.average_score, r.name))
    return results


@dataclass(frozen=True)
class LatestComparison:
    name: str
    prediction: Prediction
    matched_main: list[int]
    matched_bonus: list[int]
    total: int

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "prediction": self.prediction.to_dict(),
            "matched_main": self.matched_main,
            "matched_bonus": self.matched_bonus,
            "main_matches": len(self.matched_main),
            "bonus_matches": len(self.matched_bonus),
            "total": self.total,
        }


def compare_latest(
    draws: Sequence[Draw], names: Iterable[str] = CLASSIC_ALGORITHMS, seed: int | None = None
) -> list[LatestComparison]:
    """Predict the newest draw from everything before it."""

    require_history(draws, MIN_HISTORY + 1)
    actual = draws[0]
    training = draws[1:]

    out: list[LatestComparison] = []
    for name in names:
        prediction = get_algorithm(name)(training, member_rng(seed, name))
        matched_main = sorted(set(prediction.main_numbers) & set(actual.main_numbers))
        matched_bonus = sorted(set(prediction.bonus_numbers) & set(actual.bonus_numbers))
        out.append(
            LatestComparison(
                name=name,
                prediction=prediction,
                matched_main=matched_main,
                matched_bonus=matched_bonus,
                total=len(matched_main) * 2 + len(matched_bonus),
            )
        )

    out.sort(key=lambda c: -c.total)
    return out


@dataclass(frozen=True)
class HistoricalPatterns:
    number_frequency: dict[int, int]
    bonus_frequency: dict[int, int]
    number_gaps: dict[int, list[int]]
    avg_gap: dict[int, float]
    consecutive_pairs: dict[str, int]
    sum_min: int
    sum_max: int
    sum_avg: float
    range_patterns: list[dict[str, int]]
    hot_numbers: list[int]
    cold_numbers: list[int]
    even_ratio: float

    def to_dict(self) -> dict:
        return {
            "number_frequency": self.number_frequency,
            "bonus_frequency": self.bonus_frequency,
            "number_gaps": self.number_gaps,
            "avg_gap": self.avg_gap,
            "consecutive_pairs": self.consecutive_pairs,
            "sum_ranges": {"min": self.sum_min, "max": self.sum_max, "avg": self.sum_avg},
            "range_patterns": self.range_patterns,
            "hot_numbers": self.hot_numbers,
            "cold_numbers": self.cold_numbers,
            "even_ratio": self.even_ratio,
        }


def analyze_historical_patterns(history: Sequence[Draw]) -> HistoricalPatterns:
    require_history(history, 1)

    number_frequency: Counter[int] = Counter()
    bonus_frequency: Counter[int] = Counter()
    number_gaps: dict[int, list[int]] = {n: [] for n in range(1, MAIN_MAX + 1)}
    last_index: dict[int, int] = {}
    pairs: Counter[str] = Counter()
    sums: list[int] = []
    range_patterns: list[dict[str, int]] = []
    evens = 0
    total_numbers = 0

    for idx, draw in enumerate(history):
        numbers = sorted(draw.main_numbers)
        sums.append(sum(numbers))
        range_patterns.append(
            {
                "low": sum(1 for n in numbers if n <= 17),
                "mid": sum(1 for n in numbers if 18 <= n <= 34),
                "high": sum(1 for n in numbers if n >= 35),
            }
        )
        evens += sum(1 for n in numbers if n % 2 == 0)
        total_numbers += len(numbers)

        for num in numbers:
            number_frequency[num] += 1
            if num in last_index:
                number_gaps.setdefault(num, []).append(idx - last_index[num])
            last_index[num] = idx
        for lo, hi in zip(numbers, numbers[1:]):
            pairs[f"{lo}-{hi}"] += 1
        bonus_frequency.update(draw.bonus_numbers)

    recent_10 = {n for d in history[:10] for n in d.main_numbers}
    recent_20 = {n for d in history[:20] for n in d.main_numbers}

    return HistoricalPatterns(
        number_frequency={n: number_frequency.get(n, 0) for n in range(1, MAIN_MAX + 1)},
        bonus_frequency={n: bonus_frequency.get(n, 0) for n in range(1, BONUS_MAX + 1)},
        number_gaps=number_gaps,
        avg_gap={n: sum(g) / len(g) for n, g in number_gaps.items() if g},
        consecutive_pairs=dict(pairs.most_common()),
        sum_min=min(sums),
        sum_max=max(sums),
        sum_avg=sum(sums) / len(sums),
        range_patterns=range_patterns,
        hot_numbers=sorted(recent_10),
        cold_numbers=[n for n in range(1, MAIN_MAX + 1) if n not in recent_20],
        even_ratio=evens / total_numbers if total_numbers else 0.0,
    )
