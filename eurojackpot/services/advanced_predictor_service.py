"""Multi-factor predictor that validates itself on the whole history.

Every number gets one weighted score built from order patterns,
frequency over three windows (15, 50, all draws), momentum, similar-draw
patterns, gap deviation, position entropy and decade clusters. The
predictor is then replayed walk-forward over every past draw that has
enough training history, and the accuracy summary is returned with the
prediction for the next draw.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

from eurojackpot.algorithms.base import BONUS, MAIN, NumberPool
from eurojackpot.domain import Draw, Prediction, require_history
from eurojackpot.services.adaptive_service import DuplicateCheck, check_duplicate
from eurojackpot.services.backtest_service import count_matches
from eurojackpot.services.order_pattern_service import analyze_order_patterns

logger = logging.getLogger(__name__)

DEFAULT_MIN_DRAWS = 50
SHORT_WINDOW = 15
MEDIUM_WINDOW = 50

MAIN_WEIGHTS = {
    "order_pattern": 0.30,
    "freq_short": 0.18,
    "freq_medium": 0.12,
    "freq_long": 0.06,
    "momentum": 0.12,
    "pattern": 0.09,
    "gap": 0.10,
    "position": 0.02,
    "cluster": 0.01,
}
BONUS_WEIGHTS = {
    "order_pattern": 0.30,
    "freq_short": 0.24,
    "freq_medium": 0.14,
    "freq_long": 0.08,
    "momentum": 0.12,
    "gap": 0.12,
}


@dataclass(frozen=True)
class FactorScore:
    number: int
    final_score: float
    components: dict[str, float]

    def to_dict(self) -> dict:
        return {"number": self.number, "final_score": self.final_score, "components": self.components}


@dataclass(frozen=True)
class ValidationStep:
    actual: Draw
    prediction: Prediction
    main_matches: int
    bonus_matches: int

    @property
    def score(self) -> int:
        return self.main_matches * 10 + self.bonus_matches * 5

    def to_dict(self) -> dict:
        return {
            "draw_date": self.actual.draw_date.isoformat(),
            "predicted_main": self.prediction.sorted_main(),
            "predicted_bonus": self.prediction.sorted_bonus(),
            "actual_main": sorted(self.actual.main_numbers),
            "actual_bonus": sorted(self.actual.bonus_numbers),
            "main_matches": self.main_matches,
            "bonus_matches": self.bonus_matches,
            "score": self.score,
        }


@dataclass(frozen=True)
class ValidationSummary:
    total_tests: int
    avg_main_matches: float
    avg_bonus_matches: float
    avg_score: float
    main_match_5: int
    main_match_4_plus: int
    main_match_3_plus: int
    bonus_match_2: int
    best: ValidationStep | None

    @classmethod
    def from_steps(cls, steps: Sequence[ValidationStep]) -> "ValidationSummary":
        total = len(steps)
        if not total:
            return cls(0, 0.0, 0.0, 0.0, 0, 0, 0, 0, None)
        best = steps[0]
        for step in steps[1:]:
            if step.score > best.score:
                best = step
        return cls(
            total_tests=total,
            avg_main_matches=sum(s.main_matches for s in steps) / total,
            avg_bonus_matches=sum(s.bonus_matches for s in steps) / total,
            avg_score=sum(s.score for s in steps) / total,
            main_match_5=sum(1 for s in steps if s.main_matches == 5),
            main_match_4_plus=sum(1 for s in steps if s.main_matches >= 4),
            main_match_3_plus=sum(1 for s in steps if s.main_matches >= 3),
            bonus_match_2=sum(1 for s in steps if s.bonus_matches == 2),
            best=best,
        )

    def to_dict(self) -> dict:
        return {
            "total_tests": self.total_tests,
            "avg_main_matches": self.avg_main_matches,
            "avg_bonus_matches": self.avg_bonus_matches,
            "avg_score": self.avg_score,
            "main_match_5": self.main_match_5,
            "main_match_4_plus": self.main_match_4_plus,
            "main_match_3_plus": self.main_match_3_plus,
            "bonus_match_2": self.bonus_match_2,
            "best": self.best.to_dict() if self.best else None,
        }


@dataclass(frozen=True)
class AdvancedPrediction:
    prediction: Prediction
    main_scores: list[FactorScore]
    bonus_scores: list[FactorScore]
    validation: ValidationSummary
    steps: list[ValidationStep]
    duplicate: DuplicateCheck
    min_draws: int

    def to_dict(self) -> dict:
        return {
            "prediction": self.prediction.to_dict(),
            "main_scores": [s.to_dict() for s in self.main_scores],
            "bonus_scores": [s.to_dict() for s in self.bonus_scores],
            "validation": self.validation.to_dict(),
            "steps": [s.to_dict() for s in self.steps],
            "duplicate": self.duplicate.to_dict(),
            "min_draws": self.min_draws,
        }


def _counts(draws: Sequence[Draw], pool: NumberPool) -> Counter[int]:
    return Counter(n for d in draws for n in pool.of(d))


def momentum(history: Sequence[Draw], pool: NumberPool) -> dict[int, float]:
    """Linearly decayed recent rate minus 0.7 of the older rate."""

    recent = history[:SHORT_WINDOW]
    older = history[SHORT_WINDOW:MEDIUM_WINDOW]
    scores: dict[int, float] = {}
    for num in pool.numbers:
        weighted = sum(1 - idx * 0.1 for idx, d in enumerate(recent) if num in pool.of(d))
        older_rate = sum(1 for d in older if num in pool.of(d)) / len(older) if older else 0.0
        scores[num] = weighted / len(recent) - older_rate * 0.7
    return scores


def similar_draw_patterns(history: Sequence[Draw]) -> dict[int, float]:
    """What followed past draws sharing 2+ numbers with the newest one, plus pair co-occurrence."""

    latest = set(history[0].main_numbers)
    similar: list[tuple[int, frozenset[int]]] = []
    for i in range(1, len(history) - 1):
        shared = len(latest & set(history[i].main_numbers))
        if shared >= 2:
            similar.append((shared, frozenset(history[i - 1].main_numbers)))

    window = history[1:MEDIUM_WINDOW]
    denominator = min(MEDIUM_WINDOW, len(history))
    scores: dict[int, float] = {}
    for num in MAIN.numbers:
        pattern = sum(shared * 0.6 for shared, following in similar if num in following)
        pair = 0.0
        for last in latest:
            pair += sum(1 for d in window if last in d.main_numbers and num in d.main_numbers) / denominator
        scores[num] = pattern + pair * 10
    return scores


def gap_deviation(history: Sequence[Draw], pool: NumberPool) -> dict[int, float]:
    """How far past its usual gap each number is, in standard deviations."""

    single_divisor = 5 if pool.is_bonus else 10
    scores: dict[int, float] = {}
    for num in pool.numbers:
        appearances = [i for i, d in enumerate(history) if num in pool.of(d)]
        if len(appearances) > 1:
            gaps = [appearances[i + 1] - appearances[i] for i in range(len(appearances) - 1)]
            avg = sum(gaps) / len(gaps)
            std = math.sqrt(sum((g - avg) ** 2 for g in gaps) / len(gaps))
            deviation = (appearances[0] - avg) / (std or 1)
            scores[num] = 1 + max(0.0, deviation * 0.5)
        elif appearances:
            scores[num] = appearances[0] / single_divisor
        else:
            scores[num] = 2.5
    return scores


def position_entropy(history: Sequence[Draw]) -> dict[int, float]:
    positions: dict[int, list[int]] = {}
    for draw in history:
        for pos, num in enumerate(sorted(draw.main_numbers)):
            positions.setdefault(num, [0] * MAIN.pick)[pos] += 1
    scores: dict[int, float] = {}
    for num in MAIN.numbers:
        counts = positions.get(num)
        if not counts:
            scores[num] = 0.0
            continue
        total = sum(counts)
        scores[num] = -sum(c / total * math.log2(c / total) for c in counts if c)
    return scores


def decade_clusters(history: Sequence[Draw]) -> dict[int, float]:
    counts = Counter((n - 1) // 10 for d in history for n in d.main_numbers)
    return {num: counts.get((num - 1) // 10, 0) / len(history) * 100 for num in MAIN.numbers}


def _norm_order(value: float) -> float:
    return min(100.0, value * 1.1)


def _norm_momentum(value: float) -> float:
    return max(0.0, min(100.0, (value + 0.5) * 100))


def _norm_gap(value: float) -> float:
    return min(100.0, value**1.3 * 40)


def _frequencies(history: Sequence[Draw], pool: NumberPool) -> dict[str, dict[int, float]]:
    windows = {
        "freq_short": (history[:SHORT_WINDOW], min(SHORT_WINDOW, len(history))),
        "freq_medium": (history[:MEDIUM_WINDOW], min(MEDIUM_WINDOW, len(history))),
        "freq_long": (history, len(history)),
    }
    result: dict[str, dict[int, float]] = {}
    for key, (draws, size) in windows.items():
        counts = _counts(draws, pool)
        result[key] = {n: counts.get(n, 0) / size * 100 for n in pool.numbers}
    return result


def _combine(pool: NumberPool, weights: dict[str, float], factors: dict[str, dict[int, float]]) -> list[FactorScore]:
    scores = []
    for num in pool.numbers:
        components = {key: factors[key][num] for key in weights}
        final = sum(components[key] * weight for key, weight in weights.items())
        scores.append(FactorScore(number=num, final_score=final, components=components))
    return sorted(scores, key=lambda s: (-s.final_score, s.number))


def score_numbers(history: Sequence[Draw]) -> tuple[list[FactorScore], list[FactorScore]]:
    """Ranked main and euro scores, best first with ties to the lower number."""

    order = analyze_order_patterns(history, 30)
    main_momentum = momentum(history, MAIN)
    main_gaps = gap_deviation(history, MAIN)
    patterns = similar_draw_patterns(history)
    entropy = position_entropy(history)

    main_factors = {
        "order_pattern": {s.number: _norm_order(s.total_order_score) for s in order.main_scores},
        **_frequencies(history, MAIN),
        "momentum": {n: _norm_momentum(v) for n, v in main_momentum.items()},
        "pattern": {n: min(100.0, v * 10) for n, v in patterns.items()},
        "gap": {n: _norm_gap(v) for n, v in main_gaps.items()},
        "position": {n: v / 2.32 * 100 for n, v in entropy.items()},
        "cluster": decade_clusters(history),
    }
    bonus_momentum = momentum(history, BONUS)
    bonus_gaps = gap_deviation(history, BONUS)
    bonus_factors = {
        "order_pattern": {s.number: _norm_order(s.total_order_score) for s in order.bonus_scores},
        **_frequencies(history, BONUS),
        "momentum": {n: _norm_momentum(v) for n, v in bonus_momentum.items()},
        "gap": {n: _norm_gap(v) for n, v in bonus_gaps.items()},
    }
    return _combine(MAIN, MAIN_WEIGHTS, main_factors), _combine(BONUS, BONUS_WEIGHTS, bonus_factors)


def predict_next(history: Sequence[Draw]) -> tuple[Prediction, list[FactorScore], list[FactorScore]]:
    main_scores, bonus_scores = score_numbers(history)
    prediction = Prediction(
        main_numbers=tuple(s.number for s in main_scores[: MAIN.pick]),
        bonus_numbers=tuple(s.number for s in bonus_scores[: BONUS.pick]),
    )
    return prediction, main_scores, bonus_scores


def validate_on_history(history: Sequence[Draw], min_draws: int = DEFAULT_MIN_DRAWS) -> list[ValidationStep]:
    """Replay the predictor on every draw with at least ``min_draws`` older draws behind it."""

    steps = []
    for i in range(1, len(history) - min_draws + 1):
        actual = history[i - 1]
        prediction, _, _ = predict_next(history[i:])
        steps.append(
            ValidationStep(
                actual=actual,
                prediction=prediction,
                main_matches=count_matches(prediction.main_numbers, actual.main_numbers),
                bonus_matches=count_matches(prediction.bonus_numbers, actual.bonus_numbers),
            )
        )
    return steps


class AdvancedPredictorService:
    def __init__(self, min_draws: int = DEFAULT_MIN_DRAWS) -> None:
        self.min_draws = min_draws

    def predict(self, history: Sequence[Draw], *, min_draws: int | None = None) -> AdvancedPrediction:
        """Self-validate over the history, then predict the next draw.

        Raises:
            ValidationError: fewer than ``min_draws + 1`` draws.
        """

        min_draws = min_draws or self.min_draws
        require_history(history, min_draws + 1)

        steps = validate_on_history(history, min_draws)
        summary = ValidationSummary.from_steps(steps)
        logger.info(
            "Advanced predictor validated on %s draws (avg main %.2f, avg euro %.2f)",
            summary.total_tests,
            summary.avg_main_matches,
            summary.avg_bonus_matches,
        )

        prediction, main_scores, bonus_scores = predict_next(history)
        return AdvancedPrediction(
            prediction=prediction,
            main_scores=main_scores,
            bonus_scores=bonus_scores,
            validation=summary,
            steps=steps,
            duplicate=check_duplicate(prediction.main_numbers, prediction.bonus_numbers, history),
            min_draws=min_draws,
        )
