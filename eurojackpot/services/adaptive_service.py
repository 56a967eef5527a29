"""Self-weighting ensemble over the adaptive algorithms.

Weights are learned from a walk-forward validation on past draws and
then drive a weighted vote that penalises numbers from the newest draw.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

from eurojackpot.algorithms import ADAPTIVE_ALGORITHMS, MIN_HISTORY, get_algorithm, member_rng
from eurojackpot.algorithms.base import finalize_prediction
from eurojackpot.domain import BONUS_COUNT, MAIN_COUNT, Draw, Prediction, ScoredCandidate, require_history
from eurojackpot.services.backtest_service import WARMUP_DRAWS, count_matches, proximity_score

logger = logging.getLogger(__name__)

INITIAL_WEIGHTS = {"order_pattern": 1.5}
ADAPTIVE_PROXIMITY = ((0, 10.0), (2, 3.0), (5, 1.5), (10, 0.5))
MAIN_REPEAT_PENALTY = 0.3
BONUS_REPEAT_PENALTY = 0.2


@dataclass(frozen=True)
class MethodStats:
    average: float
    matches_3_plus: int
    matches_2_plus: int
    raw_weight: float


@dataclass(frozen=True)
class LearnedWeights:
    weights: dict[str, float]
    stats: dict[str, MethodStats]
    validation_score: float
    validation_size: int

    def to_dict(self) -> dict:
        return {
            "weights": self.weights,
            "validation_score": self.validation_score,
            "validation_size": self.validation_size,
            "stats": {
                name: {
                    "average": s.average,
                    "matches_3_plus": s.matches_3_plus,
                    "matches_2_plus": s.matches_2_plus,
                    "raw_weight": s.raw_weight,
                }
                for name, s in self.stats.items()
            },
        }


@dataclass(frozen=True)
class DuplicateCheck:
    exists: bool
    draw_date: date | None = None
    recent_match: str | None = None
    recent_index: int | None = None

    def to_dict(self) -> dict:
        return {
            "exists": self.exists,
            "draw_date": self.draw_date.isoformat() if self.draw_date else None,
            "recent_match": self.recent_match,
            "recent_index": self.recent_index,
        }


@dataclass(frozen=True)
class AdaptivePrediction:
    prediction: Prediction
    method_weights: dict[str, float]
    best_method: str
    confidence: float
    main_confidence: list[ScoredCandidate] = field(default_factory=list)
    bonus_confidence: list[ScoredCandidate] = field(default_factory=list)
    alternative_main: list[ScoredCandidate] = field(default_factory=list)
    alternative_bonus: list[ScoredCandidate] = field(default_factory=list)
    duplicate: DuplicateCheck = field(default_factory=lambda: DuplicateCheck(exists=False))

    def to_dict(self) -> dict:
        def _scored(items: list[ScoredCandidate]) -> list[dict]:
            return [{"number": c.number, "confidence": c.score} for c in items]

        return {
            "prediction": self.prediction.to_dict(),
            "method_weights": self.method_weights,
            "best_method": self.best_method,
            "confidence": self.confidence,
            "main_confidence": _scored(self.main_confidence),
            "bonus_confidence": _scored(self.bonus_confidence),
            "alternative_main": _scored(self.alternative_main),
            "alternative_bonus": _scored(self.alternative_bonus),
            "duplicate": self.duplicate.to_dict(),
        }


def _step_score(prediction: Prediction, actual: Draw) -> float:
    main = count_matches(prediction.main_numbers, actual.main_numbers)
    bonus = count_matches(prediction.bonus_numbers, actual.bonus_numbers)
    proximity = proximity_score(prediction.main_numbers, actual.main_numbers, ADAPTIVE_PROXIMITY)
    return main * 15 + bonus * 7 + proximity


def learn_weights(
    history: Sequence[Draw],
    validation_size: int = 100,
    seed: int | None = None,
    names: Sequence[str] = ADAPTIVE_ALGORITHMS,
) -> LearnedWeights:
    """Score each adaptive algorithm on past draws and normalise the result."""

    require_history(history, WARMUP_DRAWS + 1)
    size = max(0, min(int(validation_size), len(history) - WARMUP_DRAWS))

    performance: dict[str, list[float]] = {name: [] for name in names}
    rngs = {name: member_rng(seed, name) for name in names}
    for i in range(WARMUP_DRAWS, WARMUP_DRAWS + size):
        training = history[i:]
        actual = history[i - 1]
        for name in names:
            prediction = get_algorithm(name)(training, rngs[name])
            performance[name].append(_step_score(prediction, actual))

    stats: dict[str, MethodStats] = {}
    for name, scores in performance.items():
        if scores:
            avg = sum(scores) / len(scores)
            three_plus = sum(1 for s in scores if s >= 45)
            two_plus = sum(1 for s in scores if s >= 30)
            raw = max(0.1, avg + three_plus * 2 + two_plus)
        else:
            avg, three_plus, two_plus = 0.0, 0, 0
            raw = INITIAL_WEIGHTS.get(name, 1.0)
        stats[name] = MethodStats(average=avg, matches_3_plus=three_plus, matches_2_plus=two_plus, raw_weight=raw)

    total = sum(s.raw_weight for s in stats.values())
    weights = {
        name: (s.raw_weight / total if total > 0 else 1 / len(stats)) for name, s in stats.items()
    }

    all_scores = [score for scores in performance.values() for score in scores]
    validation_score = sum(all_scores) / len(all_scores) if all_scores else 0.0
    logger.info("Learned adaptive weights over %s draws (score %.2f)", size, validation_score)

    return LearnedWeights(weights=weights, stats=stats, validation_score=validation_score, validation_size=size)


def check_duplicate(main: Sequence[int], bonus: Sequence[int], history: Sequence[Draw]) -> DuplicateCheck:
    """Look for the ticket in past draws.

    An exact main+bonus match anywhere wins. Otherwise the newest five
    draws are checked for a repeated euro pair or main set.
    """

    main_key = tuple(sorted(main))
    bonus_key = tuple(sorted(bonus))

    for draw in history:
        if tuple(sorted(draw.main_numbers)) == main_key and tuple(sorted(draw.bonus_numbers)) == bonus_key:
            return DuplicateCheck(exists=True, draw_date=draw.draw_date)

    for idx, draw in enumerate(history[:5]):
        same_bonus = tuple(sorted(draw.bonus_numbers)) == bonus_key
        if same_bonus and idx == 0:
            return DuplicateCheck(exists=False, recent_match="exact_bonus_last_draw", recent_index=idx)
        if same_bonus and idx <= 2:
            return DuplicateCheck(exists=False, recent_match="exact_bonus_recent", recent_index=idx)
        if tuple(sorted(draw.main_numbers)) == main_key:
            return DuplicateCheck(exists=False, recent_match="exact_main_recent", recent_index=idx)

    return DuplicateCheck(exists=False)


def _ranked_votes(votes: dict[int, float]) -> list[tuple[int, float]]:
    return sorted(votes.items(), key=lambda kv: (-kv[1], kv[0]))


def _confidence(
    ranked: list[tuple[int, float]], max_vote: float, total: float, weight: float, cap: float
) -> list[ScoredCandidate]:
    if max_vote <= 0 or total <= 0:
        return [ScoredCandidate(number=n, score=0.0) for n, _ in ranked]
    return [
        ScoredCandidate(number=n, score=min(cap, v / max_vote * weight + v / total * 100)) for n, v in ranked
    ]


def adaptive_predict(
    history: Sequence[Draw],
    weights: dict[str, float],
    validation_score: float,
    seed: int | None = None,
) -> AdaptivePrediction:
    """Weighted vote of the adaptive algorithms on the full history."""

    require_history(history, MIN_HISTORY)
    last_main = set(history[0].main_numbers)
    last_bonus = set(history[0].bonus_numbers)

    main_votes: dict[int, float] = {}
    bonus_votes: dict[int, float] = {}
    for name, weight in weights.items():
        prediction = get_algorithm(name)(history, member_rng(seed, name))
        for num in prediction.main_numbers:
            penalty = MAIN_REPEAT_PENALTY if num in last_main else 1.0
            main_votes[num] = main_votes.get(num, 0.0) + weight * penalty
        for num in prediction.bonus_numbers:
            penalty = BONUS_REPEAT_PENALTY if num in last_bonus else 1.0
            bonus_votes[num] = bonus_votes.get(num, 0.0) + weight * penalty

    main_ranked = _ranked_votes(main_votes)
    bonus_ranked = _ranked_votes(bonus_votes)

    main_total = sum(main_votes.values())
    bonus_total = sum(bonus_votes.values())
    main_max = main_ranked[0][1] if main_ranked else 0.0
    bonus_max = bonus_ranked[0][1] if bonus_ranked else 0.0

    prediction = finalize_prediction(
        history,
        [n for n, _ in main_ranked[:MAIN_COUNT]],
        [n for n, _ in bonus_ranked[:BONUS_COUNT]],
    )

    avg_vote = main_total / len(main_votes) if main_votes else 0.0
    concentration = main_max / avg_vote if avg_vote > 0 else 1.0
    base = min(35.0, validation_score / 20 * 25)
    agreement = min(15.0, (concentration - 1) * 5)
    confidence = min(50.0, base + agreement)

    best_method = sorted(weights.items(), key=lambda kv: (-kv[1], kv[0]))[0][0] if weights else ""

    return AdaptivePrediction(
        prediction=prediction,
        method_weights=dict(weights),
        best_method=best_method,
        confidence=confidence,
        main_confidence=_confidence(main_ranked[:MAIN_COUNT], main_max, main_total, 35, 40),
        bonus_confidence=_confidence(bonus_ranked[:BONUS_COUNT], bonus_max, bonus_total, 40, 45),
        alternative_main=_confidence(main_ranked[MAIN_COUNT : MAIN_COUNT + 5], main_max, main_total, 30, 35),
        alternative_bonus=_confidence(bonus_ranked[BONUS_COUNT : BONUS_COUNT + 3], bonus_max, bonus_total, 35, 40),
        duplicate=check_duplicate(prediction.main_numbers, prediction.bonus_numbers, history),
    )


class AdaptiveService:
    """Learn weights, then predict with them."""

    def predict(
        self, history: Sequence[Draw], *, validation_size: int = 100, seed: int | None = None
    ) -> tuple[LearnedWeights, AdaptivePrediction]:
        learned = learn_weights(history, validation_size=validation_size, seed=seed)
        return learned, adaptive_predict(history, learned.weights, learned.validation_score, seed=seed)
