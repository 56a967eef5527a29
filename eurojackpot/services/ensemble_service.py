"""Consensus prediction from the classic algorithms."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from eurojackpot.algorithms import ENSEMBLE_ALGORITHMS, MIN_HISTORY, get_algorithm, member_rng
from eurojackpot.algorithms.base import finalize_prediction
from eurojackpot.domain import BONUS_COUNT, MAIN_COUNT, Draw, Prediction, ScoredCandidate, require_history
from eurojackpot.errors import ValidationError
from eurojackpot.services.backtest_service import historical_performance

logger = logging.getLogger(__name__)

ENSEMBLE_MODES = ("equal", "historical")
ORDER_PATTERN_WEIGHT = 2.0
HISTORICAL_TOP = 20


def vote(
    ranked_lists: Sequence[Sequence[int]], k: int, weights: Sequence[float] | None = None
) -> list[ScoredCandidate]:
    """Positional vote over ranked lists.

    The number at index ``i`` of a list earns ``weight * (k - i)``. The
    ``k`` best totals win; equal totals go to the lower number.
    """

    if weights is not None and len(weights) != len(ranked_lists):
        raise ValueError("weights must match ranked_lists")

    totals: dict[int, float] = {}
    for idx, ranked in enumerate(ranked_lists):
        weight = 1.0 if weights is None else float(weights[idx])
        for pos, num in enumerate(ranked[:k]):
            totals[num] = totals.get(num, 0.0) + weight * (k - pos)

    ordered = sorted(totals.items(), key=lambda kv: (-kv[1], kv[0]))
    return [ScoredCandidate(number=n, score=s) for n, s in ordered[:k]]


@dataclass(frozen=True)
class EnsembleResult:
    prediction: Prediction
    mode: str
    members: dict[str, Prediction] = field(default_factory=dict)
    weights: dict[str, float] = field(default_factory=dict)
    main_votes: list[ScoredCandidate] = field(default_factory=list)
    bonus_votes: list[ScoredCandidate] = field(default_factory=list)

    @property
    def member_count(self) -> int:
        return len(self.members)

    def to_dict(self) -> dict:
        return {
            "prediction": self.prediction.to_dict(),
            "mode": self.mode,
            "member_count": self.member_count,
            "weights": self.weights,
            "members": {name: p.to_dict() for name, p in self.members.items()},
            "main_votes": [{"number": c.number, "score": c.score} for c in self.main_votes],
            "bonus_votes": [{"number": c.number, "score": c.score} for c in self.bonus_votes],
        }


class EnsembleService:
    """Run the classic algorithms and merge their picks."""

    def __init__(self, algorithms: Sequence[str] = ENSEMBLE_ALGORITHMS, historical_targets: int = 20) -> None:
        self.algorithms = tuple(algorithms)
        self.historical_targets = historical_targets

    def _weights(self, history: Sequence[Draw], mode: str, seed: int | None) -> dict[str, float]:
        if mode == "equal":
            return {
                name: ORDER_PATTERN_WEIGHT if name == "order_pattern" else 1.0 for name in self.algorithms
            }

        ranking = historical_performance(history, self.algorithms, self.historical_targets, seed=seed)
        top = ranking[:HISTORICAL_TOP]
        weights = {r.name: r.average_score for r in top}
        if not any(weights.values()):
            logger.info("No algorithm scored on recent draws; voting with equal weights")
            weights = {name: 1.0 for name in weights}
        return weights

    def predict(self, history: Sequence[Draw], *, mode: str = "equal", seed: int | None = None) -> EnsembleResult:
        if mode not in ENSEMBLE_MODES:
            raise ValidationError(
                message="Unknown ensemble mode",
                details={"mode": [f"Must be one of {', '.join(ENSEMBLE_MODES)}"]},
            )
        require_history(history, MIN_HISTORY)

        weights = self._weights(history, mode, seed)
        members: dict[str, Prediction] = {}
        for name in weights:
            members[name] = get_algorithm(name)(history, member_rng(seed, name))

        names = list(members)
        main_votes = vote([members[n].main_numbers for n in names], MAIN_COUNT, [weights[n] for n in names])
        bonus_votes = vote([members[n].bonus_numbers for n in names], BONUS_COUNT, [weights[n] for n in names])

        prediction = finalize_prediction(
            history, [c.number for c in main_votes], [c.number for c in bonus_votes]
        )
        return EnsembleResult(
            prediction=prediction,
            mode=mode,
            members=members,
            weights=weights,
            main_votes=main_votes,
            bonus_votes=bonus_votes,
        )
