"""Registry of prediction algorithms.

Every algorithm has the signature ``fn(history, rng) -> Prediction`` where
``history`` is newest first. Deterministic algorithms ignore ``rng``.
"""

from __future__ import annotations

import random
from collections.abc import Sequence

from eurojackpot.algorithms.base import Algorithm, finalize_prediction
from eurojackpot.domain import Draw, Prediction, require_history
from eurojackpot.errors import NotFoundError

MIN_HISTORY = 10

_REGISTRY: dict[str, Algorithm] = {}
_DESCRIPTIONS: dict[str, str] = {}
_RANDOMIZED: set[str] = set()


def register(name: str, description: str = "", *, randomized: bool = False):
    """Decorator adding an algorithm to the registry under ``name``."""

    def _wrap(fn: Algorithm) -> Algorithm:
        if name in _REGISTRY:
            raise ValueError(f"Duplicate algorithm name: {name}")

        def _run(history: Sequence[Draw], rng: random.Random) -> Prediction:
            pred = fn(history, rng)
            return finalize_prediction(history, pred.main_numbers, pred.bonus_numbers)

        _run.__name__ = fn.__name__
        _run.__doc__ = fn.__doc__
        _REGISTRY[name] = _run
        _DESCRIPTIONS[name] = description or (fn.__doc__ or "").strip().splitlines()[0]
        if randomized:
            _RANDOMIZED.add(name)
        return fn

    return _wrap


# Populate the registry.
from eurojackpot.algorithms import improved, network, statistical  # noqa: E402,F401

CLASSIC_ALGORITHMS: tuple[str, ...] = (
    "order_pattern",
    "hybrid",
    "hot_cold",
    "positional",
    "pair_frequency",
    "delta",
    "ml_inspired",
    "fibonacci",
    "markov",
    "exponential_smoothing",
    "knn",
    "genetic",
    "neural",
    "monte_carlo",
    "bayesian",
    "time_series",
    "entropy",
    "kmeans",
    "autoregressive",
    "chi_square",
    "fourier",
    "regression",
    "svm",
    "random_forest",
    "gradient_boosting",
    "lstm",
    "xgboost",
    "dbn",
    "attention",
    "wavelet",
    "gnn",
    "qlearning",
    "gan",
    "meta_learning",
    "vae",
    "capsule",
    "tcn",
    "siamese",
    "bilstm",
    "resnet",
)

# Classic algorithms that vote in the ensemble. delta never did.
ENSEMBLE_ALGORITHMS: tuple[str, ...] = tuple(n for n in CLASSIC_ALGORITHMS if n != "delta")

ADAPTIVE_ALGORITHMS: tuple[str, ...] = (
    "frequency_gap",
    "statistical_balance",
    "hot_cold_mix",
    "weighted_recency",
    "gap_overdue",
    "consecutive_pattern",
    "order_pattern",
)


def get_algorithm(name: str) -> Algorithm:
    try:
        return _REGISTRY[name]
    except KeyError:
        raise NotFoundError(
            message=f"Unknown algorithm: {name}",
            details={"algorithm": [f"Must be one of {', '.join(sorted(_REGISTRY))}"]},
        ) from None


def list_algorithms() -> list[dict[str, object]]:
    out: list[dict[str, object]] = []
    for name in _REGISTRY:
        groups = []
        if name in CLASSIC_ALGORITHMS:
            groups.append("classic")
        if name in ADAPTIVE_ALGORITHMS:
            groups.append("adaptive")
        out.append(
            {
                "name": name,
                "description": _DESCRIPTIONS[name],
                "randomized": name in _RANDOMIZED,
                "groups": groups,
            }
        )
    return out


def member_rng(seed: int | None, name: str) -> random.Random:
    """Independent random stream per (seed, algorithm)."""

    if seed is None:
        return random.Random()
    return random.Random(f"{seed}:{name}")


def run_algorithm(name: str, history: Sequence[Draw], seed: int | None = None) -> Prediction:
    """Run one algorithm by name on ``history`` (newest first)."""

    fn = get_algorithm(name)
    require_history(history, MIN_HISTORY)
    return fn(history, member_rng(seed, name))


__all__ = [
    "ADAPTIVE_ALGORITHMS",
    "CLASSIC_ALGORITHMS",
    "ENSEMBLE_ALGORITHMS",
    "MIN_HISTORY",
    "get_algorithm",
    "list_algorithms",
    "member_rng",
    "register",
    "run_algorithm",
]
