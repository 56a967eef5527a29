from __future__ import annotations

import random
from datetime import date, timedelta

import pytest

from eurojackpot.algorithms import (
    ADAPTIVE_ALGORITHMS,
    CLASSIC_ALGORITHMS,
    MIN_HISTORY,
    get_algorithm,
    list_algorithms,
    member_rng,
    run_algorithm,
)
from eurojackpot.algorithms.base import finalize_prediction, top_numbers
from eurojackpot.errors import NotFoundError, ValidationError
from tests.conftest import make_draw, make_history, repeated_history

ALL_NAMES = sorted(set(CLASSIC_ALGORITHMS) | set(ADAPTIVE_ALGORITHMS))
RANDOMIZED = ("statistical_balance", "hot_cold_mix", "delta", "genetic", "monte_carlo", "vae")


def _assert_valid(prediction):
    main = prediction.main_numbers
    bonus = prediction.bonus_numbers
    assert len(main) == 5 and len(set(main)) == 5
    assert all(isinstance(n, int) and 1 <= n <= 50 for n in main)
    assert len(bonus) == 2 and len(set(bonus)) == 2
    assert all(isinstance(n, int) and 1 <= n <= 12 for n in bonus)


class TestRegistry:
    def test_groups(self):
        """40 classic algorithms, 7 adaptive, order_pattern in both."""

        assert len(CLASSIC_ALGORITHMS) == 40
        assert len(ADAPTIVE_ALGORITHMS) == 7
        assert set(CLASSIC_ALGORITHMS) & set(ADAPTIVE_ALGORITHMS) == {"order_pattern"}

    def test_list_algorithms(self):
        listed = {a["name"]: a for a in list_algorithms()}

        assert set(listed) == set(ALL_NAMES)
        assert listed["order_pattern"]["groups"] == ["classic", "adaptive"]
        assert listed["frequency_gap"]["groups"] == ["adaptive"]
        assert {n for n, a in listed.items() if a["randomized"]} == set(RANDOMIZED)
        assert all(a["description"] for a in listed.values())

    def test_unknown_algorithm(self):
        with pytest.raises(NotFoundError):
            get_algorithm("astrology")

    def test_run_requires_min_history(self):
        with pytest.raises(ValidationError):
            run_algorithm("hybrid", make_history(MIN_HISTORY - 1))

    def test_member_rng_streams(self):
        """Streams depend on (seed, name) only."""

        assert member_rng(3, "vae").random() == member_rng(3, "vae").random()
        assert member_rng(3, "vae").random() != member_rng(3, "gan").random()


class TestHelpers:
    def test_top_numbers_ties_to_lower_number(self):
        assert top_numbers({7: 1.0, 3: 1.0, 9: 2.0, 1: 0.5}, 3) == [9, 3, 7]

    def test_finalize_keeps_rank_order_and_fills(self):
        """Duplicates and out-of-range picks are dropped; gaps fill by frequency."""

        history = repeated_history(12, main=(10, 20, 30, 40, 50), bonus=(5, 6))

        pred = finalize_prediction(history, [3, 3, 99, 8], [12, 12])

        assert pred.main_numbers == (3, 8, 10, 20, 30)
        assert pred.bonus_numbers == (12, 5)


@pytest.mark.parametrize("name", ALL_NAMES)
def test_every_algorithm_returns_a_valid_ticket(name, history):
    _assert_valid(run_algorithm(name, history, seed=11))


@pytest.mark.parametrize("name", ALL_NAMES)
def test_every_algorithm_handles_minimum_history(name):
    _assert_valid(run_algorithm(name, make_history(MIN_HISTORY, seed=5), seed=2))


@pytest.mark.parametrize("name", RANDOMIZED)
def test_randomized_algorithms_are_reproducible(name, history):
    first = run_algorithm(name, history, seed=42)
    second = run_algorithm(name, history, seed=42)

    assert first.main_numbers == second.main_numbers
    assert first.bonus_numbers == second.bonus_numbers


@pytest.mark.parametrize("name", ["hybrid", "markov", "knn", "lstm", "gnn", "frequency_gap", "order_pattern"])
def test_deterministic_algorithms_ignore_rng(name, history):
    fn = get_algorithm(name)

    assert fn(history, random.Random(1)) == fn(history, random.Random(2))


class TestImprovedAlgorithms:
    def test_consecutive_pattern_uses_pairs_then_frequency(self):
        history = repeated_history(12, main=(10, 11, 20, 21, 30), bonus=(1, 2))

        pred = run_algorithm("consecutive_pattern", history)

        assert pred.main_numbers == (10, 11, 20, 21, 30)
        assert pred.bonus_numbers == (1, 2)

    def test_weighted_recency_penalises_latest_draw(self):
        """The newest draw only counts 30% of its decayed weight."""

        history = [make_draw(date(2024, 12, 31), (1, 2, 3, 4, 5), (1, 2), 12)]
        history += repeated_history(11, main=(6, 7, 8, 9, 10), bonus=(3, 4))[1:]
        history += [make_draw(date(2024, 1, 1), (11, 12, 13, 14, 15), (5, 6), 1)]

        pred = run_algorithm("weighted_recency", history)

        assert set(pred.main_numbers) == {6, 7, 8, 9, 10}
        assert set(pred.bonus_numbers) == {3, 4}

    def test_weighted_recency_only_discounts_the_newest_draw_weight(self):
        """A number in draws 0 and 1 keeps its full draw-1 weight: .3 + e^-.1."""

        history = [
            make_draw(date(2024, 12, 31), (1, 2, 3, 4, 5), (1, 2), 12),
            make_draw(date(2024, 12, 27), (1, 6, 7, 8, 9), (1, 3), 11),
        ]
        history += [
            make_draw(date(2024, 12, 24) - timedelta(days=3 * i), (10, 11, 12, 13, 20 + i), (4, 5), 10 - i)
            for i in range(10)
        ]

        pred = run_algorithm("weighted_recency", history)

        assert pred.main_numbers == (10, 11, 12, 13, 1)
        assert pred.bonus_numbers == (4, 5)

    def test_gap_overdue_prefers_unseen_numbers(self):
        """Numbers with no gap history score 10; regular numbers score 0."""

        history = repeated_history(12, main=(1, 2, 3, 4, 5), bonus=(1, 2))

        pred = run_algorithm("gap_overdue", history)

        assert pred.main_numbers == (6, 7, 8, 9, 10)
        assert pred.bonus_numbers == (3, 4)

    def test_frequency_gap_prefers_absent_numbers(self):
        """Constant draws: repeated numbers score .4 * .3, absent ones .6."""

        history = repeated_history(12, main=(1, 2, 3, 4, 5), bonus=(1, 2))

        pred = run_algorithm("frequency_gap", history)

        assert pred.main_numbers == (6, 7, 8, 9, 10)
        assert pred.bonus_numbers == (3, 4)

    def test_hot_cold_mix_draws_from_recent_and_cold_pools(self, history):
        recent_10 = {n for d in history[:10] for n in d.main_numbers}
        recent_30 = {n for d in history[:30] for n in d.main_numbers}
        cold_pool = {n for d in history for n in d.main_numbers} - recent_30

        pred = run_algorithm("hot_cold_mix", history, seed=9)

        assert set(pred.main_numbers[:3]) <= recent_10
        expected_cold = min(2, len(cold_pool))
        assert len(set(pred.main_numbers[3 : 3 + expected_cold]) & cold_pool) == expected_cold

    def test_statistical_balance_respects_range_targets(self):
        """All draws are low/mid/high = 2/2/1, so every candidate is too."""

        history = repeated_history(12, main=(2, 5, 20, 23, 40), bonus=(1, 2))

        pred = run_algorithm("statistical_balance", history, seed=3)

        main = pred.main_numbers
        assert sum(1 for n in main if n <= 17) == 2
        assert sum(1 for n in main if 18 <= n <= 34) == 2
        assert sum(1 for n in main if n >= 35) == 1
        assert pred.bonus_numbers == (1, 2)
