from __future__ import annotations

from datetime import date
from unittest import mock

import pytest

from eurojackpot.domain import Prediction
from eurojackpot.errors import ValidationError
from eurojackpot.services import backtest_service
from eurojackpot.services.backtest_service import (
    analyze_historical_patterns,
    backtest_algorithm,
    compare_latest,
    consistency_score,
    count_matches,
    historical_performance,
    proximity_score,
)
from tests.conftest import make_draw, repeated_history

FIXED = Prediction(main_numbers=(1, 2, 3, 4, 5), bonus_numbers=(1, 2))


def _fixed_algorithm(history, rng):
    return FIXED


@pytest.fixture
def fixed_algorithm():
    with mock.patch.object(backtest_service, "get_algorithm", return_value=_fixed_algorithm) as patched:
        yield patched


class TestScoring:
    def test_count_matches(self):
        assert count_matches([1, 2, 3], [3, 2, 9]) == 2

    def test_proximity(self):
        """0 -> 10, <=2 -> 5, <=5 -> 3, <=10 -> 1."""

        assert proximity_score([1, 10, 20], [1, 12, 30]) == 16
        assert proximity_score([1, 46], [16, 50]) == 3

    def test_consistency(self):
        assert consistency_score([0, 0]) == 0
        assert consistency_score([4, 4, 4]) == 100
        assert consistency_score([2, 4]) == pytest.approx(200 / 3)


class TestBacktestAlgorithm:
    def test_walk_forward_arithmetic(self, fixed_algorithm):
        """Steps 30..34 predict history[29..33]; only history[29] differs."""

        history = repeated_history(35)
        history[29] = make_draw(history[29].draw_date, (1, 2, 3, 40, 50), (3, 4), history[29].draw_system_id)

        perf = backtest_algorithm(history, "fixed", test_size=100)

        assert perf.total_tests == 5
        assert perf.avg_main_matches == pytest.approx(4.6)
        assert perf.avg_bonus_matches == pytest.approx(1.6)
        # step 30: 3*10 + 0*5 + 40*0.5 = 50, the others 5*10 + 2*5 + 50*0.5 = 85
        assert perf.avg_score == pytest.approx((50 + 85 * 4) / 5)
        assert perf.main_match_5 == 4
        assert perf.main_match_3 == 1
        assert perf.main_match_4 == 0
        assert perf.bonus_match_2 == 4
        assert perf.best is not None and perf.best.index == 31

    def test_training_window(self, fixed_algorithm):
        history = repeated_history(33)
        seen = []

        def _spy(training, rng):
            seen.append(len(training))
            return FIXED

        fixed_algorithm.return_value = _spy
        backtest_algorithm(history, "spy", test_size=2)

        assert seen == [3, 2]

    def test_too_short(self, fixed_algorithm):
        with pytest.raises(ValidationError):
            backtest_algorithm(repeated_history(30), "fixed")


class TestHistoricalPerformance:
    def test_skips_short_training_windows(self, fixed_algorithm):
        """8 draws: targets 1..6, but only i <= 3 leaves 5 training draws."""

        results = historical_performance(repeated_history(8), ["a", "b"], max_targets=20)

        assert [r.name for r in results] == ["a", "b"]
        assert results[0].tests == 3
        assert results[0].total_score == 36
        assert results[0].average_score == 12
        assert results[0].best_score == 12
        assert results[0].consistency == 100

    def test_sorted_by_average(self):
        history = repeated_history(12)
        good = lambda h, rng: FIXED  # noqa: E731
        bad = lambda h, rng: Prediction(main_numbers=(46, 47, 48, 49, 50), bonus_numbers=(11, 12))  # noqa: E731

        with mock.patch.object(backtest_service, "get_algorithm", side_effect=lambda n: good if n == "z" else bad):
            results = historical_performance(history, ["a", "z"], max_targets=4)

        assert [r.name for r in results] == ["z", "a"]
        assert results[1].average_score == 0
        assert results[1].consistency == 0


class TestCompareLatest:
    def test_scores_against_newest_draw(self, fixed_algorithm):
        history = repeated_history(12, main=(10, 20, 30, 40, 50), bonus=(5, 6))
        history[0] = make_draw(history[0].draw_date, (1, 2, 30, 40, 50), (2, 6), history[0].draw_system_id)

        results = compare_latest(history, names=["x"])

        assert results[0].matched_main == [1, 2]
        assert results[0].matched_bonus == [2]
        assert results[0].total == 5


class TestHistoricalPatterns:
    def test_patterns(self):
        history = [
            make_draw(date(2024, 1, 9), (2, 4, 18, 36, 50), (1, 2)),
            make_draw(date(2024, 1, 5), (1, 2, 3, 20, 40), (1, 3)),
            make_draw(date(2024, 1, 2), (2, 5, 17, 34, 35), (4, 5)),
        ]

        patterns = analyze_historical_patterns(history)

        assert patterns.number_frequency[2] == 3
        assert patterns.bonus_frequency[1] == 2
        assert patterns.number_gaps[2] == [1, 1]
        assert patterns.avg_gap[2] == 1
        assert 1 not in patterns.avg_gap
        assert patterns.consecutive_pairs["1-2"] == 1
        assert patterns.sum_min == 66
        assert patterns.sum_max == 110
        assert patterns.range_patterns[0] == {"low": 2, "mid": 1, "high": 2}
        assert patterns.range_patterns[2] == {"low": 3, "mid": 1, "high": 1}
        assert patterns.hot_numbers == sorted({2, 4, 18, 36, 50, 1, 3, 20, 40, 5, 17, 34, 35})
        assert patterns.cold_numbers == [n for n in range(1, 51) if n not in patterns.hot_numbers]
        assert patterns.even_ratio == pytest.approx(10 / 15)
