from __future__ import annotations

import random
from datetime import date

import pytest

from eurojackpot.errors import ValidationError
from eurojackpot.services.big_number_service import (
    BigNumberPattern,
    analyze_big_numbers,
    big_number_to_numbers,
    count_euro_sequences,
    count_sequences,
    digit_transitions,
    draw_to_big_number,
    modulo_distribution,
    positional_digits,
)
from tests.conftest import make_draw, make_history, repeated_history


@pytest.fixture
def pattern():
    return BigNumberPattern.from_draw(make_draw(date(2024, 5, 10), (3, 17, 22, 41, 9), (2, 11)))


class TestBigNumber:
    def test_zero_padded_in_draw_order(self):
        assert draw_to_big_number((3, 17, 22, 41, 9)) == "0317224109"
        assert draw_to_big_number((3, 17, 22, 41, 9), sort=True) == "0309172241"

    def test_read_back_keeps_distinct_numbers_in_range(self):
        assert big_number_to_numbers("0317224109") == [3, 17, 22, 41, 9]
        assert big_number_to_numbers("0099516012") == [12]
        assert big_number_to_numbers("0303") == [3]

    def test_pattern_digits(self, pattern):
        assert pattern.big_number == "0317224109"
        assert pattern.euro_big_number == "0211"
        assert pattern.digit_sum == 29
        assert pattern.digit_product == 0
        assert pattern.euro_digit_sum == 4

    def test_sequences(self, pattern):
        counts = count_sequences([pattern, pattern])

        # 9 runs of two digits, 8 of three, 7 of four.
        assert sum(counts.values()) == 48
        assert counts["22"] == 2
        assert counts["7224"] == 2

    def test_euro_sequences(self, pattern):
        assert count_euro_sequences([pattern]) == {"0211": 1, "02": 1, "21": 1, "11": 1}

    def test_positional_and_transitions(self, pattern):
        positions = positional_digits([pattern])
        transitions = digit_transitions([pattern])

        assert positions[0] == {0: 1}
        assert positions[9] == {9: 1}
        assert sum(transitions.values()) == 9
        assert transitions["2->2"] == 1

    def test_modulo_nine_follows_digit_sum(self, pattern):
        assert modulo_distribution([pattern]) == {29 % 9: 1}


class TestAnalyzeBigNumbers:
    def test_constant_history(self):
        """Every draw is 1..5 + 1,2, so every big number is 0102030405."""

        history = repeated_history(12)

        report = analyze_big_numbers(history, random.Random(3))
        methods = {p.method: p for p in report.predictions}

        assert report.sequences[0] == ("01", 12)
        assert report.modulo_distribution == {6: 12}
        assert report.digit_sum_stats.min == report.digit_sum_stats.max == 15
        assert len(report.digit_sum_stats.recent) == 10
        assert report.positional[1] == {1: 12}
        assert len(report.patterns) == 12

        frequent = methods["Frequent Sequence Pattern"]
        # "01" + "010" + "0102" + "02" -> 0101001020 -> 1, 10, 20, then 2 and 3 by recent frequency.
        assert frequent.prediction.main_numbers == (1, 10, 20, 2, 3)
        assert frequent.confidence == 80
        assert methods["Positional Digit Frequency"].prediction.main_numbers == (1, 2, 3, 4, 5)
        assert methods["Digit Transition Pattern"].prediction.main_numbers[0] == 1
        assert "15" in methods["Digit Sum Progression"].details
        assert all(p.prediction.bonus_numbers == (1, 2) for p in report.predictions)

    def test_every_method_returns_a_valid_ticket(self, history):
        report = analyze_big_numbers(history, random.Random(11))

        assert [p.confidence for p in report.predictions][1:] == [75, 70, 72, 68]
        for p in report.predictions:
            main = p.prediction.main_numbers
            bonus = p.prediction.bonus_numbers
            assert len(set(main)) == 5 and all(1 <= n <= 50 for n in main)
            assert len(set(bonus)) == 2 and all(1 <= n <= 12 for n in bonus)

    def test_seeded_runs_repeat(self):
        history = make_history(30, seed=4)

        first = analyze_big_numbers(history, random.Random(9)).to_dict()
        second = analyze_big_numbers(history, random.Random(9)).to_dict()

        assert first == second

    def test_needs_two_draws(self):
        with pytest.raises(ValidationError):
            analyze_big_numbers(make_history(1), random.Random(1))
