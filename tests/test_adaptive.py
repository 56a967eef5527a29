from __future__ import annotations

from datetime import date
from unittest import mock

import pytest

from eurojackpot.algorithms import ADAPTIVE_ALGORITHMS
from eurojackpot.domain import Prediction
from eurojackpot.services import adaptive_service
from eurojackpot.services.adaptive_service import (
    AdaptiveService,
    adaptive_predict,
    check_duplicate,
    learn_weights,
)
from tests.conftest import make_draw, repeated_history

FIXED = Prediction(main_numbers=(1, 2, 3, 4, 5), bonus_numbers=(1, 2))


class TestCheckDuplicate:
    @pytest.fixture
    def draws(self):
        return [
            make_draw(date(2024, 1, 30), (1, 2, 3, 4, 5), (1, 2)),
            make_draw(date(2024, 1, 26), (6, 7, 8, 9, 10), (3, 4)),
            make_draw(date(2024, 1, 23), (11, 12, 13, 14, 15), (5, 6)),
            make_draw(date(2024, 1, 19), (16, 17, 18, 19, 20), (7, 8)),
            make_draw(date(2024, 1, 16), (21, 22, 23, 24, 25), (9, 10)),
            make_draw(date(2024, 1, 12), (26, 27, 28, 29, 30), (11, 12)),
        ]

    def test_exact_duplicate_anywhere(self, draws):
        result = check_duplicate([30, 29, 28, 27, 26], [12, 11], draws)

        assert result.exists
        assert result.draw_date == date(2024, 1, 12)

    def test_exact_duplicate_beats_recent_match(self, draws):
        result = check_duplicate([5, 4, 3, 2, 1], [2, 1], draws)

        assert result.exists
        assert result.recent_match is None

    def test_bonus_of_last_draw(self, draws):
        result = check_duplicate([40, 41, 42, 43, 44], [1, 2], draws)

        assert not result.exists
        assert result.recent_match == "exact_bonus_last_draw"
        assert result.recent_index == 0

    def test_recent_bonus(self, draws):
        assert check_duplicate([40, 41, 42, 43, 44], [5, 6], draws).recent_match == "exact_bonus_recent"

    def test_recent_main(self, draws):
        result = check_duplicate([16, 17, 18, 19, 20], [1, 12], draws)

        assert result.recent_match == "exact_main_recent"
        assert result.recent_index == 3

    def test_no_match(self, draws):
        result = check_duplicate([40, 41, 42, 43, 44], [1, 12], draws)

        assert not result.exists
        assert result.recent_match is None


class TestLearnWeights:
    def test_equal_performance_gives_equal_weights(self):
        """Every step scores 5*15 + 2*7 + 50 = 139."""

        with mock.patch.object(adaptive_service, "get_algorithm", return_value=lambda h, rng: FIXED):
            learned = learn_weights(repeated_history(35), validation_size=100)

        assert learned.validation_size == 5
        assert learned.validation_score == pytest.approx(139)
        assert set(learned.weights) == set(ADAPTIVE_ALGORITHMS)
        assert sum(learned.weights.values()) == pytest.approx(1.0)
        assert all(w == pytest.approx(1 / 7) for w in learned.weights.values())
        stats = learned.stats["order_pattern"]
        assert stats.matches_3_plus == 5
        assert stats.raw_weight == pytest.approx(139 + 5 * 2 + 5)

    def test_real_algorithms(self, history):
        learned = learn_weights(history, validation_size=3, seed=4)

        assert learned.validation_size == 3
        assert sum(learned.weights.values()) == pytest.approx(1.0)
        assert all(w > 0 for w in learned.weights.values())


class TestAdaptivePredict:
    def test_votes_penalise_last_draw(self):
        """Latest-draw numbers keep 30% (main) or 20% (euro) of their votes."""

        history = repeated_history(12, main=(1, 2, 3, 4, 5), bonus=(1, 2))
        picks = {
            "a": Prediction(main_numbers=(1, 2, 3, 4, 5), bonus_numbers=(1, 2)),
            "b": Prediction(main_numbers=(6, 7, 8, 9, 10), bonus_numbers=(3, 4)),
        }

        with mock.patch.object(adaptive_service, "get_algorithm", side_effect=lambda n: lambda h, rng: picks[n]):
            result = adaptive_predict(history, {"a": 0.6, "b": 0.4}, validation_score=10)

        assert result.prediction.main_numbers == (6, 7, 8, 9, 10)
        assert result.prediction.bonus_numbers == (3, 4)
        assert [c.number for c in result.alternative_main] == [1, 2, 3, 4, 5]
        assert result.best_method == "a"
        assert all(c.score <= 40 for c in result.main_confidence)
        assert all(c.score <= 35 for c in result.alternative_main)
        assert result.confidence <= 50

    def test_confidence_formula(self):
        history = repeated_history(12, main=(40, 41, 42, 43, 44), bonus=(11, 12))
        picks = {"a": FIXED}

        with mock.patch.object(adaptive_service, "get_algorithm", side_effect=lambda n: lambda h, rng: picks[n]):
            result = adaptive_predict(history, {"a": 1.0}, validation_score=8)

        # every vote equal: concentration 1, base = 8 / 20 * 25
        assert result.confidence == pytest.approx(10)
        # v/max*35 + v/total*100 = 55, capped at 40 (main) and 90 capped at 45 (euro)
        assert [c.score for c in result.main_confidence] == [40] * 5
        assert [c.score for c in result.bonus_confidence] == [45, 45]

    def test_service_end_to_end(self, history):
        learned, result = AdaptiveService().predict(history, validation_size=2, seed=1)

        main = result.prediction.main_numbers
        assert len(main) == 5 and len(set(main)) == 5
        assert result.best_method in learned.weights
        assert result.duplicate.exists is False or result.duplicate.draw_date is not None
