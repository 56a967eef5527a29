from __future__ import annotations

import pytest

from eurojackpot.algorithms.base import BONUS, MAIN
from eurojackpot.errors import ValidationError
from eurojackpot.services.advanced_predictor_service import (
    AdvancedPredictorService,
    ValidationSummary,
    decade_clusters,
    gap_deviation,
    momentum,
    position_entropy,
    score_numbers,
    validate_on_history,
)
from tests.conftest import make_history, repeated_history


class TestFactors:
    def test_momentum(self):
        """Always drawn: 4.5 / 15 recent minus .7 of an older rate of 1."""

        scores = momentum(repeated_history(60), MAIN)

        assert scores[1] == pytest.approx(-0.4)
        assert scores[6] == 0

    def test_gap_deviation(self):
        history = repeated_history(20)

        main = gap_deviation(history, MAIN)
        bonus = gap_deviation(history, BONUS)

        assert main[1] == 1
        assert main[6] == 2.5
        assert bonus[1] == 1
        assert bonus[3] == 2.5

    def test_position_entropy_and_clusters(self):
        history = repeated_history(20)

        assert position_entropy(history)[3] == 0
        assert position_entropy(history)[6] == 0
        clusters = decade_clusters(history)
        assert clusters[1] == clusters[10] == 500
        assert clusters[11] == 0

    def test_scores_are_ranked(self, history):
        main_scores, bonus_scores = score_numbers(history)

        assert len(main_scores) == 50
        assert len(bonus_scores) == 12
        finals = [s.final_score for s in main_scores]
        assert finals == sorted(finals, reverse=True)
        assert set(main_scores[0].components) == {
            "order_pattern",
            "freq_short",
            "freq_medium",
            "freq_long",
            "momentum",
            "pattern",
            "gap",
            "position",
            "cluster",
        }


class TestSelfValidation:
    def test_walks_every_draw_after_the_minimum(self, history):
        steps = validate_on_history(history, min_draws=50)

        assert len(steps) == 10
        assert steps[0].actual == history[0]
        assert steps[-1].actual == history[9]
        assert all(s.score == s.main_matches * 10 + s.bonus_matches * 5 for s in steps)

    def test_summary(self, history):
        steps = validate_on_history(history, min_draws=50)

        summary = ValidationSummary.from_steps(steps)

        assert summary.total_tests == 10
        assert summary.avg_score == pytest.approx(sum(s.score for s in steps) / 10)
        assert summary.best.score == max(s.score for s in steps)

    def test_empty_summary(self):
        assert ValidationSummary.from_steps([]).to_dict()["best"] is None


class TestAdvancedPredictorService:
    def test_predict(self, history):
        result = AdvancedPredictorService().predict(history, min_draws=50)

        main = result.prediction.main_numbers
        bonus = result.prediction.bonus_numbers
        assert len(set(main)) == 5 and all(1 <= n <= 50 for n in main)
        assert len(set(bonus)) == 2 and all(1 <= n <= 12 for n in bonus)
        assert main == tuple(s.number for s in result.main_scores[:5])
        assert result.validation.total_tests == 10
        assert "exists" in result.to_dict()["duplicate"]

    def test_deterministic(self, history):
        service = AdvancedPredictorService()

        assert service.predict(history).prediction == service.predict(history).prediction

    def test_needs_more_than_min_draws(self):
        with pytest.raises(ValidationError):
            AdvancedPredictorService().predict(make_history(50), min_draws=50)
