from __future__ import annotations

import pytest

from eurojackpot.algorithms import ENSEMBLE_ALGORITHMS
from eurojackpot.errors import ValidationError
from eurojackpot.services.ensemble_service import EnsembleService, vote


class TestVote:
    def test_positional_scores(self):
        """Index 0 earns k points, the last index 1 point."""

        result = vote([[10, 20, 30, 40, 50], [20, 10, 31, 41, 1]], 5)

        scores = {c.number: c.score for c in result}
        assert [c.number for c in result] == [10, 20, 30, 31, 40]
        assert scores[10] == 9
        assert scores[20] == 9
        assert scores[30] == 3

    def test_ties_go_to_lower_number(self):
        assert [c.number for c in vote([[2, 1], [1, 2]], 2)] == [1, 2]
        assert [c.number for c in vote([[9, 8], [7, 6]], 2)] == [7, 9]

    def test_weights(self):
        result = vote([[1, 2], [3, 4]], 2, weights=[1.0, 3.0])

        assert [c.number for c in result] == [3, 4]
        assert result[0].score == 6

    def test_weights_must_match(self):
        with pytest.raises(ValueError):
            vote([[1, 2]], 2, weights=[1.0, 2.0])


class TestEnsembleService:
    def test_equal_mode(self, history):
        result = EnsembleService().predict(history, mode="equal", seed=5)

        assert result.member_count == len(ENSEMBLE_ALGORITHMS) == 39
        assert "delta" not in result.members
        assert result.weights["order_pattern"] == 2.0
        assert result.weights["hybrid"] == 1.0
        assert len(result.prediction.main_numbers) == 5
        assert len(set(result.prediction.bonus_numbers)) == 2

    def test_deterministic_with_seed(self, history):
        service = EnsembleService(algorithms=("hybrid", "monte_carlo", "vae", "order_pattern"))

        first = service.predict(history, seed=8)
        second = service.predict(history, seed=8)

        assert first.prediction == second.prediction
        assert first.main_votes == second.main_votes

    def test_historical_mode_uses_average_scores(self, history):
        service = EnsembleService(algorithms=("hybrid", "hot_cold", "markov"), historical_targets=3)

        result = service.predict(history, mode="historical", seed=1)

        assert set(result.weights) == {"hybrid", "hot_cold", "markov"}
        assert all(w >= 0 for w in result.weights.values())
        assert len(result.prediction.main_numbers) == 5

    def test_unknown_mode(self, history):
        with pytest.raises(ValidationError):
            EnsembleService().predict(history, mode="loudest")
