from __future__ import annotations

import pytest

from eurojackpot.errors import ValidationError
from eurojackpot.services.order_pattern_service import analyze_order_patterns
from tests.conftest import repeated_history


class TestOrderPatterns:
    def test_scores_every_number_sorted_by_total(self, history):
        analysis = analyze_order_patterns(history, 30)

        assert sorted(s.number for s in analysis.main_scores) == list(range(1, 51))
        assert sorted(s.number for s in analysis.bonus_scores) == list(range(1, 13))

        totals = [s.total_order_score for s in analysis.main_scores]
        assert totals == sorted(totals, reverse=True)

    def test_weighted_total(self, history):
        score = analyze_order_patterns(history, 30).main_scores[0]

        expected = (
            score.position_score * 0.35
            + score.gap_pattern_score * 0.30
            + score.sequence_score * 0.20
            + score.transition_score * 0.15
        )
        assert score.total_order_score == pytest.approx(expected)

    def test_constant_draws(self):
        """The same sorted draw every time: fixed positions and gaps."""

        history = repeated_history(10, main=(5, 15, 25, 35, 45), bonus=(3, 9))

        analysis = analyze_order_patterns(history, 30)
        by_number = {s.number: s for s in analysis.main_scores}

        assert by_number[25].preferred_position == 2
        # consistency 60 + expected-position bonus 20 + appearance rate 20
        assert by_number[25].position_score == pytest.approx(100)
        assert by_number[7].position_score == 0
        # never seen: no transitions recorded
        assert by_number[7].transition_score == 50
        assert analysis.insights.common_gap_pattern == [10, 10, 10, 10]
        assert analysis.insights.avg_gap_between_numbers == pytest.approx(10)
        assert analysis.insights.sequence_tendency == "balanced"
        assert analysis.insights.preferred_positions[45] == 4

    def test_requires_history(self):
        with pytest.raises(ValidationError):
            analyze_order_patterns([], 30)

    def test_to_dict_is_json_ready(self, history):
        data = analyze_order_patterns(history, 10).to_dict()

        assert set(data) == {"main_scores", "bonus_scores", "insights"}
        assert all(isinstance(k, str) for k in data["insights"]["preferred_positions"])
