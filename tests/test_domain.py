from __future__ import annotations

import json
from datetime import date

import pytest

from eurojackpot.domain import (
    Draw,
    Prediction,
    dump_draws_json,
    load_draws_json,
    require_history,
    sort_and_deduplicate,
    validate_numbers,
)
from eurojackpot.errors import ValidationError
from tests.conftest import make_draw


class TestDraw:
    def test_from_dict_camel_case(self):
        """The bundled JSON format is parsed."""

        draw = Draw.from_dict(
            {"drawDate": "2024-05-10", "drawSystemId": 700, "numbers": [5, 1, 9, 33, 48], "euroNumbers": [2, 11]}
        )

        assert draw.draw_date == date(2024, 5, 10)
        assert draw.draw_system_id == 700
        assert draw.main_numbers == (5, 1, 9, 33, 48)
        assert draw.bonus_numbers == (2, 11)
        assert draw.is_complete()

    def test_from_dict_snake_case_and_timestamp(self):
        """snake_case keys and full timestamps are accepted."""

        draw = Draw.from_dict(
            {"draw_date": "2024-05-10T20:00:00Z", "main_numbers": [1, 2, 3, 4, 5], "bonus_numbers": [1, 2]}
        )

        assert draw.draw_date == date(2024, 5, 10)
        assert draw.draw_system_id is None
        assert draw.is_complete()

    def test_missing_numbers_make_incomplete_draw(self):
        """Missing lists default to empty."""

        draw = Draw.from_dict({"drawDate": "2024-05-10"})

        assert draw.main_numbers == ()
        assert draw.bonus_numbers == ()
        assert not draw.is_complete()

    def test_out_of_range_or_duplicate_is_incomplete(self):
        assert not make_draw(date(2024, 1, 2), [1, 2, 3, 4, 51], [1, 2]).is_complete()
        assert not make_draw(date(2024, 1, 2), [1, 1, 3, 4, 5], [1, 2]).is_complete()
        assert not make_draw(date(2024, 1, 2), [1, 2, 3, 4, 5], [1, 13]).is_complete()

    def test_missing_date_raises(self):
        with pytest.raises(ValidationError):
            Draw.from_dict({"numbers": [1, 2, 3, 4, 5], "euroNumbers": [1, 2]})

    def test_bad_date_raises(self):
        with pytest.raises(ValidationError):
            Draw.from_dict({"drawDate": "yesterday", "numbers": [1, 2, 3, 4, 5], "euroNumbers": [1, 2]})

    def test_to_dict_round_trips_file_format(self):
        payload = {"drawDate": "2024-05-10", "drawSystemId": 7, "numbers": [1, 2, 3, 4, 5], "euroNumbers": [1, 2]}

        assert Draw.from_dict(payload).to_dict() == payload


class TestPrediction:
    def test_to_dict_exposes_rank_and_display_order(self):
        pred = Prediction(main_numbers=(40, 3, 17, 9, 22), bonus_numbers=(11, 4))

        data = pred.to_dict()

        assert data["main_numbers"] == [40, 3, 17, 9, 22]
        assert data["sorted_main_numbers"] == [3, 9, 17, 22, 40]
        assert data["sorted_bonus_numbers"] == [4, 11]


class TestValidateNumbers:
    def test_valid_ticket(self):
        validate_numbers([1, 2, 3, 4, 5], [1, 2])

    def test_wrong_size_and_range(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_numbers([1, 2, 3, 4], [1, 13])

        details = exc_info.value.details
        assert "main_numbers" in details
        assert "bonus_numbers" in details

    def test_duplicates(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_numbers([1, 1, 2, 3, 4], [1, 2])

        assert exc_info.value.details["main_numbers"] == ["Numbers must be unique"]

    def test_partial_allows_fewer_numbers(self):
        validate_numbers([7], [], partial=True)

        with pytest.raises(ValidationError):
            validate_numbers([1, 2, 3, 4, 5, 6], [], partial=True)


class TestHistoryHelpers:
    def test_sort_and_deduplicate(self):
        """Duplicates by id (or by date without id) are dropped; newest first."""

        a = make_draw(date(2024, 1, 2), [1, 2, 3, 4, 5], [1, 2], 1)
        b = make_draw(date(2024, 1, 5), [6, 7, 8, 9, 10], [3, 4], 2)
        b_again = make_draw(date(2024, 1, 6), [6, 7, 8, 9, 10], [3, 4], 2)
        c = make_draw(date(2024, 1, 9), [11, 12, 13, 14, 15], [5, 6])
        c_again = make_draw(date(2024, 1, 9), [11, 12, 13, 14, 16], [5, 6])

        result = sort_and_deduplicate([a, b, b_again, c, c_again])

        assert result == [c, b, a]

    def test_require_history(self):
        require_history([object()] * 3, 3)

        with pytest.raises(ValidationError) as exc_info:
            require_history([], 1)

        assert "too short" in exc_info.value.details["history"][0]


class TestDrawsJson:
    def test_load_skips_incomplete_and_sorts(self, tmp_path):
        path = tmp_path / "draws.json"
        path.write_text(
            json.dumps(
                [
                    {"drawDate": "2024-01-02", "drawSystemId": 1, "numbers": [1, 2, 3, 4, 5], "euroNumbers": [1, 2]},
                    {"drawDate": "2024-01-05", "drawSystemId": 2, "numbers": [1, 2, 3], "euroNumbers": [1, 2]},
                    {"drawDate": "2024-01-09", "drawSystemId": 3, "numbers": [6, 7, 8, 9, 10], "euroNumbers": [3, 4]},
                    "garbage",
                ]
            ),
            encoding="utf-8",
        )

        draws = load_draws_json(path)

        assert [d.draw_system_id for d in draws] == [3, 1]

    def test_load_accepts_wrapped_object(self, tmp_path):
        path = tmp_path / "draws.json"
        path.write_text(
            json.dumps({"draws": [{"drawDate": "2024-01-02", "numbers": [1, 2, 3, 4, 5], "euroNumbers": [1, 2]}]}),
            encoding="utf-8",
        )

        assert len(load_draws_json(path)) == 1

    def test_dump_then_load(self, tmp_path, history):
        path = tmp_path / "out.json"

        written = dump_draws_json(history, path)

        assert written == len(history)
        assert load_draws_json(path) == history
