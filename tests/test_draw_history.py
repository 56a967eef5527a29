from __future__ import annotations

import pytest

from eurojackpot.domain import dump_draws_json
from eurojackpot.errors import ValidationError
from eurojackpot.services.draw_history_service import DrawHistoryService
from tests.conftest import make_history


class TestDrawHistoryService:
    def test_db_source_needs_a_session(self):
        with pytest.raises(RuntimeError):
            DrawHistoryService("db").get_history(None)

    def test_unknown_source(self):
        with pytest.raises(ValueError):
            DrawHistoryService("csv")

    def test_json_source_newest_first(self, tmp_path):
        draws = make_history(12)
        path = tmp_path / "draws.json"
        dump_draws_json(list(reversed(draws)), path)

        history = DrawHistoryService("json", str(path)).get_history()

        assert [d.draw_date for d in history] == [d.draw_date for d in draws]

    def test_json_source_missing_file(self, tmp_path):
        with pytest.raises(ValidationError):
            DrawHistoryService("json", str(tmp_path / "missing.json")).get_history()
