from __future__ import annotations

from datetime import date, datetime
from unittest import mock

import pytest
import requests

from eurojackpot.clients.lotto_api import LottoClient, draw_dates, parse_draw
from eurojackpot.errors import RateLimitedError, UpstreamError


def _response(status_code=200, payload=None):
    resp = mock.Mock()
    resp.status_code = status_code
    resp.json.return_value = payload
    return resp


def _item(day="2024-05-10T20:00:00Z", main=(5, 12, 23, 34, 45), bonus=(3, 9), draw_system_id=700):
    return {
        "drawDate": day,
        "drawSystemId": draw_system_id,
        "results": [{"resultsJson": list(main), "specialResults": list(bonus)}],
    }


@pytest.fixture
def http():
    return mock.Mock()


@pytest.fixture
def client(http):
    return LottoClient(base_url="https://example.test/api/", api_key="s3cret", http=http)


class TestFetchDrawOn:
    def test_success(self, client, http):
        http.get.return_value = _response(payload={"items": [_item()]})

        draw = client.fetch_draw_on(date(2024, 5, 10))

        assert draw.draw_date == date(2024, 5, 10)
        assert draw.main_numbers == (5, 12, 23, 34, 45)
        assert draw.bonus_numbers == (3, 9)
        assert draw.draw_system_id == 700

        args, kwargs = http.get.call_args
        assert args[0] == "https://example.test/api/lotteries/draw-results/by-date-per-game"
        assert kwargs["headers"] == {"secret": "s3cret"}
        assert kwargs["params"]["drawDate"] == "2024-05-10T00:00:00.000Z"
        assert kwargs["params"]["gameType"] == "EuroJackpot"

    def test_no_secret_header_without_key(self, http):
        http.get.return_value = _response(payload=[_item()])

        LottoClient(base_url="https://example.test", http=http).fetch_draw_on(date(2024, 5, 10))

        assert http.get.call_args.kwargs["headers"] == {}

    def test_date_mismatch(self, client, http):
        """The API answers with the nearest earlier draw on non-draw days."""

        http.get.return_value = _response(payload={"items": [_item(day="2024-05-07T20:00:00Z")]})

        assert client.fetch_draw_on(date(2024, 5, 10)) is None

    def test_not_found(self, client, http):
        http.get.return_value = _response(status_code=404)

        assert client.fetch_draw_on(date(2024, 5, 10)) is None

    def test_empty_payload(self, client, http):
        http.get.return_value = _response(payload={"items": []})

        assert client.fetch_draw_on(date(2024, 5, 10)) is None

    def test_rate_limited(self, client, http):
        http.get.return_value = _response(status_code=429)

        with pytest.raises(RateLimitedError) as exc_info:
            client.fetch_draw_on(date(2024, 5, 10))

        assert exc_info.value.status_code == 429

    def test_server_error(self, client, http):
        http.get.return_value = _response(status_code=500)

        with pytest.raises(UpstreamError) as exc_info:
            client.fetch_draw_on(date(2024, 5, 10))

        assert exc_info.value.details["status"] == 500

    def test_network_error(self, client, http):
        http.get.side_effect = requests.ConnectionError("boom")

        with pytest.raises(UpstreamError):
            client.fetch_draw_on(date(2024, 5, 10))

    def test_invalid_json(self, client, http):
        resp = _response()
        resp.json.side_effect = ValueError("not json")
        http.get.return_value = resp

        with pytest.raises(UpstreamError):
            client.fetch_draw_on(date(2024, 5, 10))


class TestIterDrawPages:
    def test_stops_on_empty_page(self, client, http):
        http.get.side_effect = [
            _response(payload={"items": [_item(), _item(day="2024-05-07", draw_system_id=699)]}),
            _response(payload={"items": [{"drawDate": "not-a-date"}, _item(day="2024-05-03", draw_system_id=698)]}),
            _response(payload={"items": []}),
        ]

        pages = list(client.iter_draw_pages(page_size=2))

        assert [len(p) for p in pages] == [2, 1]
        assert pages[1][0].draw_system_id == 698
        assert [c.kwargs["params"]["index"] for c in http.get.call_args_list] == [1, 2, 3]


class TestHelpers:
    def test_draw_dates_tuesdays_and_fridays(self):
        dates = draw_dates(date(2024, 5, 6), datetime(2024, 5, 17, 23, 30))

        assert dates == [date(2024, 5, 7), date(2024, 5, 10), date(2024, 5, 14), date(2024, 5, 17)]

    def test_draw_dates_before_results_hour(self):
        dates = draw_dates(date(2024, 5, 6), datetime(2024, 5, 17, 21, 0), results_hour=22)

        assert dates[-1] == date(2024, 5, 14)

    def test_parse_draw_without_results(self):
        draw = parse_draw({"drawDate": "2024-05-10T20:00:00Z", "drawSystemId": 7})

        assert draw.draw_date == date(2024, 5, 10)
        assert not draw.is_complete()

    def test_from_config(self):
        client = LottoClient.from_config({"LOTTO_API_KEY": "k", "HTTP_TIMEOUT_SECONDS": 3})

        assert client.api_key == "k"
        assert client.timeout_seconds == 3.0
        assert client.http is not None

    def test_default_session_retries_transient_errors(self):
        client = LottoClient(base_url="https://example.test/api/")

        retry = client.http.get_adapter("https://example.test/api/").max_retries
        assert isinstance(client.http, requests.Session)
        assert retry.total == 3
        assert 429 in retry.status_forcelist
