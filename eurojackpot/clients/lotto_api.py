"""HTTP client for the Lotto.pl open API (EuroJackpot draw results)."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from eurojackpot.domain import Draw, parse_date
from eurojackpot.errors import RateLimitedError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)

DRAW_RESULTS_PATH = "/lotteries/draw-results/by-date-per-game"

# EuroJackpot is drawn on Tuesdays and Fridays.
DRAW_WEEKDAYS = (1, 4)


def build_http_session(retries: int, backoff_factor: float) -> requests.Session:
    """Create a requests session with retry/backoff for transient network errors."""

    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        backoff_factor=backoff_factor,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET",),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=20, pool_maxsize=20)

    session = requests.Session()
    session.headers.update({"User-Agent": "Mozilla/5.0", "Accept": "application/json"})
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def draw_dates(start: date, now: datetime, *, results_hour: int = 23) -> list[date]:
    """Every Tuesday and Friday from ``start`` up to ``now``.

    Today only counts once results are published (``now.hour >= results_hour``).
    """

    end = now.date() if now.hour >= results_hour else now.date() - timedelta(days=1)

    out: list[date] = []
    current = start
    while current <= end:
        if current.weekday() in DRAW_WEEKDAYS:
            out.append(current)
        current += timedelta(days=1)
    return out


def _items(payload: Any) -> list[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("items", "results"):
            value = payload.get(key)
            if isinstance(value, list):
                return value
    return []


def parse_draw(item: dict[str, Any]) -> Draw:
    """Parse one API item. Missing number lists yield an incomplete draw."""

    main: list[Any] = []
    bonus: list[Any] = []

    results = item.get("results")
    if isinstance(results, list) and results and isinstance(results[0], dict):
        first = results[0]
        if isinstance(first.get("resultsJson"), list):
            main = first["resultsJson"]
        if isinstance(first.get("specialResults"), list):
            bonus = first["specialResults"]
    else:
        logger.warning("Draw %s has no results array", item.get("drawSystemId"))

    return Draw.from_dict(
        {
            "drawDate": item.get("drawDate"),
            "drawSystemId": item.get("drawSystemId"),
            "numbers": main,
            "euroNumbers": bonus,
        }
    )


@dataclass
class LottoClient:
    """Thin wrapper around the draw results endpoint."""

    base_url: str
    api_key: str = ""
    game_type: str = "EuroJackpot"
    timeout_seconds: float = 10.0
    http: requests.Session = field(default_factory=lambda: build_http_session(retries=3, backoff_factor=0.5))

    @classmethod
    def from_config(cls, config: Any) -> "LottoClient":
        """Build a client from a Flask config mapping or config object."""

        def _get(key: str, default: Any) -> Any:
            if isinstance(config, dict):
                return config.get(key, default)
            return getattr(config, key, default)

        return cls(
            base_url=str(_get("LOTTO_API_BASE_URL", "https://developers.lotto.pl/api/open/v1")),
            api_key=str(_get("LOTTO_API_KEY", "") or ""),
            game_type=str(_get("LOTTO_GAME_TYPE", "EuroJackpot")),
            timeout_seconds=float(_get("HTTP_TIMEOUT_SECONDS", 10.0)),
            http=build_http_session(
                retries=int(_get("HTTP_RETRIES", 3)),
                backoff_factor=float(_get("HTTP_BACKOFF", 0.5)),
            ),
        )

    def _get_page(self, params: dict[str, Any]) -> Any | None:
        """GET one page. Returns the decoded JSON or None for 404."""

        headers = {"secret": self.api_key} if self.api_key else {}
        url = self.base_url.rstrip("/") + DRAW_RESULTS_PATH

        try:
            resp = self.http.get(url, params=params, headers=headers, timeout=self.timeout_seconds)
        except requests.RequestException as exc:
            raise UpstreamError(message="Draw results request failed", details=str(exc)) from exc

        if resp.status_code == 404:
            return None
        if resp.status_code == 429:
            raise RateLimitedError(details={"params": params})
        if resp.status_code >= 400:
            raise UpstreamError(
                message=f"API returned {resp.status_code}",
                details={"status": resp.status_code, "params": params},
            )

        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamError(message="Invalid JSON from draw results API") from exc

    def fetch_draw_on(self, day: date) -> Draw | None:
        """The draw held on ``day``, or None when there was none."""

        payload = self._get_page(
            {
                "gameType": self.game_type,
                "drawDate": f"{day.isoformat()}T00:00:00.000Z",
                "index": 1,
                "size": 1,
                "sort": "drawDate",
                "order": "DESC",
            }
        )
        if payload is None:
            return None

        items = _items(payload)
        if not items or not isinstance(items[0], dict):
            return None

        item = items[0]
        try:
            returned = parse_date(item.get("drawDate"))
        except ValueError:
            return None
        # The endpoint answers with the nearest earlier draw for non-draw days.
        if returned != day:
            return None

        return parse_draw(item)

    def iter_draw_pages(self, page_size: int = 100) -> Iterator[list[Draw]]:
        """Yield pages of draws (newest first) until an empty page."""

        index = 1
        while True:
            payload = self._get_page(
                {
                    "gameType": self.game_type,
                    "index": index,
                    "size": page_size,
                    "sort": "drawDate",
                    "order": "DESC",
                }
            )
            items = [i for i in _items(payload) if isinstance(i, dict)] if payload is not None else []
            if not items:
                return

            page: list[Draw] = []
            for item in items:
                try:
                    page.append(parse_draw(item))
                except ValidationError as exc:
                    logger.warning("Skipping malformed draw item: %s", exc)
            yield page
            index += 1
