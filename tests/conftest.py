from __future__ import annotations

import random
from datetime import date, timedelta

import pytest

from eurojackpot import create_app
from eurojackpot.domain import Draw
from eurojackpot.repositories.draw_repository import DrawRepository
from eurojackpot.services.draw_history_service import invalidate_history_cache

LATEST_DATE = date(2024, 12, 31)


def make_draw(day: date, main, bonus, draw_system_id: int | None = None) -> Draw:
    return Draw(
        draw_date=day,
        main_numbers=tuple(main),
        bonus_numbers=tuple(bonus),
        draw_system_id=draw_system_id,
    )


def make_history(count: int, seed: int = 1) -> list[Draw]:
    """Random but reproducible complete draws, newest first, three days apart."""

    rng = random.Random(seed)
    return [
        make_draw(
            LATEST_DATE - timedelta(days=3 * i),
            rng.sample(range(1, 51), 5),
            rng.sample(range(1, 13), 2),
            draw_system_id=count - i,
        )
        for i in range(count)
    ]


def repeated_history(count: int, main=(1, 2, 3, 4, 5), bonus=(1, 2)) -> list[Draw]:
    return [make_draw(LATEST_DATE - timedelta(days=3 * i), main, bonus, count - i) for i in range(count)]


@pytest.fixture(autouse=True)
def _fresh_history_cache():
    invalidate_history_cache()
    yield
    invalidate_history_cache()


@pytest.fixture
def history() -> list[Draw]:
    return make_history(60)


@pytest.fixture
def app(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app({"TESTING": True, "DATABASE_URL": "sqlite:///:memory:", "DRAW_SOURCE": "db"})
    yield app


@pytest.fixture
def store(app):
    """Write draws into the app's database."""

    def _store(draws: list[Draw]) -> None:
        session_factory = app.extensions["session_factory"]
        with session_factory() as session:
            DrawRepository().upsert_many(session, draws)
            session.commit()

    return _store


@pytest.fixture
def client(app, store, history):
    store(history)
    return app.test_client()


@pytest.fixture
def empty_client(app):
    return app.test_client()
