"""Draw history routes (controllers). No business logic here."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from eurojackpot.db import get_session
from eurojackpot.domain import Draw
from eurojackpot.errors import NotFoundError
from eurojackpot.schemas.draw import DrawListQuerySchema, DrawSchema
from eurojackpot.services.draw_history_service import DrawHistoryService
from eurojackpot.utils.responses import ok

draws_bp = Blueprint("draws", __name__)

_query_schema = DrawListQuerySchema()
_draw_schema = DrawSchema()
_draws_schema = DrawSchema(many=True)


def load_history() -> list[Draw]:
    """Draw history for the current request, newest first."""

    service = DrawHistoryService.from_config(current_app.config)
    session = get_session() if service.source == "db" else None
    return service.get_history(session)


def request_seed(data: dict) -> int | None:
    seed = data.get("seed")
    if seed is None:
        seed = current_app.config.get("RANDOM_SEED")
    return seed


@draws_bp.get("/draws")
def list_draws():
    args = _query_schema.load(request.args)
    history = load_history()
    limit = args.get("limit")
    draws = history[:limit] if limit else history
    return ok({"total": len(history), "draws": _draws_schema.dump(draws)})


@draws_bp.get("/draws/latest")
def latest_draw():
    history = load_history()
    if not history:
        raise NotFoundError("No draws stored yet")
    return ok(_draw_schema.dump(history[0]))
