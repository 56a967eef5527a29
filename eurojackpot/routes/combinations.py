"""Combination checker route."""

from __future__ import annotations

from flask import Blueprint, request

from eurojackpot.routes.draws import load_history
from eurojackpot.schemas.prediction import CombinationCheckSchema
from eurojackpot.services.combination_service import CombinationService
from eurojackpot.utils.responses import ok

combinations_bp = Blueprint("combinations", __name__)

_request_schema = CombinationCheckSchema()
_service = CombinationService()


@combinations_bp.post("/combinations/check")
def check_combination():
    data = _request_schema.load(request.get_json(silent=True) or {})
    result = _service.check(load_history(), data["main_numbers"], data["bonus_numbers"])
    return ok(result.to_dict())
