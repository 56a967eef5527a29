"""Analysis routes (controllers). No business logic here."""

from __future__ import annotations

from dataclasses import asdict

from flask import Blueprint, request

from eurojackpot.algorithms import member_rng
from eurojackpot.errors import ValidationError
from eurojackpot.routes.draws import load_history, request_seed
from eurojackpot.services.backtest_service import analyze_historical_patterns
from eurojackpot.services.big_number_service import analyze_big_numbers
from eurojackpot.services.combination_analysis_service import analyze_combinations
from eurojackpot.services.following_draws_service import ClosestFollowersService, FollowingDrawsService
from eurojackpot.services.frequency_analysis_service import FrequencyAnalysisService
from eurojackpot.services.order_pattern_service import analyze_order_patterns
from eurojackpot.utils.responses import ok

analysis_bp = Blueprint("analysis", __name__)
_frequency_service = FrequencyAnalysisService()
_following_service = FollowingDrawsService()
_closest_service = ClosestFollowersService()


def _positive_int_arg(*names: str) -> int | None:
    raw = ""
    for name in names:
        raw = (request.args.get(name) or "").strip()
        if raw:
            break
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError as e:
        raise ValidationError(f"{names[0]} must be an integer") from e
    if value <= 0:
        raise ValidationError(f"{names[0]} must be positive")
    return value


@analysis_bp.get("/analysis/frequency")
def get_frequency_analysis():
    """Return number frequency counts for 1..50 and 1..12.

    Query params:
    - n: optional recent N draws (e.g., 10/30/50/100)
    - percent: optional percentile for hot/cold buckets (default 0.2)
    """

    recent_n = _positive_int_arg("n", "recent")

    raw_percent = (request.args.get("percent") or "").strip()
    percent = 0.2
    if raw_percent:
        try:
            percent = float(raw_percent)
        except ValueError as e:
            raise ValidationError("percent must be a float") from e
        if not (0.0 < percent < 1.0):
            raise ValidationError("percent must be between 0 and 1")

    result = _frequency_service.analyze(load_history(), recent_n=recent_n, percent=percent)
    return ok(asdict(result))


@analysis_bp.get("/analysis/patterns")
def get_historical_patterns():
    return ok(analyze_historical_patterns(load_history()).to_dict())


@analysis_bp.get("/analysis/order-patterns")
def get_order_patterns():
    recent = _positive_int_arg("recent") or 30
    return ok(analyze_order_patterns(load_history(), recent).to_dict())


@analysis_bp.get("/analysis/following-draws")
def get_following_draws():
    return ok(_following_service.analyze(load_history()).to_dict())


@analysis_bp.get("/analysis/closest-followers")
def get_closest_followers():
    return ok(_closest_service.analyze(load_history()).to_dict())


@analysis_bp.get("/analysis/combinations")
def get_combination_analysis():
    return ok(analyze_combinations(load_history()).to_dict())


@analysis_bp.get("/analysis/big-number")
def get_big_number_analysis():
    """Big-number patterns plus five predictions.

    Query params:
    - seed: optional, for the randomised fill-ins
    """

    seed = request_seed({"seed": request.args.get("seed", type=int)})
    report = analyze_big_numbers(load_history(), member_rng(seed, "big_number"))
    return ok({"seed": seed, **report.to_dict()})
