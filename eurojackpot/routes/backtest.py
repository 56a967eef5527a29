"""Backtest routes (controllers). No business logic here."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from eurojackpot.algorithms import ADAPTIVE_ALGORITHMS, CLASSIC_ALGORITHMS, get_algorithm
from eurojackpot.errors import ValidationError
from eurojackpot.routes.draws import load_history, request_seed
from eurojackpot.schemas.prediction import BacktestRequestSchema
from eurojackpot.services.backtest_service import backtest_algorithm, historical_performance
from eurojackpot.utils.responses import ok

backtest_bp = Blueprint("backtest", __name__)

_request_schema = BacktestRequestSchema()


@backtest_bp.post("/backtest")
def run_backtest():
    data = _request_schema.load(request.get_json(silent=True) or {})
    seed = request_seed(data)

    test_size = int(data["test_size"])
    max_size = int(current_app.config.get("BACKTEST_MAX_TEST_SIZE") or 200)
    if test_size > max_size:
        raise ValidationError(
            "test_size too large",
            details={"test_size": [f"Must be <= {max_size}"]},
        )

    names = data.get("algorithms") or list(ADAPTIVE_ALGORITHMS)
    for name in names:
        get_algorithm(name)

    history = load_history()
    results = [backtest_algorithm(history, name, test_size=test_size, seed=seed) for name in names]
    results.sort(key=lambda r: (-r.avg_score, r.name))
    return ok({"seed": seed, "test_size": test_size, "results": [r.to_dict() for r in results]})


@backtest_bp.get("/backtest/historical-performance")
def get_historical_performance():
    raw_targets = (request.args.get("targets") or "").strip()
    targets = 20
    if raw_targets:
        try:
            targets = int(raw_targets)
        except ValueError as e:
            raise ValidationError("targets must be an integer") from e
        if targets <= 0:
            raise ValidationError("targets must be positive")

    seed = request_seed({"seed": request.args.get("seed", type=int)})
    results = historical_performance(load_history(), CLASSIC_ALGORITHMS, max_targets=targets, seed=seed)
    return ok({"seed": seed, "targets": targets, "results": [r.to_dict() for r in results]})
