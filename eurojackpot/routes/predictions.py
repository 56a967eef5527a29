"""Prediction routes (controllers). No business logic here."""

from __future__ import annotations

from flask import Blueprint, request

from eurojackpot.algorithms import CLASSIC_ALGORITHMS, list_algorithms, run_algorithm
from eurojackpot.routes.draws import load_history, request_seed
from eurojackpot.schemas.prediction import (
    AdaptiveRequestSchema,
    AdvancedRequestSchema,
    EnsembleRequestSchema,
    PredictionRequestSchema,
)
from eurojackpot.services.adaptive_service import AdaptiveService
from eurojackpot.services.advanced_predictor_service import AdvancedPredictorService
from eurojackpot.services.backtest_service import compare_latest
from eurojackpot.services.ensemble_service import EnsembleService
from eurojackpot.utils.responses import ok

predictions_bp = Blueprint("predictions", __name__)

_prediction_schema = PredictionRequestSchema()
_ensemble_schema = EnsembleRequestSchema()
_adaptive_schema = AdaptiveRequestSchema()
_advanced_schema = AdvancedRequestSchema()
_ensemble_service = EnsembleService()
_adaptive_service = AdaptiveService()
_advanced_service = AdvancedPredictorService()


@predictions_bp.get("/algorithms")
def get_algorithms():
    return ok(list_algorithms())


@predictions_bp.post("/predictions")
def predict():
    """Run one algorithm, or every classic algorithm when none is named."""

    data = _prediction_schema.load(request.get_json(silent=True) or {})
    seed = request_seed(data)
    history = load_history()

    names = [data["algorithm"]] if data.get("algorithm") else list(CLASSIC_ALGORITHMS)
    predictions = {name: run_algorithm(name, history, seed=seed).to_dict() for name in names}
    return ok({"seed": seed, "history_size": len(history), "predictions": predictions})


@predictions_bp.post("/predictions/ensemble")
def predict_ensemble():
    data = _ensemble_schema.load(request.get_json(silent=True) or {})
    seed = request_seed(data)
    result = _ensemble_service.predict(load_history(), mode=data["mode"], seed=seed)
    return ok({"seed": seed, **result.to_dict()})


@predictions_bp.post("/predictions/adaptive")
def predict_adaptive():
    data = _adaptive_schema.load(request.get_json(silent=True) or {})
    seed = request_seed(data)
    learned, prediction = _adaptive_service.predict(
        load_history(), validation_size=int(data["validation_size"]), seed=seed
    )
    return ok({"seed": seed, "learning": learned.to_dict(), **prediction.to_dict()})


@predictions_bp.post("/predictions/advanced")
def predict_advanced():
    """Self-validate the multi-factor predictor on past draws, then predict the next one."""

    data = _advanced_schema.load(request.get_json(silent=True) or {})
    result = _advanced_service.predict(load_history(), min_draws=data["min_draws"])
    return ok(result.to_dict())


@predictions_bp.get("/predictions/compare-latest")
def get_compare_latest():
    seed = request_seed({"seed": request.args.get("seed", type=int)})
    results = compare_latest(load_history(), seed=seed)
    return ok({"seed": seed, "results": [r.to_dict() for r in results]})
