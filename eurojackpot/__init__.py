"""EuroJackpot predictor Flask application package."""

from __future__ import annotations

from typing import Any

from dotenv import load_dotenv
from flask import Flask


def create_app(overrides: dict[str, Any] | None = None) -> Flask:
    """Application factory.

    Args:
        overrides: optional config values applied after the environment
            config (used by tests and scripts).

    Returns:
        Configured Flask application.
    """
    load_dotenv()

    from eurojackpot.config import get_config
    from eurojackpot.db import init_db
    from eurojackpot.error_handlers import register_error_handlers
    from eurojackpot.logging_config import configure_logging
    from eurojackpot.routes.analysis import analysis_bp
    from eurojackpot.routes.backtest import backtest_bp
    from eurojackpot.routes.combinations import combinations_bp
    from eurojackpot.routes.draws import draws_bp
    from eurojackpot.routes.health import health_bp
    from eurojackpot.routes.predictions import predictions_bp

    app = Flask(__name__)
    app.config.from_object(get_config())
    if overrides:
        app.config.update(overrides)

    configure_logging(app)
    init_db(app)
    register_error_handlers(app)

    app.register_blueprint(health_bp)
    app.register_blueprint(draws_bp)
    app.register_blueprint(predictions_bp)
    app.register_blueprint(backtest_bp)
    app.register_blueprint(analysis_bp)
    app.register_blueprint(combinations_bp)

    return app
