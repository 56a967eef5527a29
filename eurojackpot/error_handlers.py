"""Map exceptions raised by routes and services onto the JSON envelope."""

from __future__ import annotations

import logging

from flask import Flask, request
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from eurojackpot.errors import AppError, ConflictError, RateLimitedError, UpstreamError, ValidationError
from eurojackpot.utils.responses import fail

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 60

_HTTP_CODES = {404: "not_found", 405: "method_not_allowed"}


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppError)
    def _handle_app_error(exc: AppError):
        headers = None
        if isinstance(exc, RateLimitedError):
            headers = {"Retry-After": str(RETRY_AFTER_SECONDS)}
        if isinstance(exc, UpstreamError):
            logger.warning("Draw results API failed on %s: %s (%s)", request.path, exc.message, exc.details)
        return fail(exc.code, exc.message, exc.status_code, exc.details, headers=headers)

    @app.errorhandler(MarshmallowValidationError)
    def _handle_schema_error(exc: MarshmallowValidationError):
        wrapped = ValidationError(message="Invalid request", details=exc.messages)
        return fail(wrapped.code, wrapped.message, wrapped.status_code, wrapped.details)

    @app.errorhandler(IntegrityError)
    def _handle_integrity_error(exc: IntegrityError):
        # Two draws with the same draw_system_id on different dates.
        logger.info("Integrity error on %s", request.path, exc_info=exc)
        wrapped = ConflictError(message="Draw already stored", details=str(exc.orig or exc))
        return fail(wrapped.code, wrapped.message, wrapped.status_code, wrapped.details)

    @app.errorhandler(HTTPException)
    def _handle_http_exception(exc: HTTPException):
        status = exc.code or 500
        code = _HTTP_CODES.get(status, "http_error")
        if status == 404:
            return fail(code, "Not found", status)
        return fail(code, exc.description or "HTTP error", status, details={"name": exc.name})

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.path)
        return fail("internal_error", "Internal server error", 500)
