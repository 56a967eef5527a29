"""JSON envelope shared by every route: ``{"success", "data", "error"}``."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from flask import Response, jsonify


def _envelope(success: bool, data: Any, error: dict[str, Any] | None) -> Response:
    return jsonify({"success": success, "data": data, "error": error})


def ok(data: Any, status_code: int = 200) -> tuple[Response, int]:
    return _envelope(True, data, None), status_code


def fail(
    code: str,
    message: str,
    status_code: int,
    details: Any | None = None,
    headers: Mapping[str, str] | None = None,
) -> tuple[Response, int]:
    """Error envelope. ``headers`` are copied onto the response (e.g. ``Retry-After``)."""

    resp = _envelope(False, None, {"code": code, "message": message, "details": details})
    if headers:
        resp.headers.update(headers)
    return resp, status_code
