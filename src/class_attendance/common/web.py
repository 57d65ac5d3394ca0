from __future__ import annotations

import logging
import traceback
from datetime import datetime
from functools import wraps
from typing import Any, Optional

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.exceptions import DomainError, InternalError
from ..users.model import Identity

logger = logging.getLogger(__name__)


def identity_required(identity_service):
    """Build a view decorator that resolves the bearer token into ``g.identity``.

    Token problems raise AuthenticationError, rendered as 401 by the error handlers.
    """

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            token = identity_service.token_from_header(request.headers.get("Authorization"))
            g.identity = identity_service.resolve(token)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def current_identity() -> Identity:
    return g.identity


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def register_error_handlers(app: Flask) -> None:
    def _with_trace(body: dict[str, Any]) -> dict[str, Any]:
        if bool(app.config.get("DEBUG", False)):
            body["error"] = traceback.format_exc()
        return body

    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        body: dict[str, Any] = {"message": str(e) or e.__class__.__name__}
        if isinstance(e, InternalError):
            logger.error("Internal error on %s %s: %s", request.method, request.path, e)
            body = _with_trace(body)
        return jsonify(body), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"message": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify(_with_trace({"message": "Server error"})), 500
