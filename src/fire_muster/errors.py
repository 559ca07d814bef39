from __future__ import annotations

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .core.exceptions import (
    DomainError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
    WriteRejectedError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (WriteRejectedError, 409),
    (StoreUnavailableError, 503),
)


def status_for(exc: DomainError) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    """Consistent JSON error body: ``{"success": false, "message": ...}``."""

    @app.errorhandler(DomainError)
    def _domain_error(exc: DomainError):
        status = status_for(exc)
        if status >= 500:
            logger.error("%s", exc)
        return jsonify({"success": False, "message": str(exc)}), status

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return jsonify({"success": False, "message": exc.description}), exc.code
