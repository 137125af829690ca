"""
Unified error handling module for the repair intake API
Provides consistent JSON error responses across all routes
"""

import logging
import traceback
from datetime import datetime, timezone
from functools import wraps

from flask import current_app, g, jsonify, request
from werkzeug.exceptions import HTTPException

from database import db
from security_utils import safe_log, scrub_payload

logger = logging.getLogger(__name__)


class ErrorHandler:
    """Centralized error handling class"""

    @staticmethod
    def log_error(error, context=None):
        """Log error with context information"""
        error_info = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error_type": type(error).__name__,
            "error_message": str(error),
            "url": request.url if request else "N/A",
            "method": request.method if request else "N/A",
            "ip_address": request.remote_addr if request else "N/A",
            "request_id": getattr(g, "request_id", None),
            "context": context or {},
        }

        # Log full traceback for debugging
        if current_app.debug:
            error_info["traceback"] = traceback.format_exc()

        safe_log(current_app.logger, logging.ERROR, f"Application Error: {error_info}")
        return error_info

    @staticmethod
    def error_response(message, status_code, extra=None):
        """Ответ в едином формате API: {"error": "..."}"""
        body = {"error": message}
        if extra:
            body.update(extra)
        response = jsonify(body)
        response.status_code = status_code
        return response

    @staticmethod
    def problem_response(
        status_code, title, detail=None, type_uri="about:blank", extra=None
    ):
        """Формирует ответ в формате RFC 7807 (application/problem+json)

        Поле "error" дублирует title, чтобы клиенты API читали ошибки
        фреймворка так же, как ошибки маршрутов.
        """
        problem = {
            "type": type_uri,
            "title": title,
            "status": status_code,
            "instance": request.path,
            "error": title,
        }
        if detail:
            problem["detail"] = detail
        if extra:
            problem.update(extra)

        response = jsonify(problem)
        response.status_code = status_code
        response.headers["Content-Type"] = "application/problem+json"
        return response


def _build_error_details(error):
    """Собирает подробности ошибки: тип, сообщение, трейсбек и информацию о запросе"""
    try:
        tb = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )
    except Exception:
        tb = None

    body = request.get_json(silent=True) if request.is_json else None
    return {
        "type": type(error).__name__,
        "message": str(error),
        "traceback": tb,
        "request": {
            "method": request.method,
            "path": request.path,
            "body": scrub_payload(body),
            "request_id": getattr(g, "request_id", None),
        },
    }


class ValidationError(Exception):
    """Ошибка входных данных, уходит клиенту как есть"""

    def __init__(self, message, field=None, code=400, details=None):
        self.message = message
        self.field = field
        self.code = code
        self.details = details
        super().__init__(self.message)


def handle_validation_error(error):
    """Handle validation errors consistently"""
    safe_log(
        logger,
        logging.INFO,
        f"Validation failed on {request.method} {request.path}: {error.message}",
    )
    extra = {"details": error.details} if error.details else None
    return ErrorHandler.error_response(error.message, error.code, extra=extra)


# Map common HTTP errors to client-facing messages
HTTP_ERROR_MESSAGES = {
    400: "Bad request.",
    401: "Authentication required.",
    403: "Forbidden.",
    404: "Not found.",
    405: "Method not allowed.",
    413: "Request body too large.",
    415: "Unsupported media type.",
    429: "Too many requests.",
    500: "Internal server error.",
    502: "Bad gateway.",
    503: "Service unavailable.",
}


def handle_http_error(error):
    """Handle HTTP errors (404, 405, 429, etc.)"""
    status_code = getattr(error, "code", None) or 500
    if status_code >= 500:
        ErrorHandler.log_error(error, {"type": "http"})
    message = HTTP_ERROR_MESSAGES.get(status_code, "An error occurred.")
    show_details = (
        current_app.config.get("SHOW_DETAILED_ERRORS", False) or current_app.debug
    )
    description = getattr(error, "description", None)

    response = ErrorHandler.problem_response(
        status_code,
        message,
        detail=description if show_details or status_code == 429 else None,
    )
    # Заголовки Retry-After и X-RateLimit-* от лимитера
    if isinstance(error, HTTPException) and error.response is not None:
        for name, value in error.response.headers.items():
            if name.lower().startswith(("retry-after", "x-ratelimit")):
                response.headers[name] = value
    return response


def handle_generic_error(error):
    """Handle unexpected/generic errors"""
    if isinstance(error, HTTPException):
        return handle_http_error(error)

    error_info = ErrorHandler.log_error(error, {"type": "generic"})
    show_details = (
        current_app.config.get("SHOW_DETAILED_ERRORS", False) or current_app.debug
    )
    extra = {"error_id": error_info.get("timestamp")}
    if show_details:
        extra["debug"] = _build_error_details(error)

    return ErrorHandler.problem_response(
        500,
        HTTP_ERROR_MESSAGES[500],
        detail=str(error) if show_details else None,
        extra=extra,
    )


def register_error_handlers(app):
    """Register all error handlers with the Flask app"""

    app.errorhandler(ValidationError)(handle_validation_error)

    # HTTP errors
    for code in HTTP_ERROR_MESSAGES:
        app.errorhandler(code)(handle_http_error)

    # Generic exception handler (catch-all)
    app.errorhandler(Exception)(handle_generic_error)


# Utility decorators for common error patterns
def handle_errors(failure_message):
    """
    Decorator to add consistent error handling to route functions

    Любой сбой процедуры или БД превращается в 500 {"error": failure_message};
    подробности остаются только в логе.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except ValidationError:
                raise
            except HTTPException:
                raise
            except Exception as e:
                ErrorHandler.log_error(e, {"type": "route", "view": func.__name__})
                db.session.rollback()
                return jsonify({"error": failure_message}), 500

        return wrapper

    return decorator
