"""
Session security for the intake API
Resolves sessionToken from the request body into a user and enforces role gates
"""

import logging
from functools import wraps

from flask import current_app, jsonify, request
from flask_login import UserMixin, current_user

import routines
from extensions import login_manager
from security_utils import safe_log
from validation.rules import is_blank

MSG_INVALID_SESSION = "Invalid or expired session."
MSG_FORBIDDEN = "Insufficient permissions."


class SessionUser(UserMixin):
    """Пользователь, восстановленный из строки is_user_authenticated.

    Состояния сессии в приложении нет: объект живёт один запрос.
    """

    def __init__(self, token, role, expires_at=None):
        self.token = token
        self.role = role
        self.expires_at = expires_at

    def get_id(self):
        return self.token

    def __repr__(self):
        return f"<SessionUser role={self.role}>"


class SessionSecurity:
    """Session security management class"""

    @staticmethod
    def get_client_ip():
        """Get real client IP, handling proxies"""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            # Take the first IP in the chain
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        return request.remote_addr

    @staticmethod
    def get_session_token(req=None):
        """sessionToken из JSON-тела или None"""
        req = req or request
        data = req.get_json(silent=True)
        if not isinstance(data, dict):
            return None
        token = data.get("sessionToken")
        if not isinstance(token, str) or is_blank(token):
            return None
        return token

    @staticmethod
    def resolve(token):
        """Спросить БД о сессии; None, если сессия недействительна."""
        row = routines.fetch_one("is_user_authenticated", token)
        if not row or not row.get("is_authenticated"):
            return None
        return SessionUser(token, row.get("role"), row.get("expires_at"))


@login_manager.request_loader
def load_user_from_request(req):
    token = SessionSecurity.get_session_token(req)
    if token is None:
        return None
    return SessionSecurity.resolve(token)


@login_manager.unauthorized_handler
def unauthorized():
    safe_log(
        current_app.logger,
        logging.WARNING,
        f"Unauthorized access attempt to {request.endpoint} "
        f"from {SessionSecurity.get_client_ip()}",
    )
    return jsonify({"error": MSG_INVALID_SESSION}), 401


def role_required(*roles):
    """Decorator: valid session whose role is one of roles

    Без ролей проверяется только действительность сессии.
    """

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return login_manager.unauthorized()

            if roles and current_user.role not in roles:
                safe_log(
                    current_app.logger,
                    logging.WARNING,
                    f"Role {current_user.role} denied on {request.endpoint}",
                )
                return jsonify({"error": MSG_FORBIDDEN}), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator


def setup_session_security(app):
    """Setup session security for the application"""
    login_manager.init_app(app)

    # Cookie-сессия API не используется, но оставляем безопасные флаги
    app.config.setdefault("SESSION_COOKIE_SECURE", not app.debug)
    app.config.setdefault("SESSION_COOKIE_HTTPONLY", True)
    app.config.setdefault("SESSION_COOKIE_SAMESITE", "Lax")

    @app.teardown_request
    def cleanup_session(exception):
        if exception:
            current_app.logger.error(f"Request ended with exception: {str(exception)}")

    app.logger.info("Session security configured")
