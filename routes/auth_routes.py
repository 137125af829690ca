"""
Маршруты регистрации, входа и проверки сессии
"""

import logging

from flask import Blueprint, current_app, g, jsonify

import routines
from error_handler import handle_errors
from extensions import limiter
from security_utils import safe_log
from utils.request_helpers import validate_body
from utils.roles import UserRole
from validation.rules import (
    MSG_MISSING_FIELDS,
    credentials_error,
    session_token_error,
)

auth_bp = Blueprint("auth", __name__)

MSG_INVALID_CREDENTIALS = "Invalid credentials."


def _login_limit():
    return current_app.config.get("LOGIN_RATE_LIMIT", "10/minute")


def _check_registration(data):
    if credentials_error(data.get("username"), data.get("password")):
        return MSG_MISSING_FIELDS
    return None


def _check_credentials(data):
    return credentials_error(data.get("username"), data.get("password"))


def _check_token(data):
    return session_token_error(data.get("sessionToken"))


@auth_bp.route("/auth/register", methods=["POST"])
@limiter.limit(_login_limit)
@handle_errors("Failed to create user.")
@validate_body(_check_registration)
def register():
    """Самостоятельная регистрация всегда создаёт viewer"""
    username = g.body["username"]
    ok = routines.is_true(
        "create_user", username, g.body["password"], UserRole.VIEWER.value
    )
    safe_log(
        current_app.logger,
        logging.INFO,
        f"Регистрация пользователя {username}: {'ok' if ok else 'отказ'}",
    )
    return jsonify({"success": ok}), 201


def _login():
    username = g.body["username"]
    row = routines.fetch_one("login_user", username, g.body["password"])
    if row is None:
        safe_log(
            current_app.logger, logging.WARNING, f"Неудачный вход для {username}"
        )
        return jsonify({"error": MSG_INVALID_CREDENTIALS}), 401

    safe_log(
        current_app.logger,
        logging.INFO,
        f"Вход {username} с ролью {row.get('role')}",
    )
    return jsonify(row)


@auth_bp.route("/auth/login", methods=["POST"])
@limiter.limit(_login_limit)
@handle_errors("Failed to login.")
@validate_body(_check_credentials)
def login():
    return _login()


@auth_bp.route("/admin/login", methods=["POST"])
@limiter.limit(_login_limit)
@handle_errors("Failed to login.")
@validate_body(_check_credentials)
def admin_login():
    """Вход администратора ничем не отличается от обычного"""
    return _login()


@auth_bp.route("/admin/status", methods=["POST"])
@handle_errors("Failed to validate session.")
@validate_body(_check_token)
def session_status():
    row = routines.fetch_one("is_user_authenticated", g.body["sessionToken"])
    if row is None:
        return jsonify({"is_authenticated": False})
    return jsonify(row)


@auth_bp.route("/admin/logout", methods=["POST"])
@handle_errors("Failed to logout.")
@validate_body(_check_token)
def logout():
    routines.call("logout_user", g.body["sessionToken"])
    return jsonify({"success": True})
