"""
Маршруты для управления пользователями
"""

import logging

from flask import Blueprint, current_app, g, jsonify

import routines
from error_handler import handle_errors
from routes.admin_routes import check_session_token
from security_utils import safe_log
from session_security import role_required
from utils.request_helpers import validate_body
from utils.roles import ADMIN_ONLY_ROLES
from validation.rules import MSG_MISSING_FIELDS, first_missing, is_blank, role_error

user_bp = Blueprint("user", __name__)


def _check_new_user(data):
    if first_missing(data, ("sessionToken", "username", "password")):
        return MSG_MISSING_FIELDS
    return role_error(data.get("role"))


def _check_user_update(data):
    if is_blank(data.get("sessionToken")):
        return MSG_MISSING_FIELDS
    return role_error(data.get("newRole"))


@user_bp.route("/admin/users", methods=["POST"])
@handle_errors("Failed to create user.")
@validate_body(_check_new_user)
@role_required(*ADMIN_ONLY_ROLES)
def create_user():
    """Добавление нового пользователя"""
    username = g.body["username"]
    ok = routines.is_true(
        "create_user_admin",
        g.body["sessionToken"],
        username,
        g.body["password"],
        g.body["role"],
    )
    safe_log(
        current_app.logger,
        logging.INFO,
        f"Создание пользователя {username} с ролью {g.body['role']}: {ok}",
    )
    return jsonify({"success": ok}), 201


@user_bp.route("/admin/users/list", methods=["POST"])
@handle_errors("Failed to fetch users.")
@validate_body(check_session_token)
@role_required(*ADMIN_ONLY_ROLES)
def list_users():
    return jsonify(routines.fetch_rows("list_users_admin", g.body["sessionToken"]))


@user_bp.route("/admin/users/<int:user_id>", methods=["PATCH"])
@handle_errors("Failed to update user.")
@validate_body(_check_user_update)
@role_required(*ADMIN_ONLY_ROLES)
def update_user(user_id):
    """Смена роли; с непустым newPassword заодно и пароля"""
    token = g.body["sessionToken"]
    role = g.body["newRole"]
    password = g.body.get("newPassword")

    if isinstance(password, str) and not is_blank(password):
        ok = routines.is_true("update_user_admin", token, user_id, password, role)
        action = "роль и пароль"
    else:
        ok = routines.is_true("update_user_role_admin", token, user_id, role)
        action = "роль"

    safe_log(
        current_app.logger,
        logging.INFO,
        f"Пользователь #{user_id}: обновлены {action} ({role}): {ok}",
    )
    return jsonify({"success": ok})


@user_bp.route("/admin/users/<int:user_id>", methods=["DELETE"])
@handle_errors("Failed to delete user.")
@validate_body(check_session_token)
@role_required(*ADMIN_ONLY_ROLES)
def delete_user(user_id):
    ok = routines.is_true("delete_user_admin", g.body["sessionToken"], user_id)
    safe_log(current_app.logger, logging.INFO, f"Удаление пользователя #{user_id}: {ok}")
    return jsonify({"success": ok})
