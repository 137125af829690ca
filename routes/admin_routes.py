"""
Администрирование заявок: полный список, просмотр, подтверждение, удаление
"""

import logging

from flask import Blueprint, current_app, g, jsonify
from flask_login import current_user

import routines
from error_handler import handle_errors
from security_utils import safe_log
from session_security import role_required
from utils.request_helpers import validate_body
from utils.roles import APPLICATION_ADMIN_ROLES
from validation.rules import session_token_error

admin_bp = Blueprint("admin", __name__)


def check_session_token(data):
    return session_token_error(data.get("sessionToken"))


@admin_bp.route("/admin/applications", methods=["POST"])
@handle_errors("Failed to fetch admin applications.")
@validate_body(check_session_token)
@role_required(*APPLICATION_ADMIN_ROLES)
def list_applications():
    """Все заявки, включая неподтверждённые"""
    rows = routines.fetch_rows("list_applications_admin", g.body["sessionToken"])
    return jsonify(rows)


@admin_bp.route("/admin/applications/<int:application_id>", methods=["POST"])
@handle_errors("Failed to fetch application.")
@validate_body(check_session_token)
@role_required(*APPLICATION_ADMIN_ROLES)
def get_application(application_id):
    row = routines.fetch_one(
        "get_application_admin", g.body["sessionToken"], application_id
    )
    if row is None:
        return jsonify({"error": "Not found."}), 404
    return jsonify(row)


@admin_bp.route("/admin/applications/<int:application_id>/confirm", methods=["POST"])
@handle_errors("Failed to confirm application.")
@validate_body(check_session_token)
@role_required(*APPLICATION_ADMIN_ROLES)
def confirm_application(application_id):
    ok = routines.is_true(
        "confirm_application", g.body["sessionToken"], application_id
    )
    safe_log(
        current_app.logger,
        logging.INFO,
        f"Подтверждение заявки #{application_id} ({current_user.role}): {ok}",
    )
    return jsonify({"success": ok})


@admin_bp.route("/admin/applications/<int:application_id>/delete", methods=["POST"])
@handle_errors("Failed to delete application.")
@validate_body(check_session_token)
@role_required(*APPLICATION_ADMIN_ROLES)
def delete_application(application_id):
    """Несуществующая заявка: success false, а не ошибка"""
    ok = routines.is_true("delete_application", g.body["sessionToken"], application_id)
    safe_log(
        current_app.logger,
        logging.INFO,
        f"Удаление заявки #{application_id} ({current_user.role}): {ok}",
    )
    return jsonify({"success": ok})
