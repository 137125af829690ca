"""
Публичные маршруты заявок
"""

import logging

from flask import Blueprint, current_app, g, jsonify

import routines
from error_handler import handle_errors
from security_utils import safe_log
from session_security import role_required
from utils.request_helpers import business_today, validate_body
from utils.roles import APPLICATION_ADMIN_ROLES
from validation.rules import (
    MSG_MISSING_FIELDS,
    check_application,
    clean_application,
    is_blank,
)

application_bp = Blueprint("application", __name__)

MSG_NOT_FOUND = "Not found."


def _check_new_application(data):
    return check_application(data, business_today())


def _check_application_update(data):
    if is_blank(data.get("sessionToken")):
        return MSG_MISSING_FIELDS
    return check_application(data, business_today())


@application_bp.route("/applications", methods=["GET"])
@handle_errors("Failed to fetch applications.")
def list_applications():
    """Публичный список (БД отдаёт только подтверждённые)"""
    return jsonify(routines.fetch_rows("list_applications"))


@application_bp.route("/applications/<int:application_id>", methods=["GET"])
@handle_errors("Failed to fetch application.")
def get_application(application_id):
    row = routines.fetch_one("get_application", application_id)
    if row is None:
        return jsonify({"error": MSG_NOT_FOUND}), 404
    return jsonify(row)


@application_bp.route("/applications", methods=["POST"])
@handle_errors("Failed to create application.")
@validate_body(_check_new_application)
def create_application():
    values = clean_application(g.body)
    application_id = routines.fetch_scalar(
        "create_application",
        values["client_name"],
        values["phone"],
        values["email"],
        values["address"],
        values["category"],
        values["budget"],
        values["desired_date"],
    )
    safe_log(
        current_app.logger,
        logging.INFO,
        f"Создана заявка #{application_id} ({values['category']})",
    )
    return jsonify({"id": application_id}), 201


@application_bp.route("/applications/<int:application_id>", methods=["PUT"])
@handle_errors("Failed to update application.")
@validate_body(_check_application_update)
@role_required(*APPLICATION_ADMIN_ROLES)
def update_application(application_id):
    values = clean_application(g.body)
    ok = routines.is_true(
        "update_application",
        g.body["sessionToken"],
        application_id,
        values["client_name"],
        values["phone"],
        values["email"],
        values["address"],
        values["category"],
        values["budget"],
        values["desired_date"],
    )
    if not ok:
        return jsonify({"error": MSG_NOT_FOUND}), 404

    safe_log(
        current_app.logger, logging.INFO, f"Заявка #{application_id} обновлена"
    )
    return jsonify({"success": True})
