"""
Справочник категорий: публичное чтение и администрирование
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
from validation.rules import MSG_MISSING_FIELDS, category_name_error, is_blank

category_bp = Blueprint("category", __name__)


def _check_category(data):
    if is_blank(data.get("sessionToken")):
        return MSG_MISSING_FIELDS
    return category_name_error(data.get("name"))


@category_bp.route("/categories", methods=["GET"])
@handle_errors("Failed to fetch categories.")
def list_categories():
    return jsonify(routines.fetch_rows("list_categories"))


@category_bp.route("/admin/categories", methods=["POST"])
@handle_errors("Failed to create category.")
@validate_body(_check_category)
@role_required(*ADMIN_ONLY_ROLES)
def create_category():
    name = g.body["name"].strip()
    ok = routines.is_true("create_category", g.body["sessionToken"], name)
    safe_log(current_app.logger, logging.INFO, f"Категория '{name}' создана: {ok}")
    return jsonify({"success": ok})


@category_bp.route("/admin/categories/<int:category_id>", methods=["PATCH"])
@handle_errors("Failed to update category.")
@validate_body(_check_category)
@role_required(*ADMIN_ONLY_ROLES)
def update_category(category_id):
    name = g.body["name"].strip()
    ok = routines.is_true(
        "update_category", g.body["sessionToken"], category_id, name
    )
    return jsonify({"success": ok})


@category_bp.route("/admin/categories/<int:category_id>", methods=["DELETE"])
@handle_errors("Failed to delete category.")
@validate_body(check_session_token)
@role_required(*ADMIN_ONLY_ROLES)
def delete_category(category_id):
    """Несуществующая категория: success false"""
    ok = routines.is_true("delete_category", g.body["sessionToken"], category_id)
    safe_log(
        current_app.logger, logging.INFO, f"Удаление категории #{category_id}: {ok}"
    )
    return jsonify({"success": ok})
