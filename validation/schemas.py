"""
JSON Schema (draft 2020-12) для тел запросов API.

Схемы проверяют только структуру: объект, обязательные ключи, строковые (или null)
токены и учётные данные. Значения полей заявки, ролей и названий
проверяют правила validation.rules, общие с клиентом, поэтому здесь для
них нет ограничений по типу.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

from .rules import (
    APPLICATION_FIELDS,
    MSG_MISSING_CREDENTIALS,
    MSG_MISSING_FIELDS,
    MSG_MISSING_TOKEN,
)

SCHEMA_URI = "https://json-schema.org/draft/2020-12/schema"

# null допустим: пустое значение считается отсутствующим (validation.rules)
_TOKEN = {"type": ["string", "null"], "description": "Токен сессии из login_user"}
_USERNAME = {"type": ["string", "null"]}
_PASSWORD = {"type": ["string", "null"]}

_APPLICATION_PROPERTIES: Dict[str, Any] = {
    "clientName": {"description": "Имя и фамилия заявителя"},
    "phone": {"description": "Телефон в формате +371xxxxxxxx"},
    "email": {},
    "address": {"description": "Адрес объекта"},
    "category": {"description": "Категория ремонта"},
    "budget": {"description": "Бюджет 500-10000 (число или числовая строка)"},
    "desiredDate": {"description": "Желаемый срок, ISO-8601"},
}


def _object(properties: Dict[str, Any], required: list[str]) -> Dict[str, Any]:
    return {
        "$schema": SCHEMA_URI,
        "type": "object",
        "required": required,
        "properties": properties,
    }


def build_schemas() -> Dict[str, Dict[str, Any]]:
    """Собрать словарь схем по ключам."""
    application_fields = list(APPLICATION_FIELDS)
    credentials = _object(
        {"username": _USERNAME, "password": _PASSWORD},
        ["username", "password"],
    )
    return {
        "credentials": credentials,
        # Та же форма, но регистрация отвечает другим сообщением
        "registration": dict(credentials),
        "session": _object({"sessionToken": _TOKEN}, ["sessionToken"]),
        "application_create": _object(
            dict(_APPLICATION_PROPERTIES), application_fields
        ),
        "application_update": _object(
            {"sessionToken": _TOKEN, **_APPLICATION_PROPERTIES},
            ["sessionToken", *application_fields],
        ),
        "category": _object(
            {"sessionToken": _TOKEN, "name": {}},
            ["sessionToken", "name"],
        ),
        "user_create": _object(
            {
                "sessionToken": _TOKEN,
                "username": _USERNAME,
                "password": _PASSWORD,
                "role": {},
            },
            ["sessionToken", "username", "password", "role"],
        ),
        "user_update": _object(
            {
                "sessionToken": _TOKEN,
                "newRole": {},
                "newPassword": {"type": ["string", "null"]},
            },
            ["sessionToken", "newRole"],
        ),
    }


SCHEMAS: Dict[str, Dict[str, Any]] = build_schemas()

# Сообщение 400, если в теле нет обязательного ключа
MISSING_MESSAGES: Dict[str, str] = {
    "credentials": MSG_MISSING_CREDENTIALS,
    "registration": MSG_MISSING_FIELDS,
    "session": MSG_MISSING_TOKEN,
    "application_create": MSG_MISSING_FIELDS,
    "application_update": MSG_MISSING_FIELDS,
    "category": MSG_MISSING_FIELDS,
    "user_create": MSG_MISSING_FIELDS,
    "user_update": MSG_MISSING_FIELDS,
}

# Карта соответствия эндпоинта+метода -> ключ схемы
# Значение request.endpoint принимает вид "<blueprint>.<function>"
ENDPOINT_SCHEMAS: Dict[Tuple[str, str], str] = {
    ("auth.register", "POST"): "registration",
    ("auth.login", "POST"): "credentials",
    ("auth.admin_login", "POST"): "credentials",
    ("auth.session_status", "POST"): "session",
    ("auth.logout", "POST"): "session",
    ("application.create_application", "POST"): "application_create",
    ("application.update_application", "PUT"): "application_update",
    ("admin.list_applications", "POST"): "session",
    ("admin.get_application", "POST"): "session",
    ("admin.confirm_application", "POST"): "session",
    ("admin.delete_application", "POST"): "session",
    ("category.create_category", "POST"): "category",
    ("category.update_category", "PATCH"): "category",
    ("category.delete_category", "DELETE"): "session",
    ("user.create_user", "POST"): "user_create",
    ("user.list_users", "POST"): "session",
    ("user.update_user", "PATCH"): "user_update",
    ("user.delete_user", "DELETE"): "session",
}
