"""
Инициализация и выполнение валидации JSON по JSON Schema (draft 2020-12).

Поддерживает автоматическую проверку для эндпоинтов, описанных
в validation.schemas.ENDPOINT_SCHEMAS. При несоответствии возвращается
HTTP 400: для отсутствующих ключей сообщение маршрута, для остальных
нарушений "Invalid request body." с деталями ошибок.
"""

from __future__ import annotations

from typing import Any, Dict, List

from flask import jsonify, request
from jsonschema import Draft202012Validator, ValidationError

from .schemas import ENDPOINT_SCHEMAS, MISSING_MESSAGES, SCHEMAS

MSG_INVALID_BODY = "Invalid request body."


class JSONSchemasValidator:
    """Компилирует и валидирует данные по именованным схемам."""

    def __init__(self, schemas: Dict[str, Dict[str, Any]]):
        self._compiled: Dict[str, Draft202012Validator] = {
            name: Draft202012Validator(schema) for name, schema in schemas.items()
        }

    def validate(self, schema_key: str, data: Any) -> List[ValidationError]:
        validator = self._compiled.get(schema_key)
        if not validator:
            return []
        return sorted(validator.iter_errors(data), key=lambda e: list(e.path))


_validator = JSONSchemasValidator(SCHEMAS)


def _format_errors(errors: List[ValidationError]) -> List[Dict[str, Any]]:
    formatted: List[Dict[str, Any]] = []
    for e in errors:
        path = "/".join(map(str, e.path)) or "$"
        schema_path = "/".join(map(str, e.schema_path))
        formatted.append(
            {
                "path": path,
                "message": e.message,
                "validator": e.validator,
                "schema_path": schema_path,
            }
        )
    return formatted


def check_body(schema_key: str, data: Any):
    """Проверить тело; вернуть (сообщение, детали) или None."""
    errors = _validator.validate(schema_key, data)
    if not errors:
        return None
    if any(e.validator == "required" for e in errors):
        return MISSING_MESSAGES.get(schema_key, MSG_INVALID_BODY), None
    return MSG_INVALID_BODY, _format_errors(errors)


def init_json_validation(app) -> None:
    """Подключить хук before_request для валидации JSON по схемам.

    Условия срабатывания:
    - Совпадает пара (request.endpoint, request.method) с ENDPOINT_SCHEMAS
    - Тело без JSON проверяется как пустой объект

    Хук не требует аутентификации: проверка тела идёт раньше проверки
    сессии, и запрос без sessionToken получает 400, а не 401.
    """

    @app.before_request
    def _validate_json_before_view():  # noqa: ANN001
        endpoint = request.endpoint or ""
        method = request.method.upper()

        schema_key = ENDPOINT_SCHEMAS.get((endpoint, method))
        if not schema_key:
            return None

        data = request.get_json(silent=True)
        if data is None:
            data = {}

        failure = check_body(schema_key, data)
        if failure is None:
            return None

        message, details = failure
        body: Dict[str, Any] = {"error": message}
        if details:
            body["details"] = details
        return jsonify(body), 400
