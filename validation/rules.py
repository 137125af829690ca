"""
Правила проверки заявок, учётных данных и справочников.

Модуль не зависит от Flask: его используют и маршруты API, и консольный
клиент, поэтому правила на обеих сторонах всегда совпадают.

Ошибки полей возвращаются словарём ``{поле: сообщение}`` в порядке полей
формы; сервер отдаёт клиенту первое сообщение, а при отсутствии хотя бы
одного обязательного поля общее "Missing required fields.".
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from utils.roles import UserRole

PHONE_RE = re.compile(r"\+371[0-9]{8}")
EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

MIN_NAME_LENGTH = 2
MIN_BUDGET = Decimal(500)
MAX_BUDGET = Decimal(10000)
MIN_LEAD_DAYS = 7

# Поля формы заявки в порядке проверки
APPLICATION_FIELDS = (
    "clientName",
    "phone",
    "email",
    "address",
    "category",
    "budget",
    "desiredDate",
)

MSG_MISSING_FIELDS = "Missing required fields."
MSG_MISSING_CREDENTIALS = "Missing credentials."
MSG_MISSING_TOKEN = "Missing session token."
MSG_REQUIRED = "This field is required."
MSG_INVALID_NAME = "Invalid name."
MSG_INVALID_PHONE = "Invalid phone format."
MSG_INVALID_EMAIL = "Invalid email format."
MSG_INVALID_ADDRESS = "Invalid address."
MSG_INVALID_BUDGET = "Invalid budget."
MSG_INVALID_DATE = "Invalid desired date."
MSG_INVALID_ROLE = "Invalid role."


def is_blank(value: Any) -> bool:
    """Пустое значение: None, пустая/пробельная строка, 0, False, NaN."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float, Decimal)):
        return value == 0 or value != value
    return False


def first_missing(data: Mapping[str, Any], fields: tuple[str, ...]) -> str | None:
    for field in fields:
        if is_blank(data.get(field)):
            return field
    return None


def parse_budget(value: Any) -> Decimal | None:
    """Число или числовая строка -> Decimal; всё остальное -> None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        raw = str(value)
    elif isinstance(value, str):
        raw = value.strip()
    else:
        return None
    try:
        budget = Decimal(raw)
    except InvalidOperation:
        return None
    return budget if budget.is_finite() else None


def parse_desired_date(value: Any) -> date | None:
    """ISO-8601 дата (2026-05-01) или дата-время; иначе None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    raw = value.strip()
    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def earliest_desired_date(today: date) -> date:
    return today + timedelta(days=MIN_LEAD_DAYS)


def application_errors(values: Mapping[str, Any], today: date) -> dict[str, str]:
    """Проверить форму заявки. Пустой словарь: форма корректна."""
    errors: dict[str, str] = {}
    for field in APPLICATION_FIELDS:
        if is_blank(values.get(field)):
            errors[field] = MSG_REQUIRED

    name = values.get("clientName")
    if "clientName" not in errors:
        if not isinstance(name, str) or len(name.strip()) < MIN_NAME_LENGTH:
            errors["clientName"] = MSG_INVALID_NAME

    phone = values.get("phone")
    if "phone" not in errors:
        if not isinstance(phone, str) or not PHONE_RE.fullmatch(phone):
            errors["phone"] = MSG_INVALID_PHONE

    email = values.get("email")
    if "email" not in errors:
        if not isinstance(email, str) or not EMAIL_RE.fullmatch(email):
            errors["email"] = MSG_INVALID_EMAIL

    if "address" not in errors and not isinstance(values.get("address"), str):
        errors["address"] = MSG_INVALID_ADDRESS

    if "budget" not in errors:
        budget = parse_budget(values.get("budget"))
        if budget is None or not MIN_BUDGET <= budget <= MAX_BUDGET:
            errors["budget"] = MSG_INVALID_BUDGET

    if "desiredDate" not in errors:
        desired = parse_desired_date(values.get("desiredDate"))
        if desired is None or desired < earliest_desired_date(today):
            errors["desiredDate"] = MSG_INVALID_DATE

    # Сохраняем порядок полей формы
    return {field: errors[field] for field in APPLICATION_FIELDS if field in errors}


def check_application(values: Mapping[str, Any], today: date) -> str | None:
    """Сообщение об ошибке для ответа 400 или None."""
    errors = application_errors(values, today)
    if not errors:
        return None
    if MSG_REQUIRED in errors.values():
        return MSG_MISSING_FIELDS
    return next(iter(errors.values()))


def clean_application(values: Mapping[str, Any]) -> dict[str, Any]:
    """Привести проверенную форму к аргументам процедуры."""
    category = values["category"]
    return {
        "client_name": values["clientName"].strip(),
        "phone": values["phone"],
        "email": values["email"],
        "address": values["address"].strip(),
        "category": category.strip() if isinstance(category, str) else category,
        "budget": parse_budget(values["budget"]),
        "desired_date": parse_desired_date(values["desiredDate"]),
    }


def credentials_error(username: Any, password: Any) -> str | None:
    if is_blank(username) or is_blank(password):
        return MSG_MISSING_CREDENTIALS
    return None


def category_name_error(name: Any) -> str | None:
    if is_blank(name) or not isinstance(name, str):
        return MSG_MISSING_FIELDS
    return None


def role_error(role: Any) -> str | None:
    if is_blank(role):
        return MSG_MISSING_FIELDS
    if role not in UserRole.all():
        return MSG_INVALID_ROLE
    return None


def session_token_error(token: Any) -> str | None:
    if is_blank(token) or not isinstance(token, str):
        return MSG_MISSING_TOKEN
    return None
