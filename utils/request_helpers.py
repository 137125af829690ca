"""Request helpers."""

from datetime import date, datetime
from functools import wraps
from typing import Any, Callable, Dict, Optional
from zoneinfo import ZoneInfo

from flask import current_app, g, request

from error_handler import ValidationError


def json_body() -> Dict[str, Any]:
    """JSON-тело запроса как словарь; всё прочее даёт пустой словарь."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def business_today() -> date:
    """Сегодняшняя дата в часовом поясе бизнеса (APP_TIMEZONE)."""
    tz = ZoneInfo(current_app.config.get("APP_TIMEZONE", "Europe/Riga"))
    return datetime.now(tz).date()


def validate_body(check: Callable[[Dict[str, Any]], Optional[str]]):
    """Проверить тело правилом check до вызова view.

    check получает тело и возвращает сообщение об ошибке или None.
    Проверенное тело доступно во view как g.body.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            data = json_body()
            message = check(data)
            if message:
                raise ValidationError(message)
            g.body = data
            return func(*args, **kwargs)

        return wrapper

    return decorator
