"""
Шлюз к хранимым процедурам PostgreSQL.

Вся бизнес-логика (права, уникальность, смена статусов) живёт в базе.
API никогда не обращается к таблицам напрямую: каждый маршрут вызывает
ровно одну процедуру из каталога ROUTINES через этот модуль.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from sqlalchemy import bindparam, text

from database import db
from security_utils import safe_log

logger = logging.getLogger(__name__)

ROWS = "rows"  # SELECT * FROM routine(...)
SCALAR = "scalar"  # SELECT routine(...) AS result


@dataclass(frozen=True)
class Routine:
    """Описание хранимой процедуры: имя, порядок параметров, вид результата."""

    name: str
    params: tuple[str, ...]
    returns: str = SCALAR

    def statement(self) -> str:
        placeholders = ", ".join(f":{p}" for p in self.params)
        call = f"{self.name}({placeholders})"
        if self.returns == ROWS:
            return f"SELECT * FROM {call}"
        return f"SELECT {call} AS result"


_APPLICATION_FIELDS = (
    "client_name",
    "phone",
    "email",
    "address",
    "category",
    "budget",
    "desired_date",
)

ROUTINES: dict[str, Routine] = {
    r.name: r
    for r in (
        # Публичные
        Routine("list_categories", (), ROWS),
        Routine("list_applications", (), ROWS),
        Routine("get_application", ("application_id",), ROWS),
        Routine("create_application", _APPLICATION_FIELDS),
        # Аутентификация и сессии
        Routine("create_user", ("username", "password", "role")),
        Routine("login_user", ("username", "password"), ROWS),
        Routine("is_user_authenticated", ("session_token",), ROWS),
        Routine("logout_user", ("session_token",)),
        # Администрирование заявок
        Routine(
            "update_application",
            ("session_token", "application_id") + _APPLICATION_FIELDS,
        ),
        Routine("list_applications_admin", ("session_token",), ROWS),
        Routine("get_application_admin", ("session_token", "application_id"), ROWS),
        Routine("confirm_application", ("session_token", "application_id")),
        Routine("delete_application", ("session_token", "application_id")),
        # Категории
        Routine("create_category", ("session_token", "name")),
        Routine("update_category", ("session_token", "category_id", "name")),
        Routine("delete_category", ("session_token", "category_id")),
        # Пользователи
        Routine(
            "create_user_admin", ("session_token", "username", "password", "role")
        ),
        Routine("list_users_admin", ("session_token",), ROWS),
        Routine(
            "update_user_admin", ("session_token", "user_id", "password", "role")
        ),
        Routine("update_user_role_admin", ("session_token", "user_id", "role")),
        Routine("delete_user_admin", ("session_token", "user_id")),
    )
}


def _jsonable(value: Any) -> Any:
    # numeric -> строка, даты -> ISO-8601
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value


def _execute(routine: Routine, params: dict[str, Any]) -> list[dict[str, Any]]:
    """Выполнить процедуру в текущей сессии и зафиксировать транзакцию."""
    try:
        result = db.session.execute(text(routine.statement()), params)
        rows = [dict(row._mapping) for row in result]
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return rows


def call(name: str, *args: Any) -> list[dict[str, Any]]:
    """Вызвать процедуру из каталога и вернуть строки результата."""
    routine = ROUTINES[name]
    if len(args) != len(routine.params):
        raise TypeError(
            f"{name}() ожидает {len(routine.params)} аргументов, получено {len(args)}"
        )
    safe_log(logger, logging.DEBUG, f"Вызов процедуры {name}")
    rows = _execute(routine, dict(zip(routine.params, args)))
    return [{key: _jsonable(value) for key, value in row.items()} for row in rows]


def fetch_rows(name: str, *args: Any) -> list[dict[str, Any]]:
    return call(name, *args)


def fetch_one(name: str, *args: Any) -> dict[str, Any] | None:
    rows = call(name, *args)
    return rows[0] if rows else None


def fetch_scalar(name: str, *args: Any) -> Any:
    rows = call(name, *args)
    if not rows:
        return None
    return rows[0].get("result")


def is_true(name: str, *args: Any) -> bool:
    """Процедуры-действия возвращают boolean; всё, кроме True, считается отказом."""
    return fetch_scalar(name, *args) is True


def missing_routines() -> list[str]:
    """Имена процедур каталога, которых нет в базе (pg_proc)."""
    names = sorted(ROUTINES)
    stmt = text(
        "SELECT DISTINCT proname FROM pg_proc WHERE proname IN :names"
    ).bindparams(bindparam("names", expanding=True))
    present = {row[0] for row in db.session.execute(stmt, {"names": names})}
    return [name for name in names if name not in present]
