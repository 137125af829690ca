"""Табличный вывод и формы консольного клиента."""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Sequence

import click

from utils.roles import nav_items
from utils.statuses import get_status_label
from validation.rules import APPLICATION_FIELDS, application_errors

FIELD_LABELS = {
    "clientName": "Vārds, uzvārds",
    "phone": "Tālrunis (+371...)",
    "email": "E-pasts",
    "address": "Adrese",
    "category": "Kategorija",
    "budget": "Budžets (EUR)",
    "desiredDate": "Vēlamais termiņš (YYYY-MM-DD)",
}

APPLICATION_COLUMNS = (
    ("id", "ID"),
    ("client_name", "Klients"),
    ("category", "Kategorija"),
    ("budget", "Budžets"),
    ("desired_date", "Termiņš"),
)

ADMIN_APPLICATION_COLUMNS = APPLICATION_COLUMNS + (
    ("phone", "Tālrunis"),
    ("email", "E-pasts"),
    ("status", "Statuss"),
)

USER_COLUMNS = (("id", "ID"), ("username", "Lietotājs"), ("role", "Loma"))
CATEGORY_COLUMNS = (("id", "ID"), ("name", "Nosaukums"))


def _cell(key: str, value: Any) -> str:
    if value is None:
        return ""
    if key == "status":
        return get_status_label(str(value))
    if key == "desired_date" and isinstance(value, str):
        return value[:10]
    return str(value)


def format_table(
    rows: Iterable[dict[str, Any]], columns: Sequence[tuple[str, str]]
) -> str:
    """Простая моноширинная таблица."""
    rows = list(rows)
    if not rows:
        return "Nav ierakstu."

    cells = [[_cell(key, row.get(key)) for key, _ in columns] for row in rows]
    headers = [title for _, title in columns]
    widths = [
        max(len(headers[i]), *(len(line[i]) for line in cells))
        for i in range(len(columns))
    ]

    def line(values: Sequence[str]) -> str:
        return "  ".join(v.ljust(w) for v, w in zip(values, widths)).rstrip()

    out = [line(headers), line(["-" * w for w in widths])]
    out.extend(line(values) for values in cells)
    return "\n".join(out)


def format_record(row: dict[str, Any]) -> str:
    width = max((len(k) for k in row), default=0)
    return "\n".join(f"{k.ljust(width)}  {_cell(k, v)}" for k, v in row.items())


def format_nav(role: str | None) -> str:
    items = nav_items(role)
    if not items:
        return "intake login"
    return "\n".join(f"{label}: intake {command}" for command, label in items)


def application_defaults(row: dict[str, Any]) -> dict[str, Any]:
    """Строка из БД -> значения формы (для редактирования)."""
    desired = row.get("desired_date")
    return {
        "clientName": row.get("client_name"),
        "phone": row.get("phone"),
        "email": row.get("email"),
        "address": row.get("address"),
        "category": row.get("category"),
        "budget": row.get("budget"),
        "desiredDate": desired[:10] if isinstance(desired, str) else desired,
    }


def prompt_application_form(
    today: date,
    categories: Sequence[str] = (),
    defaults: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Запросить поля формы по одному, переспрашивая неверные.

    Ошибка показывается сразу после ввода поля, итоговая проверка формы
    та же, что и на сервере.
    """
    defaults = defaults or {}
    form: dict[str, Any] = {}
    if categories:
        click.echo("Kategorijas: " + ", ".join(categories))

    for field in APPLICATION_FIELDS:
        while True:
            value = click.prompt(
                FIELD_LABELS[field],
                type=str,
                default=defaults.get(field),
                show_default=defaults.get(field) is not None,
            )
            form[field] = value
            # Ошибка поля зависит только от его значения
            error = application_errors(form, today).get(field)
            if error is None and field == "category" and categories:
                if str(value).strip() not in categories:
                    error = "Unknown category."
            if error is None:
                break
            click.secho(f"  {error}", fg="red", err=True)

    return form
