"""Консольный клиент `intake`.

Повторяет страницы веб-клиента: вход, список и форма заявок,
администрирование заявок, категорий и пользователей. Навигация зависит от
роли, роль каждый раз запрашивается у API (/api/admin/status).
"""

from __future__ import annotations

import logging
from functools import wraps

import click

from client.api import (
    DEFAULT_BASE_URL,
    ApiError,
    FormError,
    IntakeClient,
    SessionRequired,
)
from client.views import (
    ADMIN_APPLICATION_COLUMNS,
    APPLICATION_COLUMNS,
    CATEGORY_COLUMNS,
    USER_COLUMNS,
    application_defaults,
    format_nav,
    format_record,
    format_table,
    prompt_application_form,
)
from utils.roles import ADMIN_ONLY_ROLES, APPLICATION_ADMIN_ROLES, GUEST, UserRole
from utils.statuses import can_confirm

MSG_LOGIN_REQUIRED = "Login required."
MSG_FORBIDDEN = "Insufficient permissions."


def _fail(message: str) -> None:
    raise click.ClickException(message)


def api_call(f):
    """Ошибки API и формы -> понятное сообщение и код выхода 1."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except FormError as e:
            for field, message in e.errors.items():
                click.secho(f"{field}: {message}", fg="red", err=True)
            _fail("Form is invalid, nothing was sent.")
        except SessionRequired:
            _fail(MSG_LOGIN_REQUIRED)
        except ApiError as e:
            _fail(e.message)

    return wrapper


def require_role(client: IntakeClient, roles: tuple[str, ...]) -> str:
    """Спросить роль у API и отказать, если её нет в roles."""
    role = client.role() if client.session_token else None
    if role is None:
        _fail(MSG_LOGIN_REQUIRED)
    if role not in roles:
        _fail(MSG_FORBIDDEN)
    return role


def _category_names(client: IntakeClient) -> list[str]:
    return [str(row.get("name")) for row in client.categories() if row.get("name")]


@click.group()
@click.option(
    "--api",
    "base_url",
    envvar="INTAKE_API_BASE",
    default=DEFAULT_BASE_URL,
    show_default=True,
    help="Адрес API",
)
@click.option("--token", envvar="INTAKE_SESSION_TOKEN", help="sessionToken")
@click.option("-v", "--verbose", is_flag=True, help="Отладочный вывод запросов")
@click.pass_context
def cli(ctx: click.Context, base_url: str, token: str | None, verbose: bool):
    """Клиент приёма заявок на ремонт."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    if ctx.obj is None:
        ctx.obj = IntakeClient(base_url, session_token=token)
        ctx.call_on_close(ctx.obj.close)
    elif token:
        ctx.obj.session_token = token


pass_client = click.make_pass_decorator(IntakeClient)


# ------------------------------ public ------------------------------


@cli.command()
@pass_client
@api_call
def health(client: IntakeClient):
    """Проверить доступность API."""
    click.echo(client.health().get("status", "unknown"))


@cli.command()
@pass_client
@api_call
def categories(client: IntakeClient):
    """Список категорий."""
    click.echo(format_table(client.categories(), CATEGORY_COLUMNS))


@cli.command()
@click.option("--username", prompt=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@pass_client
@api_call
def register(client: IntakeClient, username: str, password: str):
    """Регистрация (роль viewer)."""
    if client.register(username, password):
        click.echo("Reģistrācija veiksmīga. Tagad: intake login")
    else:
        _fail("Registration failed.")


@cli.command()
@click.option("--username", prompt=True)
@click.option("--password", prompt=True, hide_input=True)
@click.option("--admin", is_flag=True, help="Вход через /api/admin/login")
@pass_client
@api_call
def login(client: IntakeClient, username: str, password: str, admin: bool):
    """Войти и вывести sessionToken."""
    data = client.login(username, password, admin=admin)
    click.echo(f"export INTAKE_SESSION_TOKEN={data.get('session_token')}")
    click.echo(f"role: {data.get('role')}  expires_at: {data.get('expires_at')}")


@cli.command()
@pass_client
@api_call
def logout(client: IntakeClient):
    """Завершить сессию."""
    if not client.session_token:
        _fail(MSG_LOGIN_REQUIRED)
    client.logout()
    click.echo("Sesija beigta.")


@cli.command()
@pass_client
@api_call
def status(client: IntakeClient):
    """Состояние сессии."""
    data = client.status()
    if not data.get("is_authenticated"):
        click.echo(f"role: {GUEST}")
        return
    click.echo(f"role: {data.get('role')}  expires_at: {data.get('expires_at')}")


@cli.command()
@pass_client
@api_call
def nav(client: IntakeClient):
    """Доступные разделы для текущей роли."""
    role = client.role() if client.session_token else GUEST
    click.echo(format_nav(role or GUEST))


# ---------------------------- applications ---------------------------


@cli.group()
def applications():
    """Заявки."""


@applications.command("list")
@pass_client
@api_call
def applications_list(client: IntakeClient):
    click.echo(format_table(client.list_applications(), APPLICATION_COLUMNS))


@applications.command("show")
@click.argument("application_id", type=int)
@pass_client
@api_call
def applications_show(client: IntakeClient, application_id: int):
    click.echo(format_record(client.get_application(application_id)))


@applications.command("new")
@pass_client
@api_call
def applications_new(client: IntakeClient):
    """Новая заявка (нужна сессия: гость не может подавать заявки)."""
    require_role(client, tuple(UserRole.all()))
    click.echo(f"Agrākais termiņš: {client.earliest_date().isoformat()}")
    form = prompt_application_form(client.today(), _category_names(client))
    application_id = client.create_application(form)
    click.echo(f"Pieteikums #{application_id} iesniegts.")


@applications.command("edit")
@click.argument("application_id", type=int)
@pass_client
@api_call
def applications_edit(client: IntakeClient, application_id: int):
    """Изменить заявку (admin, manager)."""
    require_role(client, APPLICATION_ADMIN_ROLES)
    current = client.admin_application(application_id)
    form = prompt_application_form(
        client.today(), _category_names(client), application_defaults(current)
    )
    client.update_application(application_id, form)
    click.echo(f"Pieteikums #{application_id} atjaunināts.")


# ---------------------------- administration --------------------------


@cli.group()
def admin():
    """Администрирование."""


@admin.command("applications")
@pass_client
@api_call
def admin_applications(client: IntakeClient):
    """Все заявки со статусами (admin, manager)."""
    require_role(client, APPLICATION_ADMIN_ROLES)
    click.echo(format_table(client.admin_applications(), ADMIN_APPLICATION_COLUMNS))


@admin.command("confirm")
@click.argument("application_id", type=int)
@pass_client
@api_call
def admin_confirm(client: IntakeClient, application_id: int):
    require_role(client, APPLICATION_ADMIN_ROLES)
    current = client.admin_application(application_id)
    if not can_confirm(current.get("status", "")):
        click.echo(f"Pieteikums #{application_id} jau apstiprināts.")
        return
    if client.confirm_application(application_id):
        click.echo(f"Pieteikums #{application_id} apstiprināts.")
    else:
        _fail("Confirmation failed.")


@admin.command("delete")
@click.argument("application_id", type=int)
@click.confirmation_option(prompt="Dzēst pieteikumu?")
@pass_client
@api_call
def admin_delete(client: IntakeClient, application_id: int):
    require_role(client, APPLICATION_ADMIN_ROLES)
    if client.delete_application(application_id):
        click.echo(f"Pieteikums #{application_id} dzēsts.")
    else:
        _fail("Nothing was deleted.")


@admin.group("categories")
def admin_categories():
    """Категории (admin)."""


@admin_categories.command("add")
@click.argument("name")
@pass_client
@api_call
def categories_add(client: IntakeClient, name: str):
    require_role(client, ADMIN_ONLY_ROLES)
    if not name.strip():
        _fail("Missing required fields.")
    if not client.create_category(name.strip()):
        _fail("Category was not created.")
    click.echo(f"Kategorija '{name.strip()}' pievienota.")


@admin_categories.command("rename")
@click.argument("category_id", type=int)
@click.argument("name")
@pass_client
@api_call
def categories_rename(client: IntakeClient, category_id: int, name: str):
    require_role(client, ADMIN_ONLY_ROLES)
    if not name.strip():
        _fail("Missing required fields.")
    if not client.update_category(category_id, name.strip()):
        _fail("Category was not updated.")
    click.echo(f"Kategorija #{category_id} pārdēvēta.")


@admin_categories.command("delete")
@click.argument("category_id", type=int)
@pass_client
@api_call
def categories_delete(client: IntakeClient, category_id: int):
    require_role(client, ADMIN_ONLY_ROLES)
    if not client.delete_category(category_id):
        _fail("Nothing was deleted.")
    click.echo(f"Kategorija #{category_id} dzēsta.")


@admin.group("users")
def admin_users():
    """Пользователи (admin)."""


@admin_users.command("list")
@pass_client
@api_call
def users_list(client: IntakeClient):
    require_role(client, ADMIN_ONLY_ROLES)
    click.echo(format_table(client.list_users(), USER_COLUMNS))


@admin_users.command("add")
@click.option("--username", prompt=True)
@click.option("--password", prompt=True, hide_input=True)
@click.option(
    "--role",
    type=click.Choice(UserRole.all()),
    default=UserRole.VIEWER.value,
    show_default=True,
)
@pass_client
@api_call
def users_add(client: IntakeClient, username: str, password: str, role: str):
    require_role(client, ADMIN_ONLY_ROLES)
    if not client.create_user(username, password, role):
        _fail("User was not created.")
    click.echo(f"Lietotājs {username} ({role}) izveidots.")


@admin_users.command("update")
@click.argument("user_id", type=int)
@click.option("--role", type=click.Choice(UserRole.all()), required=True)
@click.option("--password", default=None, help="Новый пароль (необязательно)")
@pass_client
@api_call
def users_update(client: IntakeClient, user_id: int, role: str, password: str | None):
    require_role(client, ADMIN_ONLY_ROLES)
    if not client.update_user(user_id, role, password):
        _fail("User was not updated.")
    click.echo(f"Lietotājs #{user_id} atjaunināts.")


@admin_users.command("delete")
@click.argument("user_id", type=int)
@click.confirmation_option(prompt="Dzēst lietotāju?")
@pass_client
@api_call
def users_delete(client: IntakeClient, user_id: int):
    require_role(client, ADMIN_ONLY_ROLES)
    if not client.delete_user(user_id):
        _fail("Nothing was deleted.")
    click.echo(f"Lietotājs #{user_id} dzēsts.")


def main():
    cli(prog_name="intake")


if __name__ == "__main__":
    main()
