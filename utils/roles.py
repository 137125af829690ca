"""Роли пользователей и ролевая навигация."""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """Роли, которые хранит БД. Гость: только клиентское состояние без сессии."""

    ADMIN = "admin"
    MANAGER = "manager"
    VIEWER = "viewer"

    @classmethod
    def all(cls) -> list[str]:
        return [role.value for role in cls]


GUEST = "guest"

# Кто может администрировать заявки и кто справочники/пользователей
APPLICATION_ADMIN_ROLES = (UserRole.ADMIN.value, UserRole.MANAGER.value)
ADMIN_ONLY_ROLES = (UserRole.ADMIN.value,)


def nav_items(role: str | None) -> list[tuple[str, str]]:
    """Пункты навигации (команда, подпись), доступные роли.

    Без роли (не вошёл и не гость) навигации нет, только вход.
    """
    if not role:
        return []
    if role == GUEST:
        return [("applications list", "Pieteikumu saraksts")]

    items = [
        ("applications new", "Jauns pieteikums"),
        ("applications list", "Pieteikumu saraksts"),
    ]
    if role in APPLICATION_ADMIN_ROLES:
        items.append(("admin applications", "Administrācija"))
    if role in ADMIN_ONLY_ROLES:
        items.append(("admin users list", "Lietotāji"))
    return items
