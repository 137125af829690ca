"""HTTP-клиент API приёма заявок."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

import httpx

from validation.rules import application_errors, earliest_desired_date

logger = logging.getLogger("intake.client")

DEFAULT_BASE_URL = "http://localhost:4000"
DEFAULT_TIMEZONE = "Europe/Riga"


class ApiError(Exception):
    """Ответ API с кодом 4xx/5xx."""

    def __init__(self, status_code: int, message: str, details: Any = None):
        self.status_code = status_code
        self.message = message
        self.details = details
        super().__init__(f"{status_code}: {message}")


class FormError(Exception):
    """Форма не прошла локальную проверку; запрос не отправлялся."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))


class SessionRequired(Exception):
    """Для запроса нужен sessionToken."""


def business_today(tz_name: str = DEFAULT_TIMEZONE) -> date:
    return datetime.now(ZoneInfo(tz_name)).date()


def _form_payload(form: dict[str, Any]) -> dict[str, Any]:
    payload = dict(form)
    for key in ("clientName", "address", "category"):
        if isinstance(payload.get(key), str):
            payload[key] = payload[key].strip()
    return payload


class IntakeClient:
    """Тонкая обёртка над httpx.Client.

    Формы заявок проверяются теми же правилами, что и на сервере, до
    отправки запроса.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        session_token: str | None = None,
        timeout: float = 10.0,
        tz_name: str = DEFAULT_TIMEZONE,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session_token = session_token
        self.tz_name = tz_name
        self._client = httpx.Client(
            base_url=self.base_url, timeout=timeout
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "IntakeClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    def _token(self) -> str:
        if not self.session_token:
            raise SessionRequired("Login required.")
        return self.session_token

    def _request(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        with_token: bool = False,
    ) -> Any:
        if with_token:
            body = {"sessionToken": self._token(), **(body or {})}

        logger.debug("%s %s", method, path)
        try:
            response = self._client.request(method, f"/api{path}", json=body)
        except httpx.HTTPError as e:
            raise ApiError(0, f"API unavailable: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.is_error:
            message = data.get("error") if isinstance(data, dict) else None
            details = data.get("details") if isinstance(data, dict) else None
            raise ApiError(
                response.status_code, message or response.reason_phrase, details
            )
        return data

    def today(self) -> date:
        return business_today(self.tz_name)

    def check_form(self, form: dict[str, Any]) -> None:
        errors = application_errors(form, self.today())
        if errors:
            raise FormError(errors)

    def earliest_date(self) -> date:
        return earliest_desired_date(self.today())

    # ------------------------------ public ------------------------------
    def health(self) -> dict[str, Any]:
        return self._request("GET", "/health")

    def categories(self) -> list[dict[str, Any]]:
        return self._request("GET", "/categories")

    def list_applications(self) -> list[dict[str, Any]]:
        return self._request("GET", "/applications")

    def get_application(self, application_id: int) -> dict[str, Any]:
        return self._request("GET", f"/applications/{application_id}")

    def create_application(self, form: dict[str, Any]) -> int:
        self.check_form(form)
        data = self._request("POST", "/applications", _form_payload(form))
        return data["id"]

    # ------------------------------ auth --------------------------------
    def register(self, username: str, password: str) -> bool:
        data = self._request(
            "POST", "/auth/register", {"username": username, "password": password}
        )
        return data.get("success") is True

    def login(self, username: str, password: str, admin: bool = False) -> dict:
        path = "/admin/login" if admin else "/auth/login"
        data = self._request("POST", path, {"username": username, "password": password})
        self.session_token = data.get("session_token")
        return data

    def status(self) -> dict[str, Any]:
        if not self.session_token:
            return {"is_authenticated": False}
        return self._request("POST", "/admin/status", with_token=True)

    def role(self) -> str | None:
        """Роль текущей сессии или None, если сессии нет."""
        data = self.status()
        if not data.get("is_authenticated") or not data.get("role"):
            return None
        return data["role"]

    def logout(self) -> bool:
        data = self._request("POST", "/admin/logout", with_token=True)
        self.session_token = None
        return data.get("success") is True

    # -------------------------- administration --------------------------
    def update_application(self, application_id: int, form: dict[str, Any]) -> bool:
        self._token()
        self.check_form(form)
        data = self._request(
            "PUT", f"/applications/{application_id}", _form_payload(form), True
        )
        return data.get("success") is True

    def admin_applications(self) -> list[dict[str, Any]]:
        return self._request("POST", "/admin/applications", with_token=True)

    def admin_application(self, application_id: int) -> dict[str, Any]:
        return self._request(
            "POST", f"/admin/applications/{application_id}", with_token=True
        )

    def confirm_application(self, application_id: int) -> bool:
        data = self._request(
            "POST", f"/admin/applications/{application_id}/confirm", with_token=True
        )
        return data.get("success") is True

    def delete_application(self, application_id: int) -> bool:
        data = self._request(
            "POST", f"/admin/applications/{application_id}/delete", with_token=True
        )
        return data.get("success") is True

    def create_category(self, name: str) -> bool:
        data = self._request("POST", "/admin/categories", {"name": name}, True)
        return data.get("success") is True

    def update_category(self, category_id: int, name: str) -> bool:
        data = self._request(
            "PATCH", f"/admin/categories/{category_id}", {"name": name}, True
        )
        return data.get("success") is True

    def delete_category(self, category_id: int) -> bool:
        data = self._request(
            "DELETE", f"/admin/categories/{category_id}", with_token=True
        )
        return data.get("success") is True

    def list_users(self) -> list[dict[str, Any]]:
        return self._request("POST", "/admin/users/list", with_token=True)

    def create_user(self, username: str, password: str, role: str) -> bool:
        body = {"username": username, "password": password, "role": role}
        data = self._request("POST", "/admin/users", body, True)
        return data.get("success") is True

    def update_user(
        self, user_id: int, role: str, password: str | None = None
    ) -> bool:
        body: dict[str, Any] = {"newRole": role}
        if password:
            body["newPassword"] = password
        data = self._request("PATCH", f"/admin/users/{user_id}", body, True)
        return data.get("success") is True

    def delete_user(self, user_id: int) -> bool:
        data = self._request("DELETE", f"/admin/users/{user_id}", with_token=True)
        return data.get("success") is True
