import os
import sys
from datetime import date, timedelta
from pathlib import Path

import pytest

# Добавляем корень проекта в sys.path для импортов
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("FLASK_ENV", "testing")

import routines  # noqa: E402
from app import app as flask_app  # noqa: E402
from extensions import limiter  # noqa: E402

SESSION_EXPIRES_AT = "2030-01-01T12:00:00+00:00"


class FakeRoutines:
    """Подмена выполнения хранимых процедур.

    Результат задаётся по имени процедуры: список строк, функция от
    параметров или исключение. Все вызовы записываются.
    """

    def __init__(self):
        self.results = {}
        self.calls = []

    def __call__(self, routine, params):
        self.calls.append((routine.name, dict(params)))
        result = self.results.get(routine.name, [])
        if isinstance(result, Exception):
            raise result
        if callable(result):
            result = result(params)
        return [dict(row) for row in result]

    def rows(self, name, rows):
        self.results[name] = rows

    def scalar(self, name, value):
        self.results[name] = [{"result": value}]

    def fail(self, name, exc=None):
        self.results[name] = exc or RuntimeError("connection refused")

    def session(self, role, token="tok-123"):
        """Действительная сессия с указанной ролью."""
        self.results["is_user_authenticated"] = lambda params: (
            [
                {
                    "is_authenticated": True,
                    "role": role,
                    "expires_at": SESSION_EXPIRES_AT,
                }
            ]
            if params["session_token"] == token
            else []
        )
        return token

    def called(self, name):
        return [params for routine, params in self.calls if routine == name]

    def business_calls(self):
        """Вызовы без проверки сессии."""
        return [c for c in self.calls if c[0] != "is_user_authenticated"]


@pytest.fixture()
def app():
    """Flask-приложение для тестов."""
    with flask_app.app_context():
        yield flask_app


@pytest.fixture()
def fake_routines(monkeypatch):
    """Процедуры БД без PostgreSQL."""
    fake = FakeRoutines()
    monkeypatch.setattr(routines, "_execute", fake)
    return fake


@pytest.fixture()
def client(fake_routines):
    """HTTP-клиент Flask.

    Без внешнего app_context: каждый запрос получает свой g, иначе
    Flask-Login закэширует пользователя первого запроса.
    """
    with flask_app.app_context():
        limiter.reset()
    return flask_app.test_client()


@pytest.fixture()
def admin_token(fake_routines):
    return fake_routines.session("admin", token="admin-token")


@pytest.fixture()
def manager_token(fake_routines):
    return fake_routines.session("manager", token="manager-token")


@pytest.fixture()
def viewer_token(fake_routines):
    return fake_routines.session("viewer", token="viewer-token")


@pytest.fixture()
def valid_form():
    """Корректная форма заявки с запасом по сроку."""
    return {
        "clientName": "Jānis Bērziņš",
        "phone": "+37120000000",
        "email": "janis@example.lv",
        "address": "Brīvības iela 1, Rīga",
        "category": "Santehnika",
        "budget": 1500,
        "desiredDate": (date.today() + timedelta(days=30)).isoformat(),
    }
