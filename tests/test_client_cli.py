"""Консольный клиент intake: CliRunner, API подменён через respx."""

import json
from datetime import date, timedelta

import httpx
import pytest
from click.testing import CliRunner
from respx import MockRouter

from client.api import IntakeClient
from client.cli import cli

# Часть команд отказывает ещё до запроса к API
pytestmark = pytest.mark.respx(assert_all_called=False)


class FakeApi:
    """Минимальный API: сессии по токену и заранее заданные ответы."""

    def __init__(self, sessions=None, responses=None):
        self.sessions = sessions or {}
        self.responses = responses or {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        key = (request.method, request.url.path)
        self.requests.append((request.method, request.url.path, body))

        if key == ("POST", "/api/admin/status"):
            role = self.sessions.get((body or {}).get("sessionToken"))
            if role is None:
                return httpx.Response(401, json={"error": "Invalid or expired session."})
            return httpx.Response(
                200,
                json={"is_authenticated": True, "role": role, "expires_at": "2030-01-01"},
            )

        status, payload = self.responses.get(key, (200, {"success": True}))
        return httpx.Response(status, json=payload)

    def paths(self):
        return [path for _, path, _ in self.requests]


@pytest.fixture()
def api(respx_mock: MockRouter):
    fake = FakeApi(
        sessions={"adm": "admin", "mgr": "manager", "view": "viewer"},
        responses={
            ("GET", "/api/categories"): (200, [{"id": 1, "name": "Jumti"}]),
        },
    )
    respx_mock.route(host="api.test").mock(side_effect=fake)
    return fake


def run(api, args, token=None, input=None):
    client = IntakeClient("http://api.test", session_token=token)
    return CliRunner().invoke(cli, args, obj=client, input=input)


def test_health(api):
    api.responses[("GET", "/api/health")] = (200, {"status": "ok"})
    result = run(api, ["health"])
    assert result.exit_code == 0
    assert result.output.strip() == "ok"


def test_categories_table(api):
    result = run(api, ["categories"])
    assert result.exit_code == 0
    assert "Nosaukums" in result.output
    assert "Jumti" in result.output


def test_empty_list(api):
    api.responses[("GET", "/api/applications")] = (200, [])
    result = run(api, ["applications", "list"])
    assert result.exit_code == 0
    assert "Nav ierakstu." in result.output


def test_login_prints_token(api):
    api.responses[("POST", "/api/auth/login")] = (
        200,
        {"session_token": "new-tok", "role": "viewer", "expires_at": "2030-01-01"},
    )
    result = run(api, ["login", "--username", "anna", "--password", "pw"])
    assert result.exit_code == 0
    assert "export INTAKE_SESSION_TOKEN=new-tok" in result.output
    assert "role: viewer" in result.output


def test_login_failure(api):
    api.responses[("POST", "/api/auth/login")] = (401, {"error": "Invalid credentials."})
    result = run(api, ["login", "--username", "anna", "--password", "bad"])
    assert result.exit_code == 1
    assert "Invalid credentials." in result.output


def test_nav_depends_on_role(api):
    guest = run(api, ["nav"])
    assert "applications list" in guest.output
    assert "applications new" not in guest.output

    admin = run(api, ["nav"], token="adm")
    assert "intake admin users list" in admin.output


def test_status_without_token(api):
    result = run(api, ["status"])
    assert result.output.strip() == "role: guest"
    assert api.requests == []


def test_status_row_without_flag_is_guest(respx_mock: MockRouter):
    respx_mock.post("http://api.test/api/admin/status").mock(
        return_value=httpx.Response(200, json={"role": "admin"})
    )
    client = IntakeClient("http://api.test", session_token="tok")
    result = CliRunner().invoke(cli, ["status"], obj=client)
    assert result.exit_code == 0
    assert result.output.strip() == "role: guest"


def test_guest_cannot_submit(api):
    result = run(api, ["applications", "new"])
    assert result.exit_code == 1
    assert "Login required." in result.output
    assert "/api/applications" not in api.paths()


def test_viewer_cannot_administer(api):
    result = run(api, ["admin", "applications"], token="view")
    assert result.exit_code == 1
    assert "Insufficient permissions." in result.output
    assert api.paths() == ["/api/admin/status"]


def test_manager_cannot_manage_users(api):
    result = run(api, ["admin", "users", "list"], token="mgr")
    assert result.exit_code == 1
    assert "Insufficient permissions." in result.output


def test_new_application_reprompts_invalid_fields(api):
    api.responses[("POST", "/api/applications")] = (201, {"id": 12})
    desired = (date.today() + timedelta(days=30)).isoformat()
    answers = [
        "Jānis Bērziņš",
        "29999999",  # без +371
        "+37129999999",
        "janis@example.lv",
        "Brīvības iela 1",
        "Logi",  # нет в справочнике
        "Jumti",
        "100",
        "1500",
        desired,
    ]

    result = run(api, ["applications", "new"], token="view", input="\n".join(answers) + "\n")

    assert result.exit_code == 0, result.output
    assert "Invalid phone format." in result.output
    assert "Unknown category." in result.output
    assert "Invalid budget." in result.output
    assert "Pieteikums #12 iesniegts." in result.output

    _, _, body = api.requests[-1]
    assert body["phone"] == "+37129999999"
    assert body["category"] == "Jumti"
    assert body["budget"] == "1500"


def test_confirm_skips_confirmed(api):
    api.responses[("POST", "/api/admin/applications/5")] = (
        200,
        {"id": 5, "status": "confirmed"},
    )
    result = run(api, ["admin", "confirm", "5"], token="mgr")
    assert result.exit_code == 0
    assert "jau apstiprināts" in result.output
    assert "/api/admin/applications/5/confirm" not in api.paths()


def test_confirm_pending(api):
    api.responses[("POST", "/api/admin/applications/5")] = (
        200,
        {"id": 5, "status": "pending"},
    )
    result = run(api, ["admin", "confirm", "5"], token="mgr")
    assert result.exit_code == 0
    assert "Pieteikums #5 apstiprināts." in result.output


def test_delete_requires_confirmation(api):
    aborted = run(api, ["admin", "delete", "5"], token="adm", input="n\n")
    assert aborted.exit_code == 1
    assert "/api/admin/applications/5/delete" not in api.paths()

    done = run(api, ["admin", "delete", "5", "--yes"], token="adm")
    assert done.exit_code == 0
    assert "/api/admin/applications/5/delete" in api.paths()


def test_delete_reports_nothing_deleted(api):
    api.responses[("POST", "/api/admin/applications/9/delete")] = (
        200,
        {"success": False},
    )
    result = run(api, ["admin", "delete", "9", "--yes"], token="adm")
    assert result.exit_code == 1
    assert "Nothing was deleted." in result.output


def test_add_category_blank_name(api):
    result = run(api, ["admin", "categories", "add", "  "], token="adm")
    assert result.exit_code == 1
    assert "Missing required fields." in result.output
    assert "/api/admin/categories" not in api.paths()


def test_update_user_with_password(api):
    result = run(
        api,
        ["admin", "users", "update", "4", "--role", "manager", "--password", "s3cret"],
        token="adm",
    )
    assert result.exit_code == 0
    _, path, body = api.requests[-1]
    assert path == "/api/admin/users/4"
    assert body == {"sessionToken": "adm", "newRole": "manager", "newPassword": "s3cret"}


def test_expired_token_is_login_required(api):
    result = run(api, ["admin", "applications"], token="expired")
    assert result.exit_code == 1
    assert "Invalid or expired session." in result.output
