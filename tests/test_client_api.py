"""HTTP-клиент API приёма заявок (httpx + respx)."""

import json
from datetime import date, timedelta

import httpx
import pytest
from respx import MockRouter

from client.api import ApiError, FormError, IntakeClient, SessionRequired

BASE_URL = "http://api.test"


@pytest.fixture
def client():
    with IntakeClient(BASE_URL) as intake:
        yield intake


@pytest.fixture
def authed(client):
    client.session_token = "t"
    return client


def body_of(call):
    return json.loads(call.request.content) if call.request.content else None


def valid_form(client):
    return {
        "clientName": " Līga Ozola ",
        "phone": "+37121111111",
        "email": "liga@example.lv",
        "address": "Tērbatas iela 5",
        "category": "Elektrība",
        "budget": "2500",
        "desiredDate": (client.today() + timedelta(days=10)).isoformat(),
    }


def test_public_reads_use_api_prefix(client, respx_mock: MockRouter):
    route = respx_mock.get(f"{BASE_URL}/api/categories").mock(
        return_value=httpx.Response(200, json=[{"id": 1, "name": "Jumti"}])
    )
    assert client.categories() == [{"id": 1, "name": "Jumti"}]
    assert route.called


def test_invalid_form_is_not_sent(client, respx_mock: MockRouter):
    form = valid_form(client)
    form["phone"] = "29999999"
    form["budget"] = 100

    with pytest.raises(FormError) as exc:
        client.create_application(form)

    assert exc.value.errors == {
        "phone": "Invalid phone format.",
        "budget": "Invalid budget.",
    }
    assert len(respx_mock.calls) == 0


def test_create_application_posts_trimmed_form(client, respx_mock: MockRouter):
    route = respx_mock.post(f"{BASE_URL}/api/applications").mock(
        return_value=httpx.Response(201, json={"id": 42})
    )
    assert client.create_application(valid_form(client)) == 42

    body = body_of(route.calls.last)
    assert body["clientName"] == "Līga Ozola"
    assert "sessionToken" not in body


def test_login_keeps_token_and_admin_path(client, respx_mock: MockRouter):
    row = {"session_token": "s-1", "role": "admin", "expires_at": "2030-01-01"}
    login = respx_mock.post(f"{BASE_URL}/api/admin/login").mock(
        return_value=httpx.Response(200, json=row)
    )
    listing = respx_mock.post(f"{BASE_URL}/api/admin/applications").mock(
        return_value=httpx.Response(200, json=[])
    )

    assert client.login("root", "pw", admin=True) == row
    assert client.session_token == "s-1"
    assert body_of(login.calls.last) == {"username": "root", "password": "pw"}

    assert client.admin_applications() == []
    assert body_of(listing.calls.last) == {"sessionToken": "s-1"}


def test_token_is_required_before_request(client, respx_mock: MockRouter):
    with pytest.raises(SessionRequired):
        client.confirm_application(3)
    with pytest.raises(SessionRequired):
        client.update_application(3, valid_form(client))
    assert len(respx_mock.calls) == 0


def test_status_without_token_is_guest(client, respx_mock: MockRouter):
    assert client.status() == {"is_authenticated": False}
    assert client.role() is None
    assert len(respx_mock.calls) == 0


def test_role_from_status(authed, respx_mock: MockRouter):
    respx_mock.post(f"{BASE_URL}/api/admin/status").mock(
        return_value=httpx.Response(200, json={"is_authenticated": True, "role": "manager"})
    )
    assert authed.role() == "manager"


@pytest.mark.parametrize(
    "payload",
    [{"role": "manager"}, {"is_authenticated": None, "role": "manager"}],
)
def test_role_needs_confirmed_session(authed, respx_mock: MockRouter, payload):
    respx_mock.post(f"{BASE_URL}/api/admin/status").mock(
        return_value=httpx.Response(200, json=payload)
    )
    assert authed.role() is None


def test_api_error_carries_message_and_details(authed, respx_mock: MockRouter):
    respx_mock.post(f"{BASE_URL}/api/admin/categories").mock(
        return_value=httpx.Response(
            400, json={"error": "Invalid request body.", "details": [{"path": "name"}]}
        )
    )
    with pytest.raises(ApiError) as exc:
        authed.create_category("Logi")

    assert exc.value.status_code == 400
    assert exc.value.message == "Invalid request body."
    assert exc.value.details == [{"path": "name"}]


def test_api_error_without_json_body(client, respx_mock: MockRouter):
    respx_mock.get(f"{BASE_URL}/api/health").mock(
        return_value=httpx.Response(502, text="Bad gateway")
    )
    with pytest.raises(ApiError) as exc:
        client.health()
    assert exc.value.status_code == 502
    assert exc.value.message == "Bad Gateway"


def test_unreachable_api(client, respx_mock: MockRouter):
    respx_mock.get(f"{BASE_URL}/api/applications").mock(side_effect=httpx.ConnectError)
    with pytest.raises(ApiError) as exc:
        client.list_applications()
    assert exc.value.status_code == 0


def test_update_user_password_is_optional(authed, respx_mock: MockRouter):
    route = respx_mock.patch(f"{BASE_URL}/api/admin/users/7").mock(
        return_value=httpx.Response(200, json={"success": True})
    )
    assert authed.update_user(7, "viewer") is True
    assert authed.update_user(7, "manager", password="new-pass") is True

    first, second = route.calls
    assert body_of(first) == {"sessionToken": "t", "newRole": "viewer"}
    assert body_of(second)["newPassword"] == "new-pass"


def test_delete_category_sends_token_in_body(authed, respx_mock: MockRouter):
    route = respx_mock.delete(f"{BASE_URL}/api/admin/categories/3").mock(
        return_value=httpx.Response(200, json={"success": False})
    )
    assert authed.delete_category(3) is False
    assert body_of(route.calls.last) == {"sessionToken": "t"}


def test_logout_forgets_token(authed, respx_mock: MockRouter):
    route = respx_mock.post(f"{BASE_URL}/api/admin/logout").mock(
        return_value=httpx.Response(200, json={"success": True})
    )
    assert authed.logout() is True
    assert authed.session_token is None
    assert body_of(route.calls.last) == {"sessionToken": "t"}


def test_earliest_date_is_a_week_ahead(client):
    assert client.earliest_date() - client.today() == timedelta(days=7)
    assert isinstance(client.today(), date)
