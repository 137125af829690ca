from datetime import date, datetime
from decimal import Decimal

import pytest

import routines


def test_rows_statement():
    routine = routines.ROUTINES["get_application_admin"]
    assert routine.statement() == (
        "SELECT * FROM get_application_admin(:session_token, :application_id)"
    )


def test_scalar_statement():
    assert routines.ROUTINES["logout_user"].statement() == (
        "SELECT logout_user(:session_token) AS result"
    )
    assert routines.ROUTINES["list_categories"].statement() == (
        "SELECT * FROM list_categories()"
    )


def test_update_application_parameter_order():
    assert routines.ROUTINES["update_application"].params == (
        "session_token",
        "application_id",
        "client_name",
        "phone",
        "email",
        "address",
        "category",
        "budget",
        "desired_date",
    )


def test_call_checks_argument_count(app, fake_routines):
    with pytest.raises(TypeError):
        routines.call("login_user", "only-username")
    assert fake_routines.calls == []


def test_call_converts_values(app, fake_routines):
    fake_routines.rows(
        "list_applications",
        [
            {
                "budget": Decimal("900.00"),
                "desired_date": date(2030, 1, 2),
                "created_at": datetime(2030, 1, 1, 8, 30),
                "client_name": "Anna",
            }
        ],
    )
    (row,) = routines.fetch_rows("list_applications")
    assert row == {
        "budget": "900.00",
        "desired_date": "2030-01-02",
        "created_at": "2030-01-01T08:30:00",
        "client_name": "Anna",
    }


def test_is_true_only_for_true(app, fake_routines):
    fake_routines.scalar("confirm_application", True)
    assert routines.is_true("confirm_application", "t", 1) is True
    for value in (False, None, 1, "true"):
        fake_routines.scalar("confirm_application", value)
        assert routines.is_true("confirm_application", "t", 1) is False


def test_fetch_one_and_scalar_on_empty(app, fake_routines):
    assert routines.fetch_one("get_application", 1) is None
    assert routines.fetch_scalar("create_application", *range(7)) is None
