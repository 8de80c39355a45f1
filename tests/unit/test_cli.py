"""Unit tests for the command-line interface."""

from __future__ import annotations

import json
from collections.abc import Generator

import pytest
import responses
from click.testing import CliRunner

from adminconsole.cli import cli
from adminconsole.core.config import TestingConfig
from adminconsole.factory import ConsoleClient, create_client
from adminconsole.services._shared.ports import SessionMeta, StubAuthGateway
from adminconsole.services.auth.dto import LoginIn

from tests.factories.credential import CredentialFactory, UserFactory
from tests.helpers.http import envelope, url


class CliConfig(TestingConfig):
    API_URL = "https://api.test/api"


@pytest.fixture
def console() -> Generator[ConsoleClient, None, None]:
    client = create_client(CliConfig, gateway=StubAuthGateway(), configure_logs=False)
    yield client
    client.close()


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _invoke(runner: CliRunner, console: ConsoleClient, *args: str):
    return runner.invoke(cli, list(args), obj={"client": console})


def test_status_when_signed_out(runner: CliRunner, console: ConsoleClient) -> None:
    result = _invoke(runner, console, "status")

    assert result.exit_code == 0
    assert "State: signed_out" in result.output


def test_login_then_status(runner: CliRunner, console: ConsoleClient) -> None:
    # Act
    login = _invoke(
        runner, console, "login", "--email", "ops@example.com", "--password", "password123"
    )
    status = _invoke(runner, console, "status")

    # Assert
    assert login.exit_code == 0, login.output
    assert "Signed in as Operator <ops@example.com> (admin)" in login.output
    assert "State: active" in status.output
    assert "Signed in as Operator <ops@example.com> (admin)" in status.output
    assert "Refresh token expires:" in status.output


def test_login_prompts_for_missing_values(runner: CliRunner, console: ConsoleClient) -> None:
    result = runner.invoke(
        cli, ["login"], input="ops@example.com\npassword123\n", obj={"client": console}
    )

    assert result.exit_code == 0, result.output
    assert console.auth.is_active is True


def test_rejected_login_is_reported(runner: CliRunner, console: ConsoleClient) -> None:
    result = _invoke(
        runner, console, "login", "--email", "ops@example.com", "--password", "wrong-password"
    )

    assert result.exit_code == 1
    assert "Error: Invalid credentials" in result.output


def test_invalid_login_input_is_reported(runner: CliRunner, console: ConsoleClient) -> None:
    result = _invoke(runner, console, "login", "--email", "nope", "--password", "password123")

    assert result.exit_code == 1
    assert "Invalid input: email:" in result.output


def test_logout(runner: CliRunner, console: ConsoleClient) -> None:
    console.auth.login(LoginIn(email="ops@example.com", password="password123"))

    result = _invoke(runner, console, "logout")

    assert result.exit_code == 0
    assert "Signed out" in result.output
    assert console.store.get() is None


def test_items_list_prints_rows(
    runner: CliRunner, console: ConsoleClient, mocked_responses: responses.RequestsMock
) -> None:
    console.auth.login(LoginIn(email="ops@example.com", password="password123"))
    mocked_responses.add(responses.GET, url("/items"), json=envelope([{"_id": "i-1"}]))

    result = _invoke(runner, console, "items", "list")

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == [{"_id": "i-1"}]


def test_customers_show_prints_customer_and_orders(
    runner: CliRunner, console: ConsoleClient, mocked_responses: responses.RequestsMock
) -> None:
    console.auth.login(LoginIn(email="ops@example.com", password="password123"))
    mocked_responses.add(
        responses.GET,
        url("/customers/c-1"),
        json=envelope({"customer": {"_id": "c-1"}, "orders": [{"_id": "so-1"}]}),
    )

    result = _invoke(runner, console, "customers", "show", "c-1")

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"customer": {"_id": "c-1"}, "orders": [{"_id": "so-1"}]}


def test_sales_orders_list_prints_page_summary(
    runner: CliRunner, console: ConsoleClient, mocked_responses: responses.RequestsMock
) -> None:
    console.auth.login(LoginIn(email="ops@example.com", password="password123"))
    mocked_responses.add(
        responses.GET,
        url("/sales-orders", page=1, limit=10),
        json=envelope([], meta={"page": 1, "limit": 10, "total": 0}),
    )

    result = _invoke(runner, console, "sales-orders", "list")

    assert result.exit_code == 0, result.output
    assert "Page 1 (limit 10, total 0)" in result.output


def test_api_errors_become_click_errors(
    runner: CliRunner, console: ConsoleClient, mocked_responses: responses.RequestsMock
) -> None:
    console.auth.login(LoginIn(email="ops@example.com", password="password123"))
    mocked_responses.add(
        responses.GET,
        url("/items/missing"),
        json={"success": False, "message": "Item not found", "data": None},
        status=404,
    )

    result = _invoke(runner, console, "items", "show", "missing")

    assert result.exit_code == 1
    assert "Error: Item not found (404)" in result.output


def _sign_in_as(console: ConsoleClient, **user) -> None:
    console.lifecycle.sign_in(CredentialFactory())
    console.store.set_meta(SessionMeta(user=UserFactory(**user).to_mapping()))


def test_resource_commands_respect_permissions(runner: CliRunner, console: ConsoleClient) -> None:
    _sign_in_as(console, role="employee", permissions=("customer",))

    result = _invoke(runner, console, "items", "list")

    assert result.exit_code == 1
    assert "Error: Permission denied: item access is required" in result.output


def test_dashboard_for_a_window(
    runner: CliRunner, console: ConsoleClient, mocked_responses: responses.RequestsMock
) -> None:
    # Arrange
    console.auth.login(LoginIn(email="ops@example.com", password="password123"))
    mocked_responses.add(
        responses.GET,
        url("/dashboard/data/date-range", startDate="2025-04-01", endDate="2025-04-30"),
        json=envelope(
            {"totalCustomers": 2, "totalItems": 3, "totalOrders": 1, "totalRevenue": 99.5}
        ),
    )

    # Act
    result = _invoke(runner, console, "dashboard", "--start", "2025-04-01", "--end", "2025-04-30")

    # Assert
    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["total_revenue"] == 99.5


def test_dashboard_window_needs_both_ends(runner: CliRunner, console: ConsoleClient) -> None:
    console.auth.login(LoginIn(email="ops@example.com", password="password123"))

    result = _invoke(runner, console, "dashboard", "--start", "2025-04-01")

    assert result.exit_code == 2
    assert "--start and --end must be given together" in result.output


def test_account_profile_update(
    runner: CliRunner, console: ConsoleClient, mocked_responses: responses.RequestsMock
) -> None:
    console.auth.login(LoginIn(email="ops@example.com", password="password123"))
    mocked_responses.add(responses.PUT, url("/users/profile"), json=envelope({}))

    result = _invoke(runner, console, "account", "profile", "--name", "Night Shift")

    assert result.exit_code == 0, result.output
    assert json.loads(mocked_responses.calls[0].request.body) == {
        "name": "Night Shift",
        "email": "ops@example.com",
    }
    assert console.auth.current_user.name == "Night Shift"


def test_account_change_password_prompts_twice(
    runner: CliRunner, console: ConsoleClient, mocked_responses: responses.RequestsMock
) -> None:
    console.auth.login(LoginIn(email="ops@example.com", password="password123"))
    mocked_responses.add(responses.POST, url("/auth/change-password"), json=envelope(None))

    result = runner.invoke(
        cli,
        ["account", "change-password"],
        input="password123\nnew-secret\nnew-secret\n",
        obj={"client": console},
    )

    assert result.exit_code == 0, result.output
    assert "Password changed" in result.output
    assert json.loads(mocked_responses.calls[0].request.body) == {
        "currentPassword": "password123",
        "newPassword": "new-secret",
    }


def test_account_create_employee(
    runner: CliRunner, console: ConsoleClient, mocked_responses: responses.RequestsMock
) -> None:
    console.auth.login(LoginIn(email="ops@example.com", password="password123"))
    mocked_responses.add(
        responses.POST, url("/users/create-employee"), json=envelope({"_id": "u-2"}), status=201
    )

    result = _invoke(
        runner,
        console,
        "account",
        "create-employee",
        "--name",
        "Sam Clerk",
        "--email",
        "sam@example.com",
        "--password",
        "secret1",
        "--permission",
        "item",
        "--permission",
        "sales",
    )

    assert result.exit_code == 0, result.output
    assert json.loads(mocked_responses.calls[0].request.body)["permissions"] == ["item", "sales"]


def test_account_create_employee_needs_admin(runner: CliRunner, console: ConsoleClient) -> None:
    _sign_in_as(console, role="manager")

    result = _invoke(
        runner,
        console,
        "account",
        "create-employee",
        "--name",
        "Sam Clerk",
        "--email",
        "sam@example.com",
        "--password",
        "secret1",
        "--permission",
        "item",
    )

    assert result.exit_code == 1
    assert "Permission denied: admin access is required" in result.output
