"""Tests for the command-line interface."""

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from click.testing import CliRunner

from chargeprice import cli as cli_module
from chargeprice.cli import cli, resolve_window
from chargeprice.selection import create_client


def tibber_handler(request: httpx.Request) -> httpx.Response:
    start = datetime(2023, 12, 31, 23, tzinfo=timezone.utc)
    nodes = [
        {"total": round(0.2 + i / 100, 2), "startsAt": (start + timedelta(hours=i)).isoformat()}
        for i in range(4)
    ]
    return httpx.Response(
        200,
        json={
            "data": {
                "viewer": {
                    "homes": [
                        {
                            "id": "96a14971-525a-4420-aae9-e5aedaa129ff",
                            "currentSubscription": {
                                "priceInfo": {
                                    "range": {"nodes": nodes},
                                    "current": None,
                                }
                            },
                        }
                    ]
                }
            }
        },
    )


def monta_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/auth/token"):
        return httpx.Response(200, json={"accessToken": "token"})
    return httpx.Response(200, json={"data": [{"cost": 10.5}, {"cost": 2.25}, {"cost": 0}]})


@pytest.fixture
def use_transport(monkeypatch):
    def install(handler):
        monkeypatch.setattr(
            cli_module,
            "create_client",
            lambda settings: create_client(settings, transport=httpx.MockTransport(handler)),
        )

    return install


def test_prices_json(use_transport):
    use_transport(tibber_handler)

    result = CliRunner().invoke(
        cli, ["prices", "--from", "2024-01-01T00:00+00:00", "--to", "2024-01-01T02:00+00:00", "--json"]
    )

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert len(data) == 4
    assert data[0]["valid_from"] == "2023-12-31T23:00:00+00:00"
    assert data[0]["value"] == "0.2"


def test_prices_table(use_transport):
    use_transport(tibber_handler)

    result = CliRunner().invoke(cli, ["prices", "--from", "2024-01-01T00:00", "--to", "2024-01-01T02:00"])

    assert result.exit_code == 0, result.output
    assert "Hourly Prices" in result.output
    assert "4 hours" in result.output


def test_prices_mismatch_exits_with_error(use_transport):
    use_transport(tibber_handler)

    result = CliRunner().invoke(cli, ["prices", "--from", "2024-01-01T00:00", "--to", "2024-01-01T05:00"])

    assert result.exit_code == 1
    assert "Mismatch" in result.output


def test_total_json(use_transport, monkeypatch):
    monkeypatch.setenv("MONTA_CLIENT_ID", "id")
    monkeypatch.setenv("MONTA_CLIENT_SECRET", "secret")
    use_transport(monta_handler)

    result = CliRunner().invoke(cli, ["total", "--from", "2024-01-01", "--to", "2024-01-02", "--json"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["total"] == "12.75"


def test_total_without_credentials(use_transport):
    use_transport(monta_handler)

    result = CliRunner().invoke(cli, ["total", "--from", "2024-01-01", "--to", "2024-01-02"])

    assert result.exit_code == 1
    assert "Monta credentials not set" in result.output


def test_configuration_error_is_printed_literally(monkeypatch):
    monkeypatch.setenv("PRICE_PROVIDER", "[bold]x")

    result = CliRunner().invoke(cli, ["fetch"])

    assert result.exit_code == 1
    assert "'[bold]x'" in result.output


def test_fetch_dispatches_on_configured_provider(use_transport, monkeypatch):
    monkeypatch.setenv("PRICE_PROVIDER", "monta")
    monkeypatch.setenv("MONTA_CLIENT_ID", "id")
    monkeypatch.setenv("MONTA_CLIENT_SECRET", "secret")
    use_transport(monta_handler)

    result = CliRunner().invoke(cli, ["fetch", "--from", "2024-01-01", "--to", "2024-01-02", "--json"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["total"] == "12.75"


def test_fetch_without_provider(use_transport):
    use_transport(monta_handler)

    result = CliRunner().invoke(cli, ["fetch"])

    assert result.exit_code == 1
    assert "No price provider configured" in result.output


def test_resolve_window_defaults_to_hours_before_end():
    start, end = resolve_window(None, "2024-01-02T00:00+00:00", 6)

    assert end == datetime(2024, 1, 2, tzinfo=timezone.utc)
    assert start == datetime(2024, 1, 1, 18, tzinfo=timezone.utc)
