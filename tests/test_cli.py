from __future__ import annotations

from typing import Any, Dict

import httpx
import pytest
from typer.testing import CliRunner

from cli.app import app
from conftest import FakeDevices, reading_payload
from services.device_client import DeviceClient


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def devices(monkeypatch) -> FakeDevices:
    fake = FakeDevices({"h1": reading_payload()}, timeouts=["h2"])
    created: list[DeviceClient] = []

    def factory() -> DeviceClient:
        client = DeviceClient(transport=httpx.MockTransport(fake))
        created.append(client)
        return client

    monkeypatch.setattr("cli.app.DeviceClient", factory)
    fake.created = created  # type: ignore[attr-defined]
    return fake


def test_missing_hosts_exits_with_message(runner: CliRunner, tmp_path, devices) -> None:
    result = runner.invoke(app, ["--config", str(tmp_path / "missing.yml"), "config"])

    assert result.exit_code == 1
    assert "No Awair hosts specified" in result.output


def test_bad_env_port_exits(monkeypatch, runner: CliRunner, devices) -> None:
    monkeypatch.setenv("AWAIR_HOSTS", "h1")
    monkeypatch.setenv("LISTEN_PORT", "abc")

    result = runner.invoke(app, ["config"])

    assert result.exit_code == 1
    assert "LISTEN_PORT" in result.output


def test_config_command_prints_resolved_settings(monkeypatch, runner: CliRunner, tmp_path, devices) -> None:
    config_path = tmp_path / "config.yml"
    config_path.write_text("hosts: [a, b]\nlisten_port: 9200\n")
    monkeypatch.setenv("AWAIR_HOSTS", "c,d")

    result = runner.invoke(app, ["--config", str(config_path), "config"])

    assert result.exit_code == 0
    assert "listen_port: 9200" in result.output
    assert "  - c" in result.output
    assert "  - d" in result.output
    assert "  - a" not in result.output


def test_check_reports_each_device(monkeypatch, runner: CliRunner, devices) -> None:
    monkeypatch.setenv("AWAIR_HOSTS", "h1,h2")

    result = runner.invoke(app, ["check"])

    assert result.exit_code == 1
    assert "Device h1" in result.output
    assert "awair_score: 85.5" in result.output
    assert "Device h2" in result.output
    assert "fetch failed" in result.output
    assert all(client._client.is_closed for client in devices.created)  # type: ignore[attr-defined]


def test_check_succeeds_when_all_devices_answer(monkeypatch, runner: CliRunner, devices) -> None:
    monkeypatch.setenv("AWAIR_HOSTS", "h1")

    result = runner.invoke(app, ["check"])

    assert result.exit_code == 0
    assert "awair_temperature_celsius: 21.3" in result.output


def test_serve_runs_uvicorn_on_configured_port(monkeypatch, runner: CliRunner, devices) -> None:
    monkeypatch.setenv("AWAIR_HOSTS", "h1,h2")
    monkeypatch.setenv("LISTEN_PORT", "9300")
    calls: Dict[str, Any] = {}

    def fake_run(application, **kwargs) -> None:
        calls["app"] = application
        calls.update(kwargs)

    monkeypatch.setattr("cli.app.uvicorn.run", fake_run)

    result = runner.invoke(app, ["serve"])

    assert result.exit_code == 0, result.output
    assert calls["host"] == "0.0.0.0"
    assert calls["port"] == 9300
    assert calls["app"].state.collector.hosts == ("h1", "h2")
    assert devices.requests == []


def test_serve_port_option_wins(monkeypatch, runner: CliRunner, devices) -> None:
    monkeypatch.setenv("AWAIR_HOSTS", "h1")
    calls: Dict[str, Any] = {}
    monkeypatch.setattr("cli.app.uvicorn.run", lambda application, **kwargs: calls.update(kwargs))

    result = runner.invoke(app, ["serve", "--port", "9999"])

    assert result.exit_code == 0, result.output
    assert calls["port"] == 9999


def test_subcommand_help_needs_no_hosts(runner: CliRunner, tmp_path, devices) -> None:
    result = runner.invoke(app, ["--config", str(tmp_path / "missing.yml"), "serve", "--help"])

    assert result.exit_code == 0
    assert "--port" in result.output
    assert "Configuration error" not in result.output
    assert devices.created == []  # type: ignore[attr-defined]
