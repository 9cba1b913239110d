from typing import Any

import pytest
from click.testing import CliRunner

import httpbody.cli as cli_module
from httpbody.cli import cli


@pytest.fixture
def uvicorn_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def fake_run(app: Any, **kwargs: Any) -> None:
        calls.append({"app": app, **kwargs})

    monkeypatch.setattr(cli_module.uvicorn, "run", fake_run)
    monkeypatch.setattr(cli_module, "configure_logging", lambda level: None)
    return calls


def test_serve_runs_app_with_options(uvicorn_calls: list[dict[str, Any]]):
    result = CliRunner().invoke(cli, ["serve", "--port", "9001", "--log-level", "debug", "--log-max-bytes", "64"])

    assert result.exit_code == 0, result.output
    [call] = uvicorn_calls
    assert call["host"] == "127.0.0.1"
    assert call["port"] == 9001
    assert call["log_level"] == "debug"


def test_serve_reads_settings_from_environment(uvicorn_calls: list[dict[str, Any]], monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("HTTPBODY_LOG_LEVEL", "WARNING")

    result = CliRunner().invoke(cli, ["serve"])

    assert result.exit_code == 0, result.output
    assert uvicorn_calls[0]["log_level"] == "warning"


def test_serve_rejects_unknown_log_level():
    result = CliRunner().invoke(cli, ["serve", "--log-level", "LOUD"])

    assert result.exit_code != 0
