"""Tests for the command-line entry point."""

from __future__ import annotations

import os

import pytest

from wasabi_mcp import main as entry

STORAGE_ENV = {
    "WASABI_ACCESS_KEY_ID": "AKIAEXAMPLE",
    "WASABI_SECRET_ACCESS_KEY": "secret",
    "WASABI_REGION": "us-east-1",
    "WASABI_ENDPOINT": "s3.wasabisys.com",
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in list(os.environ):
        if name.startswith("WASABI_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def served(monkeypatch):
    calls = []
    monkeypatch.setattr(entry, "serve_stdio", lambda settings: calls.append(("stdio", settings)))
    monkeypatch.setattr(entry, "serve_http", lambda settings: calls.append(("http", settings)))
    for name, value in STORAGE_ENV.items():
        monkeypatch.setenv(name, value)
    return calls


def test_missing_configuration_exits_nonzero(monkeypatch, capsys):
    monkeypatch.setattr(entry, "serve_stdio", lambda settings: pytest.fail("must not serve"))
    assert entry.run([]) == 1
    err = capsys.readouterr().err
    assert "configuration_invalid" in err
    assert "WASABI_ACCESS_KEY_ID" in err


def test_defaults_to_stdio(served):
    assert entry.run([]) == 0
    assert [transport for transport, _ in served] == ["stdio"]


def test_flags_override_settings(served, monkeypatch):
    monkeypatch.setenv("WASABI_MCP_TRANSPORT", "stdio")
    assert entry.run(["--transport", "http", "--host", "0.0.0.0", "--port", "8080"]) == 0
    transport, settings = served[0]
    assert transport == "http"
    assert settings.server.host == "0.0.0.0"
    assert settings.server.port == 8080


def test_environment_selects_http(served, monkeypatch):
    monkeypatch.setenv("WASABI_MCP_TRANSPORT", "http")
    monkeypatch.setenv("WASABI_MCP_PORT", "9000")
    entry.run([])
    transport, settings = served[0]
    assert transport == "http"
    assert settings.server.port == 9000


def test_unset_flags_leave_settings_alone(served):
    entry.run(["--port", "4000"])
    _, settings = served[0]
    assert settings.server.transport == "stdio"
    assert settings.server.host == "127.0.0.1"
    assert settings.server.port == 4000


def test_invalid_transport_flag_is_rejected():
    with pytest.raises(SystemExit):
        entry.build_parser().parse_args(["--transport", "grpc"])


@pytest.mark.parametrize("name", ["WASABI_MCP_PORT", "WASABI_MCP_TRANSPORT", "WASABI_MCP_LOG_FORMAT"])
def test_invalid_server_variable_exits_nonzero(served, monkeypatch, capsys, name):
    monkeypatch.setenv(name, "bogus")
    assert entry.run([]) == 1
    assert served == []
    err = capsys.readouterr().err
    assert "configuration_invalid" in err
    assert name in err
