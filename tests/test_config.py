from __future__ import annotations

import json
import sys

import pytest

import app_main
from quiz_studio.config import (
    APP_ID_ENV,
    AUTH_TOKEN_ENV,
    BACKEND_CONFIG_ENV,
    HEADLESS_ENV,
    PORT_ENV,
    ConfigurationError,
    load_settings,
    parse_flag,
)
from quiz_studio.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_studio.constants.quiz_constants import DEFAULT_APP_ID
from quiz_studio.core.backend_factory import create_quiz_manager
from quiz_studio.core.services.document_store import JsonFileDocumentStore


def _environ(**overrides: str) -> dict[str, str]:
    environ = {BACKEND_CONFIG_ENV: json.dumps({"backend": "memory"})}
    environ.update(overrides)
    return environ


def test_missing_backend_config_is_fatal():
    with pytest.raises(ConfigurationError, match=BACKEND_CONFIG_ENV):
        load_settings({})


@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        json.dumps({"backend": "cloud"}),
        json.dumps({"backend": "file"}),
        json.dumps({"backend": "memory", "apiKey": "unexpected"}),
    ],
)
def test_invalid_backend_config_is_fatal(raw):
    with pytest.raises(ConfigurationError):
        load_settings({BACKEND_CONFIG_ENV: raw})


def test_defaults():
    settings = load_settings(_environ())

    assert settings.backend.backend == "memory"
    assert settings.app_id == DEFAULT_APP_ID
    assert settings.initial_auth_token is None
    assert settings.host == DEFAULT_HOST
    assert settings.port == DEFAULT_PORT
    assert not settings.headless


def test_environment_overrides(tmp_path):
    raw = json.dumps(
        {"backend": "file", "dataDir": str(tmp_path), "customTokens": {"abc": "teacher-1"}}
    )

    settings = load_settings(
        {
            BACKEND_CONFIG_ENV: raw,
            APP_ID_ENV: " biology ",
            AUTH_TOKEN_ENV: "abc",
            PORT_ENV: "9001",
            HEADLESS_ENV: "true",
        }
    )

    assert settings.backend.data_dir == tmp_path
    assert settings.backend.custom_tokens == {"abc": "teacher-1"}
    assert settings.app_id == "biology"
    assert settings.initial_auth_token == "abc"
    assert settings.port == 9001
    assert settings.headless


@pytest.mark.parametrize("port", ["0", "70000", "http"])
def test_bad_port_is_rejected(port):
    with pytest.raises(ConfigurationError):
        load_settings(_environ(**{PORT_ENV: port}))


def test_file_backend_wiring(tmp_path):
    data_dir = tmp_path / "data"
    raw = json.dumps({"backend": "file", "dataDir": str(data_dir), "customTokens": {"abc": "t-1"}})
    settings = load_settings({BACKEND_CONFIG_ENV: raw, APP_ID_ENV: "biology", AUTH_TOKEN_ENV: "abc"})

    manager = create_quiz_manager(settings)
    manager.start()
    try:
        assert manager.get_user_id() == "t-1"
        assert manager.is_session_ready()
    finally:
        manager.shutdown()

    assert data_dir.is_dir()
    assert (data_dir / "session.json").exists()
    assert not (data_dir / JsonFileDocumentStore.FILE_NAME).exists()


@pytest.mark.parametrize(
    "value, expected",
    [("1", True), (" TRUE ", True), ("yes", True), ("0", False), ("", False), (None, False)],
)
def test_parse_flag(value, expected):
    assert parse_flag(value) is expected


def test_headless_startup_failure_skips_dialog(monkeypatch):
    monkeypatch.delenv(BACKEND_CONFIG_ENV, raising=False)
    monkeypatch.setenv(HEADLESS_ENV, "1")
    monkeypatch.setattr(sys, "argv", ["quiz-studio"])
    reported = []
    monkeypatch.setattr(
        app_main, "_report_fatal", lambda message, headless: reported.append(headless)
    )

    with pytest.raises(SystemExit) as excinfo:
        app_main.main()

    assert excinfo.value.code == 1
    assert reported == [True]
