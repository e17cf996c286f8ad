import json

import pytest

from gitboss_ai.config import DEFAULT_API_BASE, DEFAULT_WS_URL, Settings, load_settings, save_settings

ENV_NAMES = (
    "GITBOSS_API_BASE",
    "GITBOSS_WS_URL",
    "GITBOSS_STORAGE",
    "GITBOSS_MAX_RECONNECT_ATTEMPTS",
    "GITBOSS_TYPING_TIMEOUT",
    "GITBOSS_HTTP_TIMEOUT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults(tmp_path):
    settings = load_settings(tmp_path / "missing.json")
    assert settings.ws_url == DEFAULT_WS_URL
    assert settings.max_reconnect_attempts == 5
    assert settings.typing_timeout_s == 10.0


def test_file_then_env(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"api_base": "http://file", "ws_url": "ws://file", "unknown": 1}))
    monkeypatch.setenv("GITBOSS_WS_URL", "ws://env")
    monkeypatch.setenv("GITBOSS_MAX_RECONNECT_ATTEMPTS", "3")
    settings = load_settings(path)
    assert settings.api_base == "http://file"
    assert settings.ws_url == "ws://env"
    assert settings.max_reconnect_attempts == 3


def test_aliased_env_names(monkeypatch, tmp_path):
    monkeypatch.setenv("GITBOSS_STORAGE", str(tmp_path / "s.json"))
    monkeypatch.setenv("GITBOSS_TYPING_TIMEOUT", "2.5")
    monkeypatch.setenv("GITBOSS_HTTP_TIMEOUT", "7")
    settings = load_settings(tmp_path / "missing.json")
    assert settings.storage_path == str(tmp_path / "s.json")
    assert settings.typing_timeout_s == 2.5
    assert settings.http_timeout_s == 7.0


def test_bad_env_value_keeps_file_values(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"ws_url": "ws://prod", "api_base": "http://prod"}))
    monkeypatch.setenv("GITBOSS_TYPING_TIMEOUT", "soon")
    settings = load_settings(path)
    assert settings.ws_url == "ws://prod"
    assert settings.api_base == "http://prod"
    assert settings.typing_timeout_s == 10.0


def test_bad_file_value_falls_back_per_field(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"max_reconnect_attempts": "many", "api_base": "http://file"}))
    settings = load_settings(path)
    assert settings.max_reconnect_attempts == 5
    assert settings.api_base == "http://file"


def test_unreadable_file_ignored(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{broken")
    settings = load_settings(path)
    assert settings.api_base == DEFAULT_API_BASE


def test_save_round_trip(tmp_path):
    path = tmp_path / "dir" / "config.json"
    save_settings(Settings(api_base="http://saved", storage_path="/tmp/s.json"), path)
    loaded = load_settings(path)
    assert loaded.api_base == "http://saved"
    assert loaded.storage_path == "/tmp/s.json"
