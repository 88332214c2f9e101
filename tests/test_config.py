"""
Tests for settings loading.
"""
import os

import pytest

from ui_agent.utils.config import Settings, load_settings


@pytest.fixture
def empty_env_file(tmp_path):
    path = tmp_path / "empty.env"
    path.write_text("", encoding="utf-8")
    return str(path)


def test_defaults(empty_env_file):
    settings = load_settings(empty_env_file)

    assert settings.cwd == os.getcwd()
    assert settings.host == "127.0.0.1"
    assert settings.port == 4000
    assert settings.agent_command == "cursor-agent"
    assert settings.agent_model == "auto"
    assert settings.submit_timeout == 120.0
    assert settings.resolve_timeout == 60.0
    assert settings.kill_grace == 5.0
    assert settings.log_level == "INFO"


def test_settings_defaults_without_loader():
    settings = Settings()
    assert settings.cwd == os.getcwd()
    assert (settings.port, settings.submit_timeout, settings.kill_grace) == (4000, 120.0, 5.0)


def test_environment_overrides(monkeypatch, tmp_path, empty_env_file):
    monkeypatch.setenv("UI_AGENT_CWD", str(tmp_path))
    monkeypatch.setenv("PORT", "4100")
    monkeypatch.setenv("UI_AGENT_COMMAND", "/opt/agent/bin/agent")
    monkeypatch.setenv("UI_AGENT_MODEL", "sonnet")
    monkeypatch.setenv("UI_AGENT_TIMEOUT", "30")
    monkeypatch.setenv("UI_AGENT_RESOLVE_TIMEOUT", "12.5")
    monkeypatch.setenv("UI_AGENT_KILL_GRACE", "1")
    monkeypatch.setenv("UI_AGENT_LOG_LEVEL", "debug")

    settings = load_settings(empty_env_file)

    assert settings.cwd == str(tmp_path)
    assert settings.port == 4100
    assert settings.agent_command == "/opt/agent/bin/agent"
    assert settings.agent_model == "sonnet"
    assert settings.submit_timeout == 30.0
    assert settings.resolve_timeout == 12.5
    assert settings.kill_grace == 1.0
    assert settings.log_level == "DEBUG"


def test_env_file_is_read(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("UI_AGENT_MODEL=from-dotenv\nUI_AGENT_TIMEOUT=90\n", encoding="utf-8")
    # load_dotenv writes into os.environ; registering the names makes
    # monkeypatch remove them again afterwards
    for name in ("UI_AGENT_MODEL", "UI_AGENT_TIMEOUT"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)

    settings = load_settings(str(env_file))

    assert settings.agent_model == "from-dotenv"
    assert settings.submit_timeout == 90.0


def test_environment_beats_env_file(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("UI_AGENT_MODEL=from-dotenv\n", encoding="utf-8")
    monkeypatch.setenv("UI_AGENT_MODEL", "from-env")

    assert load_settings(str(env_file)).agent_model == "from-env"


def test_blank_number_uses_default(monkeypatch, empty_env_file):
    monkeypatch.setenv("UI_AGENT_TIMEOUT", "  ")
    assert load_settings(empty_env_file).submit_timeout == 120.0


@pytest.mark.parametrize("name,value", [
    ("PORT", "http"),
    ("PORT", "40.5"),
    ("UI_AGENT_TIMEOUT", "soon"),
    ("UI_AGENT_KILL_GRACE", "5s"),
])
def test_invalid_numbers_rejected(monkeypatch, empty_env_file, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        load_settings(empty_env_file)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
