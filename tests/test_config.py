"""
Tests for configuration management.
"""

from pathlib import Path

import pytest

from drslab.config import Settings, get_xdg_state_dir


@pytest.fixture(autouse=True)
def clear_settings_env(monkeypatch):
    """Ensure environment overrides don't affect config unit tests."""
    for name in (
        "DATABASE_URL",
        "OPENAI_API_KEY",
        "OPENAI_MODEL",
        "GEMINI_API_KEY",
        "ENVIRONMENT",
        "LOG_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


class TestSettings:
    """Tests for Settings configuration."""

    def test_default_store_is_in_memory(self):
        settings = Settings(_env_file=None)

        assert settings.database_url == "sqlite://"
        assert settings.default_user_id == "demo-user"

    def test_default_ai_settings(self):
        settings = Settings(_env_file=None)

        assert settings.gemini_model == "gemini-2.5-flash"
        assert settings.openai_model == "gpt-5"
        assert settings.openai_base_url == "https://api.openai.com/v1"
        assert settings.openrouter_model == "deepseek/deepseek-chat"
        assert settings.ai_max_tokens == 8192

    def test_default_api_settings(self):
        settings = Settings(_env_file=None)

        assert settings.api_host == "0.0.0.0"
        assert settings.api_port == 5000
        assert settings.api_reload is False

    def test_default_studio_settings(self):
        settings = Settings(_env_file=None)

        assert settings.terminal_history_limit == 50
        assert settings.terminal_ai_simulation is True

    def test_settings_from_env_vars(self, monkeypatch):
        """Test that settings can be overridden by environment variables."""
        monkeypatch.setenv("DATABASE_URL", "sqlite:///drslab.db")
        monkeypatch.setenv("OPENAI_MODEL", "gpt-4o")
        monkeypatch.setenv("TERMINAL_AI_SIMULATION", "false")
        monkeypatch.setenv("ENVIRONMENT", "production")

        settings = Settings(_env_file=None)

        assert settings.database_url == "sqlite:///drslab.db"
        assert settings.openai_model == "gpt-4o"
        assert settings.terminal_ai_simulation is False
        assert settings.environment == "production"

    def test_case_insensitive_env_vars(self, monkeypatch):
        monkeypatch.setenv("gemini_model", "gemini-2.5-pro")

        settings = Settings(_env_file=None)

        assert settings.gemini_model == "gemini-2.5-pro"

    def test_openrouter_detection(self):
        assert Settings(_env_file=None, openai_api_key="sk-or-v1-abc").is_openrouter
        assert not Settings(_env_file=None, openai_api_key="sk-proj-abc").is_openrouter
        assert not Settings(_env_file=None).is_openrouter


class TestLogDirectory:
    """Tests for log directory resolution."""

    def test_explicit_log_dir(self, tmp_path):
        settings = Settings(_env_file=None, log_dir=str(tmp_path))

        assert settings.log_directory == tmp_path

    def test_xdg_state_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path))

        assert get_xdg_state_dir() == str(tmp_path / "drslab" / "logs")

    def test_home_fallback(self, monkeypatch, tmp_path):
        monkeypatch.delenv("XDG_STATE_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))

        assert Path(get_xdg_state_dir()) == tmp_path / ".local" / "state" / "drslab" / "logs"
