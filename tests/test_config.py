"""
Tests for environment-driven settings.
"""

import pytest

from gasmeter.config import DEFAULT_BASE_URL, DEFAULT_MODEL, get_settings


ENV_VARS = [
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "GASMETER_MODEL",
    "GASMETER_TEMPERATURE",
    "GASMETER_TOP_K",
    "GASMETER_REQUEST_TIMEOUT",
    "GASMETER_VERIFY_RESOLUTION",
    "GASMETER_STAGER",
    "GASMETER_BUCKET",
    "GASMETER_SYSTEM_PROMPT",
    "GASMETER_PROMPT",
    "PORT",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GASMETER_ENV_FILE", str(tmp_path / "missing.env"))


class TestGetSettings:
    def test_defaults(self):
        settings = get_settings()

        assert settings.openai_base_url == DEFAULT_BASE_URL
        assert settings.model == DEFAULT_MODEL
        assert settings.temperature == 0.1
        assert settings.top_k == 10
        assert settings.verify_resolution is True
        assert settings.stager == "inline"
        assert settings.bucket == "gas-meter"
        assert settings.system_prompt is None
        assert settings.port == 10000

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("GASMETER_TEMPERATURE", "0.3")
        monkeypatch.setenv("GASMETER_TOP_K", "")
        monkeypatch.setenv("GASMETER_VERIFY_RESOLUTION", "false")
        monkeypatch.setenv("GASMETER_STAGER", "Supabase")
        monkeypatch.setenv("PORT", "8080")

        settings = get_settings()

        assert settings.temperature == 0.3
        assert settings.top_k is None
        assert settings.verify_resolution is False
        assert settings.stager == "supabase"
        assert settings.port == 8080

    def test_env_file_is_loaded(self, monkeypatch, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("GASMETER_MODEL=gpt-4o-mini\n", encoding="utf-8")
        monkeypatch.setenv("GASMETER_ENV_FILE", str(env_file))
        # Register the variable so monkeypatch unsets what load_dotenv writes.
        monkeypatch.setenv("GASMETER_MODEL", "placeholder")
        monkeypatch.delenv("GASMETER_MODEL")

        assert get_settings().model == "gpt-4o-mini"

    def test_bad_number(self, monkeypatch):
        monkeypatch.setenv("GASMETER_TOP_K", "ten")

        with pytest.raises(ValueError, match="GASMETER_TOP_K"):
            get_settings()

    def test_unknown_stager(self, monkeypatch):
        monkeypatch.setenv("GASMETER_STAGER", "s3")

        with pytest.raises(ValueError, match="GASMETER_STAGER"):
            get_settings()
