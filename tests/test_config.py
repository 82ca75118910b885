import pytest

from backend.config import Settings
from backend.context import build_summarizer, warn_missing_settings
from backend.errors import ConfigurationError
from backend.services.bedrock_utils import BedrockSummarizer
from backend.services.gemini_client import GeminiSummarizer


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("RECALL_API_KEY", "PUBLIC_APP_URL", "NEXT_PUBLIC_APP_URL", "GOOGLE_API_KEY", "CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("RECALL_API_KEY", "env-key")
    monkeypatch.setenv("NEXT_PUBLIC_APP_URL", "https://tunnel.example.com/")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.example.com, http://b.example.com")

    settings = Settings(_env_file=None)

    assert settings.recall_api_key == "env-key"
    assert settings.public_app_url == "https://tunnel.example.com"
    assert settings.cors_origins == ["http://a.example.com", "http://b.example.com"]


def test_require_names_every_missing_value():
    settings = Settings(_env_file=None)

    with pytest.raises(ConfigurationError) as excinfo:
        settings.require("recall_api_key", "public_app_url")

    assert excinfo.value.message == "Missing required configuration: RECALL_API_KEY, PUBLIC_APP_URL"
    assert excinfo.value.status_code == 500


def test_missing_settings_are_reported_at_startup(caplog):
    caplog.set_level("WARNING")
    missing = warn_missing_settings(Settings(_env_file=None))

    assert missing == ["recall_api_key", "public_app_url", "google_api_key"]
    assert "RECALL_API_KEY is not configured" in caplog.text


def test_summarizer_backend_follows_provider_setting():
    assert isinstance(build_summarizer(Settings(_env_file=None)), GeminiSummarizer)
    assert isinstance(build_summarizer(Settings(_env_file=None, summarizer_provider="bedrock")), BedrockSummarizer)
