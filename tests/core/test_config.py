"""Tests for settings loading."""

from casecraft.core.config import BrowserType, LLMProvider, Settings


def test_defaults(monkeypatch):
    for name in ("OPENAI_API_KEY", "CASECRAFT_IMAGE_MAX_DIMENSION", "CASECRAFT_DEFAULT_LLM_PROVIDER"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.image_max_dimension == 500
    assert settings.image_quality == 85
    assert settings.browser_type == BrowserType.CHROMIUM
    assert settings.default_llm_provider == LLMProvider.OPENAI
    assert not settings.validate_provider_config()


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    monkeypatch.setenv("CASECRAFT_DEFAULT_LLM_PROVIDER", "anthropic")
    monkeypatch.setenv("CASECRAFT_ACTION_TIMEOUT_MS", "2500")

    settings = Settings(_env_file=None)

    assert settings.get_api_key() == "sk-test"
    assert settings.action_timeout_ms == 2500
    assert settings.validate_provider_config(LLMProvider.ANTHROPIC)
