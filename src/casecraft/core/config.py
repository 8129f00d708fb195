"""
CaseCraft Configuration Module

Handles all configuration settings using pydantic-settings.
Covers the vision LLM providers, browser execution defaults and the
screenshot preprocessing limits.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMProvider(str, Enum):
    """Supported LLM providers."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GOOGLE = "google"
    GROQ = "groq"
    XAI = "xai"


class BrowserType(str, Enum):
    """Playwright browser engines."""

    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CASECRAFT_",
        extra="ignore",
    )

    # LLM Provider API Keys
    anthropic_api_key: Optional[SecretStr] = Field(default=None, validation_alias="ANTHROPIC_API_KEY")
    openai_api_key: Optional[SecretStr] = Field(default=None, validation_alias="OPENAI_API_KEY")
    google_api_key: Optional[SecretStr] = Field(default=None, validation_alias="GOOGLE_API_KEY")
    groq_api_key: Optional[SecretStr] = Field(default=None, validation_alias="GROQ_API_KEY")
    xai_api_key: Optional[SecretStr] = Field(default=None, validation_alias="XAI_API_KEY")
    xai_base_url: str = Field(default="https://api.x.ai/v1")

    # Default LLM Settings
    default_llm_provider: LLMProvider = Field(default=LLMProvider.OPENAI)
    default_model: Optional[str] = Field(default=None)
    llm_max_tokens: int = Field(default=2000)
    llm_temperature: float = Field(default=0.2)
    llm_max_retries: int = Field(default=2)

    # Browser Settings
    browser_type: BrowserType = Field(default=BrowserType.CHROMIUM)
    headless: bool = Field(default=True)
    viewport_width: int = Field(default=1280)
    viewport_height: int = Field(default=720)
    default_timeout: int = Field(default=30)  # seconds, navigation
    action_timeout_ms: int = Field(default=10000)

    # Screenshot preprocessing
    image_max_dimension: int = Field(default=500)
    image_quality: int = Field(default=85)
    screenshot_dir: str = Field(default="./reports/screenshots")

    # Application Settings
    log_level: str = Field(default="INFO")

    def get_api_key(self, provider: Optional[LLMProvider] = None) -> Optional[str]:
        """Get the API key for the specified or default provider."""
        provider = provider or self.default_llm_provider

        key_map = {
            LLMProvider.ANTHROPIC: self.anthropic_api_key,
            LLMProvider.OPENAI: self.openai_api_key,
            LLMProvider.GOOGLE: self.google_api_key,
            LLMProvider.GROQ: self.groq_api_key,
            LLMProvider.XAI: self.xai_api_key,
        }

        secret = key_map.get(provider)
        return secret.get_secret_value() if secret else None

    def validate_provider_config(self, provider: Optional[LLMProvider] = None) -> bool:
        """Check if the provider has valid configuration."""
        return bool(self.get_api_key(provider))


# Global settings instance
settings = Settings()
