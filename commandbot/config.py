"""
Configuration management for commandbot.

Uses Pydantic Settings for type-safe configuration with .env file support.
"""
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


_PACKAGE_DIR = Path(__file__).parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=_PACKAGE_DIR / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # LLM Settings
    openai_api_key: str = Field(default="")
    openai_base_url: str = Field(default="https://api.openai.com/v1")
    llm_model: str = Field(default="gpt-3.5-turbo")
    llm_temperature: float = Field(default=0.7)

    # Recipient addressing
    email_domain: str = Field(default="", description="Domain appended to derived recipient addresses")
    address_separator: str = Field(default=".", description="Joins the tokens of a display name")

    # Microsoft Graph Settings
    graph_base_url: str = Field(default="https://graph.microsoft.com/v1.0")
    graph_access_token: str = Field(default="", description="Bearer token for Microsoft Graph")
    graph_user_id: str = Field(
        default="",
        description="Act as this user instead of /me (needed with app-only tokens)",
    )

    # Chat routing
    group_keyword: str = Field(default="group")
    group_routing_case_sensitive: bool = Field(default=False)
    group_topic_case_sensitive: bool = Field(default=True)

    # API Settings
    log_level: str = Field(default="INFO")

    def validate_config(self) -> list[str]:
        """Validate configuration and return list of warnings/errors."""
        issues = []

        if not self.openai_api_key:
            issues.append("OPENAI_API_KEY is not set")

        if not self.email_domain:
            issues.append("EMAIL_DOMAIN is not set")

        if not self.graph_access_token:
            issues.append("GRAPH_ACCESS_TOKEN is not set")

        if not 0 <= self.llm_temperature <= 2:
            issues.append(f"LLM_TEMPERATURE must be between 0 and 2, got {self.llm_temperature}")

        if not self.group_keyword:
            issues.append("GROUP_KEYWORD must not be empty")

        return issues


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    issues = settings.validate_config()

    if issues:
        raise ValueError(f"Invalid configuration: {issues}")

    return settings
