"""Shared configuration management for the platform.

Based on Pydantic Settings v2 best practices:
https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with the prefix 'APP_'.
    Example: APP_LOG_LEVEL=debug

    LLM vendor API keys are read from the SDK-standard variables
    (ANTHROPIC_API_KEY, OPENAI_API_KEY), not from this class.
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Service configuration
    service_name: str = Field(
        default="invoice-validation-service",
        description="Service identifier for metrics and logs",
    )
    service_version: str = Field(
        default="0.1.0",
        description="Service version",
    )

    # Analysis (LLM augmentation) configuration
    analysis_enabled: bool = Field(
        default=True,
        description="Allow LLM narrative analysis when requested by the caller",
    )
    analysis_provider: Literal["anthropic", "openai", "ollama"] = Field(
        default="anthropic",
        description=(
            "Analysis provider: anthropic (Claude API), openai (cloud API), "
            "ollama (self-hosted LLM)"
        ),
    )
    analysis_max_tokens: int = Field(
        default=1024,
        description="Maximum tokens generated for a narrative analysis",
        gt=0,
    )
    anthropic_model: str = Field(
        default="claude-3-5-sonnet-20241022",
        description="Claude model used when analysis_provider='anthropic'",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model used when analysis_provider='openai'",
    )

    # Ollama configuration (for analysis_provider="ollama")
    ollama_base_url: str = Field(
        default="http://localhost:11434",
        description="Ollama server base URL",
    )
    ollama_model: str = Field(
        default="qwen2.5:7b",
        description="Ollama model to use for analysis (e.g., qwen2.5:7b, llama3.1:8b)",
    )

    # Invoice sources
    mock_latency_seconds: float = Field(
        default=0.8,
        description="Simulated network delay for the mock QuickBook/Salesforce sources",
        ge=0,
    )
    odoo_url: str = Field(
        default="",
        description="Odoo server base URL (e.g., https://mycompany.odoo.com)",
    )
    odoo_db: str = Field(
        default="",
        description="Odoo database name",
    )
    odoo_username: str = Field(
        default="",
        description="Odoo login (use env var APP_ODOO_USERNAME)",
    )
    odoo_api_key: str = Field(
        default="",
        description="Odoo API key (use env var APP_ODOO_API_KEY)",
    )
    odoo_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for Odoo JSON-RPC requests",
        gt=0,
    )


def get_settings() -> Settings:
    """Factory function to get settings instance.

    Returns:
        Configured Settings instance
    """
    return Settings()
