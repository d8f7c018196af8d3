"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
See .env.example for available variables.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # ==========================================================================
    # Collaborator Endpoints
    # ==========================================================================
    report_api_url: str = Field(
        default="http://localhost:3000/api/users/medical-report",
        description="Report-generation endpoint (POST)",
    )
    session_api_url: str = Field(
        default="http://localhost:3000/api/users/session-chat",
        description="Session lookup endpoint (GET ?sessionID=)",
    )
    collaborator_api_token: SecretStr | None = Field(
        default=None,
        description="Bearer token sent to the report and session collaborators",
    )
    collaborator_timeout_seconds: int = Field(
        default=30,
        description="Total timeout for collaborator HTTP requests",
    )

    # ==========================================================================
    # Assistant Defaults
    # ==========================================================================
    assistant_default_name: str = Field(
        default="Medical AI Doctor",
        description="Assistant name when the selected doctor has no specialist",
    )
    assistant_first_message: str = Field(
        default=(
            "Hi there! I'm your AI medical Assistant. I'm here to help you with any "
            "health questions or concerns you might have today. How are you feeling?"
        ),
        description="First message spoken by the assistant",
    )
    transcriber_provider: str = Field(default="assembly-ai", description="STT provider")
    transcriber_language: str = Field(default="en", description="STT language")
    voice_provider: str = Field(default="playht", description="TTS voice provider")
    model_provider: str = Field(default="openai", description="LLM provider")
    model_name: str = Field(default="gpt-4", description="LLM model")

    # ==========================================================================
    # Call Control
    # ==========================================================================
    timer_interval_seconds: float = Field(
        default=1.0,
        description="Duration timer tick interval",
    )
    stop_timeout_seconds: float = Field(
        default=10.0,
        description="How long to wait for call-end after a stop request",
    )
    permission_timeout_seconds: float = Field(
        default=30.0,
        description="How long to wait for the microphone permission answer",
    )
    max_concurrent_calls: int = Field(
        default=10,
        description="Maximum number of live call WebSockets",
    )

    # ==========================================================================
    # Application
    # ==========================================================================
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Deployment environment"
    )

    # ==========================================================================
    # Derived Properties
    # ==========================================================================
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def collaborator_headers(self) -> dict[str, str]:
        """HTTP headers for the report and session collaborators."""
        headers = {"Accept": "application/json"}
        if self.collaborator_api_token is not None:
            token = self.collaborator_api_token.get_secret_value()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Use dependency injection in FastAPI:
        settings: Settings = Depends(get_settings)
    """
    return Settings()
