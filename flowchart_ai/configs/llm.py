"""
Language model configuration settings.

Credential and sampling parameters for the streaming chat model used by the
conversation orchestrator.

Dependencies: pydantic, pydantic_settings
System role: Inference client configuration
"""

from pydantic import Field, SecretStr
from pydantic_settings import SettingsConfigDict

from flowchart_ai.configs.base import BaseSettings


class LLMSettings(BaseSettings):
    """Chat model configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    google_api_key: SecretStr | None = Field(
        default=None,
        description="Provider credential for the chat model (required for turns)",
    )
    llm_model_id: str = Field(
        default="gemini-2.5-flash",
        description="Chat model identifier",
    )
    llm_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )
    llm_max_continuations: int = Field(
        default=4,
        ge=1,
        description="Maximum automatic continuation sub-turns per turn",
    )

    @property
    def has_credential(self) -> bool:
        """Whether a non-empty model credential is provisioned."""
        return bool(self.google_api_key and self.google_api_key.get_secret_value())
