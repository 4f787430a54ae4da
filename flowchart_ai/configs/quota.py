"""
Usage quota configuration settings.

Per identity-class limits, anonymous ledger retention and fingerprint salting.

Dependencies: pydantic, pydantic_settings
System role: Admission controller configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from flowchart_ai.configs.base import BaseSettings


class QuotaSettings(BaseSettings):
    """Tiered usage quota configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="QUOTA_",
        case_sensitive=False,
        extra="ignore",
    )

    anonymous_limit: int = Field(default=1, ge=0, description="Turns allowed for anonymous callers")
    free_limit: int = Field(default=5, ge=0, description="Monthly turns for authenticated free callers")
    subscriber_limit: int = Field(default=500, ge=0, description="Monthly turns for subscribers")
    guest_retention_days: int = Field(
        default=30,
        ge=1,
        description="Age in days after which anonymous ledger rows are purged",
    )
    fingerprint_secret: str = Field(
        default="change-me",
        description="Salt mixed into hashed anonymous fingerprints",
    )
    max_record_attempts: int = Field(
        default=3,
        ge=1,
        description="Retries when two recorders race for the same quota slot",
    )
    max_resumes_per_turn: int = Field(
        default=5,
        ge=0,
        description="Host tool round trips one admitted turn may resume",
    )
