"""Configuration management with Pydantic settings."""

from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SERVICE_URL = "http://localhost:20000"

ProbePolicyName = Literal["free", "skip"]


class Settings(BaseSettings):
    """scriptsign configuration settings.

    Precedence: CLI flag > environment variable > .env file > defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="SCRIPTSIGN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Signing service
    service_url: str = Field(
        default=DEFAULT_SERVICE_URL,
        description="Base URL of the local code-signing service",
    )

    liveness_timeout_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Timeout for the preflight liveness probe (seconds)",
    )

    request_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Timeout for certificate listing, signing and verification calls (seconds)",
    )

    timestamp_server: str | None = Field(
        default=None,
        description="Default RFC 3161 timestamp server passed with signing requests",
    )

    # Port finder
    port_range_start: int = Field(
        default=11000,
        ge=1,
        le=65535,
        description="First port scanned by find-port",
    )

    port_range_end: int = Field(
        default=12000,
        ge=1,
        le=65535,
        description="Last port scanned by find-port (inclusive)",
    )

    probe_host: str = Field(
        default="localhost",
        description="Host probed when looking for a free port",
    )

    probe_timeout_seconds: float = Field(
        default=0.2,
        gt=0,
        description="Connect timeout for a single port probe (seconds)",
    )

    probe_policy: ProbePolicyName = Field(
        default="free",
        description="How timed-out probes are treated: 'free' or 'skip'",
    )

    log_level: str = Field(
        default="WARNING",
        description="Logging level for the CLI (DEBUG, INFO, WARNING, ERROR)",
    )

    @field_validator("service_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("service_url must start with http:// or https://")
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def _check_port_range(self) -> "Settings":
        if self.port_range_start > self.port_range_end:
            raise ValueError(
                f"port_range_start ({self.port_range_start}) must not exceed "
                f"port_range_end ({self.port_range_end})"
            )
        return self


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance (useful for testing)."""
    global _settings
    _settings = settings
