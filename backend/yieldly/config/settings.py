"""Application configuration and environment helpers."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./yieldly.db"
ALPHA_VANTAGE_URL = "https://www.alphavantage.co/query"


class YieldlySettings(BaseSettings):
    """Configuration options for the Yieldly service."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field(default="Yieldly Portfolio Tracker")
    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    database_url: str = Field(
        default=DEFAULT_DATABASE_URL,
        description="SQLAlchemy async database URL for the ledger store.",
    )
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    alphavantage_api_key: str = Field(default="demo")
    alphavantage_base_url: str = Field(default=ALPHA_VANTAGE_URL)
    alphavantage_requests_per_minute: int = Field(default=5, ge=1)
    quote_timeout_seconds: float = Field(default=10.0, gt=0)

    telemetry_enabled: bool = Field(default=False)
    telemetry_service_name: str = Field(default="yieldly")
    telemetry_otlp_endpoint: str | None = Field(default=None)
    telemetry_otlp_insecure: bool = Field(default=True)
    telemetry_sample_ratio: float = Field(default=1.0, ge=0.0, le=1.0)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log_level. Must be one of {valid_levels}")
        return v_upper

    def dict_for_logging(self) -> dict[str, Any]:
        """Return a sanitized dict for logging purposes."""

        hidden = {"alphavantage_api_key"}
        return {k: ("***" if k in hidden else v) for k, v in self.model_dump().items()}


@lru_cache(maxsize=1)
def get_settings(**overrides: Any) -> YieldlySettings:
    """Return cached application settings with optional overrides."""

    if overrides:
        return YieldlySettings(**overrides)
    return YieldlySettings()


__all__ = [
    "ALPHA_VANTAGE_URL",
    "DEFAULT_DATABASE_URL",
    "YieldlySettings",
    "get_settings",
]
