from pathlib import Path
from typing import Dict, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    app_name: str = Field(default="TokenGate", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment mode"
    )

    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")
    api_prefix: str = Field(default="/api", description="Admin API prefix")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log output format", validate_default=True
    )

    database_url: str = Field(
        default="sqlite:///./tokengate.db", description="Database connection URL"
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")

    content_root: Path = Field(
        default=Path("."), description="Root directory scanned for protected content"
    )
    external_projects: Dict[str, str] = Field(
        default_factory=dict,
        description="Page identifiers served from an external URL (page -> URL)",
    )

    # Access control
    admin_api_key: str = Field(
        default="",
        description="Bearer key for the admin API (admin API is disabled if empty)",
    )
    access_log_limit: int = Field(
        default=100, ge=1, description="Access events retained per token"
    )
    default_expiration_days: int = Field(
        default=30, ge=1, description="Expiration used when none is given at creation"
    )
    token_rate_limit: str = Field(
        default="60/minute", description="Rate limit applied to the visitor route"
    )
    trusted_proxies: list[str] = Field(
        default_factory=list,
        description="Peer addresses whose X-Forwarded-For is used as the rate limit key",
    )

    cors_allow_origins: list[str] = Field(
        default=["*"], description="Allowed CORS origins"
    )
    cors_allow_credentials: bool = Field(
        default=True, description="Allow CORS credentials"
    )

    metrics_enabled: bool = Field(default=True, description="Enable metrics endpoint")

    @field_validator("log_format", mode="before")
    @classmethod
    def validate_log_format(cls, v, info):
        if info.data.get("environment") == "production":
            return "json"
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def admin_api_enabled(self) -> bool:
        return bool(self.admin_api_key)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


settings = get_settings()
