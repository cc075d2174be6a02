"""Settings for the ResolveIt escalation client."""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_field(default, *env_names: str):
    if env_names:
        alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
        return Field(default=default, validation_alias=alias)
    return Field(default=default)


class Settings(BaseSettings):
    api_base_url: str = _env_field("http://localhost:8080", "RESOLVEIT_API_BASE_URL", "API_BASE_URL")
    request_timeout_seconds: float = _env_field(30.0, "REQUEST_TIMEOUT_SECONDS")
    # Ambient monitor cadence; the frontend polled every 5 minutes
    escalation_poll_interval_seconds: float = _env_field(300.0, "ESCALATION_POLL_INTERVAL_SECONDS")
    # Backend threshold is environment specific (minutes in dev, days in production)
    escalation_overdue_days: int = _env_field(7, "ESCALATION_OVERDUE_DAYS")

    environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
    obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
    obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")
    service_name: str = _env_field("resolveit-client", "SERVICE_NAME")
    git_commit: str = _env_field("unknown", "GIT_COMMIT", "COMMIT_SHA", "SOURCE_VERSION")
    user_agent: Optional[str] = _env_field(None, "RESOLVEIT_USER_AGENT")

    def is_prod(self) -> bool:
        return self.environment.lower() in ("prod", "production", "live")

    def is_dev(self) -> bool:
        return self.environment.lower() in ("dev", "development")

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("api_base_url", mode="before")
    def _strip_trailing_slash(cls, value):  # type: ignore[override]
        if isinstance(value, str):
            return value.strip().rstrip("/")
        return value

    @field_validator("obs_log_level", mode="before")
    def _normalise_level(cls, value):  # type: ignore[override]
        if isinstance(value, str):
            return value.strip().upper() or "INFO"
        return value


settings = Settings()
