# storefront_core/core/config.py
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "dev"  # = APP_ENV (dev / prod)
    service_name: str = "storefront-service"
    log_level: str = "INFO"
    log_format: str | None = None  # json / console; console by default in dev
    # Return raw messages of unclassified errors to clients. Never in prod.
    expose_error_messages: bool = False
    sentry_dsn: str | None = None
    sentry_traces_rate: float = 0.0
    release: str | None = None
    allow_origins: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        extra="ignore",
    )

    @field_validator("sentry_traces_rate", mode="before")
    @classmethod
    def _clamp_traces_rate(cls, value):
        try:
            rate = float(value)
        except (TypeError, ValueError):
            return 0.0
        return max(0.0, min(0.2, rate))

    @property
    def is_prod(self) -> bool:
        return self.app_env.lower() == "prod"

    @property
    def resolved_log_format(self) -> str:
        if self.log_format:
            return self.log_format.lower()
        return "console" if self.app_env == "dev" else "json"

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.allow_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
