from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ENDPOINT = "https://api.ventrata.com/octo"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_prefix="OCTO_")

    jwt_key: str | None = None
    endpoint: str = DEFAULT_ENDPOINT
    # Fan-out towards the supplier stays small to respect its rate limits.
    concurrency: int = Field(default=3, ge=1, le=10)
    token_ttl_hours: int = Field(default=168, ge=1)
    http_timeout: float = 30.0
    http_retries: int = Field(default=0, ge=0)
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


# Optional OCTO feature sets this adapter understands. Sent verbatim on every call.
DEFAULT_CAPABILITIES: tuple[str, ...] = (
    "octo/pricing",
    "octo/pickups",
    "octo/cart",
    "octo/offers",
    "octo/questions",
)


class PluginConfig(BaseModel):
    """Immutable per-deployment configuration injected into the adapter and services."""

    model_config = ConfigDict(frozen=True)

    jwt_key: str | None = None
    endpoint: str = DEFAULT_ENDPOINT
    concurrency: int = Field(default=3, ge=1, le=10)
    token_ttl_hours: int = Field(default=168, ge=1)
    http_timeout: float = 30.0
    http_retries: int = Field(default=0, ge=0)
    capabilities: tuple[str, ...] = DEFAULT_CAPABILITIES

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "PluginConfig":
        settings = settings or get_settings()
        return cls(
            jwt_key=settings.jwt_key,
            endpoint=settings.endpoint,
            concurrency=settings.concurrency,
            token_ttl_hours=settings.token_ttl_hours,
            http_timeout=settings.http_timeout,
            http_retries=settings.http_retries,
        )
