from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Rate limiter configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    resolution_seconds: int = Field(default=60, alias="RATELIMIT_RESOLUTION")
    buckets: int = Field(default=5, alias="RATELIMIT_BUCKETS")
    namespace: str = Field(default="ratelimit", alias="RATELIMIT_NAMESPACE")
    redis_url: str | None = Field(default=None, alias="REDIS_URL")
    log_file: Path = Field(default=Path("logs/ratelimit.log"), alias="LOG_FILE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("log_file", mode="before")
    @classmethod
    def _validate_log_file(cls, value: Path | str) -> Path:
        path = Path(value)
        if not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        return path

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: str | None) -> str:
        normalized = str(value or "INFO").upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            return "INFO"
        return normalized

    @field_validator("resolution_seconds", "buckets", mode="before")
    @classmethod
    def _validate_positive(cls, value: int | str | None) -> int:
        if value is None or value == "":
            return 1
        return max(int(value), 1)

    @field_validator("namespace", mode="before")
    @classmethod
    def _validate_namespace(cls, value: str | None) -> str:
        if not value:
            return "ratelimit"
        return str(value).strip() or "ratelimit"

    @field_validator("redis_url", mode="before")
    @classmethod
    def _validate_redis_url(cls, value: str | None) -> str | None:
        if not value:
            return None
        return str(value).strip() or None


@lru_cache
def get_settings() -> Settings:
    """Cached settings accessor."""

    return Settings()
