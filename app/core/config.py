from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    redis_url: str = Field("redis://localhost:6379/0", env="REDIS_URL")
    celery_broker_url: str = Field(
        "redis://localhost:6379/1",
        env="CELERY_BROKER_URL",
    )
    jwt_secret_key: str = Field("CHANGE_ME_SECRET", env="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", env="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        60 * 24 * 7, env="ACCESS_TOKEN_EXPIRE_MINUTES"
    )

    progress_key_prefix: str = Field("progress", env="PROGRESS_KEY_PREFIX")
    notice_inbox_limit: int = Field(50, env="NOTICE_INBOX_LIMIT")
    progression_config_path: str | None = Field(
        None,
        env="PROGRESSION_CONFIG_PATH",
    )
    notification_backend: Literal["celery", "log"] = Field(
        "celery",
        env="NOTIFICATION_BACKEND",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()


__all__ = ["settings", "Settings"]
