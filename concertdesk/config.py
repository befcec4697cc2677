from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CONCERTDESK_",
    )

    api_base_url: str = "http://localhost:4000/api"
    api_token: str = ""
    request_timeout: float = 15.0
    max_tickets_per_purchase: int = 10
    debug: bool = False
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
