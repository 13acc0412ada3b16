from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from starlette.requests import HTTPConnection


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Location Tracker Service"
    env: str = "dev"
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "tracker"

    jwt_secret: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 24 * 60

    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "https://0neai.github.io",
            "https://oneai-wjox.onrender.com",
            "http://localhost:10000",
            "http://localhost:10001",
        ]
    )

    log_level: str = "INFO"
    log_file: Optional[str] = None


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_app_settings(conn: HTTPConnection) -> Settings:
    """Settings the running app was built with (falls back to the environment)."""
    return getattr(conn.app.state, "settings", None) or get_settings()
