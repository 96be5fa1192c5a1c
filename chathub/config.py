"""
Runtime configuration for the relay service.

Values come from the process environment, with defaults loaded from a
``.env`` file in the project root for local development.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]

ENV_PATH = BASE_DIR / ".env"

# Platform-provided variables win over .env defaults
load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    app_name: str = Field(default="Chat Hub", alias="APP_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")

    hub_name: str = Field(default="chat", alias="HUB_NAME")
    public_base_url: str | None = Field(default="http://localhost:8000", alias="PUBLIC_BASE_URL")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    negotiate_token_minutes: int = Field(default=60, ge=1, alias="NEGOTIATE_TOKEN_MINUTES")

    send_timeout_seconds: float = Field(default=5.0, gt=0, alias="SEND_TIMEOUT_SECONDS")
    max_concurrent_sends: int = Field(default=64, ge=1, alias="MAX_CONCURRENT_SENDS")

    wwwroot: Path = Field(default=Path(__file__).resolve().parent / "static", alias="WWWROOT")
    cors_origins: str | None = Field(default=None, alias="CORS_ORIGINS")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def allowed_origins(self) -> list[str]:
        if not self.cors_origins:
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
