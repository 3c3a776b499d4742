# app/config/settings.py

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_name: str = "school-transport-api"
    environment: Literal["dev", "test", "prod"] = "dev"
    debug: bool = False
    version: str = "0.1.0"

    # --- Security ---
    jwt_secret: str = Field(..., min_length=32)
    jwt_algorithm: str = "HS256"
    jwt_expiration_minutes: int = 60

    # --- Authorization ---
    api_prefix: str = "/api"
    authorization_bypass_paths: list[str] = [
        "/api/auth/login",
        "/api/auth/refresh",
        "/swagger",
        "/docs",
        "/redoc",
        "/openapi.json",
        "/health",
        "/notificationHub",
        "/",
    ]
    # Internal errors while checking permissions reject the request unless disabled.
    authorization_fail_closed: bool = True

    # --- Database ---
    database_url: str
    create_schema_on_startup: bool = False

    # --- Observability ---
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


@lru_cache
def get_settings() -> AppSettings:
    return AppSettings()
