"""Application settings loaded from environment variables."""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Weather.io"
    app_version: str = "0.1.0"
    api_prefix: str = ""
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["*"]
    # Override store
    override_backend: Literal["json", "sql"] = "json"
    override_store_path: Path = Path("data/overrides.json")
    database_url: str = "sqlite:///data/overrides.db"
    override_updated_by: str = "anonymous"
    # Upstream forecast provider (wttr.in JSON format)
    forecast_url_template: str = "https://wttr.in/{lat},{lon}?format=j1"
    forecast_timeout: float = 10.0
    forecast_ttl_minutes: int = 15
    cache_path: Path | None = None
    # Client side of the override HTTP surface
    override_service_url: str = "http://localhost:8000"
    override_service_timeout: float = 10.0
    # Location used when none is given (Secunderabad/Hyderabad)
    default_lat: str = "17.385"
    default_lon: str = "78.4867"
    default_tz: str = "Asia/Kolkata"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="WEATHERIO_",
        extra="ignore",
    )


settings = Settings()

__all__ = ["settings", "Settings"]
