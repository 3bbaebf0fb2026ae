import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv(".env")

DEFAULT_API_URL = "http://localhost:8000"


def _default_db_url() -> str:
    env_url = os.getenv("APP_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_url:
        return env_url

    host = os.getenv("POSTGRES_HOST")
    if not host:
        return "sqlite:///./bookstore.db"

    user = os.getenv("POSTGRES_USER", "postgres")
    password = os.getenv("POSTGRES_PASSWORD", "postgres")
    db_name = os.getenv("POSTGRES_DB", "postgres")
    port = os.getenv("POSTGRES_PORT", "5432")
    return f"postgresql+psycopg://{user}:{password}@{host}:{port}/{db_name}"


class Settings(BaseSettings):
    app_name: str = "BookStore API"
    version: str = "1.0.0"
    storage_backend: Literal["sql", "memory"] = "sql"
    database_url: str = Field(default_factory=_default_db_url)
    seed_on_startup: bool = True
    cors_origins: str = "*"
    require_https: bool = False
    strict_security: bool = False
    log_level: str = "INFO"
    otel_enabled: bool = False

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


def get_settings() -> Settings:
    settings = Settings()
    if settings.strict_security and settings.storage_backend == "sql":
        insecure_markers = ("postgres:postgres@", "changeme", "change-me", "replace-me", "root@")
        if any(marker in settings.database_url for marker in insecure_markers):
            raise RuntimeError("Insecure database credentials detected")
    return settings


def get_api_url() -> str:
    return os.getenv("BOOKSTORE_API_URL", DEFAULT_API_URL)
