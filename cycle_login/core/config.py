"""Application configuration from environment."""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    app_name: str = "Cycle Login"
    debug: bool = False
    log_level: str = "INFO"

    # Record store: memory | file | sql
    store_backend: str = "file"
    data_dir: Path = Path("./data")

    # Relational backend
    database_url: str = "sqlite+aiosqlite:///./cycle_login.db"
    database_echo: bool = False

    # Privileged override PIN; also exchanged for admin tokens
    dev_pin: str = "9659829"

    # Admin token (JWT)
    secret_key: str = "change-me-in-production-use-env"
    algorithm: str = "HS256"
    dev_token_expire_minutes: int = 60 * 24  # 24 hours

    default_bulk_days: int = 30

    host: str = "0.0.0.0"
    port: int = 3847
    cors_origins: str = "*"

    @field_validator("store_backend", mode="before")
    @classmethod
    def normalize_store_backend(cls, v: str) -> str:
        return (v or "file").strip().lower()

    @field_validator("database_url", mode="before")
    @classmethod
    def normalize_database_url(cls, v: str | None) -> str:
        """Always hand SQLAlchemy an async driver URL."""
        if not v:
            return "sqlite+aiosqlite:///./cycle_login.db"
        url = v.strip()
        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+asyncpg://", 1)
        if url.startswith("postgresql://") and "+asyncpg" not in url:
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("sqlite:///") and "+aiosqlite" not in url:
            return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        return url

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_sqlite(self) -> bool:
        return "sqlite" in self.database_url.lower()

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "CYCLE_LOGIN_"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()
