# backend/slotbook/config.py

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repo root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/slotbook.db"
    database_ssl: bool = False
    redis_url: str | None = None

    store_backend: Literal["database", "file"] = "database"
    slots_file: str = "./data/slots.json"
    lock_timeout_seconds: float = 10.0

    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # Relative SQLite path -> absolute, anchored at the repo root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        if url.startswith("postgres://"):
            # Hosted providers hand out postgres://, SQLAlchemy wants postgresql://
            return "postgresql://" + url[len("postgres://"):]
        return url

    @property
    def resolved_slots_file(self) -> Path:
        path = Path(self.slots_file)
        if not path.is_absolute():
            path = BASE_DIR / path
        return path


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
