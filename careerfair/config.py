from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === App Metadata ===
    PROJECT_NAME: str = "Career Fair Booking API"
    SERVICE_NAME: str = "career-fair-booking"
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # === Database ===
    DATABASE_URL: str = "sqlite:///./career_fair.db"
    # seconds a SQLite writer waits for the lock before giving up
    DB_BUSY_TIMEOUT: float = Field(30.0, ge=0)
    SKIP_DB_INIT: bool = False
    SEED_COMPANIES: bool = True

    # === Logging ===
    LOG_LEVEL: str = "INFO"
    ENABLE_JSON_LOGS: bool = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()
