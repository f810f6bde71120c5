from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    TRAINING_DATABASE_URL: str = "sqlite+aiosqlite:///./training.db"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"
    AUTO_CREATE_TABLES: bool = True
    TRAINING_REDIS_ENABLED: bool = True
    TRAINING_REDIS_HOST: str = "redis"
    TRAINING_REDIS_PORT: int = 6379
    TRAINING_REDIS_DB: int = 0
    TRAINING_REDIS_PASSWORD: str | None = None
    USERS_SERVICE_URL: str = "http://accounts-service:8007"
    USERS_SERVICE_TIMEOUT_SECONDS: float = 10.0
    BATCH_MAX_CONCURRENCY: int = 10
    EXPIRING_SOON_DAYS: int = 7
    SEARCH_DEBOUNCE_SECONDS: float = 0.5
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
