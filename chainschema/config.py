from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "WARNING"
    LOG_JSON: bool = False  # True for structured JSON, False for colored console

    # Async rules
    ASYNC_RULE_TIMEOUT: float | None = None  # Seconds; unset means wait indefinitely

    model_config = SettingsConfigDict(env_prefix="CHAINSCHEMA_", env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
