"""Result store retention settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class ResultSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    RESULT_MAX_AGE_SECONDS: int = 3600  # 1 hour
    SWEEP_INTERVAL_SECONDS: int = 3600


__all__ = ["ResultSettings"]
