"""Upload validation settings."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class UploadSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10MB
    ALLOWED_TYPES: list[str] = ["image/jpeg", "image/png", "image/webp"]

    @field_validator("MAX_FILE_SIZE")
    @classmethod
    def _positive_size(cls, value: int) -> int:
        if value <= 0:
            raise ValueError(f"invalid max file size: {value}")
        return value

    @field_validator("ALLOWED_TYPES")
    @classmethod
    def _non_empty_types(cls, value: list[str]) -> list[str]:
        types = [item.strip().lower() for item in value if item.strip()]
        if not types:
            raise ValueError("no allowed file types specified")
        return types


__all__ = ["UploadSettings"]
