"""Model registry and inference settings."""

from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ModelSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    MODEL_PATH: str = "./models"
    MODEL_VERSION: str = "latest"
    INFERENCE_BACKEND: Literal["simulated", "torchscript"] = "simulated"

    TARGET_WIDTH: int = 224
    TARGET_HEIGHT: int = 224
    NORMALIZE: bool = True
    # ImageNet statistics
    NORMALIZATION_MEAN: tuple[float, float, float] = (0.485, 0.456, 0.406)
    NORMALIZATION_STD: tuple[float, float, float] = (0.229, 0.224, 0.225)

    DEFAULT_TOP_K: int = 5
    PREDICTION_TIMEOUT_SECONDS: float = 30.0

    @field_validator("TARGET_WIDTH", "TARGET_HEIGHT", "DEFAULT_TOP_K")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @field_validator("NORMALIZATION_STD")
    @classmethod
    def _non_zero_std(
        cls, value: tuple[float, float, float]
    ) -> tuple[float, float, float]:
        if any(std == 0 for std in value):
            raise ValueError("normalization std must be non-zero")
        return value


__all__ = ["ModelSettings"]
