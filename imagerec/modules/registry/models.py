"""Model descriptors and per-model health bookkeeping."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

HealthStatus = Literal["healthy", "degraded", "unhealthy"]

UNHEALTHY_ERROR_RATE = 0.5
DEGRADED_ERROR_RATE = 0.1


def health_tier(errors: int, predictions: int) -> HealthStatus:
    """Map an error rate onto a health tier; no traffic counts as healthy."""
    if predictions <= 0:
        return "healthy"
    error_rate = errors / predictions
    if error_rate > UNHEALTHY_ERROR_RATE:
        return "unhealthy"
    if error_rate > DEGRADED_ERROR_RATE:
        return "degraded"
    return "healthy"


class ModelInfo(BaseModel):
    """Static description of a loaded model."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: str
    name: str
    version: str
    description: str = ""
    input_shape: list[int]
    output_shape: list[int]
    classes: list[str]
    loaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, str] = Field(default_factory=dict)

    @property
    def output_dim(self) -> int:
        return self.output_shape[-1] if self.output_shape else 0

    @property
    def has_image_input(self) -> bool:
        # [H, W, C] or [N, H, W, C]
        return len(self.input_shape) in (3, 4)

    @property
    def input_size(self) -> tuple[int, int] | None:
        """(width, height) the model expects, if its input shape is an image."""
        if not self.has_image_input:
            return None
        height, width = self.input_shape[-3], self.input_shape[-2]
        if height <= 0 or width <= 0:
            return None
        return width, height


class ModelHealth(BaseModel):
    """Immutable snapshot of a model's runtime statistics."""

    model_config = ConfigDict(frozen=True)

    status: HealthStatus
    last_used: datetime | None = None
    predictions: int = 0
    avg_time_ms: float = 0.0
    errors: int = 0
    error_rate: float = 0.0


class ModelStatus(BaseModel):
    loaded: int
    total: int
    default_model: str | None = None
    models: dict[str, ModelHealth]


@dataclass
class LoadedModel:
    """A registered model plus mutable counters owned by the registry."""

    info: ModelInfo
    is_placeholder: bool = False
    available: bool = True
    predictions: int = 0
    errors: int = 0
    total_time_ms: float = 0.0
    avg_time_ms: float = 0.0
    last_used: datetime | None = None
    status: HealthStatus = field(default="healthy")

    @property
    def id(self) -> str:
        return self.info.id

    @property
    def error_rate(self) -> float:
        if self.predictions == 0:
            return 0.0
        return self.errors / self.predictions

    def record(self, elapsed_ms: float, success: bool) -> None:
        self.predictions += 1
        self.total_time_ms += elapsed_ms
        self.last_used = datetime.now(timezone.utc)
        if success:
            self.avg_time_ms = self.total_time_ms / self.predictions
        else:
            self.errors += 1
        self.status = health_tier(self.errors, self.predictions)

    def health(self) -> ModelHealth:
        return ModelHealth(
            status=self.status,
            last_used=self.last_used,
            predictions=self.predictions,
            avg_time_ms=self.avg_time_ms,
            errors=self.errors,
            error_rate=self.error_rate,
        )
