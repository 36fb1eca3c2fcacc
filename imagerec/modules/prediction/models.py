"""Domain models for uploads, classification results and batches."""

from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from imagerec.api.core.messages import MessageCode
from imagerec.modules.imaging.tensor import Tensor
from imagerec.modules.registry.models import ModelInfo


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ImageMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str
    size: int
    width: int = 0
    height: int = 0
    format: str = ""
    content_type: str = ""
    uploaded_at: datetime = Field(default_factory=utcnow)


class ClassificationResult(BaseModel):
    """A single scored class.

    ``confidence`` is the softmax probability over the model's full class
    set; ``probability`` is the same score renormalized over the returned
    candidates only.
    """

    model_config = ConfigDict(frozen=True)

    class_index: int
    class_name: str
    label: str
    description: str
    confidence: float = Field(ge=0.0, le=1.0)
    probability: float = Field(ge=0.0, le=1.0)


class PredictionResult(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: str
    predictions: list[ClassificationResult] = Field(max_length=5)
    metadata: ImageMetadata
    processed_at: datetime = Field(default_factory=utcnow)
    process_time_ms: float
    model_info: ModelInfo

    @property
    def top_prediction(self) -> ClassificationResult | None:
        return self.predictions[0] if self.predictions else None

    def above_threshold(self, threshold: float) -> list[ClassificationResult]:
        return [p for p in self.predictions if p.confidence >= threshold]


@dataclass(frozen=True)
class ProcessedUpload:
    """Validated upload: original metadata, model-ready JPEG bytes and tensor."""

    metadata: ImageMetadata
    data: bytes
    tensor: Tensor


@dataclass(frozen=True)
class BatchItem:
    id: str
    filename: str
    data: bytes
    content_type: str | None = None


class BatchError(BaseModel):
    message_code: MessageCode
    message: str
    details: dict = Field(default_factory=dict)


class BatchPredictionResult(BaseModel):
    results: dict[str, PredictionResult] = Field(default_factory=dict)
    errors: dict[str, BatchError] = Field(default_factory=dict)
    process_time_ms: float = 0.0

    @property
    def success(self) -> bool:
        return not self.errors
