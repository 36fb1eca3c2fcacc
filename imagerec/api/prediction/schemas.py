"""Prediction API schemas."""

from pydantic import BaseModel, computed_field

from imagerec.api.core.messages import APIResponse
from imagerec.modules.prediction.models import (
    BatchError,
    ClassificationResult,
    PredictionResult,
)


class BatchPredictionResponse(BaseModel):
    results: dict[str, PredictionResult]
    errors: dict[str, BatchError]
    process_time_ms: float

    @computed_field
    @property
    def success(self) -> bool:
        return not self.errors


class TopPredictionResponse(BaseModel):
    result_id: str
    top_prediction: ClassificationResult | None
    above_threshold: list[ClassificationResult]


PredictionUploadResponse = APIResponse[PredictionResult]
BatchPredictionUploadResponse = APIResponse[BatchPredictionResponse]
PredictionResultResponse = APIResponse[PredictionResult]
TopPredictionResultResponse = APIResponse[TopPredictionResponse]
