"""Model catalog API schemas."""

from pydantic import BaseModel

from imagerec.api.core.messages import APIResponse
from imagerec.modules.registry.models import ModelHealth, ModelInfo, ModelStatus


class ModelListResponse(BaseModel):
    models: list[ModelInfo]
    default_model: str | None
    total: int


class ModelDetail(BaseModel):
    info: ModelInfo
    health: ModelHealth
    is_default: bool
    ready_for_prediction: bool


ModelListAPIResponse = APIResponse[ModelListResponse]
ModelDetailAPIResponse = APIResponse[ModelDetail]
ModelStatusAPIResponse = APIResponse[ModelStatus]
ModelReloadAPIResponse = APIResponse[ModelInfo]
