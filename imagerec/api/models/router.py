import asyncio

from fastapi import APIRouter

from imagerec.api.core.dependencies import PredictionServiceDep
from imagerec.api.core.messages import APIResponse, MessageCode
from imagerec.api.models.schemas import (
    ModelDetail,
    ModelDetailAPIResponse,
    ModelListAPIResponse,
    ModelListResponse,
    ModelReloadAPIResponse,
    ModelStatusAPIResponse,
)
from imagerec.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/models", tags=["models"])


@router.get("", response_model=ModelListAPIResponse)
async def list_models(service: PredictionServiceDep) -> ModelListAPIResponse:
    models = service.list_models()
    return APIResponse.success(
        data=ModelListResponse(
            models=models,
            default_model=service.registry.default_model_id,
            total=len(models),
        )
    )


@router.get("/status", response_model=ModelStatusAPIResponse)
async def model_status(service: PredictionServiceDep) -> ModelStatusAPIResponse:
    """Loaded/total counts with per-model health."""
    return APIResponse.success(data=service.model_status())


@router.get("/{model_id}", response_model=ModelDetailAPIResponse)
async def get_model(model_id: str, service: PredictionServiceDep) -> ModelDetailAPIResponse:
    info, health = service.model_info(model_id)
    return APIResponse.success(
        data=ModelDetail(
            info=info,
            health=health,
            is_default=service.registry.default_model_id == info.id,
            ready_for_prediction=service.is_ready(info.id),
        )
    )


@router.post("/{model_id}/reload", response_model=ModelReloadAPIResponse)
async def reload_model(model_id: str, service: PredictionServiceDep) -> ModelReloadAPIResponse:
    """Re-read a model directory from disk."""
    loop = asyncio.get_running_loop()
    info = await loop.run_in_executor(None, lambda: service.reload_model(model_id))
    logger.info("Model reload requested", model_id=model_id)
    return APIResponse.success(message_code=MessageCode.MODEL_RELOADED, data=info)
