from fastapi import APIRouter, File, Form, Query, Request, UploadFile
from fastapi.responses import HTMLResponse

from imagerec.api.core.constants import DEFAULT_TOP_K, MAX_TOP_K, MIN_TOP_K
from imagerec.api.core.dependencies import ModelSettingsDep, PredictionServiceDep
from imagerec.api.core.exceptions.base import is_htmx_request
from imagerec.api.core.messages import APIResponse, MessageCode
from imagerec.api.prediction.fragments import render_result
from imagerec.api.prediction.handler import (
    predict_batch_handler,
    predict_upload_handler,
)
from imagerec.api.prediction.schemas import (
    BatchPredictionResponse,
    BatchPredictionUploadResponse,
    PredictionResultResponse,
    PredictionUploadResponse,
    TopPredictionResponse,
    TopPredictionResultResponse,
)
from imagerec.api.prediction.validators import validate_batch_size

router = APIRouter(prefix="/prediction", tags=["prediction"])

# Form target of the upload page, mounted at the application root
upload_router = APIRouter(tags=["prediction"])


@upload_router.post("/upload", response_model=PredictionUploadResponse)
async def upload_image(
    request: Request,
    service: PredictionServiceDep,
    settings: ModelSettingsDep,
    file: UploadFile = File(...),
    model_id: str | None = Form(default=None),
) -> PredictionUploadResponse | HTMLResponse:
    """Classify an image posted from the upload page; htmx callers get HTML."""
    result = await predict_upload_handler(
        service, file, model_id, settings.PREDICTION_TIMEOUT_SECONDS
    )

    if is_htmx_request(request):
        return HTMLResponse(content=render_result(result))

    return APIResponse.success(message_code=MessageCode.IMAGE_PROCESSED, data=result)


@router.post("/predict", response_model=PredictionUploadResponse)
async def predict(
    service: PredictionServiceDep,
    settings: ModelSettingsDep,
    file: UploadFile = File(...),
    model_id: str | None = Form(default=None),
    top_k: int = Query(default=DEFAULT_TOP_K, ge=MIN_TOP_K, le=MAX_TOP_K),
) -> PredictionUploadResponse:
    result = await predict_upload_handler(
        service, file, model_id, settings.PREDICTION_TIMEOUT_SECONDS, top_k=top_k
    )
    return APIResponse.success(message_code=MessageCode.IMAGE_PROCESSED, data=result)


@router.post("/batch", response_model=BatchPredictionUploadResponse)
async def predict_batch(
    service: PredictionServiceDep,
    settings: ModelSettingsDep,
    files: list[UploadFile] = File(...),
    model_id: str | None = Form(default=None),
) -> BatchPredictionUploadResponse:
    """Classify several images; per-file failures are reported under ``errors``."""
    validate_batch_size(files)

    batch = await predict_batch_handler(
        service, files, model_id, settings.PREDICTION_TIMEOUT_SECONDS
    )

    return APIResponse.success(
        message_code=(
            MessageCode.BATCH_PROCESSED
            if batch.success
            else MessageCode.BATCH_PARTIALLY_PROCESSED
        ),
        data=BatchPredictionResponse(
            results=batch.results,
            errors=batch.errors,
            process_time_ms=batch.process_time_ms,
        ),
    )


@router.get("/results/{result_id}", response_model=PredictionResultResponse)
async def get_result(
    request: Request,
    result_id: str,
    service: PredictionServiceDep,
) -> PredictionResultResponse | HTMLResponse:
    result = service.fetch_result(result_id)

    if is_htmx_request(request):
        return HTMLResponse(content=render_result(result))

    return APIResponse.success(data=result)


@router.get("/results/{result_id}/top", response_model=TopPredictionResultResponse)
async def get_top_prediction(
    result_id: str,
    service: PredictionServiceDep,
    threshold: float = Query(default=0.0, ge=0.0, le=1.0),
) -> TopPredictionResultResponse:
    """Best class of a stored result plus every class at or above ``threshold``."""
    result = service.fetch_result(result_id)
    return APIResponse.success(
        data=TopPredictionResponse(
            result_id=result.id,
            top_prediction=result.top_prediction,
            above_threshold=result.above_threshold(threshold),
        )
    )
