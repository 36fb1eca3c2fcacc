"""Prediction domain handlers bridging requests to the worker thread pool."""

import asyncio
from collections.abc import Callable
from typing import TypeVar

from fastapi import UploadFile

from imagerec.api.prediction.validators import read_image_upload
from imagerec.core.context import PredictionContext
from imagerec.modules.prediction.application.use_cases import PredictionService
from imagerec.modules.prediction.models import (
    BatchItem,
    BatchPredictionResult,
    PredictionResult,
)
from imagerec.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def run_in_worker(context: PredictionContext, work: Callable[[], T]) -> T:
    """Run blocking pipeline work in the default executor.

    If the awaiting request is cancelled, the context is cancelled too so
    the worker stops at its next stage boundary.
    """
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, work)
    except asyncio.CancelledError:
        context.cancel()
        logger.warning("Prediction request cancelled")
        raise


async def predict_upload_handler(
    service: PredictionService,
    file: UploadFile,
    model_id: str | None,
    timeout_seconds: float,
    top_k: int | None = None,
) -> PredictionResult:
    """Validate, preprocess and classify a single upload."""
    content, declared_size = await read_image_upload(file)
    context = PredictionContext(timeout_seconds=timeout_seconds)

    def work() -> PredictionResult:
        upload = service.images.process_upload(
            content,
            file.filename or "upload",
            file.content_type,
            declared_size=declared_size,
            context=context,
        )
        return service.predict(
            upload.data,
            upload.metadata,
            model_id or None,
            context,
            top_k=top_k,
            tensor=upload.tensor,
        )

    return await run_in_worker(context, work)


async def predict_batch_handler(
    service: PredictionService,
    files: list[UploadFile],
    model_id: str | None,
    timeout_seconds: float,
) -> BatchPredictionResult:
    items = []
    for index, file in enumerate(files):
        content, _ = await read_image_upload(file)
        items.append(
            BatchItem(
                id=str(index),
                filename=file.filename or f"upload-{index}",
                data=content,
                content_type=file.content_type,
            )
        )

    context = PredictionContext(timeout_seconds=timeout_seconds)
    return await run_in_worker(
        context, lambda: service.predict_batch(items, model_id or None, context)
    )
