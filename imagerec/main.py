import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from imagerec.api.core.exceptions.base import register_exception_handlers
from imagerec.api.core.middleware.logging import logging_middleware
from imagerec.api.core.middleware.security import (
    PayloadSizeMiddleware,
    SecurityHeadersMiddleware,
)
from imagerec.api.router import api_router
from imagerec.modules.health.service import HealthService
from imagerec.modules.imaging.preprocessing import ImagePreprocessor
from imagerec.modules.inference.engine import build_engine
from imagerec.modules.prediction.application.images import ImageService
from imagerec.modules.prediction.application.use_cases import PredictionService
from imagerec.modules.prediction.store import ResultStore
from imagerec.modules.prediction.sweeper import ResultSweeper
from imagerec.modules.registry.registry import ModelRegistry
from imagerec.utils.logger import setup_logging
from imagerec.utils.settings.app import AppSettings
from imagerec.utils.settings.model import ModelSettings
from imagerec.utils.settings.results import ResultSettings
from imagerec.utils.settings.upload import UploadSettings

app_settings = AppSettings()
is_production = app_settings.is_production


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    settings = AppSettings()
    settings.validate_prod()
    model_settings = ModelSettings()
    upload_settings = UploadSettings()
    result_settings = ResultSettings()

    logger = setup_logging(settings.is_production, settings.LOG_LEVEL)
    logger.info("Starting Image Recognition API...")

    registry = ModelRegistry(model_settings.MODEL_PATH, model_settings.MODEL_VERSION)
    registry.load_all()

    preprocessor = ImagePreprocessor(
        target_width=model_settings.TARGET_WIDTH,
        target_height=model_settings.TARGET_HEIGHT,
        normalize=model_settings.NORMALIZE,
        mean=model_settings.NORMALIZATION_MEAN,
        std=model_settings.NORMALIZATION_STD,
    )
    store = ResultStore()
    image_service = ImageService(upload_settings, preprocessor)

    app.state.model_settings = model_settings
    app.state.registry = registry
    app.state.result_store = store
    app.state.prediction_service = PredictionService(
        registry=registry,
        engine=build_engine(model_settings),
        store=store,
        images=image_service,
        preprocessor=preprocessor,
        default_top_k=model_settings.DEFAULT_TOP_K,
    )
    app.state.health_service = HealthService(
        registry, store, started_at=time.monotonic(), version=settings.API_VERSION
    )
    logger.info(
        "Services added to app state",
        backend=model_settings.INFERENCE_BACKEND,
        models=len(registry.list()),
        default_model=registry.default_model_id,
    )

    sweeper = ResultSweeper(
        store,
        interval_seconds=result_settings.SWEEP_INTERVAL_SECONDS,
        max_age_seconds=result_settings.RESULT_MAX_AGE_SECONDS,
    )
    sweeper.start()

    yield

    # Shutdown
    await sweeper.stop()
    logger.info("Shutting down Image Recognition API...")


app = FastAPI(
    title="Image Recognition API",
    description="Image classification with pluggable model backends",
    version=app_settings.API_VERSION,
    lifespan=lifespan,
    # Security: Disable docs in production
    docs_url=None if is_production else "/docs",
    redoc_url=None if is_production else "/redoc",
    openapi_url=None if is_production else "/openapi.json",
)

# Register global exception handlers
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

app.add_middleware(
    SecurityHeadersMiddleware,
    is_production=is_production,
    api_version=app_settings.API_VERSION,
)
app.add_middleware(PayloadSizeMiddleware, max_request_size=app_settings.MAX_REQUEST_SIZE)
app.middleware("http")(logging_middleware)

app.include_router(api_router)


def run_dev_server():
    """Run development server with auto-reload."""
    uvicorn.run(
        "imagerec.main:app", host="0.0.0.0", port=8080, reload=True, access_log=False
    )


def run_prod_server():
    """Run production server."""
    uvicorn.run(
        "imagerec.main:app", host="0.0.0.0", port=8080, reload=False, access_log=False
    )
