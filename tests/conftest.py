"""Global test configuration and fixtures for the image recognition API."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from imagerec.modules.imaging.preprocessing import ImagePreprocessor
from imagerec.modules.inference.engine import SimulatedEngine
from imagerec.modules.prediction.application.images import ImageService
from imagerec.modules.prediction.application.use_cases import PredictionService
from imagerec.modules.prediction.store import ResultStore
from imagerec.modules.registry.registry import ModelRegistry
from imagerec.utils.settings.upload import UploadSettings
from tests.factories import write_model_dir

ALPHA_CLASSES = ["cat", "dog", "bird", "car", "truck"]


@pytest.fixture
def model_dir(tmp_path: Path) -> Path:
    """Model directory with one described model and one without metadata."""
    root = tmp_path / "models"
    write_model_dir(root, "alpha", classes=ALPHA_CLASSES, name="Alpha", version="2.0.0")
    write_model_dir(root, "beta", metadata=None)
    return root


@pytest.fixture
def registry(model_dir: Path) -> ModelRegistry:
    registry = ModelRegistry(model_dir, default_version="latest")
    registry.load_all()
    return registry


@pytest.fixture
def preprocessor() -> ImagePreprocessor:
    return ImagePreprocessor()


@pytest.fixture
def result_store() -> ResultStore:
    return ResultStore()


@pytest.fixture
def image_service(preprocessor: ImagePreprocessor) -> ImageService:
    return ImageService(UploadSettings(), preprocessor)


@pytest.fixture
def prediction_service(
    registry: ModelRegistry,
    result_store: ResultStore,
    image_service: ImageService,
    preprocessor: ImagePreprocessor,
) -> PredictionService:
    return PredictionService(
        registry=registry,
        engine=SimulatedEngine(),
        store=result_store,
        images=image_service,
        preprocessor=preprocessor,
    )


@pytest_asyncio.fixture
async def app(monkeypatch: pytest.MonkeyPatch, model_dir: Path):
    """Create FastAPI application with lifespan manager for testing."""
    monkeypatch.setenv("MODEL_PATH", str(model_dir))
    monkeypatch.setenv("INFERENCE_BACKEND", "simulated")
    monkeypatch.setenv("ENVIRONMENT", "TEST")

    from imagerec.main import app

    async with LifespanManager(app):
        yield app


@pytest_asyncio.fixture
async def public_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create HTTP client for testing public endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test-imagerec-api",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def htmx_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that identifies itself as htmx."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test-imagerec-api",
        headers={"HX-Request": "true"},
    ) as ac:
        yield ac
