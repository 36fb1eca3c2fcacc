from typing import Annotated

from fastapi import Depends, Request

from imagerec.modules.health.service import HealthService
from imagerec.modules.prediction.application.use_cases import PredictionService
from imagerec.utils.settings.model import ModelSettings


def get_prediction_service(request: Request) -> PredictionService:
    """Get the prediction service built during application startup."""
    return request.app.state.prediction_service


def get_health_service(request: Request) -> HealthService:
    return request.app.state.health_service


def get_model_settings(request: Request) -> ModelSettings:
    return request.app.state.model_settings


PredictionServiceDep = Annotated[PredictionService, Depends(get_prediction_service)]
HealthServiceDep = Annotated[HealthService, Depends(get_health_service)]
ModelSettingsDep = Annotated[ModelSettings, Depends(get_model_settings)]
