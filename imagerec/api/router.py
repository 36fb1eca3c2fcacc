from fastapi import APIRouter

from imagerec.api.health.router import root_router, router as health_router
from imagerec.api.health.router import v1_router as v1_health_router
from imagerec.api.models.router import router as models_router
from imagerec.api.prediction.router import router as prediction_router
from imagerec.api.prediction.router import upload_router

# V1 API router
v1_router = APIRouter(prefix="/v1")

# Include domain routers
v1_router.include_router(v1_health_router)
v1_router.include_router(models_router)
v1_router.include_router(prediction_router)

# Main API router
api_router = APIRouter()
api_router.include_router(root_router)
api_router.include_router(health_router)
api_router.include_router(upload_router)
api_router.include_router(v1_router)
