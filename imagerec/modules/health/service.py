import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from imagerec.modules.prediction.store import ResultStore
from imagerec.modules.registry.models import ModelHealth
from imagerec.modules.registry.registry import ModelRegistry
from imagerec.utils.logger import get_logger

logger = get_logger(__name__)

Status = Literal["healthy", "degraded", "unhealthy"]


@dataclass
class HealthCheckResult:
    """Result of a health check."""

    service: str
    status: Status
    details: dict
    error: str | None = None


@dataclass
class ModelHealthSnapshot:
    """Aggregate model health; degraded when any model is not healthy."""

    status: Literal["healthy", "degraded"]
    models: dict[str, ModelHealth]
    default_model: str | None = None
    placeholder_only: bool = False


@dataclass
class OverallHealthStatus:
    """Overall health status with individual service results."""

    status: Status
    services: dict[str, HealthCheckResult]
    timestamp: str
    version: str
    uptime_seconds: float
    models: ModelHealthSnapshot | None = field(default=None)


class HealthService:
    """Service for performing health checks on the model registry and result store."""

    def __init__(
        self,
        registry: ModelRegistry,
        store: ResultStore,
        started_at: float | None = None,
        version: str = "1.0.0",
    ):
        self.registry = registry
        self.store = store
        self.started_at = started_at if started_at is not None else time.monotonic()
        self.version = version

    @property
    def uptime_seconds(self) -> float:
        return max(0.0, time.monotonic() - self.started_at)

    def model_health_snapshot(self) -> ModelHealthSnapshot:
        status = self.registry.status()
        placeholder_only = self.registry.is_placeholder_only
        degraded = placeholder_only or any(
            health.status != "healthy" for health in status.models.values()
        )
        return ModelHealthSnapshot(
            status="degraded" if degraded else "healthy",
            models=status.models,
            default_model=status.default_model,
            placeholder_only=placeholder_only,
        )

    async def check_model_registry_health(self) -> HealthCheckResult:
        """Loaded models and their error-rate tiers."""
        try:
            snapshot = self.model_health_snapshot()
            if not snapshot.models:
                return HealthCheckResult(
                    service="model_registry",
                    status="unhealthy",
                    details={"loaded_models": 0},
                    error="no models loaded",
                )
            return HealthCheckResult(
                service="model_registry",
                status=snapshot.status,
                details={
                    "loaded_models": len(snapshot.models),
                    "default_model": snapshot.default_model,
                    "placeholder_only": snapshot.placeholder_only,
                    "unhealthy_models": sorted(
                        model_id
                        for model_id, health in snapshot.models.items()
                        if health.status != "healthy"
                    ),
                },
            )
        except Exception as e:
            logger.error(f"Model registry health check error: {e}")
            return HealthCheckResult(
                service="model_registry",
                status="unhealthy",
                details={},
                error=str(e),
            )

    async def check_result_store_health(self) -> HealthCheckResult:
        try:
            return HealthCheckResult(
                service="result_store",
                status="healthy",
                details={"stored_results": self.store.count()},
            )
        except Exception as e:
            logger.error(f"Result store health check error: {e}")
            return HealthCheckResult(
                service="result_store",
                status="unhealthy",
                details={},
                error=str(e),
            )

    async def run_all_checks(self) -> OverallHealthStatus:
        """Run all health checks and fold them into an overall status."""
        results = await asyncio.gather(
            self.check_model_registry_health(),
            self.check_result_store_health(),
            return_exceptions=True,
        )

        services: dict[str, HealthCheckResult] = {}
        overall_status: Status = "healthy"

        for result in results:
            if isinstance(result, HealthCheckResult):
                service_result = result
            else:
                service_result = HealthCheckResult(
                    service=result.__class__.__name__,
                    status="unhealthy",
                    details={},
                    error=str(result),
                )

            if service_result.status == "unhealthy":
                overall_status = "unhealthy"
            elif service_result.status == "degraded" and overall_status == "healthy":
                overall_status = "degraded"

            services[service_result.service] = service_result

        return OverallHealthStatus(
            status=overall_status,
            services=services,
            timestamp=datetime.now(timezone.utc).isoformat(),
            version=self.version,
            uptime_seconds=round(self.uptime_seconds, 3),
            models=self.model_health_snapshot(),
        )
