"""
NavCaddy Engine - FastAPI Application

HTTP surface for the input pipeline and the player's shot memory.

Endpoints:
    POST   /api/v1/classify            normalize -> classify -> route one input
    POST   /api/v1/shots               record a shot
    GET    /api/v1/patterns            decayed miss patterns
    GET    /api/v1/patterns/dominant   dominant miss direction
    POST   /api/v1/memory/retention    retention sweep
    DELETE /api/v1/memory              privacy wipe
    GET    /api/v1/session             current session snapshot
    PUT    /api/v1/connectivity        report device connectivity
    GET    /health, /metrics
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from navcaddy.memory.models import Lie, MissDirection, PressureContext
from navcaddy.services import NavCaddyServices, build_services_from_env
from navcaddy.shared.errors import NavCaddyError, ValidationError
from navcaddy.shared.redis_client import ping_redis

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "NavCaddy Engine"
SERVICE_VERSION = "1.0.0"


# ============================================================================
# Pydantic Models
# ============================================================================

class ClassifyRequest(BaseModel):
    """Request model for one player input"""
    text: str = Field(..., min_length=1, description="Raw player input (typed or transcribed)")
    session_id: str = Field("default", min_length=1, description="Inputs are last-input-wins per session")

    class Config:
        json_schema_extra = {
            "example": {
                "text": "gimme my 7i yardage",
                "session_id": "default"
            }
        }


class ShotRequest(BaseModel):
    """Request model for recording a shot"""
    club_name: str = Field(..., min_length=1, description="Club as the player names it, e.g. '7-iron'")
    lie: Lie = Field(Lie.FAIRWAY, description="Lie the shot was hit from")
    direction: Optional[MissDirection] = Field(None, description="Miss direction; omit for a good shot")
    under_pressure: bool = Field(False, description="Player tagged the shot as a pressure shot")
    scoring_context: Optional[str] = Field(None, description="e.g. 'must make par'")
    hole_number: Optional[int] = Field(None, ge=1, le=18)
    notes: Optional[str] = None
    club_id: Optional[str] = Field(None, description="Stable club id; derived from club_name when omitted")


class ConnectivityRequest(BaseModel):
    offline: bool


class RetentionResponse(BaseModel):
    shots_deleted: int
    patterns_deleted: int
    total: int


class HealthResponse(BaseModel):
    """Health check response

    Status values:
        - healthy: All components operational
        - degraded: Serving, but classification falls back to local suggestions
          or the configured Redis backend is unavailable
    """
    status: str
    backend: str
    classifier: str
    redis: str
    offline: bool


class MetricsResponse(BaseModel):
    total_requests: int
    route_count: int
    confirm_count: int
    clarify_count: int
    degraded_count: int
    adapter_calls: int
    average_adapter_latency_ms: float
    adapter_ready: bool


# ============================================================================
# Application factory
# ============================================================================

def create_app(services: Optional[NavCaddyServices] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        services: Pre-built services (tests). When omitted they are built from
            the environment at startup and closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(" Starting NavCaddy Engine...")
        owned = services is None
        app.state.services = services if services is not None else await build_services_from_env()
        logger.info(f" NavCaddy Engine ready (backend={app.state.services.backend})")

        yield

        logger.info(" Shutting down NavCaddy Engine...")
        if owned:
            await app.state.services.close()
        logger.info(" Service stopped")

    app = FastAPI(
        title=SERVICE_NAME,
        description="Natural-language routing and time-decayed shot memory for a golf caddy",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"detail": exc.message, "category": exc.category.value})

    @app.exception_handler(NavCaddyError)
    async def navcaddy_error_handler(request: Request, exc: NavCaddyError):
        logger.error(f" {exc}")
        status_code = 500 if exc.recoverable else 503
        return JSONResponse(status_code=status_code, content={"detail": exc.message, "category": exc.category.value})

    _register_routes(app)
    return app


def get_services(request: Request) -> NavCaddyServices:
    return request.app.state.services


# ============================================================================
# API Endpoints
# ============================================================================

def _register_routes(app: FastAPI) -> None:

    @app.post("/api/v1/classify")
    async def classify_endpoint(request: ClassifyRequest, services: NavCaddyServices = Depends(get_services)):
        """
        Run one input through the pipeline.

        Returns the classification outcome (route / confirm / clarify), the
        routing result when there is one, and the assistant reply. A request
        replaced by a newer input for the same session returns
        {"outcome": "superseded"}.
        """
        outcome = await services.pipeline.handle(request.text, request.session_id)
        return outcome.to_dict()

    @app.post("/api/v1/shots", status_code=201)
    async def record_shot_endpoint(request: ShotRequest, services: NavCaddyServices = Depends(get_services)):
        pressure = PressureContext(
            is_user_tagged=request.under_pressure,
            scoring_context=request.scoring_context,
        )
        shot = await services.recorder.record_miss(
            club_name=request.club_name,
            direction=request.direction,
            lie=request.lie,
            pressure=pressure,
            hole_number=request.hole_number,
            notes=request.notes,
            club_id=request.club_id,
        )
        return shot.to_dict()

    @app.get("/api/v1/patterns")
    async def patterns_endpoint(
        club_id: Optional[str] = Query(None),
        pressure_only: bool = Query(False),
        services: NavCaddyServices = Depends(get_services),
    ) -> List[Dict[str, Any]]:
        patterns = await services.pattern_memory.get_patterns(club_id=club_id, pressure_only=pressure_only)
        return [p.to_dict() for p in patterns]

    @app.get("/api/v1/patterns/dominant")
    async def dominant_pattern_endpoint(
        club_id: Optional[str] = Query(None),
        services: NavCaddyServices = Depends(get_services),
    ):
        pattern = await services.pattern_memory.dominant_pattern(club_id=club_id)
        return {
            "direction": pattern.direction.value if pattern else None,
            "pattern": pattern.to_dict() if pattern else None,
        }

    @app.post("/api/v1/memory/retention", response_model=RetentionResponse)
    async def retention_endpoint(services: NavCaddyServices = Depends(get_services)):
        report = await services.pattern_memory.enforce_retention()
        return RetentionResponse(**report.to_dict())

    @app.delete("/api/v1/memory")
    async def clear_memory_endpoint(services: NavCaddyServices = Depends(get_services)):
        await services.pattern_memory.clear_memory()
        return {"message": "Memory cleared"}

    @app.get("/api/v1/session")
    async def session_endpoint(services: NavCaddyServices = Depends(get_services)):
        return (await services.session_manager.current()).to_dict()

    @app.put("/api/v1/connectivity")
    async def connectivity_endpoint(request: ConnectivityRequest, services: NavCaddyServices = Depends(get_services)):
        services.connectivity.set_offline(request.offline)
        logger.info(f" Connectivity reported: {'offline' if request.offline else 'online'}")
        return {"offline": services.connectivity.is_offline()}

    @app.get("/health", response_model=HealthResponse)
    async def health_check(services: NavCaddyServices = Depends(get_services)):
        """
        Health check endpoint.

        Checks:
            - Classifier adapter configured
            - Redis reachable (when the Redis backend is active)
            - Requested backend actually in use
        """
        redis_status = "not_configured"
        if services.redis_client is not None:
            redis_status = "connected" if await ping_redis(services.redis_client, timeout=1.0) else "error"

        classifier_status = "ready" if services.classifier.adapter_ready else "fallback_only"
        backend_mismatch = services.memory_config.backend != services.backend

        if classifier_status != "ready" or redis_status == "error" or backend_mismatch:
            overall_status = "degraded"
        else:
            overall_status = "healthy"

        return HealthResponse(
            status=overall_status,
            backend=services.backend,
            classifier=classifier_status,
            redis=redis_status,
            offline=services.connectivity.is_offline(),
        )

    @app.get("/metrics", response_model=MetricsResponse)
    async def get_metrics(services: NavCaddyServices = Depends(get_services)):
        return MetricsResponse(**services.classifier.get_performance_stats())

    @app.get("/")
    async def root():
        """
        Service information endpoint
        """
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "status": "operational",
            "endpoints": {
                "classify": "POST /api/v1/classify",
                "shots": "POST /api/v1/shots",
                "patterns": "GET /api/v1/patterns",
                "dominant_pattern": "GET /api/v1/patterns/dominant",
                "retention": "POST /api/v1/memory/retention",
                "clear_memory": "DELETE /api/v1/memory",
                "session": "GET /api/v1/session",
                "connectivity": "PUT /api/v1/connectivity",
                "health": "GET /health",
                "metrics": "GET /metrics",
            },
        }


app = create_app()


if __name__ == "__main__":
    # Local development only; deployments run `uvicorn navcaddy.app:app`.
    import os
    import uvicorn

    uvicorn.run(
        "navcaddy.app:app",
        host=os.getenv("NAVCADDY_HOST", "0.0.0.0"),
        port=int(os.getenv("NAVCADDY_PORT", "8010")),
        log_level="info",
    )
