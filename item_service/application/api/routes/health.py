"""
Health Check Routes

- GET /health           200 healthy / 503 unhealthy, primary store decides
- GET /health/detailed  same status code, plus per-dependency detail
- GET /ready            readiness probe: ready while the primary store answers
- GET /live             liveness probe: always 200 while the process runs

The cache is reported but never makes the service unhealthy.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from item_service.application.api.dependencies import HealthDep

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(health: HealthDep):
    snapshot = await health.check_health()
    return JSONResponse(
        status_code=status.HTTP_200_OK if snapshot.is_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=snapshot.to_dict(),
    )


@router.get("/health/detailed")
async def detailed_health(health: HealthDep):
    report = await health.detailed_health_report()
    healthy = report["status"] == "healthy"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=report,
    )


@router.get("/ready")
async def readiness_probe(health: HealthDep):
    result = await health.readiness_check()
    ready = result["status"] == "ready"
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=result,
    )


@router.get("/live")
async def liveness_probe(health: HealthDep):
    return health.liveness_check()
