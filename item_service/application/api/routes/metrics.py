"""Prometheus scrape endpoint."""

from fastapi import APIRouter, Response

from item_service.application.api.dependencies import MetricsDep

router = APIRouter(tags=["Monitoring"])


@router.get("/metrics")
async def prometheus_metrics(metrics: MetricsDep):
    return Response(
        content=metrics.get_prometheus_metrics(),
        media_type=metrics.get_content_type(),
    )
