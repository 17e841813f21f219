"""
FastAPI Dependencies

Accessors for the components created by ``create_app`` and stored on
``app.state``. Routes declare them with ``Annotated`` aliases:

    @router.get("/items")
    async def list_items(service: ItemServiceDep):
        return await service.list_items()

Tests replace components by building the app with their own
``ServiceComponents`` rather than overriding these functions.
"""

from typing import Annotated

from fastapi import Depends, Request

from item_service.application.services.item_service import ItemService
from item_service.infrastructure.monitoring.health_checker import HealthAggregator
from item_service.infrastructure.monitoring.metrics_collector import MetricsCollector


def get_item_service(request: Request) -> ItemService:
    return request.app.state.components.item_service


def get_health_aggregator(request: Request) -> HealthAggregator:
    return request.app.state.components.health


def get_metrics(request: Request) -> MetricsCollector:
    return request.app.state.components.metrics


ItemServiceDep = Annotated[ItemService, Depends(get_item_service)]
HealthDep = Annotated[HealthAggregator, Depends(get_health_aggregator)]
MetricsDep = Annotated[MetricsCollector, Depends(get_metrics)]
