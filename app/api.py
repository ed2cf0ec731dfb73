"""HTTP route definitions for the exporter."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from app.schemas import HealthResponse, RootResponse
from services.collector import AwairCollector

router = APIRouter()


def get_registry(request: Request) -> CollectorRegistry:
    return request.app.state.registry


def get_collector(request: Request) -> AwairCollector:
    return request.app.state.collector


@router.get(
    "/metrics",
    summary="Poll every device and render the readings in Prometheus text format.",
    response_class=Response,
)
def prometheus_metrics(registry: CollectorRegistry = Depends(get_registry)) -> Response:
    # Sync route: FastAPI runs it in the threadpool, so device I/O never blocks the loop.
    return Response(generate_latest(registry), media_type=CONTENT_TYPE_LATEST)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(collector: AwairCollector = Depends(get_collector)) -> HealthResponse:
    return HealthResponse(device_count=len(collector.hosts))


@router.get(
    "/",
    response_model=RootResponse,
    summary="Root endpoint points at the metrics route.",
    status_code=status.HTTP_200_OK,
)
async def root() -> RootResponse:
    return RootResponse()
