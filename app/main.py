from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.collector import AwairCollector, build_default_collector, build_registry
from services.device_client import build_default_client


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    owns_collector = app.state.collector is None
    if owns_collector:
        app.state.collector = build_default_collector()
        app.state.registry = build_registry(app.state.collector)
    try:
        yield
    finally:
        if owns_collector:
            app.state.collector.client.close()
            app.state.collector = None
            app.state.registry = None
            build_default_collector.cache_clear()
            build_default_client.cache_clear()


def create_app(collector: Optional[AwairCollector] = None) -> FastAPI:
    """Build the exporter app; without a collector one is wired from settings at startup."""
    configure_logging()
    app = FastAPI(
        title="Awair Exporter",
        description="Prometheus exporter for Awair air-quality devices on the local network.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.collector = collector
    app.state.registry = build_registry(collector) if collector is not None else None
    app.include_router(router)
    return app
