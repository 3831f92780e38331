from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.analysis import build_default_analysis_client
from services.controller import build_default_controller
from services.historical import build_default_historical_provider


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    controller = build_default_controller()
    analysis_client = build_default_analysis_client()
    try:
        yield
    finally:
        try:
            await controller.aclose()
        finally:
            await analysis_client.aclose()
            build_default_controller.cache_clear()
            build_default_analysis_client.cache_clear()
            build_default_historical_provider.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Environment Monitor",
        description="Polls a temperature/humidity/pressure sensor, tracks alerts and history.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
