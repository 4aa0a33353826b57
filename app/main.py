"""
app/main.py

FastAPI application entry point.
"""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI

from app.config import load_env_files
from app.schemas.dashboard import HealthResponse


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    load_env_files()
    _configure_logging()

    application = FastAPI(
        title="Dashboard Statistics API",
        version="1.0.0",
    )

    from app.api.routers import dashboard_router

    application.include_router(dashboard_router)

    @application.get("/health", response_model=HealthResponse)
    def healthcheck() -> HealthResponse:
        return HealthResponse(status="ok")

    logging.getLogger(__name__).info("Dashboard API initialised")
    return application


app = create_app()
