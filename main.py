"""
Patient Records - FastAPI Backend Application Entry Point
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from controllers import patient_controller
from services.patient_store import PatientStore
from services.store_factory import build_patient_store
from utils.config import Settings, get_settings
from utils.logging import setup_logging

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def create_app(
    settings: Optional[Settings] = None, store: Optional[PatientStore] = None
) -> FastAPI:
    """Build the API; `store` overrides the backend chosen by settings."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        app.state.patient_store = store or build_patient_store(settings)
        logger.info("%s started (%s)", settings.app_name, settings.environment)
        yield
        # Shutdown
        try:
            await app.state.patient_store.close()
        except Exception as exc:
            logger.error("Error closing patient store: %s", exc)
        logger.info("%s shut down", settings.app_name)

    app = FastAPI(
        title=settings.app_name,
        description="Patient records with interchangeable storage backends",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS Configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health Check
    @app.get("/health", tags=["Health"])
    async def health_check():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": VERSION,
            "service": settings.app_name,
            "storage_backend": settings.storage_backend,
        }

    # Readiness Check
    @app.get("/ready", tags=["Health"])
    async def readiness_check(request: Request):
        patient_store = request.app.state.patient_store
        ping = getattr(patient_store, "ping", None)
        if ping is not None and not await ping():
            return JSONResponse(
                status_code=503,
                content={"status": "not_ready", "checks": {"database": "error"}},
            )
        return {"status": "ready", "checks": {"database": "ok" if ping else "n/a"}}

    # Patient Management Routes
    app.include_router(
        patient_controller.router,
        prefix="/patients",
        tags=["Patients"],
    )

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
