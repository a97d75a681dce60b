"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from fee_engine.api.middleware import RequestIDMiddleware, MetricsMiddleware
from fee_engine.api.v1 import schedule, status, students
from fee_engine.infrastructure.observability.logging import setup_logging
from fee_engine.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Fee Engine",
        description="Fee schedule computation and payment status service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(schedule.router, prefix="/v1", tags=["schedules"])
    app.include_router(status.router, prefix="/v1", tags=["statuses"])
    app.include_router(students.router, prefix="/v1", tags=["students"])

    return app


app = create_app()
