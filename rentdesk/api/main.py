"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from rentdesk.api.errors import register_error_handlers
from rentdesk.api.middleware import RequestIDMiddleware, MetricsMiddleware
from rentdesk.api.v1 import audits, auth, dashboard, houses, payments, rents, repairs, reports, water
from rentdesk.infrastructure.observability.logging import setup_logging
from rentdesk.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="rentdesk",
        description="Household rent and utility billing admin API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_error_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers; everything but auth requires a session
    app.include_router(auth.router, prefix="/v1", tags=["auth"])
    app.include_router(dashboard.router, prefix="/v1", tags=["dashboard"])
    app.include_router(houses.router, prefix="/v1", tags=["houses"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])
    app.include_router(water.router, prefix="/v1", tags=["water"])
    app.include_router(rents.router, prefix="/v1", tags=["rents"])
    app.include_router(repairs.router, prefix="/v1", tags=["repairs"])
    app.include_router(reports.router, prefix="/v1", tags=["reports"])
    app.include_router(audits.router, prefix="/v1", tags=["audits"])

    return app


app = create_app()
