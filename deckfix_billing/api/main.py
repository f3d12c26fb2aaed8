"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from deckfix_billing.api.middleware import RequestIDMiddleware, MetricsMiddleware
from deckfix_billing.api.v1 import credits, estimate, upgrade
from deckfix_billing.infrastructure.observability.logging import setup_logging
from deckfix_billing.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="DeckFix Billing",
        description="Fix cost estimation, tier upgrade proration and credit ledger",
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

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(estimate.router, prefix="/v1", tags=["fix-cost"])
    app.include_router(upgrade.router, prefix="/v1", tags=["subscriptions"])
    app.include_router(credits.router, prefix="/v1", tags=["credits"])

    return app


app = create_app()
