"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from cashflow_core.api.dependencies import get_request_id
from cashflow_core.api.middleware import RequestIDMiddleware, MetricsMiddleware
from cashflow_core.api.v1 import balance, credit, forecast, profiles, summary, transactions
from cashflow_core.domain.exceptions import DomainException, InvalidStateError, NotFoundError, ValidationError
from cashflow_core.infrastructure.database.models import Base
from cashflow_core.infrastructure.database.session import engine
from cashflow_core.infrastructure.observability.logging import setup_logging
from cashflow_core.config import settings

# Setup structured logging
setup_logging(settings.log_level)

# Domain error kind → HTTP status
ERROR_STATUS = {
    NotFoundError: 404,
    InvalidStateError: 409,
    ValidationError: 422,
}


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status_code = next((code for kind, code in ERROR_STATUS.items() if isinstance(exc, kind)), 400)
    logging.warning(
        f"{type(exc).__name__}: {exc}",
        extra={"request_id": get_request_id(request), "status": status_code},
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logging.error(f"Unexpected error: {exc}", extra={"request_id": get_request_id(request)})
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Cashflow Core",
        description="Balance projection, bill coverage, payoff and health score service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(Exception, unexpected_exception_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(profiles.router, prefix="/v1", tags=["profiles"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(forecast.router, prefix="/v1", tags=["forecast"])
    app.include_router(credit.router, prefix="/v1", tags=["credit"])
    app.include_router(balance.router, prefix="/v1", tags=["balance"])
    app.include_router(summary.router, prefix="/v1", tags=["summary"])

    return app


app = create_app()
