"""FastAPI application factory for the cluster analysis API."""

from __future__ import annotations

from fastapi import FastAPI
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.cors import CORSMiddleware

from config.settings import settings
from pulse_clusters.api.middleware import SecurityHeadersMiddleware

# Rate limiter (shared instance)
limiter = Limiter(key_func=get_remote_address)


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    app = FastAPI(
        title="PulseChain Wallet Cluster API",
        version="0.1.0",
        docs_url="/api/docs" if settings.dashboard_debug else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if settings.dashboard_debug else None,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(SecurityHeadersMiddleware)

    # CORS for the dashboard frontend dev server
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=False,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    from pulse_clusters.api.routers.bubblemaps import router as bubblemaps_router
    from pulse_clusters.api.routers.health import router as health_router

    app.include_router(health_router)
    app.include_router(bubblemaps_router)

    return app
