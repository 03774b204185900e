"""Response headers for the JSON-only cluster API."""

from __future__ import annotations

import time

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

ANALYSIS_PREFIX = "/api/v1/bubblemaps/"
SLOW_ANALYSIS_SEC = 10.0


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Lock down every response; never cache analyses and report their runtime.

    An analysis depends on a rolling ``daysBack`` window, so a cached
    result is stale by construction.
    """

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        started = time.perf_counter()
        response: Response = await call_next(request)
        elapsed = time.perf_counter() - started

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        if request.url.path.startswith(ANALYSIS_PREFIX):
            response.headers["Cache-Control"] = "no-store"
            response.headers["X-Analysis-Time"] = f"{elapsed:.3f}"
            if elapsed > SLOW_ANALYSIS_SEC:
                logger.warning(
                    f"[API] Slow analysis ({elapsed:.1f}s): {request.url.query or request.url.path}"
                )
        return response
