"""Serve the cluster analysis API with uvicorn on the caller's event loop."""

from __future__ import annotations

import uvicorn
from loguru import logger

from config.settings import settings


def build_server_config(host: str | None = None, port: int | None = None) -> uvicorn.Config:
    """uvicorn config for the cluster API; CLI overrides win over settings."""
    from pulse_clusters.api.app import create_app

    debug = settings.dashboard_debug
    return uvicorn.Config(
        app=create_app(),
        host=host or settings.dashboard_host,
        port=port or settings.dashboard_port,
        log_level="debug" if debug else "warning",
        access_log=debug,
        loop="none",
    )


async def run_api_server(host: str | None = None, port: int | None = None) -> None:
    config = build_server_config(host, port)
    server = uvicorn.Server(config)
    logger.info(
        f"[API] Cluster analysis at http://{config.host}:{config.port}/api/v1/bubblemaps/analyze"
    )
    await server.serve()
