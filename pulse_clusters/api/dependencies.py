"""FastAPI dependency injection: explorer client."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from config.settings import settings
from pulse_clusters.parsers.blockscout.client import BlockscoutClient


async def get_blockscout_client() -> AsyncGenerator[BlockscoutClient, None]:
    """Yield a Blockscout client for one request (auto-closes)."""
    client = BlockscoutClient(
        base_url=settings.blockscout_base_url,
        max_rps=settings.blockscout_max_rps,
        timeout=settings.blockscout_timeout_sec,
    )
    try:
        yield client
    finally:
        await client.close()
