"""PulseChain Blockscout API client: top holders and per-address token transfers.

Both fetchers fail closed: any HTTP, network or response-shape problem
is logged and turned into an empty list, so one bad holder never aborts
a whole cluster analysis.
"""

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
from loguru import logger

from pulse_clusters.parsers.blockscout.models import (
    BlockscoutHoldersPage,
    BlockscoutTransfersPage,
    TransferRecord,
)
from pulse_clusters.parsers.bubblemaps.models import TokenHolder
from pulse_clusters.parsers.rate_limiter import RateLimiter

BASE_URL = "https://api.scan.pulsechain.com/api/v2"
DEFAULT_HOLDERS_LIMIT = 100  # single page, no follow-up pagination
TRANSFER_PAGE_LIMIT = 1000  # transfers per address per window, single page
MAX_RETRIES = 2
RETRY_DELAYS = [1.0, 3.0]


class BlockscoutClient:
    """Async HTTP client for a Blockscout-compatible explorer (no auth)."""

    def __init__(
        self,
        base_url: str = BASE_URL,
        max_rps: float = 5.0,
        timeout: float = 30.0,
        transfer_limit: int = TRANSFER_PAGE_LIMIT,
    ) -> None:
        self._rate_limiter = RateLimiter(max_rps)
        self._transfer_limit = transfer_limit
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    @property
    def transfer_limit(self) -> int:
        return self._transfer_limit

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, params: dict[str, str]) -> Any | None:
        """GET with retry on 429/timeout. Returns None on any non-200 outcome."""
        for attempt in range(MAX_RETRIES + 1):
            try:
                await self._rate_limiter.acquire()
                resp = await self._client.get(path, params=params)

                if resp.status_code == 429:
                    if attempt == MAX_RETRIES:
                        break
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[BLOCKSCOUT] Rate limited on {path}, waiting {delay}s")
                    await asyncio.sleep(delay)
                    continue

                if resp.status_code != 200:
                    logger.warning(f"[BLOCKSCOUT] HTTP {resp.status_code} for {path}")
                    return None

                return resp.json()

            except (httpx.TimeoutException, httpx.ConnectError) as e:
                if attempt < MAX_RETRIES:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[BLOCKSCOUT] {type(e).__name__} on {path}, retry in {delay}s")
                    await asyncio.sleep(delay)
                else:
                    logger.warning(f"[BLOCKSCOUT] Failed after retries for {path}: {e}")
                    return None

        logger.warning(f"[BLOCKSCOUT] Still rate limited after {MAX_RETRIES + 1} attempts: {path}")
        return None

    async def get_top_holders(
        self, token_address: str, limit: int = DEFAULT_HOLDERS_LIMIT
    ) -> list[TokenHolder]:
        """Fetch one page of top holders with page-relative percentages.

        Percentage is each balance over the sum of the returned balances,
        not over circulating supply.
        """
        try:
            data = await self._get_json(
                f"/tokens/{token_address}/holders", {"limit": str(limit)}
            )
            if data is None:
                return []
            page = BlockscoutHoldersPage.model_validate(data)
            if not page.items:
                return []
            values = [float(h.value) for h in page.items]
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"[BLOCKSCOUT] Holders fetch failed for {token_address[:12]}: {e}")
            return []

        total = sum(values)
        holders = [
            TokenHolder(
                address=h.address.hash.lower(),
                balance=h.value,
                percentage=(value / total) * 100 if total > 0 else 0.0,
            )
            for h, value in zip(page.items, values)
        ]
        logger.debug(f"[BLOCKSCOUT] {len(holders)} holders for {token_address[:12]}")
        return holders

    async def get_address_transfers(
        self, address: str, token_address: str, days_back: int
    ) -> list[TransferRecord]:
        """Fetch an address's transfers of one token within the last ``days_back`` days.

        The token filter is sent to the server and re-checked here, together
        with the date cutoff, since some explorer builds ignore it.
        """
        cutoff = datetime.now(UTC) - timedelta(days=days_back)
        params = {
            "type": "ERC-20",
            "filter": "to | from",
            "limit": str(self._transfer_limit),
        }
        if token_address:
            params["token"] = token_address

        try:
            data = await self._get_json(f"/addresses/{address}/token-transfers", params)
            if data is None:
                return []
            page = BlockscoutTransfersPage.model_validate(data)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"[BLOCKSCOUT] Transfers fetch failed for {address[:12]}: {e}")
            return []

        if not page.items:
            return []

        if len(page.items) >= self._transfer_limit:
            logger.debug(
                f"[BLOCKSCOUT] {address[:12]} hit the {self._transfer_limit} transfer "
                f"ceiling, older transfers are not counted"
            )

        token = token_address.lower()
        transfers = []
        for item in page.items:
            ts = item.timestamp_dt
            if ts is None or ts < cutoff:
                continue
            if item.token_address != token:
                continue
            transfers.append(item)
        return transfers
