"""Bubble-map endpoints: wallet cluster analysis for a PulseChain token."""

import re
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from loguru import logger

from config.settings import settings
from pulse_clusters.api.app import limiter
from pulse_clusters.api.dependencies import get_blockscout_client
from pulse_clusters.parsers.blockscout.client import BlockscoutClient
from pulse_clusters.parsers.bubblemaps.analyzer import analyze_wallet_clusters
from pulse_clusters.parsers.bubblemaps.exceptions import NoHoldersFoundError
from pulse_clusters.parsers.bubblemaps.models import ClusteringOptions

ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")

router = APIRouter(prefix="/api/v1/bubblemaps", tags=["bubblemaps"])


@router.get("/analyze")
@limiter.limit(settings.cluster_api_rate_limit)
async def analyze_clusters(
    request: Request,
    token_address: str = Query("", alias="tokenAddress", max_length=100),
    top_holders: int = Query(
        settings.cluster_default_top_holders,
        alias="topHolders",
        ge=1,
        le=settings.cluster_max_top_holders,
    ),
    days_back: int = Query(settings.cluster_default_days_back, alias="daysBack", ge=1, le=3650),
    client: BlockscoutClient = Depends(get_blockscout_client),
) -> dict[str, Any]:
    """Analyze transfer clusters among a token's top holders."""
    if not token_address:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Token address is required",
        )
    if not ADDRESS_RE.match(token_address):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid token address format",
        )

    logger.info(
        f"[API] Analyzing clusters for {token_address}, "
        f"top {top_holders} holders, {days_back} days back"
    )

    options = ClusteringOptions(
        token_address=token_address,
        top_holders_count=top_holders,
        days_back=days_back,
        batch_size=settings.cluster_transfer_batch_size,
    )

    try:
        analysis = await analyze_wallet_clusters(options, client)
    except NoHoldersFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except Exception as e:
        logger.exception(f"[API] Cluster analysis failed for {token_address}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e) or "Internal server error",
        ) from e

    logger.info(f"[API] Found {len(analysis.clusters)} clusters for {token_address}")
    return analysis.to_dict()
