"""Wallet cluster analysis pipeline for one token.

1. Top holders (one explorer page)
2. Token transfers per holder, fetched in small concurrent batches
3. Holder-to-holder transaction graph
4. Connected components, each scored by pattern/risk heuristics
"""

import asyncio
from datetime import UTC, datetime

from loguru import logger

from config.settings import settings
from pulse_clusters.parsers.blockscout.client import BlockscoutClient
from pulse_clusters.parsers.blockscout.models import TransferRecord
from pulse_clusters.parsers.bubblemaps.clusters import find_clusters
from pulse_clusters.parsers.bubblemaps.exceptions import NoHoldersFoundError
from pulse_clusters.parsers.bubblemaps.graph import build_transaction_graph
from pulse_clusters.parsers.bubblemaps.models import (
    ClusterAnalysis,
    ClusteringOptions,
    TokenHolder,
)


async def fetch_holder_transfers(
    client: BlockscoutClient,
    holders: list[TokenHolder],
    token_address: str,
    days_back: int,
    batch_size: int = 5,
) -> dict[str, list[TransferRecord]]:
    """Fetch transfers for every holder, ``batch_size`` requests at a time.

    Batches run one after another; a failed fetch contributes an empty list.
    """
    batch_size = max(1, batch_size)
    all_transfers: dict[str, list[TransferRecord]] = {}
    total_batches = (len(holders) + batch_size - 1) // batch_size

    for i in range(0, len(holders), batch_size):
        batch = holders[i:i + batch_size]
        results = await asyncio.gather(*(
            client.get_address_transfers(h.address, token_address, days_back)
            for h in batch
        ))
        for holder, transfers in zip(batch, results):
            all_transfers[holder.address] = transfers

        logger.debug(f"[CLUSTER] Processed batch {i // batch_size + 1}/{total_batches}")

    return all_transfers


async def analyze_wallet_clusters(
    options: ClusteringOptions,
    client: BlockscoutClient | None = None,
) -> ClusterAnalysis:
    """Run the full cluster analysis for ``options.token_address``.

    Raises NoHoldersFoundError when the holders page is empty; every
    other upstream failure only makes the clusters smaller.
    """
    own_client = client is None
    if client is None:
        client = BlockscoutClient(
            base_url=settings.blockscout_base_url,
            max_rps=settings.blockscout_max_rps,
            timeout=settings.blockscout_timeout_sec,
        )

    try:
        logger.info(f"[CLUSTER] Starting cluster analysis for token {options.token_address}")

        holders = await client.get_top_holders(options.token_address, options.top_holders_count)
        if not holders:
            raise NoHoldersFoundError(options.token_address)

        logger.info(f"[CLUSTER] Found {len(holders)} top holders")

        all_transfers = await fetch_holder_transfers(
            client,
            holders,
            options.token_address,
            options.days_back,
            batch_size=options.batch_size,
        )
    finally:
        if own_client:
            await client.close()

    total_transfers = sum(len(t) for t in all_transfers.values())
    logger.info(f"[CLUSTER] Collected {total_transfers} total transfers")

    graph = build_transaction_graph(
        holders,
        all_transfers,
        dedupe=options.dedupe_transfers,
        min_transaction_amount=options.min_transaction_amount,
    )

    clusters = find_clusters(
        graph,
        options.thresholds,
        token_decimals=options.token_decimals,
        max_cluster_size=options.max_cluster_size,
    )
    clusters.sort(key=lambda c: c.risk_score, reverse=True)

    high_risk = sum(1 for c in clusters if c.risk_score > options.thresholds.high_risk_score)

    analysis = ClusterAnalysis(
        clusters=clusters,
        total_wallets=len(holders),
        total_connections=sum(len(c.edges) for c in clusters),
        high_risk_clusters=high_risk,
        analysis_timestamp=datetime.now(UTC).isoformat(),
    )

    logger.info(
        f"[CLUSTER] Analysis complete: {len(clusters)} clusters found, {high_risk} high-risk"
    )
    return analysis
