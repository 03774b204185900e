"""Connected-component discovery over the holder graph and cluster scoring."""

from collections.abc import Mapping, Sequence

from loguru import logger

from pulse_clusters.parsers.bubblemaps.graph import undirected_adjacency
from pulse_clusters.parsers.bubblemaps.models import (
    DEFAULT_THRESHOLDS,
    ClusterThresholds,
    TransactionEdge,
    TransactionNode,
    WalletCluster,
)
from pulse_clusters.parsers.bubblemaps.patterns import assess_risk_indicators, detect_patterns

OVERSIZED_CLUSTER = "Cluster exceeds configured size limit"


def generate_cluster_id(addresses: Sequence[str]) -> str:
    """Short fingerprint: 4 hex chars of each of the first 3 sorted addresses."""
    return "-".join(addr[2:6] for addr in sorted(addresses)[:3])


def score_cluster(
    pattern_count: int,
    indicator_count: int,
    total_volume: float,
    size: int,
    thresholds: ClusterThresholds = DEFAULT_THRESHOLDS,
    *,
    token_decimals: int | None = None,
) -> int:
    """Additive risk score clamped to [0, max_risk_score].

    Volume is compared in raw units unless ``token_decimals`` is given.
    """
    score = pattern_count * thresholds.pattern_weight
    score += indicator_count * thresholds.indicator_weight

    volume = total_volume / 10**token_decimals if token_decimals is not None else total_volume
    if volume > thresholds.high_volume_threshold:
        score += thresholds.high_volume_bonus
    if size > thresholds.large_cluster_size:
        score += thresholds.large_cluster_bonus

    return max(0, min(score, thresholds.max_risk_score))


def analyze_cluster(
    addresses: list[str],
    edges: list[TransactionEdge],
    graph: Mapping[str, TransactionNode],
    thresholds: ClusterThresholds = DEFAULT_THRESHOLDS,
    *,
    token_decimals: int | None = None,
    max_cluster_size: int | None = None,
) -> WalletCluster:
    total_volume = sum(edge.amount for edge in edges)

    patterns = detect_patterns(edges, thresholds)
    indicators = assess_risk_indicators(edges, addresses, thresholds)

    if max_cluster_size is not None and len(addresses) > max_cluster_size:
        logger.warning(
            f"[CLUSTER] Cluster of {len(addresses)} wallets exceeds limit {max_cluster_size}"
        )
        indicators.append(OVERSIZED_CLUSTER)

    risk_score = score_cluster(
        len(patterns),
        len(indicators),
        total_volume,
        len(addresses),
        thresholds,
        token_decimals=token_decimals,
    )

    return WalletCluster(
        id=generate_cluster_id(addresses),
        addresses=addresses,
        connection_strength=total_volume,
        total_volume=total_volume,
        transaction_count=len(edges),
        common_patterns=patterns,
        risk_indicators=indicators,
        risk_score=risk_score,
        nodes=[graph[addr] for addr in addresses if addr in graph],
        edges=edges,
    )


def find_clusters(
    graph: Mapping[str, TransactionNode],
    thresholds: ClusterThresholds = DEFAULT_THRESHOLDS,
    *,
    token_decimals: int | None = None,
    max_cluster_size: int | None = None,
) -> list[WalletCluster]:
    """Find connected components with 2+ wallets and score each one.

    Reachability follows transfers in either direction, so a wallet that
    only ever received tokens still joins its senders' cluster. Each edge
    is collected once, from its sender's node.
    """
    adjacency = undirected_adjacency(graph)
    clusters: list[WalletCluster] = []
    processed: set[str] = set()

    for root in graph:
        if root in processed:
            continue

        members = {root}
        cluster_addresses = [root]
        cluster_edges: list[TransactionEdge] = []
        stack = [root]

        while stack:
            current = stack.pop()
            processed.add(current)

            node = graph.get(current)
            if node is not None:
                for edges in node.connections.values():
                    cluster_edges.extend(edges)

            for neighbor in sorted(adjacency.get(current, ())):
                if neighbor not in members:
                    members.add(neighbor)
                    cluster_addresses.append(neighbor)
                    stack.append(neighbor)

        if len(cluster_addresses) > 1:
            clusters.append(
                analyze_cluster(
                    cluster_addresses,
                    cluster_edges,
                    graph,
                    thresholds,
                    token_decimals=token_decimals,
                    max_cluster_size=max_cluster_size,
                )
            )

    return clusters
