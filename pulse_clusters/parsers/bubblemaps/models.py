"""Data models for holder transaction-graph cluster analysis."""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any


@dataclass(frozen=True)
class TokenHolder:
    """Top holder from the explorer holders page."""

    address: str  # lowercased hex
    balance: str  # raw integer string in the token's smallest unit
    percentage: float = 0.0  # 0-100, share of the fetched page, not of supply


@dataclass(frozen=True)
class TransactionEdge:
    """One token transfer between two tracked holders."""

    from_address: str
    to_address: str
    amount: float  # raw smallest-unit amount
    timestamp: str  # ISO 8601
    token_address: str
    hash: str
    block_number: int | None = None
    log_index: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.from_address,
            "to": self.to_address,
            "amount": self.amount,
            "timestamp": self.timestamp,
            "token_address": self.token_address,
            "hash": self.hash,
            "block_number": self.block_number,
            "log_index": self.log_index,
        }


@dataclass
class TransactionNode:
    """Graph node for one tracked holder.

    ``connections`` maps a counterparty to every outbound edge sent to it.
    Volume and count accumulate over outbound edges only.
    """

    address: str
    balance: float = 0.0
    percentage: float = 0.0
    connections: dict[str, list[TransactionEdge]] = field(default_factory=dict)
    total_volume: float = 0.0
    transaction_count: int = 0
    risk_score: int = 0  # not populated, cluster-level score is the computed one

    def add_edge(self, edge: TransactionEdge) -> None:
        self.connections.setdefault(edge.to_address, []).append(edge)
        self.total_volume += edge.amount
        self.transaction_count += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "balance": self.balance,
            "percentage": self.percentage,
            "connections": {addr: len(edges) for addr, edges in self.connections.items()},
            "total_volume": self.total_volume,
            "transaction_count": self.transaction_count,
            "risk_score": self.risk_score,
        }


@dataclass
class WalletCluster:
    """A connected component of top holders with its heuristic score."""

    id: str
    addresses: list[str] = field(default_factory=list)
    connection_strength: float = 0.0  # same as total_volume
    total_volume: float = 0.0
    transaction_count: int = 0
    common_patterns: list[str] = field(default_factory=list)
    risk_indicators: list[str] = field(default_factory=list)
    risk_score: int = 0  # 0-100
    nodes: list[TransactionNode] = field(default_factory=list)
    edges: list[TransactionEdge] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.addresses)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "addresses": list(self.addresses),
            "connection_strength": self.connection_strength,
            "total_volume": self.total_volume,
            "transaction_count": self.transaction_count,
            "common_patterns": list(self.common_patterns),
            "risk_indicators": list(self.risk_indicators),
            "risk_score": self.risk_score,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


@dataclass
class ClusterAnalysis:
    """Result of one analyze_wallet_clusters() run."""

    clusters: list[WalletCluster] = field(default_factory=list)  # sorted by risk_score desc
    total_wallets: int = 0
    total_connections: int = 0
    high_risk_clusters: int = 0
    analysis_timestamp: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "clusters": [c.to_dict() for c in self.clusters],
            "total_wallets": self.total_wallets,
            "total_connections": self.total_connections,
            "high_risk_clusters": self.high_risk_clusters,
            "analysis_timestamp": self.analysis_timestamp,
        }


@dataclass(frozen=True)
class ClusterThresholds:
    """Tunable constants for pattern detection, risk indicators and scoring."""

    # Round-number transfers
    round_number_marker: str = "000"
    round_number_min_length: int = 6  # amount string must be longer than this
    round_number_ratio: float = 0.3

    # Back-and-forth transfers
    back_and_forth_window: timedelta = timedelta(hours=1)

    # Similar amounts around the median
    similar_amount_tolerance: float = 0.1
    similar_amount_ratio: float = 0.5

    # Busy wallet pairs
    high_frequency_pair_min: int = 5  # pair needs more edges than this

    # Risk indicators
    hub_ratio: float = 0.4
    burst_min_edges: int = 10  # hour bucket needs more edges than this

    # Scoring
    pattern_weight: int = 20
    indicator_weight: int = 30
    high_volume_threshold: float = 1_000_000
    high_volume_bonus: int = 25
    large_cluster_size: int = 10
    large_cluster_bonus: int = 15
    max_risk_score: int = 100
    high_risk_score: int = 50  # clusters strictly above count as high risk


DEFAULT_THRESHOLDS = ClusterThresholds()


@dataclass
class ClusteringOptions:
    """Caller-supplied configuration for one analysis run."""

    token_address: str
    top_holders_count: int = 100
    days_back: int = 30
    min_transaction_amount: float | None = None
    max_cluster_size: int | None = None
    token_decimals: int | None = None  # set to compare volume in whole tokens
    dedupe_transfers: bool = True
    batch_size: int = 5
    thresholds: ClusterThresholds = field(default_factory=ClusterThresholds)
