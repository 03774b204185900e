"""Heuristic pattern labels and structural risk indicators for one cluster.

Pure functions over a cluster's edge list; every label is a plain
human-readable string shown as-is in the dashboard.
"""

from collections import Counter, defaultdict
from collections.abc import Sequence
from decimal import Decimal

from pulse_clusters.parsers.blockscout.models import parse_timestamp
from pulse_clusters.parsers.bubblemaps.models import (
    DEFAULT_THRESHOLDS,
    ClusterThresholds,
    TransactionEdge,
)

ROUND_NUMBERS = "High frequency of round number transactions"
SIMILAR_AMOUNTS = "Unusually similar transaction amounts"
CENTRAL_HUB = "Central hub wallet detected"
TIME_BURST = "High transaction volume in specific time windows"


def format_amount(amount: float) -> str:
    """Shortest round-trip rendering of a raw amount.

    Positional between 1e-6 and 1e21, padded with zeros past the
    significant digits (``1.2345e19`` -> ``"12345000000000000000"``),
    integral values without a fraction. Exponent form outside that range.
    """
    value = float(amount)
    magnitude = abs(value)
    if magnitude >= 1e21 or (value != 0 and magnitude < 1e-6):
        return repr(value)
    text = format(Decimal(repr(value)), "f")
    if text.endswith(".0"):
        text = text[:-2]
    return text


def _count_round_numbers(edges: Sequence[TransactionEdge], thresholds: ClusterThresholds) -> int:
    count = 0
    for edge in edges:
        text = format_amount(edge.amount)
        if thresholds.round_number_marker in text and len(text) > thresholds.round_number_min_length:
            count += 1
    return count


def _count_back_and_forth(edges: Sequence[TransactionEdge], thresholds: ClusterThresholds) -> int:
    """Count forward edges with a reverse edge inside the window.

    The first matching reverse edge is used; an edge is not counted when
    its match was itself already counted as a forward edge.
    """
    window = thresholds.back_and_forth_window.total_seconds()
    times = [parse_timestamp(e.timestamp) for e in edges]
    counted: set[int] = set()

    for i, edge in enumerate(edges):
        if times[i] is None:
            continue
        for j, other in enumerate(edges):
            if other.from_address != edge.to_address or other.to_address != edge.from_address:
                continue
            if times[j] is None or abs((times[j] - times[i]).total_seconds()) >= window:
                continue
            if j not in counted:
                counted.add(i)
            break

    return len(counted)


def _count_similar_amounts(edges: Sequence[TransactionEdge], thresholds: ClusterThresholds) -> int:
    amounts = sorted(e.amount for e in edges)
    median = amounts[len(amounts) // 2]
    if median <= 0:
        return 0
    return sum(
        1 for amount in amounts
        if abs(amount - median) / median < thresholds.similar_amount_tolerance
    )


def _count_busy_pairs(edges: Sequence[TransactionEdge], thresholds: ClusterThresholds) -> int:
    pairs = Counter(tuple(sorted((e.from_address, e.to_address))) for e in edges)
    return sum(1 for freq in pairs.values() if freq > thresholds.high_frequency_pair_min)


def detect_patterns(
    edges: Sequence[TransactionEdge],
    thresholds: ClusterThresholds = DEFAULT_THRESHOLDS,
) -> list[str]:
    """Return qualitative trading-pattern labels for a cluster's edges."""
    patterns: list[str] = []
    if not edges:
        return patterns

    total = len(edges)

    if _count_round_numbers(edges, thresholds) > total * thresholds.round_number_ratio:
        patterns.append(ROUND_NUMBERS)

    back_and_forth = _count_back_and_forth(edges, thresholds)
    if back_and_forth > 0:
        patterns.append(f"Rapid back-and-forth transactions ({back_and_forth} pairs)")

    if _count_similar_amounts(edges, thresholds) > total * thresholds.similar_amount_ratio:
        patterns.append(SIMILAR_AMOUNTS)

    busy_pairs = _count_busy_pairs(edges, thresholds)
    if busy_pairs > 0:
        patterns.append(f"High frequency trading ({busy_pairs} wallet pairs)")

    return patterns


def assess_risk_indicators(
    edges: Sequence[TransactionEdge],
    addresses: Sequence[str],
    thresholds: ClusterThresholds = DEFAULT_THRESHOLDS,
) -> list[str]:
    """Return structural risk labels: hub wallets and hourly bursts."""
    indicators: list[str] = []

    counterparties: dict[str, set[str]] = defaultdict(set)
    for edge in edges:
        counterparties[edge.from_address].add(edge.to_address)
        counterparties[edge.to_address].add(edge.from_address)

    max_connections = max((len(counterparties.get(addr, ())) for addr in addresses), default=0)
    if max_connections > len(addresses) * thresholds.hub_ratio:
        indicators.append(CENTRAL_HUB)

    # Bucket by UTC calendar day + hour
    buckets: Counter = Counter()
    for edge in edges:
        ts = parse_timestamp(edge.timestamp)
        if ts is None:
            continue
        buckets[(ts.date(), ts.hour)] += 1

    if any(count > thresholds.burst_min_edges for count in buckets.values()):
        indicators.append(TIME_BURST)

    return indicators
