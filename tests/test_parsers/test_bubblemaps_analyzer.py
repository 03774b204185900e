"""Tests for the end-to-end wallet cluster analysis pipeline."""

import asyncio
import json
from unittest.mock import patch

import pytest

from pulse_clusters.parsers.bubblemaps.analyzer import analyze_wallet_clusters
from pulse_clusters.parsers.bubblemaps.exceptions import NoHoldersFoundError
from pulse_clusters.parsers.bubblemaps.models import ClusteringOptions

A = "0x" + "a" * 40
B = "0x" + "b" * 40
C = "0x" + "c" * 40
D = "0x" + "d" * 40


class FakeExplorer:
    """In-memory stand-in for BlockscoutClient that tracks concurrency."""

    def __init__(self, holders, transfers=None) -> None:
        self.holders = holders
        self.transfers = transfers or {}
        self.holder_calls: list[tuple[str, int]] = []
        self.transfer_calls: list[tuple[str, str, int]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def get_top_holders(self, token_address, limit=100):
        self.holder_calls.append((token_address, limit))
        return list(self.holders)

    async def get_address_transfers(self, address, token_address, days_back):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0)
        self.in_flight -= 1
        self.transfer_calls.append((address, token_address, days_back))
        return list(self.transfers.get(address, []))

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def two_clusters(holders_factory, transfer, ago):
    """A/B: one small transfer. C/D: rapid round-number ping-pong."""
    holders = holders_factory(A, B, C, D)
    ping_pong = [
        transfer(C, D, 1_000_000, timestamp=ago(minutes=60 - 10 * i))
        if i % 2 == 0
        else transfer(D, C, 1_000_000, timestamp=ago(minutes=60 - 10 * i))
        for i in range(6)
    ]
    transfers = {
        A: [transfer(A, B, 500)],
        C: ping_pong,
        D: ping_pong,
    }
    return FakeExplorer(holders, transfers)


@pytest.mark.asyncio
async def test_no_holders_raises(token_address) -> None:
    explorer = FakeExplorer(holders=[])

    with pytest.raises(NoHoldersFoundError, match="No token holders found"):
        await analyze_wallet_clusters(ClusteringOptions(token_address=token_address), explorer)

    assert explorer.transfer_calls == []


@pytest.mark.asyncio
async def test_options_forwarded(token_address, two_clusters) -> None:
    options = ClusteringOptions(token_address=token_address, top_holders_count=25, days_back=7)

    await analyze_wallet_clusters(options, two_clusters)

    assert two_clusters.holder_calls == [(token_address, 25)]
    assert {c[0] for c in two_clusters.transfer_calls} == {A, B, C, D}
    assert all(c[1:] == (token_address, 7) for c in two_clusters.transfer_calls)


@pytest.mark.asyncio
async def test_transfer_fetches_are_batched(token_address, holders_factory) -> None:
    addresses = [f"0x{i:040x}" for i in range(1, 13)]
    explorer = FakeExplorer(holders_factory(*addresses))

    analysis = await analyze_wallet_clusters(
        ClusteringOptions(token_address=token_address, batch_size=5), explorer
    )

    assert explorer.max_in_flight == 5
    assert sorted(c[0] for c in explorer.transfer_calls) == addresses
    assert analysis.total_wallets == 12
    assert analysis.clusters == []


@pytest.mark.asyncio
async def test_clusters_sorted_and_counted(token_address, two_clusters) -> None:
    analysis = await analyze_wallet_clusters(
        ClusteringOptions(token_address=token_address), two_clusters
    )

    scores = [c.risk_score for c in analysis.clusters]
    assert scores == sorted(scores, reverse=True)
    assert len(analysis.clusters) == 2

    top, low = analysis.clusters
    assert sorted(top.addresses) == [C, D]
    assert top.risk_score == 100
    assert top.transaction_count == 6  # ping-pong seen from both ends, counted once
    assert any(p.startswith("Rapid back-and-forth") for p in top.common_patterns)
    assert sorted(low.addresses) == [A, B]
    assert low.risk_score == 50

    assert analysis.high_risk_clusters == sum(1 for c in analysis.clusters if c.risk_score > 50)
    assert analysis.high_risk_clusters == 1
    assert analysis.total_connections == sum(len(c.edges) for c in analysis.clusters)
    assert analysis.total_wallets == 4
    assert analysis.analysis_timestamp


@pytest.mark.asyncio
async def test_without_dedupe_counts_both_sightings(token_address, two_clusters) -> None:
    analysis = await analyze_wallet_clusters(
        ClusteringOptions(token_address=token_address, dedupe_transfers=False), two_clusters
    )

    top = analysis.clusters[0]
    assert sorted(top.addresses) == [C, D]
    assert top.transaction_count == 12


@pytest.mark.asyncio
async def test_repeat_runs_are_identical(token_address, two_clusters) -> None:
    options = ClusteringOptions(token_address=token_address)

    first = await analyze_wallet_clusters(options, two_clusters)
    second = await analyze_wallet_clusters(options, two_clusters)

    assert [c.to_dict() for c in first.clusters] == [c.to_dict() for c in second.clusters]


@pytest.mark.asyncio
async def test_missing_transfer_data_degrades(token_address, holders_factory, transfer) -> None:
    """A's fetch 'failed' (empty); the A->B transfer still arrives via B."""
    explorer = FakeExplorer(holders_factory(A, B, C), {A: [], B: [transfer(A, B, 42)]})

    analysis = await analyze_wallet_clusters(
        ClusteringOptions(token_address=token_address), explorer
    )

    assert len(analysis.clusters) == 1
    assert sorted(analysis.clusters[0].addresses) == [A, B]


@pytest.mark.asyncio
async def test_result_is_json_serializable(token_address, two_clusters) -> None:
    analysis = await analyze_wallet_clusters(
        ClusteringOptions(token_address=token_address), two_clusters
    )

    payload = json.loads(json.dumps(analysis.to_dict()))

    assert payload["total_wallets"] == 4
    assert payload["clusters"][0]["edges"][0]["from"] in payload["clusters"][0]["addresses"]
    node = payload["clusters"][1]["nodes"][0]
    assert node["address"] == A
    assert node["connections"] == {B: 1}


@pytest.mark.asyncio
async def test_owns_and_closes_default_client(token_address, two_clusters) -> None:
    with patch(
        "pulse_clusters.parsers.bubblemaps.analyzer.BlockscoutClient",
        return_value=two_clusters,
    ):
        await analyze_wallet_clusters(ClusteringOptions(token_address=token_address))

    assert two_clusters.closed is True


@pytest.mark.asyncio
async def test_default_client_closed_on_failure(token_address) -> None:
    explorer = FakeExplorer(holders=[])
    with patch(
        "pulse_clusters.parsers.bubblemaps.analyzer.BlockscoutClient",
        return_value=explorer,
    ):
        with pytest.raises(NoHoldersFoundError):
            await analyze_wallet_clusters(ClusteringOptions(token_address=token_address))

    assert explorer.closed is True


@pytest.mark.asyncio
async def test_passed_client_left_open(token_address, two_clusters) -> None:
    await analyze_wallet_clusters(ClusteringOptions(token_address=token_address), two_clusters)
    assert two_clusters.closed is False
