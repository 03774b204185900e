"""Shared test fixtures."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from itertools import count
from typing import Any

import pytest

from pulse_clusters.parsers.blockscout.models import TransferRecord
from pulse_clusters.parsers.bubblemaps.models import TokenHolder

TOKEN = "0x" + "7e" * 20


def _iso_ago(**delta: float) -> str:
    """ISO timestamp ``delta`` before now, in explorer format."""
    return (datetime.now(UTC) - timedelta(**delta)).isoformat().replace("+00:00", "Z")


@pytest.fixture
def token_address() -> str:
    return TOKEN


@pytest.fixture
def raw_transfer() -> Callable[..., dict[str, Any]]:
    """Factory for raw /token-transfers items as the explorer returns them."""
    tx_ids = count(1)

    def _make(
        sender: str,
        receiver: str,
        value: float | str,
        *,
        token: str = TOKEN,
        timestamp: str | None = None,
        tx_hash: str | None = None,
        block_number: int = 100,
        log_index: int = 0,
    ) -> dict[str, Any]:
        return {
            "from": {"hash": sender},
            "to": {"hash": receiver},
            "total": {"value": str(value), "decimals": "18"},
            "token": {"address": token, "symbol": "TKN", "decimals": "18"},
            "timestamp": timestamp or _iso_ago(hours=1),
            "transaction_hash": tx_hash or f"0x{next(tx_ids):064x}",
            "block_number": block_number,
            "log_index": log_index,
            "type": "token_transfer",
        }

    return _make


@pytest.fixture
def transfer(raw_transfer) -> Callable[..., TransferRecord]:
    """Factory for parsed TransferRecord objects."""

    def _make(*args: Any, **kwargs: Any) -> TransferRecord:
        return TransferRecord.model_validate(raw_transfer(*args, **kwargs))

    return _make


@pytest.fixture
def holders_factory() -> Callable[..., list[TokenHolder]]:
    def _make(*addresses: str, balance: str = "1000") -> list[TokenHolder]:
        share = 100 / len(addresses) if addresses else 0.0
        return [TokenHolder(address=a, balance=balance, percentage=share) for a in addresses]

    return _make


@pytest.fixture
def ago() -> Callable[..., str]:
    """``ago(days=2)`` -> explorer-style ISO timestamp two days before now."""
    return _iso_ago
