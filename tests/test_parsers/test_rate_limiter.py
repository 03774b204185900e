"""Tests for the async request rate limiter."""

import asyncio

import pytest

from pulse_clusters.parsers.rate_limiter import RateLimiter


def test_rejects_non_positive_rate() -> None:
    with pytest.raises(ValueError):
        RateLimiter(0)


def test_min_interval() -> None:
    assert RateLimiter(4.0).min_interval == 0.25


@pytest.mark.asyncio
async def test_spaces_consecutive_requests() -> None:
    limiter = RateLimiter(20.0)  # 50ms apart
    loop = asyncio.get_running_loop()

    start = loop.time()
    await asyncio.gather(*(limiter.acquire() for _ in range(3)))
    elapsed = loop.time() - start

    # First call passes immediately, the other two wait one interval each
    assert elapsed >= 0.09
