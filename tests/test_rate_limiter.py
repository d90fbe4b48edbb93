"""
Tests for the sliding window rate limiter.
"""

import asyncio
from unittest.mock import patch

import pytest

from yt_extractor.config import TestingConfig
from yt_extractor.utils.rate_limiter import SlidingWindowRateLimiter, retry_after_seconds

START = 1_700_000_000.0


@pytest.fixture
def clock():
    """Patch the limiter's clock; tests move ``clock.now`` forward by hand."""
    with patch("yt_extractor.utils.rate_limiter.time") as mock_time:
        mock_time.now = START
        mock_time.time.side_effect = lambda: mock_time.now
        yield mock_time


@pytest.fixture
def limiter(fake_redis):
    return SlidingWindowRateLimiter(fake_redis, limit=3, window_seconds=60, prefix="test")


def hit(limiter, identifier="127.0.0.1:/api/summarize"):
    return asyncio.run(limiter.limit_request(identifier))


def test_requests_within_limit(limiter, clock):
    results = [hit(limiter) for _ in range(3)]

    assert all(r.success for r in results)
    assert [r.remaining for r in results] == [2, 1, 0]
    assert all(r.limit == 3 for r in results)


def test_request_over_limit_is_denied(limiter, clock):
    for _ in range(3):
        hit(limiter)

    result = hit(limiter)

    assert not result.success
    assert result.remaining == 0
    assert result.reset == int(START * 1000) + 60_000


def test_denied_requests_do_not_consume_quota(limiter, clock, fake_redis):
    for _ in range(3):
        hit(limiter)
    for _ in range(5):
        assert not hit(limiter).success

    assert len(fake_redis.sets["test:127.0.0.1:/api/summarize"]) == 3


def test_window_slides(limiter, clock):
    hit(limiter)
    clock.now += 30
    hit(limiter)
    hit(limiter)
    assert not hit(limiter).success

    # The first request leaves the window; one slot opens up
    clock.now += 31
    result = hit(limiter)
    assert result.success
    assert result.remaining == 0
    assert result.reset == int((START + 30) * 1000) + 60_000
    assert not hit(limiter).success


def test_identifiers_are_independent(limiter, clock):
    for _ in range(3):
        hit(limiter, "10.0.0.1:/api/summarize")

    assert not hit(limiter, "10.0.0.1:/api/summarize").success
    assert hit(limiter, "10.0.0.2:/api/summarize").success


def test_key_expires_with_window(limiter, clock, fake_redis):
    hit(limiter)

    assert fake_redis.expiry["test:127.0.0.1:/api/summarize"] == 60_000


def test_close(limiter, fake_redis):
    asyncio.run(limiter.close())

    assert fake_redis.closed


def test_from_config_disabled_without_url():
    assert SlidingWindowRateLimiter.from_config(TestingConfig) is None


def test_from_config_builds_client():
    class RedisConfig(TestingConfig):
        RATE_LIMIT_REDIS_URL = "redis://localhost:6379/0"
        RATE_LIMIT_REDIS_TOKEN = "secret"
        RATE_LIMIT_REQUESTS = 5
        RATE_LIMIT_WINDOW_SECONDS = 30

    with patch("yt_extractor.utils.rate_limiter.redis.from_url") as mock_from_url:
        limiter = SlidingWindowRateLimiter.from_config(RedisConfig)

    mock_from_url.assert_called_once_with("redis://localhost:6379/0", password="secret", decode_responses=True)
    assert limiter.client is mock_from_url.return_value
    assert limiter.limit == 5
    assert limiter.window_ms == 30_000


@pytest.mark.parametrize("reset_ms, now_ms, expected", [
    (61_000, 1_000, 60),
    (1_500, 1_000, 1),
    (1_000, 1_000, 1),
    (500, 1_000, 1),
    (2_001, 1_000, 2),
])
def test_retry_after_seconds(reset_ms, now_ms, expected):
    assert retry_after_seconds(reset_ms, now_ms) == expected
