"""
Configuration for pytest tests.
"""

import os
import tempfile

# Must be set before yt_extractor.config is imported
os.environ["ENVIRONMENT"] = "testing"
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="ytextractor-logs-"))
os.environ.pop("RATE_LIMIT_REDIS_URL", None)

import pytest

from yt_extractor.models.schemas import Available, Unavailable, VideoMetadata


TEST_VIDEO_ID = "dQw4w9WgXcQ"
TEST_VIDEO_URL = f"https://www.youtube.com/watch?v={TEST_VIDEO_ID}"


@pytest.fixture(scope="session")
def test_video_id():
    """Return a test YouTube video ID."""
    return TEST_VIDEO_ID


@pytest.fixture(scope="session")
def test_video_url():
    """Return a test YouTube video URL."""
    return TEST_VIDEO_URL


@pytest.fixture
def no_api_keys(monkeypatch):
    """Remove API keys that may be present in the developer's environment."""
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    monkeypatch.delenv("DEEPGRAM_API_KEY", raising=False)


@pytest.fixture
def transcript_found():
    """Transcript fetcher that finds captions."""
    async def fetch(video_id):
        return Available("never gonna give you up never gonna let you down")
    return fetch


@pytest.fixture
def transcript_missing():
    """Transcript fetcher that finds no captions."""
    async def fetch(video_id):
        return Unavailable("no captions")
    return fetch


@pytest.fixture
def metadata_found():
    """Metadata fetcher that finds a title and thumbnail."""
    async def fetch(video_id):
        return Available(VideoMetadata(title="Test Video", thumbnail="https://i.ytimg.com/vi/test/hq.jpg"))
    return fetch


@pytest.fixture
def metadata_missing():
    """Metadata fetcher that finds nothing."""
    async def fetch(video_id):
        return Unavailable("metadata service down")
    return fetch


class FakeRedisPipeline:
    """Queues sorted-set commands and runs them on ``execute``."""

    def __init__(self, redis):
        self.redis = redis
        self.commands = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.commands = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self.commands.append((name, args, kwargs))
            return self
        return queue

    async def execute(self):
        results = []
        for name, args, kwargs in self.commands:
            results.append(await getattr(self.redis, name)(*args, **kwargs))
        self.commands = []
        return results


class FakeRedis:
    """In-memory stand-in for the sorted-set commands the rate limiter uses."""

    def __init__(self):
        self.sets = {}
        self.expiry = {}
        self.closed = False

    def pipeline(self, transaction=True):
        return FakeRedisPipeline(self)

    async def zremrangebyscore(self, key, min_score, max_score):
        members = self.sets.get(key, {})
        doomed = [m for m, score in members.items() if min_score <= score <= max_score]
        for member in doomed:
            del members[member]
        return len(doomed)

    async def zadd(self, key, mapping):
        self.sets.setdefault(key, {}).update(mapping)
        return len(mapping)

    async def zcard(self, key):
        return len(self.sets.get(key, {}))

    async def zrange(self, key, start, end, withscores=False):
        items = sorted(self.sets.get(key, {}).items(), key=lambda item: item[1])
        stop = len(items) if end == -1 else end + 1
        sliced = [(member, float(score)) for member, score in items[start:stop]]
        return sliced if withscores else [member for member, _ in sliced]

    async def zrem(self, key, *members):
        removed = 0
        for member in members:
            if self.sets.get(key, {}).pop(member, None) is not None:
                removed += 1
        return removed

    async def pexpire(self, key, milliseconds):
        self.expiry[key] = milliseconds
        return True

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_redis():
    return FakeRedis()
