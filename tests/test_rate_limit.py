"""Token bucket on the onboarding endpoints."""
import os
import uuid

import pytest
import redis

from nexaro.config import get_settings
from nexaro.middleware.rate_limit import BUCKET_TTL_SECONDS, TOKEN_BUCKET_SCRIPT, RateLimitMiddleware

settings = get_settings()


class RecordingRedis:
    """Stands in for a redis client: the bucket script answers from a queue."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []
        self.registered = []

    def register_script(self, source):
        self.registered.append(source)

        def script(keys, args):
            self.calls.append((keys, args))
            return self.replies.pop(0)

        return script


class BrokenRedis:
    def register_script(self, source):
        def script(keys, args):
            raise redis.ConnectionError("connection refused")

        return script


@pytest.fixture
def live_redis():
    """A real Redis server for running the bucket script, if one is reachable."""
    client = redis.from_url(os.environ.get("TEST_REDIS_URL", "redis://localhost:6379/15"), socket_connect_timeout=1)
    try:
        client.ping()
    except redis.RedisError:
        pytest.skip("Redis is not available")
    yield client
    client.close()


@pytest.mark.parametrize(
    "path, throttled",
    [
        ("/api/login", True),
        ("/api/register", True),
        ("/api/register-with-invite", True),
        ("/api/invitations/verify/abc123", True),
        ("/api/invitations", False),
        ("/api/user", False),
        ("/api/registered", False),
        ("/health", False),
    ],
)
def test_throttled_paths(path, throttled):
    assert RateLimitMiddleware.is_throttled_path(path) is throttled


def test_bucket_is_taken_in_one_script_call():
    client = RecordingRedis([1, 0], [0, 4])
    limiter = RateLimitMiddleware(app=None, redis_client=client)

    assert limiter._check_rate_limit("203.0.113.7") == (True, 0)
    assert limiter._check_rate_limit("203.0.113.7") == (False, 4)

    assert client.registered == [TOKEN_BUCKET_SCRIPT]
    keys, args = client.calls[0]
    assert keys == ["rate_limit:onboarding:203.0.113.7"]
    assert args[0] == settings.RATE_LIMIT_PER_MINUTE / 60.0
    assert args[1] == settings.RATE_LIMIT_BURST
    assert args[3] == BUCKET_TTL_SECONDS


def test_redis_failure_lets_requests_through():
    limiter = RateLimitMiddleware(app=None, redis_client=BrokenRedis())

    assert limiter._check_rate_limit("203.0.113.7") == (True, 0)


def test_disabled_limiter_is_inactive():
    limiter = RateLimitMiddleware(app=None, redis_client=RecordingRedis())

    assert settings.RATE_LIMIT_ENABLED is False
    assert limiter.redis_available is False


def test_burst_then_blocked_on_redis(live_redis):
    limiter = RateLimitMiddleware(app=None, redis_client=live_redis)
    client_id = f"test-{uuid.uuid4()}"

    try:
        results = [limiter._check_rate_limit(client_id) for _ in range(settings.RATE_LIMIT_BURST)]
        allowed, retry_after = limiter._check_rate_limit(client_id)
        other_allowed, _ = limiter._check_rate_limit(f"{client_id}-other")
    finally:
        live_redis.delete(f"rate_limit:onboarding:{client_id}", f"rate_limit:onboarding:{client_id}-other")

    assert all(ok for ok, _ in results)
    assert allowed is False
    assert retry_after >= 1
    assert other_allowed is True
