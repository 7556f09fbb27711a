"""
Rate Limiting Middleware

Per-client token bucket on the unauthenticated onboarding endpoints
(login, registration, invitation checks), backed by Redis so every API
instance shares the same buckets.

It slows down password guessing and invitation token enumeration. Routes
behind a session are not throttled here.

PRODUCTION NOTES:
- Redis is a single point of failure; when it is unreachable the limiter
  is disabled rather than rejecting traffic.
- Behind a proxy, make sure the ASGI server sets the real client address.
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from typing import Optional, Tuple
import redis
import time
import logging
from nexaro.config import get_settings
from nexaro.core.exceptions import RateLimitExceeded
from nexaro.utils.logging import log_security_event

logger = logging.getLogger(__name__)
settings = get_settings()

THROTTLED_PATHS = (
    "/api/login",
    "/api/register",
    "/api/register-with-invite",
    "/api/invitations/verify/",
)

# Seconds an idle bucket is kept; long enough to refill completely
BUCKET_TTL_SECONDS = 120

# KEYS[1] bucket hash; ARGV: refill rate (tokens/s), burst, now, ttl
# Returns {allowed (0/1), retry_after_seconds}
TOKEN_BUCKET_SCRIPT = """
local rate = tonumber(ARGV[1])
local burst = tonumber(ARGV[2])
local now = tonumber(ARGV[3])
local ttl = tonumber(ARGV[4])

local bucket = redis.call('HMGET', KEYS[1], 'tokens', 'updated')
local tokens = tonumber(bucket[1])
local updated = tonumber(bucket[2])
if tokens == nil or updated == nil then
    tokens = burst
    updated = now
end

tokens = math.min(burst, tokens + math.max(0, now - updated) * rate)

local allowed = 0
local retry_after = 0
if tokens >= 1 then
    tokens = tokens - 1
    allowed = 1
else
    retry_after = math.floor((1 - tokens) / rate) + 1
end

redis.call('HSET', KEYS[1], 'tokens', tostring(tokens), 'updated', tostring(now))
redis.call('EXPIRE', KEYS[1], ttl)
return {allowed, retry_after}
"""


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Token bucket rate limiter per client IP.

    Uses Redis for distributed rate limiting.
    """

    def __init__(self, app, redis_client: Optional["redis.Redis"] = None):
        super().__init__(app)

        self.redis_client = redis_client
        self.redis_available = False
        self._script = None

        if not settings.RATE_LIMIT_ENABLED:
            logger.info("Rate limiting disabled by configuration")
            return

        if self.redis_client is None:
            try:
                self.redis_client = redis.from_url(
                    settings.REDIS_URL,
                    decode_responses=True,
                    socket_connect_timeout=5
                )
                self.redis_client.ping()
                logger.info("Redis connection established for rate limiting")
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.error(f"Redis connection failed: {e}")
                self.redis_client = None

        self.redis_available = self.redis_client is not None

    @staticmethod
    def is_throttled_path(path: str) -> bool:
        return any(path == p or (p.endswith("/") and path.startswith(p)) for p in THROTTLED_PATHS)

    async def dispatch(self, request: Request, call_next):
        if not self.redis_available or not self.is_throttled_path(request.url.path):
            return await call_next(request)

        client_id = self._get_client_identifier(request)
        allowed, retry_after = self._check_rate_limit(client_id)

        if not allowed:
            log_security_event(
                "rate_limit_exceeded",
                {"client": client_id, "path": request.url.path},
                logger
            )
            exc = RateLimitExceeded(retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "detail": exc.detail,
                    "type": exc.error_type,
                    "retry_after": retry_after
                },
                headers=exc.headers
            )

        return await call_next(request)

    def _bucket_script(self):
        """The token bucket script, registered on first use."""
        if self._script is None:
            self._script = self.redis_client.register_script(TOKEN_BUCKET_SCRIPT)
        return self._script

    def _check_rate_limit(self, client_id: str) -> Tuple[bool, int]:
        """
        Take one token from the client's bucket.

        Returns: (allowed, retry_after_seconds)

        Token bucket:
        - Bucket holds at most RATE_LIMIT_BURST tokens
        - Refilled at RATE_LIMIT_PER_MINUTE tokens per minute
        - Each request consumes one token

        The read-refill-take cycle runs as one Redis script, so concurrent
        requests from the same client cannot spend the same token twice.
        """
        key = f"rate_limit:onboarding:{client_id}"

        try:
            allowed, retry_after = self._bucket_script()(
                keys=[key],
                args=[
                    settings.RATE_LIMIT_PER_MINUTE / 60.0,
                    settings.RATE_LIMIT_BURST,
                    time.time(),
                    BUCKET_TTL_SECONDS,
                ],
            )
            return bool(int(allowed)), int(retry_after)

        except redis.RedisError as e:
            logger.error(f"Redis error in rate limiting: {e}")
            # Graceful degradation - allow request if Redis fails
            return True, 0

    def _get_client_identifier(self, request: Request) -> str:
        return request.client.host if request.client else "unknown"
