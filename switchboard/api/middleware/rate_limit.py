"""
Rate Limiting Middleware
Caps inbound lead webhooks per tenant
"""

import time
from typing import Dict, Optional
from dataclasses import dataclass

from switchboard.core.config import settings
from switchboard.core.logging import get_logger
from switchboard.core.exceptions import RateLimitError

logger = get_logger(__name__)


@dataclass
class RateLimitBucket:
    """Token bucket for rate limiting"""
    tokens: float
    last_update: float
    max_tokens: int
    refill_rate: float  # tokens per second

    def consume(self, tokens: int = 1) -> bool:
        """Try to consume tokens, return True if successful"""
        now = time.time()
        elapsed = now - self.last_update

        # Refill tokens
        self.tokens = min(
            self.max_tokens,
            self.tokens + elapsed * self.refill_rate
        )
        self.last_update = now

        if self.tokens >= tokens:
            self.tokens -= tokens
            return True
        return False

    def time_until_available(self, tokens: int = 1) -> float:
        """Calculate time until tokens are available"""
        if self.tokens >= tokens:
            return 0
        needed = tokens - self.tokens
        return needed / self.refill_rate


class RateLimiter:
    """
    Per-tenant token buckets for webhook requests

    Buckets are keyed by the path tenant id before the tenant is looked up,
    so the map is capped at max_buckets. Idle buckets (refilled to full)
    are dropped first, then the least recently used ones.
    """

    def __init__(self, requests_per_minute: Optional[int] = None, max_buckets: int = 10000):
        self.requests_per_minute = requests_per_minute or settings.webhook_requests_per_minute
        self.max_buckets = max_buckets
        self.request_buckets: Dict[str, RateLimitBucket] = {}

    def _evict(self, now: float) -> None:
        """Make room for one more bucket"""
        idle = [
            key for key, bucket in self.request_buckets.items()
            if bucket.tokens + (now - bucket.last_update) * bucket.refill_rate >= bucket.max_tokens
        ]
        for key in idle:
            del self.request_buckets[key]

        overflow = len(self.request_buckets) - self.max_buckets + 1
        if overflow > 0:
            oldest = sorted(self.request_buckets, key=lambda k: self.request_buckets[k].last_update)
            for key in oldest[:overflow]:
                del self.request_buckets[key]

        if idle or overflow > 0:
            logger.debug(f"Evicted rate limit buckets, {len(self.request_buckets)} remain")

    def _get_request_bucket(self, tenant_id: str) -> RateLimitBucket:
        """Get or create request rate limit bucket"""
        if tenant_id not in self.request_buckets:
            now = time.time()
            if len(self.request_buckets) >= self.max_buckets:
                self._evict(now)
            self.request_buckets[tenant_id] = RateLimitBucket(
                tokens=self.requests_per_minute,
                last_update=now,
                max_tokens=self.requests_per_minute,
                refill_rate=self.requests_per_minute / 60.0
            )
        return self.request_buckets[tenant_id]

    def check_request_limit(self, tenant_id: str) -> bool:
        """Check if request is within rate limit"""
        bucket = self._get_request_bucket(tenant_id)
        return bucket.consume(1)

    def get_retry_after(self, tenant_id: str) -> int:
        """Get seconds until a request is allowed again"""
        bucket = self._get_request_bucket(tenant_id)
        return int(bucket.time_until_available(1)) + 1

    def reset(self) -> None:
        self.request_buckets.clear()


# Singleton instance
_rate_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Get rate limiter singleton"""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter()
    return _rate_limiter


async def check_webhook_rate_limit(tenant_id: str):
    """
    Dependency for the lead webhook; tenant_id comes from the path

    Raises:
        RateLimitError: If rate limit exceeded
    """
    limiter = get_rate_limiter()

    if not limiter.check_request_limit(tenant_id):
        retry_after = limiter.get_retry_after(tenant_id)
        logger.warning(f"Webhook rate limit exceeded for tenant {tenant_id}")
        raise RateLimitError(retry_after=retry_after)
