"""Simple in-memory rate limiters for the chat and admin login endpoints."""

import math
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Tuple

from fastapi import HTTPException, Request

from app.core.logging import get_logger

logger = get_logger(__name__)


def get_client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For, else the socket peer, else ``unknown``."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class RateLimiter:
    """
    Simple token bucket rate limiter.

    Tracks requests per key (e.g., client IP) and enforces limits.
    Uses in-memory storage - for production, consider Redis.
    """

    def __init__(self, requests_per_minute: int = 10, burst_size: int = 15):
        """
        Initialize rate limiter.

        Args:
            requests_per_minute: Sustained rate limit
            burst_size: Maximum burst size
        """
        self.requests_per_minute = requests_per_minute
        self.burst_size = burst_size
        self.refill_rate = requests_per_minute / 60.0  # tokens per second

        # Storage: key -> (tokens, last_refill_time)
        self._buckets: Dict[str, Tuple[float, float]] = defaultdict(lambda: (burst_size, time.time()))

    def _refill_bucket(self, key: str) -> None:
        """Refill tokens in bucket based on elapsed time."""
        current_tokens, last_refill = self._buckets[key]
        now = time.time()

        elapsed = now - last_refill
        tokens_to_add = elapsed * self.refill_rate

        # Cap at burst size
        new_tokens = min(self.burst_size, current_tokens + tokens_to_add)

        self._buckets[key] = (new_tokens, now)

    def check_limit(self, key: str, cost: float = 1.0) -> bool:
        """
        Check if request is allowed under rate limit.

        Args:
            key: Rate limit key (e.g., chat:<ip>)
            cost: Token cost for this request (default 1.0)

        Returns:
            True if allowed

        Raises:
            HTTPException: 429 if rate limited
        """
        self._refill_bucket(key)

        current_tokens, last_refill = self._buckets[key]

        if current_tokens >= cost:
            self._buckets[key] = (current_tokens - cost, last_refill)
            return True

        retry_after = int((cost - current_tokens) / self.refill_rate) + 1

        logger.warning(
            f"Rate limit exceeded for key: {key}, "
            f"tokens: {current_tokens:.2f}/{self.burst_size}, "
            f"retry after: {retry_after}s"
        )

        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded. Try again in {retry_after} seconds.",
            headers={"Retry-After": str(retry_after)},
        )

    def reset(self, key: str) -> None:
        """Reset rate limit for a key."""
        self._buckets.pop(key, None)

        logger.info(f"Rate limit reset for key: {key}")


@dataclass
class LoginDecision:
    allowed: bool
    retry_after: int | None = None


class LoginAttemptLimiter:
    """
    Per-IP login attempt tracking with exponential backoff.

    The first five attempts in a window are free. From then on each attempt
    must wait ``2 ** (count - 5)`` minutes after the previous one. A key is
    forgotten 15 minutes after its last attempt or on successful login.
    """

    FREE_ATTEMPTS = 5
    RESET_AFTER_SECONDS = 15 * 60

    def __init__(self) -> None:
        # key -> (attempt_count, last_attempt_time)
        self._attempts: Dict[str, Tuple[int, float]] = {}

    def check(self, key: str, now: float | None = None) -> LoginDecision:
        now = now if now is not None else time.time()
        attempt = self._attempts.get(key)

        if attempt is None or now - attempt[1] > self.RESET_AFTER_SECONDS:
            self._attempts[key] = (1, now)
            return LoginDecision(allowed=True)

        count, last_attempt = attempt
        if count >= self.FREE_ATTEMPTS:
            backoff_seconds = (2 ** (count - self.FREE_ATTEMPTS)) * 60
            wait = backoff_seconds - (now - last_attempt)
            if wait > 0:
                logger.warning(f"Login throttled for {key}: {count} attempts, wait {wait:.0f}s")
                return LoginDecision(allowed=False, retry_after=math.ceil(wait))

        self._attempts[key] = (count + 1, now)
        return LoginDecision(allowed=True)

    def reset(self, key: str) -> None:
        self._attempts.pop(key, None)


# Global rate limiter instances
chat_rate_limiter = RateLimiter(
    requests_per_minute=10,  # 10 chat requests per minute per client
    burst_size=15,
)

login_limiter = LoginAttemptLimiter()


def check_chat_rate_limit(client_ip: str) -> None:
    """
    Check rate limit for the public chat endpoints.

    Raises:
        HTTPException: 429 if rate limited
    """
    chat_rate_limiter.check_limit(f"chat:{client_ip}")
