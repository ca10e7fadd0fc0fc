"""Rate limiting for the chatbot endpoint."""

import math
import os
import time
from collections import defaultdict

import structlog
from fastapi import Depends, HTTPException, status

from backoffice.api.middleware.auth import get_current_admin
from backoffice.models.admin import AdminDB

logger = structlog.get_logger(__name__)


class RateLimiter:
    """Simple in-memory rate limiter.

    Implements token bucket algorithm: each user starts with ``burst_size``
    tokens, refilled at ``requests_per_minute`` per minute.
    """

    def __init__(
        self,
        requests_per_minute: int = 10,
        burst_size: int = 5,
        cleanup_interval: int = 60,
    ):
        """Initialize rate limiter.

        Args:
            requests_per_minute: Refill rate per user
            burst_size: Maximum tokens a user can accumulate
            cleanup_interval: Interval (seconds) to cleanup old entries
        """
        self.requests_per_minute = requests_per_minute
        self.burst_size = burst_size
        self.cleanup_interval = cleanup_interval

        # user_id -> (tokens, last_update, request_count)
        self.buckets: dict[str, tuple[float, float, int]] = defaultdict(
            lambda: (float(burst_size), time.time(), 0)
        )
        self.last_cleanup = time.time()

    @classmethod
    def from_env(cls) -> "RateLimiter":
        """Build a limiter from CHATBOT_RATE_LIMIT_PER_MINUTE / CHATBOT_RATE_LIMIT_BURST."""
        return cls(
            requests_per_minute=int(os.getenv("CHATBOT_RATE_LIMIT_PER_MINUTE", "10")),
            burst_size=int(os.getenv("CHATBOT_RATE_LIMIT_BURST", "5")),
        )

    def _refill_tokens(self, user_id: str) -> float:
        tokens, last_update, count = self.buckets[user_id]
        current_time = time.time()

        tokens_to_add = (current_time - last_update) * (self.requests_per_minute / 60.0)
        new_tokens = min(tokens + tokens_to_add, float(self.burst_size))

        self.buckets[user_id] = (new_tokens, current_time, count)
        return new_tokens

    def retry_after(self, tokens: float) -> int:
        """Seconds until one token is available again."""
        missing = 1.0 - tokens
        return max(1, math.ceil(missing * 60.0 / self.requests_per_minute))

    async def check_rate_limit(self, user_id: str) -> None:
        """Consume one token for the user.

        Args:
            user_id: User identifier

        Raises:
            HTTPException: 429 with Retry-After if the bucket is empty
        """
        current_time = time.time()
        if current_time - self.last_cleanup > self.cleanup_interval:
            self._cleanup_old_entries()
            self.last_cleanup = current_time

        tokens = self._refill_tokens(user_id)

        if tokens < 1.0:
            retry_after = self.retry_after(tokens)
            logger.warning("rate_limit_exceeded", user_id=user_id, retry_after=retry_after)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={
                    "error": "Rate limit exceeded",
                    "message": f"Maximum {self.requests_per_minute} requêtes par minute",
                    "retry_after": retry_after,
                },
                headers={"Retry-After": str(retry_after)},
            )

        tokens, last_update, count = self.buckets[user_id]
        self.buckets[user_id] = (tokens - 1.0, last_update, count + 1)

    def _cleanup_old_entries(self) -> None:
        """Drop buckets untouched for two cleanup intervals."""
        cutoff_time = time.time() - (self.cleanup_interval * 2)

        to_remove = [
            user_id
            for user_id, (_, last_update, _) in self.buckets.items()
            if last_update < cutoff_time
        ]

        for user_id in to_remove:
            del self.buckets[user_id]

    def get_user_stats(self, user_id: str) -> dict:
        """Get rate limit statistics for user.

        Args:
            user_id: User identifier

        Returns:
            Dict with tokens available, total requests, etc.
        """
        if user_id not in self.buckets:
            return {
                "tokens_available": self.burst_size,
                "requests_remaining": self.burst_size,
                "total_requests": 0,
                "limit_per_minute": self.requests_per_minute,
            }

        tokens = self._refill_tokens(user_id)
        _, _, count = self.buckets[user_id]

        return {
            "tokens_available": int(tokens),
            "requests_remaining": int(tokens),
            "total_requests": count,
            "limit_per_minute": self.requests_per_minute,
        }


# Global chatbot rate limiter (replaced by the app lifespan from env settings)
chatbot_rate_limiter = RateLimiter()


def configure_chatbot_rate_limiter(limiter: RateLimiter | None = None) -> RateLimiter:
    """Install the chatbot rate limiter (from env settings unless given)."""
    global chatbot_rate_limiter
    chatbot_rate_limiter = limiter or RateLimiter.from_env()
    return chatbot_rate_limiter


async def check_chatbot_rate_limit(admin: AdminDB = Depends(get_current_admin)) -> None:
    """FastAPI dependency throttling chatbot calls per administrator.

    Example:
        @router.post("/api/admin/chatbot/query", dependencies=[Depends(check_chatbot_rate_limit)])
        async def chatbot_query(...):
            ...
    """
    await chatbot_rate_limiter.check_rate_limit(admin.email)
