"""
Rate Limiting

Protects the checkout endpoint from abuse using Redis-based rate limiting.

Features:
- Per-user fixed-window counters
- Automatic expiry using Redis TTL
- Fails open when Redis is unreachable

Configuration:
- REDIS_URL: Redis connection URL (rate limiting is disabled when empty)
- MAX_CHECKOUTS_PER_USER_PER_HOUR: Maximum checkout sessions per user per hour
"""

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from exceptions.auth import CheckoutRateLimitedException

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Redis-based rate limiter for specific operations.

    Usage:
        limiter = RateLimiter(redis)
        if await limiter.is_rate_limited("checkout_create", user_id, max_count=5, window_seconds=3600):
            # User exceeded rate limit
            pass
    """

    def __init__(self, redis: Redis):
        """
        Initialize rate limiter.

        Args:
            redis: Redis client
        """
        self.redis = redis

    async def is_rate_limited(
        self,
        operation: str,
        user_id: str,
        max_count: int,
        window_seconds: int
    ) -> tuple[bool, int, int]:
        """
        Check if user has exceeded rate limit for an operation.

        Args:
            operation: Operation name (e.g., "checkout_create")
            user_id: Identity provider user id
            max_count: Maximum allowed operations in time window
            window_seconds: Time window in seconds

        Returns:
            Tuple of (is_limited, current_count, remaining_count)
            - is_limited: True if user has exceeded the limit
            - current_count: Current number of operations in window
            - remaining_count: Number of operations remaining (0 if limited)
        """
        # Redis key: rate_limit:{operation}:{user_id}
        key = f"rate_limit:{operation}:{user_id}"

        try:
            # Increment counter (creates key if doesn't exist)
            current_count = await self.redis.incr(key)

            # Set expiry on first increment
            if current_count == 1:
                await self.redis.expire(key, window_seconds)

            is_limited = current_count > max_count
            remaining = max(0, max_count - current_count)

            if is_limited:
                ttl = await self.redis.ttl(key)
                logger.warning(
                    f"Rate limit exceeded: user={user_id}, operation={operation}, "
                    f"count={current_count}/{max_count}, resets_in={ttl}s"
                )

            return is_limited, current_count, remaining

        except RedisError as e:
            # If Redis fails, don't block the operation (fail open)
            logger.error(f"Rate limiter error: {e}")
            return False, 0, max_count

    async def enforce(self, operation: str, user_id: str, max_count: int, window_seconds: int) -> None:
        """
        Raise when the user is over the limit.

        Raises:
            CheckoutRateLimitedException: with the seconds left until the window resets
        """
        is_limited, _, _ = await self.is_rate_limited(operation, user_id, max_count, window_seconds)
        if is_limited:
            raise CheckoutRateLimitedException(user_id, await self.get_remaining_time(operation, user_id))

    async def reset_limit(self, operation: str, user_id: str):
        """
        Reset rate limit counter for a user.

        Args:
            operation: Operation name
            user_id: Identity provider user id
        """
        key = f"rate_limit:{operation}:{user_id}"
        await self.redis.delete(key)
        logger.info(f"Rate limit reset: user={user_id}, operation={operation}")

    async def get_remaining_time(self, operation: str, user_id: str) -> int:
        """
        Get remaining time until rate limit resets.

        Returns:
            Remaining seconds until reset (0 if not rate limited)
        """
        key = f"rate_limit:{operation}:{user_id}"
        try:
            ttl = await self.redis.ttl(key)
        except RedisError as e:
            logger.error(f"Rate limiter error: {e}")
            return 0
        return max(0, ttl)
