from enum import Enum


class RateLimitOperation(str, Enum):
    """
    Rate limit operation types.

    Each operation has its own independent rate limit counter.
    """

    CHECKOUT_CREATE = "checkout_create"
    """
    Rate limit for checkout session creation.
    Config: MAX_CHECKOUTS_PER_USER_PER_HOUR
    Default: 10 checkouts per hour
    """
