from enum import Enum


class WebhookResultStatus(str, Enum):
    PROCESSED = "processed"    # Order status transitioned
    DUPLICATE = "duplicate"    # Redelivery, order already past this point
    IGNORED = "ignored"        # Event type we do not reconcile
    REJECTED = "rejected"      # Logged and acknowledged, never retried
