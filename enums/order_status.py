from enum import Enum


class OrderStatus(Enum):
    PENDING = "PENDING"          # Created at checkout, waiting for the gateway
    PROCESSING = "PROCESSING"    # Checkout session completed, payment settling
    COMPLETED = "COMPLETED"      # Payment confirmed
    CANCELLED = "CANCELLED"      # Abandoned or gateway failure
