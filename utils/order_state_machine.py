"""
Order State Machine for validating order status transitions and maintaining consistency.

This module implements a finite state machine to ensure valid order status transitions
and provide audit logging for all status changes. The order ledger uses the
predecessor sets to build a single conditional UPDATE per transition, so concurrent
webhook deliveries can never apply the same transition twice.
"""

import logging
from typing import Dict, List, Set

from enums.order_status import OrderStatus

logger = logging.getLogger(__name__)


class OrderStatusTransition:
    """Represents a valid status transition with metadata"""

    def __init__(self, from_status: OrderStatus, to_status: OrderStatus, description: str = ""):
        self.from_status = from_status
        self.to_status = to_status
        self.description = description

    def __repr__(self):
        return f"{self.from_status.value} -> {self.to_status.value}"


class OrderStateMachine:
    """
    Finite state machine for order status transitions with validation and audit logging.

    Valid status transitions:
    - PENDING -> PROCESSING (checkout session completed)
    - PENDING -> COMPLETED (payment confirmed directly)
    - PENDING -> CANCELLED (abandoned or gateway failure)
    - PROCESSING -> COMPLETED (payment settled)
    - PROCESSING -> CANCELLED (payment failed)

    Invalid transitions (will be rejected):
    - COMPLETED -> any status (final state)
    - CANCELLED -> any status (final state)
    - any status -> PENDING (orders are only created in PENDING)
    """

    # Define all valid transitions
    VALID_TRANSITIONS: List[OrderStatusTransition] = [
        # From PENDING
        OrderStatusTransition(
            OrderStatus.PENDING,
            OrderStatus.PROCESSING,
            description="Checkout session completed, payment settling"
        ),
        OrderStatusTransition(
            OrderStatus.PENDING,
            OrderStatus.COMPLETED,
            description="Payment confirmed"
        ),
        OrderStatusTransition(
            OrderStatus.PENDING,
            OrderStatus.CANCELLED,
            description="Order abandoned or payment session failed"
        ),

        # From PROCESSING
        OrderStatusTransition(
            OrderStatus.PROCESSING,
            OrderStatus.COMPLETED,
            description="Payment settled"
        ),
        OrderStatusTransition(
            OrderStatus.PROCESSING,
            OrderStatus.CANCELLED,
            description="Payment failed after checkout"
        ),
    ]

    FINAL_STATUSES: Set[OrderStatus] = {
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    }

    # Build transition maps for fast lookup
    _transition_map: Dict[OrderStatus, Set[OrderStatus]] = {}
    _predecessor_map: Dict[OrderStatus, Set[OrderStatus]] = {}

    @classmethod
    def _build_transition_map(cls):
        """Build internal transition maps for performance"""
        if cls._transition_map:
            return  # Already built

        for transition in cls.VALID_TRANSITIONS:
            cls._transition_map.setdefault(transition.from_status, set()).add(transition.to_status)
            cls._predecessor_map.setdefault(transition.to_status, set()).add(transition.from_status)

    @classmethod
    def is_valid_transition(cls, from_status: OrderStatus, to_status: OrderStatus) -> bool:
        """
        Check if a status transition is an edge of the state machine.

        Staying in the same status is not an edge; the ledger reports it as a no-op.

        Args:
            from_status: Current order status
            to_status: Desired new status

        Returns:
            True if transition is valid, False otherwise
        """
        cls._build_transition_map()
        return to_status in cls._transition_map.get(from_status, set())

    @classmethod
    def get_valid_transitions(cls, from_status: OrderStatus) -> List[OrderStatus]:
        """
        Get all valid next statuses from the current status.

        Args:
            from_status: Current order status

        Returns:
            List of valid next statuses
        """
        cls._build_transition_map()
        return sorted(cls._transition_map.get(from_status, set()), key=lambda status: status.value)

    @classmethod
    def get_predecessors(cls, to_status: OrderStatus) -> List[OrderStatus]:
        """
        Get every status an order may be in to move to to_status.

        Args:
            to_status: Desired new status

        Returns:
            List of statuses (empty for PENDING)
        """
        cls._build_transition_map()
        return sorted(cls._predecessor_map.get(to_status, set()), key=lambda status: status.value)

    @classmethod
    def is_final_status(cls, status: OrderStatus) -> bool:
        """
        Check if a status is final (no transitions allowed from it).

        Args:
            status: Order status to check

        Returns:
            True if status is final, False otherwise
        """
        return status in cls.FINAL_STATUSES

    @classmethod
    def is_redundant_transition(cls, current_status: OrderStatus, requested_status: OrderStatus) -> bool:
        """
        Check whether a rejected transition is a harmless repeat.

        Covers duplicate delivery (already in the requested status) and late,
        out-of-order delivery (order already final). Moving back to PENDING is
        never redundant.
        """
        if current_status == requested_status:
            return True
        return cls.is_final_status(current_status) and requested_status != OrderStatus.PENDING

    @classmethod
    def log_transition(cls, order_id: int, to_status: OrderStatus, source: str = "system") -> None:
        """Create audit log entry for an applied status change."""
        from_values = '|'.join(status.value for status in cls.get_predecessors(to_status))
        logger.info(f"ORDER_STATUS_TRANSITION: Order {order_id} {from_values} -> {to_status.value} by {source}")

    @classmethod
    def log_rejected_transition(cls, order_id: int, current_status: OrderStatus, to_status: OrderStatus,
                                source: str = "system") -> None:
        if cls.is_redundant_transition(current_status, to_status):
            logger.info(f"Order {order_id} already {current_status.value}, "
                        f"{to_status.value} from {source} is a no-op")
        else:
            logger.error(f"Invalid status transition for order {order_id}: "
                         f"{current_status.value} -> {to_status.value} (requested by {source})")
