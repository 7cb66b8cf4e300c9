"""
State machine for the vendor order lifecycle

Encodes valid transitions; persistence and side effects live in OrderFulfillmentService.
"""

from typing import Dict, Set
from farmlogistics.buisness.warehousing.errors import OrderTransitionError


class OrderStateMachine:
    """
    State machine for Order.status transitions.

    pending -> approved -> fulfilled -> in_delivery -> delivered
    pending -> rejected
    pending / approved -> cancelled (by the vendor)
    fulfilled / in_delivery -> cancelled (when the paired delivery is cancelled)
    """

    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    FULFILLED = 'fulfilled'
    IN_DELIVERY = 'in_delivery'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'

    STATUSES = (PENDING, APPROVED, REJECTED, FULFILLED, IN_DELIVERY, DELIVERED, CANCELLED)

    TERMINAL_STATES = {DELIVERED, REJECTED, CANCELLED}

    # Statuses from which the vendor may still cancel
    VENDOR_CANCELLABLE = {PENDING, APPROVED}

    # Statuses whose reservations still hold lots
    RESERVING_STATES = {PENDING, APPROVED}

    TRANSITIONS: Dict[str, Set[str]] = {
        PENDING: {APPROVED, REJECTED, CANCELLED},
        APPROVED: {FULFILLED, CANCELLED},
        FULFILLED: {IN_DELIVERY, DELIVERED, CANCELLED},
        IN_DELIVERY: {DELIVERED, CANCELLED},
        # DELIVERED, REJECTED and CANCELLED are terminal
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        if from_status == to_status:
            return True
        if from_status in cls.TERMINAL_STATES:
            return False
        return to_status in cls.TRANSITIONS.get(from_status, set())

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """
        Raises:
            OrderTransitionError: If transition is not allowed
        """
        if not cls.can_transition(from_status, to_status):
            raise OrderTransitionError(f"Invalid order status transition: {from_status} → {to_status}")

    @classmethod
    def get_allowed_transitions(cls, from_status: str) -> Set[str]:
        if from_status in cls.TERMINAL_STATES:
            return set()
        return cls.TRANSITIONS.get(from_status, set())


# Delivery status -> order status it drives
DELIVERY_STATUS_TO_ORDER_STATUS = {
    'assigned': OrderStateMachine.IN_DELIVERY,
    'in_transit': OrderStateMachine.IN_DELIVERY,
    'delivered': OrderStateMachine.DELIVERED,
    'cancelled': OrderStateMachine.CANCELLED,
}

PRIORITY_TO_URGENCY = {
    'low': 'low',
    'normal': 'normal',
    'high': 'high',
    'urgent': 'urgent',
}


def map_priority_to_urgency(priority):
    return PRIORITY_TO_URGENCY.get(priority, 'normal')
