"""
Logistics business layer: the vendor order lifecycle.
"""

from farmlogistics.buisness.logistics.state_machine import OrderStateMachine
from farmlogistics.buisness.logistics.order_fulfillment import OrderFulfillmentService

__all__ = [
    'OrderStateMachine',
    'OrderFulfillmentService',
]
