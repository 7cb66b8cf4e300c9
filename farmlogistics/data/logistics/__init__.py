"""
Logistics models: vendor orders, their reservations, and deliveries.
"""

from .order import Order, OrderReservation
from .delivery import Delivery

__all__ = [
    'Order',
    'OrderReservation',
    'Delivery',
]
