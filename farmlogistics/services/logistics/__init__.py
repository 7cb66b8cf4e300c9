"""
Logistics Services
Read-only services for order listings and analytics.
"""

from .order_query_service import OrderQueryService

__all__ = [
    'OrderQueryService',
]
