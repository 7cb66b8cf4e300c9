"""
Order Query Service
Read-only order listings and analytics.
"""

from typing import Dict, List, Optional, Any
from farmlogistics.data.core.user_info.user import ROLE_ADMIN, ROLE_WAREHOUSE_MANAGER, ROLE_MARKET_VENDOR
from farmlogistics.data.logistics.order import Order
from farmlogistics.buisness.logistics.state_machine import OrderStateMachine
from farmlogistics.buisness.warehousing.errors import AuthorizationError


class OrderQueryService:
    """
    Service for order queries scoped by the caller's role.
    """

    @staticmethod
    def get_orders_by_role(user, status: Optional[str] = None) -> List[Order]:
        """
        Orders visible to a user, newest first.

        Vendors see their own orders, warehouse managers the orders for their
        location, admins everything. A status of None or 'all' means no filter.
        """
        query = Order.query
        if user.role == ROLE_MARKET_VENDOR:
            query = query.filter(Order.vendor_id == user.id)
        elif user.role == ROLE_WAREHOUSE_MANAGER:
            query = query.filter(Order.warehouse_location == user.location)
        elif user.role != ROLE_ADMIN:
            raise AuthorizationError(f"Role {user.role} has no access to orders")

        if status and status != 'all':
            query = query.filter(Order.status == status)

        return query.order_by(Order.created_at.desc(), Order.id.desc()).all()

    @staticmethod
    def get_order_analytics(warehouse_location: Optional[str] = None) -> Dict[str, Any]:
        """
        Counts per status, revenue from delivered orders, average order value
        and fulfillment rate (fulfilled or delivered, as a percentage of all orders).
        """
        query = Order.query
        if warehouse_location:
            query = query.filter(Order.warehouse_location == warehouse_location)
        orders = query.all()

        counts = {status: 0 for status in OrderStateMachine.STATUSES}
        for order in orders:
            counts[order.status] = counts.get(order.status, 0) + 1

        delivered = counts[OrderStateMachine.DELIVERED]
        revenue = sum(o.total_cost or 0 for o in orders if o.status == OrderStateMachine.DELIVERED)
        total = len(orders)

        analytics = {
            'total': total,
            **counts,
            'revenue': revenue,
            'average_order_value': 0,
            'fulfillment_rate': 0,
        }
        if total > 0:
            analytics['average_order_value'] = round(revenue / max(1, delivered), 2)
            analytics['fulfillment_rate'] = round(
                (counts[OrderStateMachine.FULFILLED] + delivered) / total * 100, 1
            )
        return analytics
