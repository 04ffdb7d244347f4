"""Order history: the read side of a customer's placed orders."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.config import settings
from ordering.order.order import Order


def orders_for_customer(customer_id, limit=None):
    """Placed orders for a customer, newest first."""
    limit = limit or settings().order_history_limit
    orders = current_domain.repository_for(Order)._dao.query.filter(customer_id=str(customer_id)).all().items
    return sorted(orders, key=lambda order: order.created_at, reverse=True)[:limit]


def find_order(order_id):
    try:
        return current_domain.repository_for(Order).get(str(order_id))
    except ObjectNotFoundError:
        return None
