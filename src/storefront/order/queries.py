"""Read side of orders: single order, filtered per-user history and stats."""

from datetime import UTC, datetime
from decimal import Decimal

from protean.utils.globals import current_domain

from storefront.cart.view import to_money
from storefront.order.cancellation import load_owned_order
from storefront.order.order import Order, OrderStatus
from storefront.shared.errors import InvalidRequest

SORT_ORDERS = ("asc", "desc")


def order_view(order: Order) -> dict:
    return {
        "id": str(order.id),
        "user_id": str(order.user_id),
        "cart_id": str(order.cart_id) if order.cart_id else None,
        "status": order.status,
        "total": order.total,
        "notes": order.notes,
        "placed_at": order.placed_at,
        "cancelled_at": order.cancelled_at,
        "items": [
            {
                "id": str(item.id),
                "product_id": str(item.product_id),
                "product_name": item.product_name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "line_total": item.line_total,
            }
            for item in order.items
        ],
    }


def get_order(order_id, user_id) -> dict:
    return order_view(load_owned_order(order_id, user_id))


def _orders_of(user_id) -> list[Order]:
    if not user_id:
        raise InvalidRequest("Orders are only available to authenticated users")
    return current_domain.repository_for(Order).for_user(user_id)


def _as_utc(moment: datetime) -> datetime:
    # SQL providers may hand back naive timestamps; they are stored in UTC
    return moment.replace(tzinfo=UTC) if moment.tzinfo is None else moment


_SORT_KEYS = {
    "placed_at": lambda order: _as_utc(order.placed_at),
    "total": lambda order: to_money(order.total),
}


def list_orders(
    user_id,
    status: str | None = None,
    placed_from: datetime | None = None,
    placed_to: datetime | None = None,
    min_total: float | None = None,
    max_total: float | None = None,
    sort_by: str = "placed_at",
    sort_order: str = "desc",
) -> list[dict]:
    """Return the user's orders, optionally filtered and sorted.

    Date and total bounds are inclusive. Defaults to newest first.
    """
    if status is not None and status not in {s.value for s in OrderStatus}:
        raise InvalidRequest(f"Unknown order status: {status}")
    if sort_by not in _SORT_KEYS:
        raise InvalidRequest(f"Orders can only be sorted by {', '.join(_SORT_KEYS)}")
    if sort_order not in SORT_ORDERS:
        raise InvalidRequest("Sort order must be asc or desc")

    orders = _orders_of(user_id)
    if status is not None:
        orders = [order for order in orders if order.status == status]
    if placed_from is not None:
        orders = [order for order in orders if _as_utc(order.placed_at) >= _as_utc(placed_from)]
    if placed_to is not None:
        orders = [order for order in orders if _as_utc(order.placed_at) <= _as_utc(placed_to)]
    if min_total is not None:
        orders = [order for order in orders if to_money(order.total) >= to_money(min_total)]
    if max_total is not None:
        orders = [order for order in orders if to_money(order.total) <= to_money(max_total)]

    orders = sorted(orders, key=_SORT_KEYS[sort_by], reverse=sort_order == "desc")

    return [order_view(order) for order in orders]


def order_stats(user_id) -> dict:
    """Counts per status plus spend across the user's orders that were not cancelled."""
    orders = _orders_of(user_id)
    live = [order for order in orders if order.status != OrderStatus.CANCELLED.value]

    total_spent = sum((to_money(order.total) for order in live), Decimal("0"))
    average = to_money(total_spent / len(live)) if live else Decimal("0")

    return {
        "total_orders": len(orders),
        "pending_orders": sum(1 for order in orders if order.status == OrderStatus.PENDING.value),
        "cancelled_orders": len(orders) - len(live),
        "total_spent": float(total_spent),
        "average_order_value": float(average),
    }
