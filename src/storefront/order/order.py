"""Order aggregate — the immutable record of a checkout.

An order snapshots each cart line with the product name and unit price in
force at the moment of checkout, so later catalogue changes never alter it.
The only transition after placement is cancellation, which hands the stock
back to the ledger.

State Machine:
    PENDING → CANCELLED
"""

import json
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.order.events import OrderCancelled, OrderPlaced
from storefront.shared.errors import InvalidState

ORDER_NOTE = "Order created from cart"


class OrderStatus(Enum):
    PENDING = "Pending"
    CANCELLED = "Cancelled"


@storefront.entity(part_of="Order")
class OrderItem:
    """A line of an order: product, quantity and the price paid per unit."""

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    line_total = Float(required=True, min_value=0.0)


@storefront.aggregate
class Order:
    user_id = Identifier(required=True)
    cart_id = Identifier()
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    items = HasMany(OrderItem)
    total = Float(required=True, min_value=0.0)
    notes = Text()
    placed_at = DateTime()
    cancelled_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, user_id, cart_id, lines, total: Decimal):
        """Create a pending order.

        ``lines`` is a list of dicts with product_id, product_name, quantity,
        unit_price and line_total, as priced by checkout.
        """
        now = datetime.now(UTC)
        order = cls(
            user_id=str(user_id),
            cart_id=str(cart_id),
            status=OrderStatus.PENDING.value,
            total=float(total),
            notes=ORDER_NOTE,
            placed_at=now,
            updated_at=now,
        )
        for line in lines:
            order.add_items(
                OrderItem(
                    product_id=str(line["product_id"]),
                    product_name=line["product_name"],
                    quantity=line["quantity"],
                    unit_price=float(line["unit_price"]),
                    line_total=float(line["line_total"]),
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(user_id),
                cart_id=str(cart_id),
                items=json.dumps(
                    [
                        {
                            "product_id": str(item.product_id),
                            "product_name": item.product_name,
                            "quantity": item.quantity,
                            "unit_price": item.unit_price,
                        }
                        for item in order.items
                    ]
                ),
                total=order.total,
                placed_at=now,
            )
        )
        return order

    def belongs_to(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    @property
    def is_cancelled(self) -> bool:
        return OrderStatus(self.status) == OrderStatus.CANCELLED

    def cancel(self):
        if self.is_cancelled:
            raise InvalidState("Order is already cancelled")

        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancelled_at = now
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                user_id=str(self.user_id),
                items=json.dumps([{"product_id": str(i.product_id), "quantity": i.quantity} for i in self.items]),
                cancelled_at=now,
            )
        )


@storefront.repository(part_of=Order)
class OrderRepository:
    def for_user(self, user_id) -> list[Order]:
        """All orders of ``user_id``, newest first."""
        orders = self._dao.query.filter(user_id=str(user_id)).all().items
        return sorted(orders, key=lambda order: order.placed_at, reverse=True)
