"""Cart checkout: converts a user's cart into an order in one unit of work.

Checkout runs in two passes. The first re-reads every product, checks it, and
prices the lines; the second takes the stock out of the ledger with atomic
compare-and-set decrements. Only then are the order and the converted cart
persisted. Any failure raises out of the handler and the unit of work is
discarded: no order, no stock movement, the cart as it was.
"""

from decimal import Decimal

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.cart.identity import resolve_cart
from storefront.cart.validation import line_issue, validate_cart
from storefront.cart.view import to_money
from storefront.catalogue.product import Product
from storefront.domain import logger, storefront
from storefront.order.order import Order
from storefront.shared.errors import InvalidState
from storefront.shared.owner import owner_from, require_user


@storefront.command(part_of="Order")
class CheckoutCart:
    user_id = Identifier()
    session_id = String(max_length=255)


def _price_lines(cart):
    """Re-read and check every product, then snapshot the priced order lines."""
    ledger = current_domain.repository_for(Product)
    lines = []
    total = Decimal("0")

    for item in cart.items:
        product = ledger.find(item.product_id)
        issue = line_issue(item, product)
        if issue:
            raise InvalidState(issue)

        unit_price = Decimal(str(product.price))
        line_total = unit_price * item.quantity
        total += line_total
        lines.append(
            {
                "product_id": str(product.id),
                "product_name": product.name,
                "quantity": item.quantity,
                "unit_price": to_money(unit_price),
                "line_total": to_money(line_total),
            }
        )

    return lines, to_money(total)


@storefront.command_handler(part_of=Order)
class CheckoutHandler:
    @handle(CheckoutCart)
    def checkout(self, command):
        user = require_user(owner_from(command.user_id, command.session_id), "Checkout")

        cart = resolve_cart(user, create=False)
        if cart is None or not cart.items:
            raise InvalidState("Cannot checkout with an empty cart")

        report = validate_cart(cart)
        if not report.is_valid:
            raise InvalidState(f"Cart validation failed: {', '.join(report.issues)}")

        lines, total = _price_lines(cart)

        ledger = current_domain.repository_for(Product)
        for line in lines:
            ledger.decrement_stock(line["product_id"], line["quantity"])

        order = Order.place(user.user_id, cart.id, lines, total)
        current_domain.repository_for(Order).add(order)

        cart.convert_to_order(order.id)
        current_domain.repository_for(ShoppingCart).add(cart)

        logger.info(
            "cart_checked_out",
            order_id=str(order.id),
            cart_id=str(cart.id),
            user_id=user.user_id,
            total=float(total),
            line_count=len(lines),
        )
        return str(order.id)
