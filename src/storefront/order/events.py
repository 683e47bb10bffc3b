"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A user's cart was converted into an order at checkout."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, product_name, quantity, unit_price}
    total = Float(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    """An order was cancelled and its stock handed back to the ledger."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, quantity} restocked
    cancelled_at = DateTime(required=True)
