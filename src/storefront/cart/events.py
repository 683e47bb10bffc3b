"""Domain events for the ShoppingCart aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="ShoppingCart")
class CartCreated:
    """A cart was opened for a user or a guest session."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    user_id = Identifier()
    session_id = String(max_length=255)
    created_at = DateTime(required=True)


@storefront.event(part_of="ShoppingCart")
class CartItemAdded:
    """A product was added to the cart, or its line quantity increased."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    line_quantity = Integer(required=True)


@storefront.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="ShoppingCart")
class CartItemRemoved:
    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.event(part_of="ShoppingCart")
class CartCleared:
    __version__ = "v1"

    cart_id = Identifier(required=True)
    items_removed_count = Integer(required=True)


@storefront.event(part_of="ShoppingCart")
class CartsMerged:
    """A guest cart's lines were folded into a user's cart."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    source_cart_id = Identifier(required=True)
    items_merged_count = Integer(required=True)
    items_skipped = Text()  # JSON: list of product ids left behind


@storefront.event(part_of="ShoppingCart")
class CartMergedAway:
    """A guest cart was retired after its lines moved to another cart."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    target_cart_id = Identifier(required=True)


@storefront.event(part_of="ShoppingCart")
class CartConverted:
    """A cart was converted into an order at checkout."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    order_id = Identifier(required=True)
    user_id = Identifier()
    items = Text(required=True)  # JSON: list of {product_id, quantity}
