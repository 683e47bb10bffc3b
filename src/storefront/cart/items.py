"""Cart item management — commands and handler.

Every command names its owner (a user id or a guest session id) rather than a
cart id; the owner's active cart is resolved, or opened, on the way in. Each
handler returns the refreshed cart view.
"""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.cart.identity import resolve_cart
from storefront.cart.view import build_cart_view
from storefront.catalogue.product import Product
from storefront.domain import logger, storefront
from storefront.shared.errors import Forbidden, InvalidState, NotFound
from storefront.shared.owner import owner_from


@storefront.command(part_of="ShoppingCart")
class AddToCart:
    user_id = Identifier()
    session_id = String(max_length=255)
    product_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1)


@storefront.command(part_of="ShoppingCart")
class UpdateCartItem:
    user_id = Identifier()
    session_id = String(max_length=255)
    item_id = Identifier(required=True)
    quantity = Integer(required=True)  # Zero removes the line


@storefront.command(part_of="ShoppingCart")
class RemoveFromCart:
    user_id = Identifier()
    session_id = String(max_length=255)
    item_id = Identifier(required=True)


@storefront.command(part_of="ShoppingCart")
class ClearCart:
    user_id = Identifier()
    session_id = String(max_length=255)


def _owned_cart_for_item(owner, item_id) -> ShoppingCart:
    cart = current_domain.repository_for(ShoppingCart).find_by_item(item_id)
    if cart is None or cart.item(item_id) is None:
        raise NotFound(f"Cart item with ID {item_id} not found")
    if not cart.belongs_to(owner):
        logger.warning("cart_item_access_denied", item_id=str(item_id), owner=owner.describe())
        raise Forbidden("You can only modify your own cart items")
    return cart


@storefront.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        owner = owner_from(command.user_id, command.session_id)

        product = current_domain.repository_for(Product).find(command.product_id)
        if product is None:
            raise NotFound(f"Product with ID {command.product_id} not found")
        if not product.is_active:
            raise InvalidState(f'Product "{product.name}" is not available')

        cart = resolve_cart(owner)
        item = cart.add_item(product, command.quantity)
        current_domain.repository_for(ShoppingCart).add(cart)

        logger.info(
            "cart_item_added",
            cart_id=str(cart.id),
            product_id=str(product.id),
            quantity=command.quantity,
            line_quantity=item.quantity,
        )
        return build_cart_view(cart, owner)

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        owner = owner_from(command.user_id, command.session_id)
        if command.quantity < 0:
            raise InvalidState("Quantity must be greater than 0")

        cart = _owned_cart_for_item(owner, command.item_id)
        if command.quantity == 0:
            cart.remove_item(command.item_id)
        else:
            line = cart.item(command.item_id)
            product = current_domain.repository_for(Product).find(line.product_id)
            if product is None:
                raise NotFound(f"Product with ID {line.product_id} not found")
            cart.update_item_quantity(command.item_id, command.quantity, product)

        current_domain.repository_for(ShoppingCart).add(cart)

        logger.info("cart_item_updated", cart_id=str(cart.id), item_id=str(command.item_id), quantity=command.quantity)
        return build_cart_view(cart, owner)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        owner = owner_from(command.user_id, command.session_id)

        cart = _owned_cart_for_item(owner, command.item_id)
        cart.remove_item(command.item_id)
        current_domain.repository_for(ShoppingCart).add(cart)

        logger.info("cart_item_removed", cart_id=str(cart.id), item_id=str(command.item_id))
        return build_cart_view(cart, owner)

    @handle(ClearCart)
    def clear_cart(self, command):
        owner = owner_from(command.user_id, command.session_id)

        cart = resolve_cart(owner, create=False)
        if cart is None:
            return build_cart_view(None, owner)

        cart.clear()
        current_domain.repository_for(ShoppingCart).add(cart)

        logger.info("cart_cleared", cart_id=str(cart.id))
        return build_cart_view(cart, owner)
