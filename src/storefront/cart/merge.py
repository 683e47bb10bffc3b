"""Folds a guest session's cart into a user's cart at login."""

from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.cart.identity import resolve_cart
from storefront.cart.view import build_cart_view
from storefront.catalogue.product import Product
from storefront.domain import logger, storefront
from storefront.shared.errors import InvalidRequest
from storefront.shared.owner import Guest, User
from storefront.utils import settings


@storefront.command(part_of="ShoppingCart")
class MergeCarts:
    user_id = Identifier()
    session_id = String(max_length=255)
    skip_oversold = Boolean()  # Unset falls back to the MERGE_SKIP_OVERSOLD setting


@storefront.command_handler(part_of=ShoppingCart)
class MergeCartsHandler:
    @handle(MergeCarts)
    def merge_carts(self, command):
        if not command.user_id or not command.session_id:
            raise InvalidRequest("Merging carts requires both an authenticated user and a guest session ID")

        user = User(user_id=str(command.user_id))
        guest = Guest(session_id=command.session_id)
        skip_oversold = settings.merge_skip_oversold() if command.skip_oversold is None else command.skip_oversold

        repo = current_domain.repository_for(ShoppingCart)
        guest_cart = resolve_cart(guest, create=False)
        user_cart = resolve_cart(user)

        if guest_cart is None or not guest_cart.items:
            logger.info("cart_merge_skipped", user_cart_id=str(user_cart.id), reason="guest cart empty")
            return build_cart_view(user_cart, user)

        ledger = current_domain.repository_for(Product)
        products = {str(item.product_id): ledger.find(item.product_id) for item in guest_cart.items}

        skipped = user_cart.merge_guest_items(guest_cart, products, skip_oversold=skip_oversold)
        guest_cart.retire_after_merge(user_cart.id)

        repo.add(user_cart)
        repo.add(guest_cart)

        logger.info(
            "carts_merged",
            user_cart_id=str(user_cart.id),
            guest_cart_id=str(guest_cart.id),
            skipped=skipped,
        )
        return build_cart_view(user_cart, user)
