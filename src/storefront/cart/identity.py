"""Cart identity resolution — find or create the active cart of an owner."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.cart.cart import CartItem, CartStatus, ShoppingCart
from storefront.domain import logger, storefront
from storefront.shared.owner import Owner, User, owner_from


@storefront.repository(part_of=ShoppingCart)
class ShoppingCartRepository:
    def find_active_for(self, owner: Owner) -> ShoppingCart | None:
        """Return the owner's active cart, or None.

        Should two active carts ever exist for one owner (two concurrent first
        requests), the oldest one wins so every caller converges on the same id.
        """
        if isinstance(owner, User):
            criteria = {"user_id": owner.user_id}
        else:
            criteria = {"session_id": owner.session_id}

        carts = self._dao.query.filter(status=CartStatus.ACTIVE.value, **criteria).all().items
        if not carts:
            return None

        if len(carts) > 1:
            logger.warning("duplicate_active_carts", owner=owner.describe(), count=len(carts))

        oldest = min(carts, key=lambda cart: cart.created_at)
        return self.get(oldest.id)

    def find_by_item(self, item_id) -> ShoppingCart | None:
        """Return the cart holding the line ``item_id``, whoever owns it."""
        lines = current_domain.repository_for(CartItem)._dao.query.filter(id=str(item_id)).all().items
        if not lines:
            return None

        try:
            return self.get(lines[0].cart_id)
        except ObjectNotFoundError:
            return None


def resolve_cart(owner: Owner, create: bool = True) -> ShoppingCart | None:
    """Return the owner's active cart, creating it when ``create`` is set."""
    repo = current_domain.repository_for(ShoppingCart)
    cart = repo.find_active_for(owner)

    if cart is None and create:
        cart = ShoppingCart.create(owner)
        repo.add(cart)
        logger.info("cart_created", cart_id=str(cart.id), owner=owner.describe())

    return cart


@storefront.command(part_of="ShoppingCart")
class ResolveCart:
    """Find or open the cart of a user or a guest session."""

    user_id = Identifier()
    session_id = String(max_length=255)


@storefront.command_handler(part_of=ShoppingCart)
class ResolveCartHandler:
    @handle(ResolveCart)
    def resolve_cart(self, command):
        owner = owner_from(command.user_id, command.session_id)
        return str(resolve_cart(owner).id)
