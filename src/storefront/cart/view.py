"""Cart view — the owner's cart joined with current product data.

Lines are listed newest first. Prices and stock are read fresh from the
product ledger, so the view always reflects the catalogue as it is now, not
as it was when a line was added. A line whose product has been removed stays
visible with ``product`` set to None: it counts towards the item totals but
contributes nothing to the amount.
"""

from decimal import ROUND_HALF_UP, Decimal

from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.cart.identity import resolve_cart
from storefront.catalogue.product import Product
from storefront.shared.owner import Guest, Owner, User

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def product_view(product: Product) -> dict:
    return {
        "id": str(product.id),
        "name": product.name,
        "description": product.description,
        "category": product.category,
        "price": product.price,
        "stock": product.stock,
        "is_active": product.is_active,
    }


def summarize(lines: list[dict]) -> dict:
    total_items = sum(line["quantity"] for line in lines)
    total_amount = sum(
        (Decimal(str(line["product"]["price"])) * line["quantity"] for line in lines if line["product"]),
        Decimal("0"),
    )
    return {
        "total_items": total_items,
        "total_amount": float(to_money(total_amount)),
        "item_count": len(lines),
        "is_empty": not lines,
    }


def _line_view(item, product: Product | None) -> dict:
    return {
        "id": str(item.id),
        "product_id": str(item.product_id),
        "product_name": product.name if product else item.product_name,
        "quantity": item.quantity,
        "added_at": item.added_at,
        "product": product_view(product) if product else None,
    }


def build_cart_view(cart: ShoppingCart | None, owner: Owner | None = None) -> dict:
    """Render ``cart`` for its owner. With no cart, an empty view of ``owner``."""
    if cart is None:
        return {
            "id": None,
            "user_id": owner.user_id if isinstance(owner, User) else None,
            "session_id": owner.session_id if isinstance(owner, Guest) else None,
            "status": None,
            "created_at": None,
            "updated_at": None,
            "items": [],
            "summary": summarize([]),
        }

    ledger = current_domain.repository_for(Product)
    newest_first = sorted(cart.items, key=lambda item: (item.added_at is not None, item.added_at), reverse=True)
    lines = [_line_view(item, ledger.find(item.product_id)) for item in newest_first]

    return {
        "id": str(cart.id),
        "user_id": str(cart.user_id) if cart.user_id else None,
        "session_id": cart.session_id,
        "status": cart.status,
        "created_at": cart.created_at,
        "updated_at": cart.updated_at,
        "items": lines,
        "summary": summarize(lines),
    }


def cart_view_for(owner: Owner) -> dict:
    """The owner's active cart as a view, without opening a new cart."""
    return build_cart_view(resolve_cart(owner, create=False), owner)


def cart_summary_for(owner: Owner) -> dict:
    return cart_view_for(owner)["summary"]
