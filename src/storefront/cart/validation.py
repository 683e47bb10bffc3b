"""Cart stock validation.

Checks every line of a cart against the product ledger as it is right now and
reports all problems at once instead of stopping at the first one. Nothing is
modified; checkout runs the same checks again inside its own transaction.
"""

from dataclasses import dataclass, field

from protean.utils.globals import current_domain

from storefront.cart.cart import ShoppingCart
from storefront.cart.identity import resolve_cart
from storefront.catalogue.product import Product
from storefront.shared.owner import Owner


@dataclass(frozen=True)
class StockReport:
    issues: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues

    def as_dict(self) -> dict:
        return {"is_valid": self.is_valid, "issues": list(self.issues)}


def line_issue(item, product: Product | None) -> str | None:
    """Describe what is wrong with one cart line, or None when it can be bought."""
    if product is None:
        return f'Product "{item.product_name or item.product_id}" is no longer available'
    if not product.is_active:
        return f'Product "{product.name}" is no longer active'
    if not product.can_supply(item.quantity):
        return f'Insufficient stock for "{product.name}". Available: {product.stock}, In cart: {item.quantity}'
    return None


def validate_cart(cart: ShoppingCart | None) -> StockReport:
    if cart is None:
        return StockReport()

    ledger = current_domain.repository_for(Product)
    issues = []
    for item in cart.items:
        issue = line_issue(item, ledger.find(item.product_id))
        if issue:
            issues.append(issue)

    return StockReport(issues=issues)


def validate_stock(owner: Owner) -> StockReport:
    """Validate the owner's active cart. An owner without a cart has nothing to fix."""
    return validate_cart(resolve_cart(owner, create=False))
