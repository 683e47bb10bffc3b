"""Product aggregate and the stock ledger repository.

The ledger is the single writer of product stock during checkout. Stock is
never written as a blind read-then-write: every change is a compare-and-set
on the stored value, retried a bounded number of times when another writer
got there first.
"""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from storefront.catalogue.events import (
    ProductActivated,
    ProductDeactivated,
    ProductPriceChanged,
    ProductRegistered,
)
from storefront.domain import logger, storefront
from storefront.shared.errors import NotFound, StockConflict
from storefront.utils.settings import stock_cas_retries


@storefront.aggregate
class Product:
    name = String(required=True, max_length=255)
    description = Text()
    category = String(max_length=100)
    price = Float(required=True, min_value=0.0)
    stock = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def register(cls, name, price, stock=0, description=None, category=None, is_active=True):
        now = datetime.now(UTC)
        product = cls(
            name=name,
            description=description,
            category=category,
            price=price,
            stock=stock,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductRegistered(
                product_id=str(product.id),
                name=name,
                price=price,
                stock=stock,
                is_active=is_active,
                registered_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def can_supply(self, quantity) -> bool:
        """True if the current stock covers ``quantity`` units."""
        return self.stock >= quantity

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def change_price(self, new_price):
        if new_price < 0:
            raise ValidationError({"price": ["Price cannot be negative"]})

        previous = self.price
        self.price = new_price
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ProductPriceChanged(
                product_id=str(self.id),
                previous_price=previous,
                new_price=new_price,
            )
        )

    def activate(self):
        if self.is_active:
            raise ValidationError({"is_active": ["Product is already active"]})
        self.is_active = True
        self.updated_at = datetime.now(UTC)
        self.raise_(ProductActivated(product_id=str(self.id)))

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Product is already inactive"]})
        self.is_active = False
        self.updated_at = datetime.now(UTC)
        self.raise_(ProductDeactivated(product_id=str(self.id)))


@storefront.repository(part_of=Product)
class ProductLedger:
    """Point lookups and atomic stock movements over stored products."""

    def find(self, product_id) -> Product | None:
        """Fresh read of a product from the store, or None if it does not exist."""
        try:
            return self._dao.get(str(product_id))
        except ObjectNotFoundError:
            return None

    def decrement_stock(self, product_id, quantity) -> int:
        """Take ``quantity`` units out of stock and return the remaining stock.

        Raises NotFound if the product is gone and StockConflict if the stock
        does not cover the amount, or kept changing under every attempt.
        """
        for _ in range(stock_cas_retries()):
            product = self.find(product_id)
            if product is None:
                raise NotFound(f"Product with ID {product_id} not found")
            if not product.can_supply(quantity):
                raise StockConflict(
                    f'Insufficient stock for "{product.name}". Available: {product.stock}, Requested: {quantity}'
                )

            remaining = product.stock - quantity
            if self._compare_and_set_stock(product_id, product.stock, remaining):
                return remaining

            logger.warning(
                "stock_cas_lost",
                product_id=str(product_id),
                expected=product.stock,
                quantity=quantity,
            )

        raise StockConflict(f"Stock for product {product_id} changed concurrently, please retry")

    def increment_stock(self, product_id, quantity) -> int:
        """Return ``quantity`` units to stock and return the new stock."""
        for _ in range(stock_cas_retries()):
            product = self.find(product_id)
            if product is None:
                raise NotFound(f"Product with ID {product_id} not found")

            restored = product.stock + quantity
            if self._compare_and_set_stock(product_id, product.stock, restored):
                return restored

        raise StockConflict(f"Stock for product {product_id} changed concurrently, please retry")

    def _compare_and_set_stock(self, product_id, expected, new) -> bool:
        updated = self._dao.query.filter(id=str(product_id), stock=expected).update_all(stock=new)
        return updated > 0
