"""Shopping Cart aggregate — one mutable collection of lines per owner.

A cart is owned by exactly one of an authenticated user or a guest session.
It stays Active while it is being shopped, and ends its life either Merged
(a guest cart folded into a user's cart at login) or Converted (checked out
into an order). Both terminal states leave the cart without lines; the owner
gets a fresh cart on the next access.

Stock rules live here too: every line quantity is strictly positive and never
exceeds the stock of the product at the moment of the change.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from storefront.cart.events import (
    CartCleared,
    CartConverted,
    CartCreated,
    CartItemAdded,
    CartItemRemoved,
    CartMergedAway,
    CartQuantityUpdated,
    CartsMerged,
)
from storefront.domain import storefront
from storefront.shared.errors import InvalidState, NotFound, StockConflict
from storefront.shared.owner import Guest, Owner, User


class CartStatus(Enum):
    ACTIVE = "Active"
    MERGED = "Merged"
    CONVERTED = "Converted"


@storefront.entity(part_of="ShoppingCart")
class CartItem:
    cart_id = Identifier(required=True)  # Denormalized for item lookups across carts
    product_id = Identifier(required=True)
    product_name = String(max_length=255)  # Last known name, for messages once a product is gone
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@storefront.aggregate
class ShoppingCart:
    user_id = Identifier()  # Set for authenticated carts
    session_id = String(max_length=255)  # Set for guest carts
    items = HasMany(CartItem)
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def cart_must_have_exactly_one_owner(self):
        if bool(self.user_id) == bool(self.session_id):
            raise ValidationError({"owner": ["A cart belongs to exactly one of a user or a guest session"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, owner: Owner):
        now = datetime.now(UTC)
        if isinstance(owner, User):
            cart = cls(user_id=owner.user_id, status=CartStatus.ACTIVE.value, created_at=now, updated_at=now)
        else:
            cart = cls(session_id=owner.session_id, status=CartStatus.ACTIVE.value, created_at=now, updated_at=now)

        cart.raise_(
            CartCreated(
                cart_id=str(cart.id),
                user_id=cart.user_id,
                session_id=cart.session_id,
                created_at=now,
            )
        )
        return cart

    # -------------------------------------------------------------------
    # Ownership & lookups
    # -------------------------------------------------------------------
    @property
    def owner(self) -> Owner:
        if self.user_id:
            return User(user_id=str(self.user_id))
        return Guest(session_id=self.session_id)

    def belongs_to(self, owner: Owner) -> bool:
        return self.owner == owner

    @property
    def is_active(self) -> bool:
        return CartStatus(self.status) == CartStatus.ACTIVE

    def item_for_product(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def item(self, item_id):
        return next((i for i in self.items if str(i.id) == str(item_id)), None)

    def _ensure_active(self, action):
        if not self.is_active:
            raise InvalidState(f"Cannot {action}: cart is {self.status.lower()}")

    def _touch(self):
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product, quantity):
        """Add ``quantity`` units of ``product``, merging with an existing line.

        The resulting line quantity must not exceed the product's stock.
        """
        self._ensure_active("add items")
        if quantity <= 0:
            raise InvalidState("Quantity must be greater than 0")

        existing = self.item_for_product(product.id)
        if existing:
            target = existing.quantity + quantity
            if not product.can_supply(target):
                raise StockConflict(
                    f"Cannot add {quantity} items. Total would be {target}, but only {product.stock} available"
                )
            existing.quantity = target
            existing.product_name = product.name
            item = existing
        else:
            if not product.can_supply(quantity):
                raise StockConflict(
                    f'Insufficient stock for "{product.name}". Available: {product.stock}, Requested: {quantity}'
                )
            item = CartItem(
                cart_id=str(self.id),
                product_id=str(product.id),
                product_name=product.name,
                quantity=quantity,
                added_at=datetime.now(UTC),
            )
            self.add_items(item)

        self._touch()

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(product.id),
                quantity=quantity,
                line_quantity=item.quantity,
            )
        )
        return item

    def update_item_quantity(self, item_id, new_quantity, product):
        """Overwrite a line's quantity. Zero removes the line; negatives are rejected."""
        self._ensure_active("update items")
        if new_quantity < 0:
            raise InvalidState("Quantity must be greater than 0")

        if new_quantity == 0:
            self.remove_item(item_id)
            return None

        item = self.item(item_id)
        if item is None:
            raise NotFound(f"Cart item with ID {item_id} not found")

        if not product.can_supply(new_quantity):
            raise StockConflict(
                f'Insufficient stock for "{product.name}". Available: {product.stock}, Requested: {new_quantity}'
            )

        previous_quantity = item.quantity
        item.quantity = new_quantity
        item.product_name = product.name
        self._touch()

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )
        return item

    def remove_item(self, item_id):
        self._ensure_active("remove items")

        item = self.item(item_id)
        if item is None:
            raise NotFound(f"Cart item with ID {item_id} not found")

        self.remove_items(item)
        self._touch()

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                item_id=str(item_id),
                product_id=str(item.product_id),
            )
        )

    def _drop_all_items(self):
        removed = list(self.items)
        for item in removed:
            self.remove_items(item)
        return removed

    def clear(self):
        self._ensure_active("clear the cart")

        removed = self._drop_all_items()
        self._touch()

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                items_removed_count=len(removed),
            )
        )

    # -------------------------------------------------------------------
    # Guest cart merging
    # -------------------------------------------------------------------
    def merge_guest_items(self, guest_cart, products, skip_oversold=True):
        """Fold the lines of ``guest_cart`` into this cart.

        ``products`` maps product ids to their current Product (or None when
        the product no longer exists). A product present in both carts ends up
        with the larger of the two quantities, not their sum. A line is only
        taken when current stock covers the resulting quantity; otherwise it
        is skipped, or the merge fails with StockConflict when
        ``skip_oversold`` is false.

        Returns the list of product ids that were skipped.
        """
        self._ensure_active("merge into this cart")

        merged_count = 0
        skipped = []
        now = datetime.now(UTC)

        for guest_item in guest_cart.items:
            product = products.get(str(guest_item.product_id))
            existing = self.item_for_product(guest_item.product_id)
            target = max(existing.quantity, guest_item.quantity) if existing else guest_item.quantity

            if product is None or not product.can_supply(target):
                if not skip_oversold:
                    available = product.stock if product is not None else 0
                    raise StockConflict(
                        f'Cannot merge "{guest_item.product_name or guest_item.product_id}". '
                        f"Total would be {target}, but only {available} available"
                    )
                skipped.append(str(guest_item.product_id))
                continue

            if existing:
                existing.quantity = target
                self.add_items(existing)
            else:
                self.add_items(
                    CartItem(
                        cart_id=str(self.id),
                        product_id=str(guest_item.product_id),
                        product_name=product.name,
                        quantity=guest_item.quantity,
                        added_at=now,
                    )
                )
            merged_count += 1

        self.updated_at = now

        self.raise_(
            CartsMerged(
                cart_id=str(self.id),
                source_cart_id=str(guest_cart.id),
                items_merged_count=merged_count,
                items_skipped=json.dumps(skipped),
            )
        )
        return skipped

    def retire_after_merge(self, target_cart_id):
        """Empty this guest cart and take it out of circulation."""
        self._ensure_active("merge this cart")

        self._drop_all_items()
        self.status = CartStatus.MERGED.value
        self._touch()

        self.raise_(
            CartMergedAway(
                cart_id=str(self.id),
                target_cart_id=str(target_cart_id),
            )
        )

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def convert_to_order(self, order_id):
        """Empty the cart and mark it converted into ``order_id``."""
        self._ensure_active("convert the cart")
        if not self.items:
            raise InvalidState("Cannot checkout with an empty cart")

        items_snapshot = [
            {
                "product_id": str(item.product_id),
                "quantity": item.quantity,
            }
            for item in self.items
        ]

        self._drop_all_items()
        self.status = CartStatus.CONVERTED.value
        self._touch()

        self.raise_(
            CartConverted(
                cart_id=str(self.id),
                order_id=str(order_id),
                user_id=self.user_id,
                items=json.dumps(items_snapshot),
            )
        )
