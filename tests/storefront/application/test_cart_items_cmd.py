"""Application tests for cart item management commands."""

import pytest
from protean import current_domain
from storefront.cart.cart import ShoppingCart
from storefront.cart.identity import ResolveCart, resolve_cart
from storefront.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartItem
from storefront.catalogue.management import DeactivateProduct, RegisterProduct
from storefront.catalogue.product import Product
from storefront.shared.errors import Forbidden, InvalidState, NotFound, StockConflict
from storefront.shared.owner import Guest


def _register_product(**overrides):
    defaults = {"name": "Headphones", "price": 100.0, "stock": 10}
    defaults.update(overrides)
    return current_domain.process(RegisterProduct(**defaults), asynchronous=False)


def _add(product_id, quantity=1, **owner):
    owner = owner or {"user_id": "user-001"}
    return current_domain.process(AddToCart(product_id=product_id, quantity=quantity, **owner), asynchronous=False)


def _cart(**owner):
    cart_id = current_domain.process(ResolveCart(**owner), asynchronous=False)
    return current_domain.repository_for(ShoppingCart).get(cart_id)


class TestAddToCartCommand:
    def test_add_item_persists(self):
        product_id = _register_product()
        _add(product_id, 2)
        cart = _cart(user_id="user-001")
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 2

    def test_returns_refreshed_view(self):
        product_id = _register_product(price=25.0)
        view = _add(product_id, 2)
        assert view["summary"]["total_items"] == 2
        assert view["summary"]["total_amount"] == 50.0
        assert view["items"][0]["product"]["id"] == product_id

    def test_adding_same_product_merges_lines(self):
        product_id = _register_product()
        _add(product_id, 2)
        view = _add(product_id, 3)
        assert len(view["items"]) == 1
        assert view["items"][0]["quantity"] == 5

    def test_guest_can_add(self):
        product_id = _register_product()
        view = _add(product_id, 1, session_id="sess-001")
        assert view["session_id"] == "sess-001"
        assert view["user_id"] is None

    def test_unknown_product(self):
        with pytest.raises(NotFound, match="Product with ID prod-missing not found"):
            _add("prod-missing")

    def test_inactive_product(self):
        product_id = _register_product(name="Retired Lamp")
        current_domain.process(DeactivateProduct(product_id=product_id), asynchronous=False)
        with pytest.raises(InvalidState, match='Product "Retired Lamp" is not available'):
            _add(product_id)

    def test_over_stock_rejected_without_touching_stock(self):
        product_id = _register_product(stock=3)
        _add(product_id, 2)
        with pytest.raises(StockConflict, match="Total would be 4, but only 3 available"):
            _add(product_id, 2)

        assert _cart(user_id="user-001").items[0].quantity == 2
        assert current_domain.repository_for(Product).find(product_id).stock == 3


class TestUpdateCartItemCommand:
    def test_update_quantity_persists(self):
        product_id = _register_product()
        view = _add(product_id, 1)
        item_id = view["items"][0]["id"]

        view = current_domain.process(UpdateCartItem(user_id="user-001", item_id=item_id, quantity=4), asynchronous=False)

        assert view["items"][0]["quantity"] == 4
        assert _cart(user_id="user-001").items[0].quantity == 4

    def test_zero_removes_line(self):
        product_id = _register_product()
        item_id = _add(product_id, 3)["items"][0]["id"]

        view = current_domain.process(UpdateCartItem(user_id="user-001", item_id=item_id, quantity=0), asynchronous=False)

        assert view["items"] == []
        assert view["summary"]["is_empty"] is True

    def test_negative_rejected(self):
        product_id = _register_product()
        item_id = _add(product_id, 3)["items"][0]["id"]
        with pytest.raises(InvalidState, match="Quantity must be greater than 0"):
            current_domain.process(UpdateCartItem(user_id="user-001", item_id=item_id, quantity=-2), asynchronous=False)

    def test_over_stock_rejected(self):
        product_id = _register_product(name="Desk", stock=4)
        item_id = _add(product_id, 1)["items"][0]["id"]
        with pytest.raises(StockConflict, match='Insufficient stock for "Desk". Available: 4, Requested: 9'):
            current_domain.process(UpdateCartItem(user_id="user-001", item_id=item_id, quantity=9), asynchronous=False)

    def test_unknown_item(self):
        with pytest.raises(NotFound, match="Cart item with ID item-missing not found"):
            current_domain.process(
                UpdateCartItem(user_id="user-001", item_id="item-missing", quantity=1), asynchronous=False
            )

    def test_other_owners_item_forbidden(self):
        product_id = _register_product()
        item_id = _add(product_id, 1, session_id="sess-owner")["items"][0]["id"]
        with pytest.raises(Forbidden, match="You can only modify your own cart items"):
            current_domain.process(
                UpdateCartItem(session_id="sess-intruder", item_id=item_id, quantity=2), asynchronous=False
            )
        assert _cart(session_id="sess-owner").items[0].quantity == 1


class TestRemoveFromCartCommand:
    def test_remove_item(self):
        product_id = _register_product()
        item_id = _add(product_id, 1)["items"][0]["id"]

        view = current_domain.process(RemoveFromCart(user_id="user-001", item_id=item_id), asynchronous=False)

        assert view["items"] == []
        assert len(_cart(user_id="user-001").items) == 0

    def test_other_owners_item_forbidden(self):
        product_id = _register_product()
        item_id = _add(product_id, 1, user_id="user-owner")["items"][0]["id"]
        with pytest.raises(Forbidden):
            current_domain.process(RemoveFromCart(user_id="user-intruder", item_id=item_id), asynchronous=False)


class TestClearCartCommand:
    def test_clear(self):
        _add(_register_product(name="A"), 1)
        _add(_register_product(name="B"), 2)

        view = current_domain.process(ClearCart(user_id="user-001"), asynchronous=False)

        assert view["summary"]["is_empty"] is True
        assert len(_cart(user_id="user-001").items) == 0

    def test_clear_without_cart_is_noop(self):
        view = current_domain.process(ClearCart(session_id="sess-empty"), asynchronous=False)

        assert view["items"] == []
        assert view["id"] is None
        assert resolve_cart(Guest(session_id="sess-empty"), create=False) is None
