"""Application tests for order queries and cancellation."""

from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from storefront.cart.items import AddToCart
from storefront.catalogue.management import RegisterProduct, RemoveProduct
from storefront.catalogue.product import Product
from storefront.order.cancellation import CancelOrder
from storefront.order.checkout import CheckoutCart
from storefront.order.order import Order, OrderStatus
from storefront.order.queries import get_order, list_orders, order_stats
from storefront.shared.errors import Forbidden, InvalidRequest, InvalidState, NotFound


def _register_product(**overrides):
    defaults = {"name": "Headphones", "price": 100.0, "stock": 10}
    defaults.update(overrides)
    return current_domain.process(RegisterProduct(**defaults), asynchronous=False)


def _place_order(user_id="user-001", lines=None):
    for product_id, quantity in lines or []:
        current_domain.process(
            AddToCart(user_id=user_id, product_id=product_id, quantity=quantity), asynchronous=False
        )
    return current_domain.process(CheckoutCart(user_id=user_id), asynchronous=False)


def _stock(product_id):
    return current_domain.repository_for(Product).find(product_id).stock


class TestCancelOrder:
    def test_cancel_restocks(self):
        product_id = _register_product(stock=10)
        order_id = _place_order(lines=[(product_id, 4)])
        assert _stock(product_id) == 6

        current_domain.process(CancelOrder(order_id=order_id, user_id="user-001"), asynchronous=False)

        assert _stock(product_id) == 10
        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.CANCELLED.value

    def test_cancel_twice_rejected(self):
        product_id = _register_product(stock=10)
        order_id = _place_order(lines=[(product_id, 4)])
        current_domain.process(CancelOrder(order_id=order_id, user_id="user-001"), asynchronous=False)

        with pytest.raises(InvalidState, match="Order is already cancelled"):
            current_domain.process(CancelOrder(order_id=order_id, user_id="user-001"), asynchronous=False)
        assert _stock(product_id) == 10

    def test_removed_product_skipped(self):
        kept = _register_product(name="Kept", stock=10)
        gone = _register_product(name="Gone", stock=10)
        order_id = _place_order(lines=[(kept, 2), (gone, 1)])
        current_domain.process(RemoveProduct(product_id=gone), asynchronous=False)

        current_domain.process(CancelOrder(order_id=order_id, user_id="user-001"), asynchronous=False)

        assert _stock(kept) == 10
        assert current_domain.repository_for(Product).find(gone) is None

    def test_other_user_forbidden(self):
        product_id = _register_product()
        order_id = _place_order(lines=[(product_id, 1)])
        with pytest.raises(Forbidden):
            current_domain.process(CancelOrder(order_id=order_id, user_id="user-002"), asynchronous=False)

    def test_unknown_order(self):
        with pytest.raises(NotFound, match="Order with ID order-missing not found"):
            current_domain.process(CancelOrder(order_id="order-missing", user_id="user-001"), asynchronous=False)


class TestOrderQueries:
    def test_get_order(self):
        product_id = _register_product(name="Cable", price=12.5)
        order_id = _place_order(lines=[(product_id, 2)])

        view = get_order(order_id, "user-001")

        assert view["id"] == order_id
        assert view["total"] == 25.0
        assert view["notes"] == "Order created from cart"
        assert view["items"][0]["product_name"] == "Cable"
        assert view["items"][0]["unit_price"] == 12.5

    def test_get_other_users_order_forbidden(self):
        product_id = _register_product()
        order_id = _place_order(lines=[(product_id, 1)])
        with pytest.raises(Forbidden, match="You can only access your own orders"):
            get_order(order_id, "user-002")

    def test_list_newest_first(self):
        product_id = _register_product(stock=10)
        first = _place_order(lines=[(product_id, 1)])
        second = _place_order(lines=[(product_id, 1)])

        orders = list_orders("user-001")

        assert [order["id"] for order in orders] == [second, first]

    def test_list_only_own_orders(self):
        product_id = _register_product(stock=10)
        _place_order(user_id="user-other", lines=[(product_id, 1)])
        assert list_orders("user-001") == []

    def test_list_requires_user(self):
        with pytest.raises(InvalidRequest):
            list_orders(None)


def _three_orders():
    """Orders totalling 100, 200 and 300; the 200 one is cancelled."""
    product_id = _register_product(price=100.0, stock=20)
    small = _place_order(lines=[(product_id, 1)])
    middle = _place_order(lines=[(product_id, 2)])
    large = _place_order(lines=[(product_id, 3)])
    current_domain.process(CancelOrder(order_id=middle, user_id="user-001"), asynchronous=False)
    return small, middle, large


def _backdate(order_id, days):
    repo = current_domain.repository_for(Order)
    order = repo.get(order_id)
    order.placed_at = datetime.now(UTC) - timedelta(days=days)
    repo.add(order)


class TestOrderHistoryFilters:
    def test_filter_by_status(self):
        small, middle, large = _three_orders()

        assert [o["id"] for o in list_orders("user-001", status="Cancelled")] == [middle]
        assert {o["id"] for o in list_orders("user-001", status="Pending")} == {small, large}

    def test_unknown_status_rejected(self):
        with pytest.raises(InvalidRequest, match="Unknown order status: Shipped"):
            list_orders("user-001", status="Shipped")

    def test_total_bounds_are_inclusive(self):
        small, middle, large = _three_orders()

        orders = list_orders("user-001", min_total=200.0, max_total=300.0)

        assert {o["id"] for o in orders} == {middle, large}

    def test_date_range(self):
        small, middle, large = _three_orders()
        _backdate(small, 10)
        _backdate(middle, 5)
        now = datetime.now(UTC)

        recent = list_orders("user-001", placed_from=now - timedelta(days=7))
        older = list_orders("user-001", placed_to=now - timedelta(days=7))

        assert {o["id"] for o in recent} == {middle, large}
        assert [o["id"] for o in older] == [small]

    def test_naive_bounds_treated_as_utc(self):
        _three_orders()
        tomorrow = (datetime.now(UTC) + timedelta(days=1)).replace(tzinfo=None)

        assert list_orders("user-001", placed_from=tomorrow) == []
        assert len(list_orders("user-001", placed_to=tomorrow)) == 3

    def test_sort_by_total_ascending(self):
        small, middle, large = _three_orders()

        orders = list_orders("user-001", sort_by="total", sort_order="asc")

        assert [o["id"] for o in orders] == [small, middle, large]

    def test_oldest_first(self):
        small, middle, large = _three_orders()
        _backdate(small, 3)
        _backdate(middle, 2)
        _backdate(large, 1)

        orders = list_orders("user-001", sort_order="asc")

        assert [o["id"] for o in orders] == [small, middle, large]

    def test_bad_sort_rejected(self):
        with pytest.raises(InvalidRequest, match="Orders can only be sorted by placed_at, total"):
            list_orders("user-001", sort_by="status")
        with pytest.raises(InvalidRequest, match="Sort order must be asc or desc"):
            list_orders("user-001", sort_order="sideways")


class TestOrderStats:
    def test_counts_and_spend(self):
        _three_orders()

        assert order_stats("user-001") == {
            "total_orders": 3,
            "pending_orders": 2,
            "cancelled_orders": 1,
            "total_spent": 400.0,
            "average_order_value": 200.0,
        }

    def test_no_orders(self):
        stats = order_stats("user-quiet")

        assert stats["total_orders"] == 0
        assert stats["total_spent"] == 0.0
        assert stats["average_order_value"] == 0.0

    def test_only_own_orders_counted(self):
        _three_orders()

        assert order_stats("user-002")["total_orders"] == 0

    def test_requires_user(self):
        with pytest.raises(InvalidRequest, match="Orders are only available to authenticated users"):
            order_stats(None)
