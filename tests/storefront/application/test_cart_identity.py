"""Application tests for resolving an owner's cart."""

from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from storefront.cart.cart import ShoppingCart
from storefront.cart.identity import ResolveCart, resolve_cart
from storefront.shared.errors import InvalidRequest
from storefront.shared.owner import Guest, User


def _resolve(**owner):
    return current_domain.process(ResolveCart(**owner), asynchronous=False)


class TestResolveCart:
    def test_creates_cart_on_first_access(self):
        cart_id = _resolve(user_id="user-001")
        cart = current_domain.repository_for(ShoppingCart).get(cart_id)
        assert cart.user_id == "user-001"
        assert cart.is_active

    def test_idempotent_for_user(self):
        assert _resolve(user_id="user-001") == _resolve(user_id="user-001")

    def test_idempotent_for_guest(self):
        assert _resolve(session_id="sess-001") == _resolve(session_id="sess-001")

    def test_user_and_guest_get_separate_carts(self):
        assert _resolve(user_id="user-001") != _resolve(session_id="sess-001")

    def test_user_wins_when_both_supplied(self):
        user_cart_id = _resolve(user_id="user-001")
        assert _resolve(user_id="user-001", session_id="sess-001") == user_cart_id

    def test_no_owner_rejected(self):
        with pytest.raises(InvalidRequest):
            _resolve()

    def test_lookup_without_create(self):
        assert resolve_cart(Guest(session_id="sess-unknown"), create=False) is None


class TestDuplicateActiveCarts:
    def test_oldest_cart_wins(self):
        repo = current_domain.repository_for(ShoppingCart)
        older = ShoppingCart.create(User(user_id="user-dup"))
        older.created_at = datetime.now(UTC) - timedelta(minutes=5)
        newer = ShoppingCart.create(User(user_id="user-dup"))
        repo.add(newer)
        repo.add(older)

        assert _resolve(user_id="user-dup") == str(older.id)
        assert _resolve(user_id="user-dup") == str(older.id)
