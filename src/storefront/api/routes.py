"""FastAPI routes for the Storefront domain — cart, orders and products.

The caller's identity arrives in headers: ``X-User-Id`` for an authenticated
user, ``X-Session-Id`` for a guest session. Mutating cart routes return the
refreshed cart view.
"""

from dataclasses import dataclass
from datetime import datetime

from fastapi import APIRouter, Depends, Header, Query
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    AddToCartRequest,
    CartResponse,
    CartSummarySchema,
    MergeCartsRequest,
    OrderIdResponse,
    OrderResponse,
    OrderStatsResponse,
    ProductIdResponse,
    ProductSchema,
    RegisterProductRequest,
    RestockRequest,
    StatusResponse,
    StockResponse,
    UpdateCartItemRequest,
    UpdatePriceRequest,
    ValidationResponse,
)
from storefront.cart.identity import ResolveCart
from storefront.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartItem
from storefront.cart.merge import MergeCarts
from storefront.cart.validation import validate_stock
from storefront.cart.view import cart_summary_for, cart_view_for, product_view
from storefront.catalogue.management import (
    ActivateProduct,
    DeactivateProduct,
    RegisterProduct,
    RemoveProduct,
    RestockProduct,
    UpdateProductPrice,
)
from storefront.catalogue.product import Product
from storefront.order.cancellation import CancelOrder
from storefront.order.checkout import CheckoutCart
from storefront.order.queries import get_order, list_orders, order_stats
from storefront.shared.dispatch import dispatch
from storefront.shared.errors import NotFound
from storefront.shared.owner import owner_from
from storefront.utils.logging import add_context


@dataclass(frozen=True)
class Caller:
    user_id: str | None
    session_id: str | None

    @property
    def owner(self):
        return owner_from(self.user_id, self.session_id)


def caller(
    x_user_id: str | None = Header(default=None),
    x_session_id: str | None = Header(default=None),
) -> Caller:
    add_context(user_id=x_user_id, session_id=x_session_id)
    return Caller(user_id=x_user_id, session_id=x_session_id)


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(who: Caller = Depends(caller)) -> CartResponse:
    dispatch(ResolveCart(user_id=who.user_id, session_id=who.session_id))
    return CartResponse(**cart_view_for(who.owner))


@cart_router.get("/summary", response_model=CartSummarySchema)
async def get_cart_summary(who: Caller = Depends(caller)) -> CartSummarySchema:
    return CartSummarySchema(**cart_summary_for(who.owner))


@cart_router.post("/items", status_code=201, response_model=CartResponse)
async def add_cart_item(body: AddToCartRequest, who: Caller = Depends(caller)) -> CartResponse:
    command = AddToCart(
        user_id=who.user_id,
        session_id=who.session_id,
        product_id=body.product_id,
        quantity=body.quantity,
    )
    return CartResponse(**dispatch(command))


@cart_router.patch("/items/{item_id}", response_model=CartResponse)
async def update_cart_item(item_id: str, body: UpdateCartItemRequest, who: Caller = Depends(caller)) -> CartResponse:
    command = UpdateCartItem(
        user_id=who.user_id,
        session_id=who.session_id,
        item_id=item_id,
        quantity=body.quantity,
    )
    return CartResponse(**dispatch(command))


@cart_router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(item_id: str, who: Caller = Depends(caller)) -> CartResponse:
    command = RemoveFromCart(user_id=who.user_id, session_id=who.session_id, item_id=item_id)
    return CartResponse(**dispatch(command))


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(who: Caller = Depends(caller)) -> CartResponse:
    command = ClearCart(user_id=who.user_id, session_id=who.session_id)
    return CartResponse(**dispatch(command))


@cart_router.post("/validate", response_model=ValidationResponse)
async def validate_cart(who: Caller = Depends(caller)) -> ValidationResponse:
    return ValidationResponse(**validate_stock(who.owner).as_dict())


@cart_router.post("/merge", response_model=CartResponse)
async def merge_carts(body: MergeCartsRequest | None = None, who: Caller = Depends(caller)) -> CartResponse:
    command = MergeCarts(
        user_id=who.user_id,
        session_id=who.session_id,
        skip_oversold=body.skip_oversold if body else None,
    )
    return CartResponse(**dispatch(command))


@cart_router.post("/checkout", status_code=201, response_model=OrderIdResponse)
async def checkout(who: Caller = Depends(caller)) -> OrderIdResponse:
    order_id = dispatch(CheckoutCart(user_id=who.user_id, session_id=who.session_id))
    add_context(order_id=order_id)
    return OrderIdResponse(order_id=order_id)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=list[OrderResponse])
async def get_orders(
    who: Caller = Depends(caller),
    status: str | None = Query(default=None),
    placed_from: datetime | None = Query(default=None),
    placed_to: datetime | None = Query(default=None),
    min_total: float | None = Query(default=None, ge=0),
    max_total: float | None = Query(default=None, ge=0),
    sort_by: str = Query(default="placed_at"),
    sort_order: str = Query(default="desc"),
) -> list[OrderResponse]:
    orders = list_orders(
        who.user_id,
        status=status,
        placed_from=placed_from,
        placed_to=placed_to,
        min_total=min_total,
        max_total=max_total,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return [OrderResponse(**order) for order in orders]


@order_router.get("/stats", response_model=OrderStatsResponse)
async def get_order_stats(who: Caller = Depends(caller)) -> OrderStatsResponse:
    return OrderStatsResponse(**order_stats(who.user_id))


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order_detail(order_id: str, who: Caller = Depends(caller)) -> OrderResponse:
    return OrderResponse(**get_order(order_id, who.user_id))


@order_router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(order_id: str, who: Caller = Depends(caller)) -> OrderResponse:
    dispatch(CancelOrder(order_id=order_id, user_id=who.user_id))
    return OrderResponse(**get_order(order_id, who.user_id))


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def register_product(body: RegisterProductRequest) -> ProductIdResponse:
    command = RegisterProduct(
        name=body.name,
        description=body.description,
        category=body.category,
        price=body.price,
        stock=body.stock,
        is_active=body.is_active,
    )
    return ProductIdResponse(product_id=dispatch(command))


@product_router.get("/{product_id}", response_model=ProductSchema)
async def get_product(product_id: str) -> ProductSchema:
    product = current_domain.repository_for(Product).find(product_id)
    if product is None:
        raise NotFound(f"Product with ID {product_id} not found")
    return ProductSchema(**product_view(product))


@product_router.put("/{product_id}/price", response_model=StatusResponse)
async def update_product_price(product_id: str, body: UpdatePriceRequest) -> StatusResponse:
    dispatch(UpdateProductPrice(product_id=product_id, price=body.price))
    return StatusResponse()


@product_router.put("/{product_id}/restock", response_model=StockResponse)
async def restock_product(product_id: str, body: RestockRequest) -> StockResponse:
    new_stock = dispatch(RestockProduct(product_id=product_id, quantity=body.quantity))
    return StockResponse(product_id=product_id, stock=new_stock)


@product_router.put("/{product_id}/activate", response_model=StatusResponse)
async def activate_product(product_id: str) -> StatusResponse:
    dispatch(ActivateProduct(product_id=product_id))
    return StatusResponse()


@product_router.put("/{product_id}/deactivate", response_model=StatusResponse)
async def deactivate_product(product_id: str) -> StatusResponse:
    dispatch(DeactivateProduct(product_id=product_id))
    return StatusResponse()


@product_router.delete("/{product_id}", response_model=StatusResponse)
async def remove_product(product_id: str) -> StatusResponse:
    dispatch(RemoveProduct(product_id=product_id))
    return StatusResponse()
