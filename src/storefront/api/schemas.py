"""Pydantic request/response schemas for the Storefront API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ProductSchema(BaseModel):
    id: str
    name: str
    description: str | None = None
    category: str | None = None
    price: float
    stock: int
    is_active: bool


class CartSummarySchema(BaseModel):
    total_items: int
    total_amount: float
    item_count: int
    is_empty: bool


class CartLineSchema(BaseModel):
    id: str
    product_id: str
    product_name: str | None = None
    quantity: int
    added_at: datetime | None = None
    product: ProductSchema | None = None


class OrderLineSchema(BaseModel):
    id: str
    product_id: str
    product_name: str
    quantity: int
    unit_price: float
    line_total: float


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "7f9c2d1e-0b6a-4e53-9d3f-1a2b3c4d5e6f",
                    "quantity": 2,
                }
            ]
        }
    }


class UpdateCartItemRequest(BaseModel):
    quantity: int  # Zero removes the line


class MergeCartsRequest(BaseModel):
    skip_oversold: bool | None = None


# ---------------------------------------------------------------------------
# Product Request Schemas
# ---------------------------------------------------------------------------
class RegisterProductRequest(BaseModel):
    name: str
    description: str | None = None
    category: str | None = None
    price: float = Field(ge=0)
    stock: int = Field(ge=0, default=0)
    is_active: bool = True

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Espresso Machine",
                    "description": "15-bar pump, stainless steel",
                    "category": "Kitchen",
                    "price": 249.99,
                    "stock": 12,
                    "is_active": True,
                }
            ]
        }
    }


class UpdatePriceRequest(BaseModel):
    price: float = Field(ge=0)


class RestockRequest(BaseModel):
    quantity: int = Field(ge=1)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class CartResponse(BaseModel):
    id: str | None = None
    user_id: str | None = None
    session_id: str | None = None
    status: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    items: list[CartLineSchema]
    summary: CartSummarySchema


class ValidationResponse(BaseModel):
    is_valid: bool
    issues: list[str]


class OrderIdResponse(BaseModel):
    order_id: str


class ProductIdResponse(BaseModel):
    product_id: str


class StockResponse(BaseModel):
    product_id: str
    stock: int


class OrderResponse(BaseModel):
    id: str
    user_id: str
    cart_id: str | None = None
    status: str
    total: float
    notes: str | None = None
    placed_at: datetime | None = None
    cancelled_at: datetime | None = None
    items: list[OrderLineSchema]


class OrderStatsResponse(BaseModel):
    total_orders: int
    pending_orders: int
    cancelled_orders: int
    total_spent: float
    average_order_value: float


class StatusResponse(BaseModel):
    status: str = "ok"
