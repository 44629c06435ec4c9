"""Cart and order schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.item import ItemResponse


class AddToCartRequest(BaseModel):
    item_id: int


class CartItemResponse(BaseModel):
    id: int
    user_id: int
    item_id: int
    quantity: int
    item: ItemResponse | None = None

    model_config = {"from_attributes": True}


class CheckoutRequest(BaseModel):
    token: str = Field(..., min_length=1, description="Payment source token from the client")


class OrderItemResponse(BaseModel):
    id: int
    title: str
    description: str | None = None
    image: str | None = None
    large_image: str | None = None
    price_cents: int
    quantity: int

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    id: int
    user_id: int
    total_cents: int
    currency: str
    charge_id: str
    created_at: datetime | None = None
    items: list[OrderItemResponse]

    model_config = {"from_attributes": True}


class ChargeRecordResponse(BaseModel):
    charge_id: str
    user_id: int
    amount_cents: int
    currency: str
    status: str
    cart_item_ids: list[int]
    line_items: list[dict] = []
    order_id: int | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
