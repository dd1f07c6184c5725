"""Order and checkout schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from storefront.models.order import OrderStatus


class CheckoutRequest(BaseModel):
    user_id: UUID
    subtotal_cents: int = Field(ge=0)
    coupon_code: str | None = Field(default=None, max_length=50)

    @field_validator("coupon_code")
    @classmethod
    def _upper_code(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip().upper()


class CheckoutQuoteResponse(BaseModel):
    subtotal_cents: int
    segment_discount_cents: int
    coupon_discount_cents: int
    discount_cents: int
    total_cents: int
    segment_id: int | None = None
    coupon_code: str | None = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    status: str
    subtotal_cents: int
    discount_cents: int
    total_cents: int
    coupon_code: str | None = None
    created_at: datetime
    updated_at: datetime
