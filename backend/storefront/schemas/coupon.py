"""Coupon schemas."""

from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from storefront.models.coupon import CouponDiscountType
from storefront.schemas.segment import SegmentSummary


def _expiry_to_utc(value: datetime | None) -> datetime | None:
    # SQLite drops the offset on write, so only UTC may reach the column
    if value is not None and value.tzinfo is not None:
        return value.astimezone(UTC)
    return value


class CouponCreate(BaseModel):
    code: str = Field(min_length=3, max_length=50)
    discount_type: CouponDiscountType
    discount_value: Decimal = Field(gt=0)
    expires_at: datetime | None = None
    usage_limit: int | None = Field(default=None, ge=0)
    usage_limit_per_user: int | None = Field(default=None, ge=0)
    segment_ids: list[int] = Field(default_factory=list)

    @field_validator("code")
    @classmethod
    def _upper_code(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("expires_at")
    @classmethod
    def _utc_expiry(cls, value: datetime | None) -> datetime | None:
        return _expiry_to_utc(value)

    @model_validator(mode="after")
    def _check_percentage(self) -> "CouponCreate":
        if self.discount_type == CouponDiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        return self


class CouponUpdate(BaseModel):
    """Partial coupon update.

    Only fields present in the request body are applied. ``segment_ids`` has
    three states: left out (restrictions untouched), ``[]`` (restrictions
    cleared) or a list of ids (restrictions replaced).
    """

    code: str | None = Field(default=None, min_length=3, max_length=50)
    discount_type: CouponDiscountType | None = None
    discount_value: Decimal | None = Field(default=None, gt=0)
    expires_at: datetime | None = None
    usage_limit: int | None = Field(default=None, ge=0)
    usage_limit_per_user: int | None = Field(default=None, ge=0)
    segment_ids: list[int] = Field(default_factory=list)

    @field_validator("code")
    @classmethod
    def _upper_code(cls, value: str | None) -> str | None:
        return value.strip().upper() if value is not None else None

    @field_validator("expires_at")
    @classmethod
    def _utc_expiry(cls, value: datetime | None) -> datetime | None:
        return _expiry_to_utc(value)


class CouponResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    discount_type: str
    discount_value: Decimal
    expires_at: datetime | None = None
    usage_limit: int | None = None
    usage_limit_per_user: int | None = None
    segment_ids: list[int] = Field(default_factory=list)
    segments: list[SegmentSummary] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class CouponWithUsageResponse(CouponResponse):
    usage_count: int = 0


class ValidateCouponRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    user_id: UUID
    subtotal: Decimal = Field(ge=0)
    # Defaults to the user's stored segment
    segment_id: int | None = None

    @field_validator("code")
    @classmethod
    def _upper_code(cls, value: str) -> str:
        return value.strip().upper()


class CouponValidationResponse(BaseModel):
    coupon: CouponResponse
    discount_amount: Decimal


class CouponUsageUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str | None = None
    image: str | None = None


class CouponUsageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    total_cents: int
    user: CouponUsageUser
