"""Customer segment schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SegmentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(min_length=1, max_length=120)
    description: str | None = None
    min_spend_cents: int = Field(default=0, ge=0)
    max_spend_cents: int | None = Field(default=None, gt=0)
    discount_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    color: str | None = Field(default=None, max_length=20)
    icon: str | None = Field(default=None, max_length=50)
    priority: int = 0
    is_active: bool = True


class SegmentUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    slug: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None
    min_spend_cents: int | None = Field(default=None, ge=0)
    # Sending null explicitly removes the upper bound
    max_spend_cents: int | None = Field(default=None, gt=0)
    discount_percent: Decimal | None = Field(default=None, ge=0, le=100)
    color: str | None = Field(default=None, max_length=20)
    icon: str | None = Field(default=None, max_length=50)
    priority: int | None = None
    is_active: bool | None = None


class SegmentSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    color: str | None = None
    icon: str | None = None
    discount_percent: Decimal


class SegmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    description: str | None = None
    min_spend_cents: int
    max_spend_cents: int | None = None
    discount_percent: Decimal
    color: str | None = None
    icon: str | None = None
    priority: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class SegmentListItem(SegmentResponse):
    user_count: int = 0


class SegmentCouponSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    discount_type: str
    discount_value: Decimal
    expires_at: datetime | None = None


class SegmentDetailResponse(SegmentListItem):
    coupons: list[SegmentCouponSummary] = Field(default_factory=list)


class SegmentAssignmentResponse(BaseModel):
    spending: int
    segment: SegmentResponse | None = None


class BulkRecalculationResponse(BaseModel):
    updated: int
    failed: list[UUID] = Field(default_factory=list)


class RecalculationJobResponse(BaseModel):
    job_id: str


class SegmentStatsResponse(BaseModel):
    id: int
    name: str
    slug: str
    color: str | None = None
    icon: str | None = None
    customer_count: int
    total_spent_cents: int
    discount_percent: Decimal


class RecentOrderTotal(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_cents: int


class SegmentCustomer(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str | None = None
    image: str | None = None
    lifetime_spent_cents: int
    segment: SegmentSummary | None = None
    recent_orders: list[RecentOrderTotal] = Field(default_factory=list)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class SegmentCustomersResponse(BaseModel):
    customers: list[SegmentCustomer]
    pagination: Pagination
