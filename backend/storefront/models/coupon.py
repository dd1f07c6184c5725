"""Coupon model for checkout discounts."""

from enum import Enum

from sqlalchemy import Column, DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import relationship

from storefront.core.database import Base
from storefront.models.shared import UUIDType, generate_uuid


class CouponDiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class Coupon(Base):
    """A redeemable discount code.

    Redemptions are not stored on the coupon: they are the orders whose
    ``coupon_code`` equals ``code``.
    """

    __tablename__ = "coupons"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    code = Column(String(50), unique=True, index=True, nullable=False)

    discount_type = Column(String(20), nullable=False)
    # Percentage points for PERCENTAGE, cents for FIXED_AMOUNT
    discount_value = Column(Numeric(12, 2), nullable=False)

    expires_at = Column(DateTime(timezone=True), nullable=True)
    usage_limit = Column(Integer, nullable=True)
    usage_limit_per_user = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    segment_links = relationship(
        "SegmentCoupon",
        back_populates="coupon",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def segment_ids(self) -> list[int]:
        return sorted(link.segment_id for link in self.segment_links)

    @property
    def segments(self) -> list:  # type: ignore[type-arg]
        return [link.segment for link in self.segment_links if link.segment is not None]
