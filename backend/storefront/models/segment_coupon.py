"""Join table restricting a coupon to a set of customer segments."""

from sqlalchemy import Column, ForeignKey, Integer
from sqlalchemy.orm import relationship

from storefront.core.database import Base
from storefront.models.shared import UUIDType


class SegmentCoupon(Base):
    __tablename__ = "segment_coupons"

    segment_id = Column(
        Integer,
        ForeignKey("customer_segments.id", ondelete="CASCADE"),
        primary_key=True,
    )
    coupon_id = Column(
        UUIDType,
        ForeignKey("coupons.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    segment = relationship("CustomerSegment", back_populates="coupon_links")
    coupon = relationship("Coupon", back_populates="segment_links")
