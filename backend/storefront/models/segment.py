"""Customer segment model: spend-based loyalty tiers."""

from sqlalchemy import BigInteger, Boolean, Column, DateTime, Integer, Numeric, String, Text, func
from sqlalchemy.orm import relationship

from storefront.core.database import Base


class CustomerSegment(Base):
    """A named customer tier keyed by cumulative spend.

    ``min_spend_cents`` and ``max_spend_cents`` are both inclusive; a null
    ``max_spend_cents`` means the band has no upper bound.
    """

    __tablename__ = "customer_segments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(120), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)

    min_spend_cents = Column(BigInteger, nullable=False, default=0)
    max_spend_cents = Column(BigInteger, nullable=True)
    discount_percent = Column(Numeric(5, 2), nullable=False, default=0)

    color = Column(String(20), nullable=True)
    icon = Column(String(50), nullable=True)
    priority = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    users = relationship("User", back_populates="segment")
    coupon_links = relationship(
        "SegmentCoupon",
        back_populates="segment",
        cascade="all, delete-orphan",
    )

    def matches(self, spending: int) -> bool:
        """Return True if ``spending`` falls inside this segment's band."""
        if spending < self.min_spend_cents:
            return False
        return self.max_spend_cents is None or spending <= self.max_spend_cents
