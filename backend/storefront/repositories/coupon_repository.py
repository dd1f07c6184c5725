"""Coupon repository for data access."""

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from storefront.models.coupon import Coupon
from storefront.models.segment_coupon import SegmentCoupon
from storefront.schemas.coupon import CouponCreate


class CouponRepository:
    """Repository for Coupon model and its segment restrictions."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> list[Coupon]:
        """Get all coupons, soonest expiry first and never-expiring last."""
        return (
            self.db.query(Coupon)
            .order_by(Coupon.expires_at.is_(None), Coupon.expires_at.asc(), Coupon.code.asc())
            .all()
        )

    def get_by_id(self, coupon_id: UUID) -> Coupon | None:
        return self.db.query(Coupon).filter(Coupon.id == coupon_id).first()

    def get_by_code(self, code: str) -> Coupon | None:
        return self.db.query(Coupon).filter(Coupon.code == code).first()

    def code_exists(self, code: str) -> bool:
        return self.get_by_code(code) is not None

    def create(self, data: CouponCreate) -> Coupon:
        """Create a coupon together with its segment restriction rows."""
        coupon = Coupon(
            code=data.code,
            discount_type=data.discount_type.value,
            discount_value=data.discount_value,
            expires_at=data.expires_at,
            usage_limit=data.usage_limit,
            usage_limit_per_user=data.usage_limit_per_user,
        )
        coupon.segment_links = [
            SegmentCoupon(segment_id=segment_id) for segment_id in dict.fromkeys(data.segment_ids)
        ]
        self.db.add(coupon)
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def update(
        self,
        coupon: Coupon,
        update_data: dict[str, Any],
        segment_ids: list[int] | None = None,
    ) -> Coupon:
        """Apply scalar changes and, when given, replace the restriction set.

        Everything is flushed in one commit; on failure the session is rolled
        back so the coupon never ends up with a half-replaced restriction set.
        ``segment_ids=None`` leaves the restrictions untouched.
        """
        try:
            for key, value in update_data.items():
                setattr(coupon, key, value)

            if segment_ids is not None:
                # Reuse surviving link rows; delete-orphan removes the rest
                existing = {link.segment_id: link for link in coupon.segment_links}
                coupon.segment_links = [
                    existing.get(segment_id) or SegmentCoupon(segment_id=segment_id)
                    for segment_id in dict.fromkeys(segment_ids)
                ]
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(coupon)
        return coupon

    def delete(self, coupon: Coupon) -> None:
        self.db.delete(coupon)
        self.db.commit()
