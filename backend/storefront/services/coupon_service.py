"""Coupon service: redemption checks, discount computation and administration."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.errors import InvalidRequestError, NotFoundError
from storefront.models.coupon import Coupon, CouponDiscountType
from storefront.models.order import Order
from storefront.models.shared import as_utc, utc_now
from storefront.repositories.coupon_repository import CouponRepository
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.segment_repository import SegmentRepository
from storefront.schemas.coupon import CouponCreate, CouponUpdate
from storefront.services.discounts import calculate_coupon_discount

logger = logging.getLogger(__name__)

# Columns that cannot be cleared by sending null in an update
_REQUIRED_FIELDS = ("code", "discount_type", "discount_value")


@dataclass
class CouponValidation:
    """A coupon that passed every redemption check, with its discount."""

    coupon: Coupon
    discount_amount: Decimal


class CouponService:
    """Service for coupon validation and administration.

    Usage limits are enforced by counting existing orders before deciding
    (read-then-decide). Two concurrent validations of the same code can both
    see a count below the limit and both pass, so a limit can be overshot by
    up to the number of concurrent callers minus one.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock
        self.coupon_repo = CouponRepository(db)
        self.order_repo = OrderRepository(db)
        self.segment_repo = SegmentRepository(db)

    def validate_coupon(
        self,
        code: str,
        user_id: UUID,
        subtotal: Decimal | int,
        user_segment_id: int | None = None,
    ) -> CouponValidation:
        """Check whether ``user_id`` may redeem ``code`` and compute the discount.

        Checks run in order and the first failing one raises:
        existence, expiry, global usage cap, per-user usage cap, segment
        restriction.

        Raises:
            NotFoundError: If no coupon has this code.
            InvalidRequestError: If any redemption rule rejects the coupon.
        """
        coupon = self.coupon_repo.get_by_code(code)
        if not coupon:
            raise NotFoundError("Coupon not found")

        # A coupon is still valid at the exact instant it expires
        if coupon.expires_at is not None and self.clock() > as_utc(coupon.expires_at):  # type: ignore[arg-type]
            raise InvalidRequestError("Coupon has expired")

        if coupon.usage_limit is not None:
            used = self.order_repo.count_redemptions(str(coupon.code))
            if used >= coupon.usage_limit:
                raise InvalidRequestError("Coupon usage quota has been exhausted")

        if coupon.usage_limit_per_user is not None:
            used_by_user = self.order_repo.count_redemptions(str(coupon.code), user_id=user_id)
            if used_by_user >= coupon.usage_limit_per_user:
                raise InvalidRequestError("You have reached the usage limit for this coupon")

        if not self._segment_allowed(coupon, user_segment_id):
            raise InvalidRequestError("Coupon is not valid for your segment")

        discount = calculate_coupon_discount(
            str(coupon.discount_type),
            coupon.discount_value,  # type: ignore[arg-type]
            subtotal,
        )
        return CouponValidation(coupon=coupon, discount_amount=discount)

    def get_available_coupons(
        self,
        user_segment_id: int | None = None,
        user_id: UUID | None = None,
    ) -> list[Coupon]:
        """Coupons the caller could redeem right now.

        Drops expired coupons, coupons restricted to other segments, coupons
        whose global limit is reached and, when ``user_id`` is given, coupons
        the user has used up. Soonest expiry first, never-expiring last.
        """
        now = self.clock()
        candidates = [
            coupon
            for coupon in self.coupon_repo.get_all()
            if coupon.expires_at is None or as_utc(coupon.expires_at) > now  # type: ignore[arg-type]
        ]
        candidates = [c for c in candidates if self._segment_allowed(c, user_segment_id)]

        codes = [str(c.code) for c in candidates]
        global_counts = self.order_repo.count_redemptions_by_code(codes)
        user_counts = (
            self.order_repo.count_redemptions_by_code(codes, user_id=user_id)
            if user_id is not None
            else {}
        )

        available = []
        for coupon in candidates:
            if (
                coupon.usage_limit is not None
                and global_counts.get(coupon.code, 0) >= coupon.usage_limit  # type: ignore[call-overload]
            ):
                continue
            if (
                user_id is not None
                and coupon.usage_limit_per_user is not None
                and user_counts.get(coupon.code, 0) >= coupon.usage_limit_per_user  # type: ignore[call-overload]
            ):
                continue
            available.append(coupon)
        return available

    def list_coupons(self) -> list[tuple[Coupon, int]]:
        """Every coupon with its redemption count."""
        coupons = self.coupon_repo.get_all()
        counts = self.order_repo.count_redemptions_by_code([str(c.code) for c in coupons])
        return [(coupon, counts.get(coupon.code, 0)) for coupon in coupons]  # type: ignore[call-overload]

    def get_coupon(self, coupon_id: UUID) -> Coupon:
        coupon = self.coupon_repo.get_by_id(coupon_id)
        if not coupon:
            raise NotFoundError("Coupon not found")
        return coupon

    def create_coupon(self, data: CouponCreate) -> Coupon:
        if self.coupon_repo.code_exists(data.code):
            raise InvalidRequestError("Coupon with this code already exists")
        self._check_segments_exist(data.segment_ids)

        coupon = self.coupon_repo.create(data)
        logger.info("Created coupon %s", coupon.code)
        return coupon

    def update_coupon(self, coupon_id: UUID, data: CouponUpdate) -> Coupon:
        """Update a coupon and, if ``segment_ids`` was sent, its restrictions.

        Leaving ``segment_ids`` out keeps the current restrictions, an empty
        list removes them all and a non-empty list replaces them.
        """
        coupon = self.get_coupon(coupon_id)
        update_data = data.model_dump(exclude_unset=True)

        segment_ids: list[int] | None = update_data.pop("segment_ids", None)
        for key in _REQUIRED_FIELDS:
            if key in update_data and update_data[key] is None:
                del update_data[key]
        if "discount_type" in update_data:
            update_data["discount_type"] = update_data["discount_type"].value

        new_code = update_data.get("code")
        if new_code and new_code != coupon.code and self.coupon_repo.code_exists(new_code):
            raise InvalidRequestError("Coupon with this code already exists")

        discount_type = update_data.get("discount_type", coupon.discount_type)
        discount_value = update_data.get("discount_value", coupon.discount_value)
        if discount_type == CouponDiscountType.PERCENTAGE.value and discount_value > 100:
            raise InvalidRequestError("Percentage discount cannot exceed 100")

        if segment_ids is not None:
            self._check_segments_exist(segment_ids)

        return self.coupon_repo.update(coupon, update_data, segment_ids=segment_ids)

    def delete_coupon(self, coupon_id: UUID) -> None:
        """Delete a coupon. Orders keep the code they were placed with."""
        coupon = self.get_coupon(coupon_id)
        self.coupon_repo.delete(coupon)
        logger.info("Deleted coupon %s", coupon_id)

    def get_coupon_usage(self, coupon_id: UUID) -> list[Order]:
        """Most recent orders that redeemed this coupon, newest first."""
        coupon = self.get_coupon(coupon_id)
        return self.order_repo.get_by_coupon_code(
            str(coupon.code), limit=settings.COUPON_USAGE_HISTORY_LIMIT
        )

    @staticmethod
    def _segment_allowed(coupon: Coupon, user_segment_id: int | None) -> bool:
        restricted = coupon.segment_ids
        if not restricted:
            return True
        return user_segment_id is not None and user_segment_id in restricted

    def _check_segments_exist(self, segment_ids: list[int]) -> None:
        wanted = set(segment_ids)
        found = {s.id for s in self.segment_repo.get_by_ids(list(wanted))}
        missing = sorted(wanted - found)
        if missing:
            raise InvalidRequestError(f"Unknown segment ids: {missing}")
