"""Checkout pricing and order settlement."""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session

from storefront.core.errors import NotFoundError
from storefront.models.order import Order, OrderStatus
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.user_repository import UserRepository
from storefront.services.coupon_service import CouponService
from storefront.services.discounts import calculate_segment_discount, combine_discounts, to_cents
from storefront.services.segment_service import SegmentService

logger = logging.getLogger(__name__)


@dataclass
class CheckoutQuote:
    subtotal_cents: int
    segment_discount_cents: int
    coupon_discount_cents: int
    discount_cents: int
    segment_id: int | None = None
    coupon_code: str | None = None

    @property
    def total_cents(self) -> int:
        return self.subtotal_cents - self.discount_cents


class OrderService:
    """Prices orders with segment and coupon discounts and settles them."""

    def __init__(
        self,
        db: Session,
        coupon_service: CouponService | None = None,
        segment_service: SegmentService | None = None,
    ):
        self.db = db
        self.order_repo = OrderRepository(db)
        self.user_repo = UserRepository(db)
        self.coupon_service = coupon_service or CouponService(db)
        self.segment_service = segment_service or SegmentService(db)

    def quote(
        self,
        user_id: UUID,
        subtotal_cents: int,
        coupon_code: str | None = None,
    ) -> CheckoutQuote:
        """Price a checkout for ``user_id``.

        The user's segment discount applies automatically; a coupon, when
        given, must pass validation or the whole quote fails. The combined
        discount is capped at the subtotal.
        """
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")

        segment = user.segment
        segment_discount = calculate_segment_discount(
            segment.discount_percent if segment else None, subtotal_cents
        )

        coupon_discount = 0
        if coupon_code:
            validation = self.coupon_service.validate_coupon(
                coupon_code,
                user_id,
                subtotal_cents,
                user_segment_id=user.segment_id,  # type: ignore[arg-type]
            )
            coupon_discount = to_cents(validation.discount_amount)

        return CheckoutQuote(
            subtotal_cents=subtotal_cents,
            segment_discount_cents=segment_discount,
            coupon_discount_cents=coupon_discount,
            discount_cents=combine_discounts(subtotal_cents, segment_discount, coupon_discount),
            segment_id=user.segment_id,  # type: ignore[arg-type]
            coupon_code=coupon_code,
        )

    def create_order(
        self,
        user_id: UUID,
        subtotal_cents: int,
        coupon_code: str | None = None,
    ) -> Order:
        """Quote and persist a pending order; storing the code redeems the coupon."""
        quote = self.quote(user_id, subtotal_cents, coupon_code)
        order = self.order_repo.create(
            user_id=user_id,
            subtotal_cents=quote.subtotal_cents,
            discount_cents=quote.discount_cents,
            total_cents=quote.total_cents,
            coupon_code=quote.coupon_code,
        )
        logger.info("Created order %s for user %s", order.id, user_id)
        return order

    def update_status(self, order_id: UUID, status: OrderStatus) -> Order:
        """Move an order to ``status``; delivery refreshes the buyer's segment."""
        order = self.order_repo.get_by_id(order_id)
        if not order:
            raise NotFoundError(f"Order {order_id} not found")

        order = self.order_repo.update_status(order, status)
        if status == OrderStatus.DELIVERED:
            assignment = self.segment_service.assign_segment_to_user(order.user_id)  # type: ignore[arg-type]
            logger.info(
                "Order %s delivered, user %s now in segment %s",
                order_id,
                order.user_id,
                assignment.segment.slug if assignment.segment else None,
            )
        return order
