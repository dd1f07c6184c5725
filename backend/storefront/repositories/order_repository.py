"""Order repository: spend aggregation and coupon redemption counts."""

from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from storefront.models.order import REVENUE_STATUSES, Order, OrderStatus


class OrderRepository:
    """Repository for Order model.

    Coupon redemptions are derived from ``orders.coupon_code``; the
    ``count_redemptions*`` methods are the only place that knows this.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, order_id: UUID) -> Order | None:
        return self.db.query(Order).filter(Order.id == order_id).first()

    def create(
        self,
        user_id: UUID,
        subtotal_cents: int,
        discount_cents: int,
        total_cents: int,
        coupon_code: str | None = None,
        status: OrderStatus = OrderStatus.PENDING,
    ) -> Order:
        order = Order(
            user_id=user_id,
            subtotal_cents=subtotal_cents,
            discount_cents=discount_cents,
            total_cents=total_cents,
            coupon_code=coupon_code,
            status=status.value,
        )
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def update_status(self, order: Order, status: OrderStatus) -> Order:
        order.status = status.value  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(order)
        return order

    def sum_revenue_for_user(self, user_id: UUID) -> int:
        """Sum ``total_cents`` over the user's revenue-recognized orders."""
        total = (
            self.db.query(func.coalesce(func.sum(Order.total_cents), 0))
            .filter(Order.user_id == user_id, Order.status.in_(REVENUE_STATUSES))
            .scalar()
        )
        return int(total or 0)

    def count_redemptions(self, code: str, user_id: UUID | None = None) -> int:
        """Count orders placed with ``code``, optionally for one user only."""
        query = self.db.query(func.count(Order.id)).filter(Order.coupon_code == code)
        if user_id is not None:
            query = query.filter(Order.user_id == user_id)
        return query.scalar() or 0

    def count_redemptions_by_code(
        self, codes: list[str], user_id: UUID | None = None
    ) -> dict[str, int]:
        """Grouped variant of ``count_redemptions`` for many codes at once."""
        if not codes:
            return {}
        query = self.db.query(Order.coupon_code, func.count(Order.id)).filter(
            Order.coupon_code.in_(codes)
        )
        if user_id is not None:
            query = query.filter(Order.user_id == user_id)
        rows = query.group_by(Order.coupon_code).all()
        return {code: count for code, count in rows}

    def get_by_coupon_code(self, code: str, limit: int = 100) -> list[Order]:
        """Most recent orders that used ``code``, newest first."""
        return (
            self.db.query(Order)
            .options(joinedload(Order.user))
            .filter(Order.coupon_code == code)
            .order_by(Order.created_at.desc())
            .limit(limit)
            .all()
        )

    def get_recent_for_user(self, user_id: UUID, limit: int = 5) -> list[Order]:
        return (
            self.db.query(Order)
            .filter(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
            .limit(limit)
            .all()
        )
