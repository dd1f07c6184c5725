"""Customer segment service: tier resolution and segment administration."""

import logging
import math
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.orm import Session

from storefront.core.errors import InvalidRequestError, NotFoundError
from storefront.models.order import Order
from storefront.models.segment import CustomerSegment
from storefront.models.user import User
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.segment_repository import SegmentRepository
from storefront.repositories.user_repository import UserRepository
from storefront.schemas.segment import SegmentCreate, SegmentUpdate

logger = logging.getLogger(__name__)


@dataclass
class SegmentAssignment:
    """Result of resolving and persisting one user's segment."""

    spending: int
    segment: CustomerSegment | None


@dataclass
class BulkRecalculationResult:
    updated: int = 0
    failed: list[UUID] = field(default_factory=list)


@dataclass
class SegmentStats:
    segment: CustomerSegment
    customer_count: int
    total_spent_cents: int


@dataclass
class SegmentMember:
    user: User
    recent_orders: list[Order]


@dataclass
class SegmentMembersPage:
    members: list[SegmentMember]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class SegmentService:
    """Service for customer segments.

    The resolver half (``calculate_user_spending``, ``find_segment_by_spending``,
    ``assign_segment_to_user``, ``bulk_recalculate_segments``) maps lifetime
    spend onto a tier. The rest is segment administration.
    """

    RECENT_ORDERS_PER_CUSTOMER = 5

    def __init__(self, db: Session):
        self.db = db
        self.segment_repo = SegmentRepository(db)
        self.user_repo = UserRepository(db)
        self.order_repo = OrderRepository(db)

    # -- tier resolution -------------------------------------------------

    def calculate_user_spending(self, user_id: UUID) -> int:
        """Lifetime spend in cents over paid/processing/shipped/delivered orders.

        Unknown users simply have no orders, so the result is 0.
        """
        return self.order_repo.sum_revenue_for_user(user_id)

    def find_segment_by_spending(self, spending: int) -> CustomerSegment | None:
        """Pick the active segment whose spend band contains ``spending``.

        Segments are scanned from the highest ``min_spend_cents`` down (ties by
        priority, then id) and the first band that contains the amount wins.
        When nothing matches, the last segment of that ordering, i.e. the entry
        tier, is returned. ``None`` only when no segment is active.
        """
        segments = self.segment_repo.get_active_by_min_spend()

        for segment in segments:
            if segment.matches(spending):
                return segment

        return segments[-1] if segments else None

    def assign_segment_to_user(self, user_id: UUID) -> SegmentAssignment:
        """Recompute the user's lifetime spend and segment and store both.

        Raises:
            NotFoundError: If the user does not exist.
        """
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")

        spending = self.calculate_user_spending(user_id)
        segment = self.find_segment_by_spending(spending)

        self.user_repo.update_segment(
            user,
            segment_id=segment.id if segment else None,  # type: ignore[arg-type]
            lifetime_spent_cents=spending,
        )
        return SegmentAssignment(spending=spending, segment=segment)

    def bulk_recalculate_segments(self) -> BulkRecalculationResult:
        """Reassign every user's segment, one user at a time.

        Each user is committed on its own. A failing user is rolled back,
        logged and reported in ``failed``; the remaining users are still
        processed.
        """
        result = BulkRecalculationResult()

        for user_id in self.user_repo.get_all_ids():
            try:
                self.assign_segment_to_user(user_id)
            except Exception:
                self.db.rollback()
                logger.exception("Segment recalculation failed for user %s", user_id)
                result.failed.append(user_id)
                continue
            result.updated += 1

        logger.info(
            "Recalculated segments for %d users (%d failed)", result.updated, len(result.failed)
        )
        return result

    # -- administration --------------------------------------------------

    def list_segments(self, include_inactive: bool = False) -> list[tuple[CustomerSegment, int]]:
        """Segments by priority with their member counts."""
        segments = self.segment_repo.get_all(include_inactive=include_inactive)
        counts = self.segment_repo.user_counts()
        return [(segment, counts.get(segment.id, 0)) for segment in segments]  # type: ignore[call-overload]

    def get_segment(self, segment_id: int) -> CustomerSegment:
        segment = self.segment_repo.get_by_id(segment_id)
        if not segment:
            raise NotFoundError("Segment not found")
        return segment

    def get_segment_by_slug(self, slug: str) -> CustomerSegment:
        segment = self.segment_repo.get_by_slug(slug)
        if not segment:
            raise NotFoundError("Segment not found")
        return segment

    def count_users(self, segment_id: int) -> int:
        return self.segment_repo.user_count(segment_id)

    def create_segment(self, data: SegmentCreate) -> CustomerSegment:
        if self.segment_repo.slug_exists(data.slug):
            raise InvalidRequestError("Segment with this slug already exists")
        self._check_spend_range(data.min_spend_cents, data.max_spend_cents)
        return self.segment_repo.create(data)

    def update_segment(self, segment_id: int, data: SegmentUpdate) -> CustomerSegment:
        segment = self.get_segment(segment_id)
        update_data = data.model_dump(exclude_unset=True)

        # Only max_spend_cents and the free-text fields may be cleared with null
        for key in ("name", "slug", "min_spend_cents", "discount_percent", "priority", "is_active"):
            if key in update_data and update_data[key] is None:
                del update_data[key]

        new_slug = update_data.get("slug")
        if new_slug and new_slug != segment.slug and self.segment_repo.slug_exists(new_slug):
            raise InvalidRequestError("Segment with this slug already exists")

        self._check_spend_range(
            update_data.get("min_spend_cents", segment.min_spend_cents),
            update_data.get("max_spend_cents", segment.max_spend_cents),
        )
        return self.segment_repo.update(segment, update_data)

    def delete_segment(self, segment_id: int) -> None:
        """Delete a segment; its users become unsegmented."""
        segment = self.get_segment(segment_id)
        self.segment_repo.delete(segment)
        logger.info("Deleted segment %s", segment_id)

    def get_segment_stats(self) -> list[SegmentStats]:
        """Customer count and total lifetime spend per active segment."""
        stats = self.segment_repo.spend_stats()
        result = []
        for segment in self.segment_repo.get_all():
            count, total = stats.get(segment.id, (0, 0))  # type: ignore[call-overload]
            result.append(
                SegmentStats(segment=segment, customer_count=count, total_spent_cents=total)
            )
        return result

    def get_customers_by_segment(
        self,
        slug: str,
        page: int = 1,
        limit: int = 20,
        order_by: str | None = None,
    ) -> SegmentMembersPage:
        """One page of a segment's members, biggest spenders first."""
        segment = self.get_segment_by_slug(slug)
        page = max(page, 1)
        skip = (page - 1) * limit

        users = self.user_repo.get_by_segment(
            segment.id,  # type: ignore[arg-type]
            skip=skip,
            limit=limit,
            order_by=order_by,
        )
        members = [
            SegmentMember(
                user=user,
                recent_orders=self.order_repo.get_recent_for_user(
                    user.id,  # type: ignore[arg-type]
                    limit=self.RECENT_ORDERS_PER_CUSTOMER,
                ),
            )
            for user in users
        ]
        total = self.user_repo.count_by_segment(segment.id)  # type: ignore[arg-type]
        return SegmentMembersPage(members=members, page=page, limit=limit, total=total)

    @staticmethod
    def _check_spend_range(min_spend: int | None, max_spend: int | None) -> None:
        if max_spend is not None and min_spend is not None and max_spend < min_spend:
            raise InvalidRequestError("max_spend_cents must not be lower than min_spend_cents")
