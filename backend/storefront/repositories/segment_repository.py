"""Customer segment repository for data access."""

from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.models.segment import CustomerSegment
from storefront.models.user import User
from storefront.schemas.segment import SegmentCreate


class SegmentRepository:
    """Repository for CustomerSegment model."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self, include_inactive: bool = False) -> list[CustomerSegment]:
        """Get segments ordered by priority, highest first."""
        query = self.db.query(CustomerSegment)
        if not include_inactive:
            query = query.filter(CustomerSegment.is_active.is_(True))
        return query.order_by(CustomerSegment.priority.desc(), CustomerSegment.id.asc()).all()

    def get_active_by_min_spend(self) -> list[CustomerSegment]:
        """Get active segments in tier-resolution order.

        Highest ``min_spend_cents`` first; overlapping bands with the same
        lower bound are ordered by ``priority`` (highest first), then by id.
        """
        return (
            self.db.query(CustomerSegment)
            .filter(CustomerSegment.is_active.is_(True))
            .order_by(
                CustomerSegment.min_spend_cents.desc(),
                CustomerSegment.priority.desc(),
                CustomerSegment.id.asc(),
            )
            .all()
        )

    def get_by_id(self, segment_id: int) -> CustomerSegment | None:
        return self.db.query(CustomerSegment).filter(CustomerSegment.id == segment_id).first()

    def get_by_slug(self, slug: str) -> CustomerSegment | None:
        return self.db.query(CustomerSegment).filter(CustomerSegment.slug == slug).first()

    def get_by_ids(self, segment_ids: list[int]) -> list[CustomerSegment]:
        if not segment_ids:
            return []
        return self.db.query(CustomerSegment).filter(CustomerSegment.id.in_(segment_ids)).all()

    def slug_exists(self, slug: str) -> bool:
        return self.get_by_slug(slug) is not None

    def user_counts(self) -> dict[int, int]:
        """Count users per segment in one grouped query."""
        rows = (
            self.db.query(User.segment_id, func.count(User.id))
            .filter(User.segment_id.isnot(None))
            .group_by(User.segment_id)
            .all()
        )
        return {segment_id: count for segment_id, count in rows}

    def user_count(self, segment_id: int) -> int:
        return (
            self.db.query(func.count(User.id)).filter(User.segment_id == segment_id).scalar() or 0
        )

    def spend_stats(self) -> dict[int, tuple[int, int]]:
        """Return ``{segment_id: (customer_count, total_lifetime_spent_cents)}``."""
        rows = (
            self.db.query(
                User.segment_id,
                func.count(User.id),
                func.coalesce(func.sum(User.lifetime_spent_cents), 0),
            )
            .filter(User.segment_id.isnot(None))
            .group_by(User.segment_id)
            .all()
        )
        return {segment_id: (count, int(total)) for segment_id, count, total in rows}

    def create(self, data: SegmentCreate) -> CustomerSegment:
        segment = CustomerSegment(**data.model_dump())
        self.db.add(segment)
        self.db.commit()
        self.db.refresh(segment)
        return segment

    def update(self, segment: CustomerSegment, update_data: dict[str, Any]) -> CustomerSegment:
        for key, value in update_data.items():
            setattr(segment, key, value)
        self.db.commit()
        self.db.refresh(segment)
        return segment

    def delete(self, segment: CustomerSegment) -> None:
        """Unassign the segment's users, then delete it."""
        self.db.query(User).filter(User.segment_id == segment.id).update(
            {User.segment_id: None}, synchronize_session=False
        )
        self.db.delete(segment)
        self.db.commit()
