from uuid import UUID

from sqlalchemy.orm import Session

from storefront.core.sorting import apply_order_by
from storefront.models.user import User


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: UUID) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_all_ids(self) -> list[UUID]:
        return [row[0] for row in self.db.query(User.id).order_by(User.created_at.asc()).all()]

    def create(
        self,
        name: str,
        email: str | None = None,
        image: str | None = None,
        lifetime_spent_cents: int = 0,
        segment_id: int | None = None,
    ) -> User:
        user = User(
            name=name,
            email=email,
            image=image,
            lifetime_spent_cents=lifetime_spent_cents,
            segment_id=segment_id,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def update_segment(self, user: User, segment_id: int | None, lifetime_spent_cents: int) -> User:
        """Persist the resolver's output on the user row."""
        user.segment_id = segment_id  # type: ignore[assignment]
        user.lifetime_spent_cents = lifetime_spent_cents  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(user)
        return user

    def get_by_segment(
        self,
        segment_id: int,
        skip: int = 0,
        limit: int = 20,
        order_by: str | None = None,
    ) -> list[User]:
        query = self.db.query(User).filter(User.segment_id == segment_id)
        query = apply_order_by(
            query,
            User,
            order_by,
            default_field="lifetime_spent_cents",
            default_direction="desc",
        )
        return query.offset(skip).limit(limit).all()

    def count_by_segment(self, segment_id: int) -> int:
        return self.db.query(User).filter(User.segment_id == segment_id).count()
