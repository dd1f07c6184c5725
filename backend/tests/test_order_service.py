"""Tests for checkout pricing and order settlement."""

from decimal import Decimal
from uuid import uuid4

import pytest

from storefront.core.errors import InvalidRequestError, NotFoundError
from storefront.models.order import OrderStatus
from storefront.models.user import User
from storefront.repositories.segment_repository import SegmentRepository
from storefront.repositories.user_repository import UserRepository
from storefront.schemas.coupon import CouponCreate
from storefront.schemas.segment import SegmentCreate
from storefront.services.coupon_service import CouponService
from storefront.services.order_service import OrderService


@pytest.fixture
def gold(db_session):
    repo = SegmentRepository(db_session)
    repo.create(SegmentCreate(name="Bronze", slug="bronze", max_spend_cents=4999))
    return repo.create(
        SegmentCreate(
            name="Gold", slug="gold", min_spend_cents=5000, discount_percent=Decimal("10")
        )
    )


@pytest.fixture
def user(db_session):
    return UserRepository(db_session).create(name="Shopper", email="shopper@test.com")


@pytest.fixture
def service(db_session):
    return OrderService(db_session)


def _coupon(db_session, code, **kwargs):
    data = {"discount_type": "fixed_amount", "discount_value": Decimal("1000")}
    data.update(kwargs)
    return CouponService(db_session).create_coupon(CouponCreate(code=code, **data))


class TestQuote:
    def test_no_discounts(self, service, user):
        quote = service.quote(user.id, 10000)
        assert quote.discount_cents == 0
        assert quote.total_cents == 10000
        assert quote.segment_id is None

    def test_segment_discount(self, db_session, service, user, gold):
        user.segment_id = gold.id
        db_session.commit()

        quote = service.quote(user.id, 10000)

        assert quote.segment_discount_cents == 1000
        assert quote.total_cents == 9000
        assert quote.segment_id == gold.id

    def test_segment_and_coupon_combine(self, db_session, service, user, gold):
        user.segment_id = gold.id
        db_session.commit()
        _coupon(db_session, "TAKE10", discount_type="percentage", discount_value=Decimal("10"))

        quote = service.quote(user.id, 12345, coupon_code="TAKE10")

        assert quote.segment_discount_cents == 1235
        assert quote.coupon_discount_cents == 1235
        assert quote.discount_cents == 2470
        assert quote.total_cents == 9875

    def test_discount_capped_at_subtotal(self, service, user):
        _coupon(service.db, "BIGONE", discount_value=Decimal("7500"))

        quote = service.quote(user.id, 5000, coupon_code="BIGONE")

        assert quote.coupon_discount_cents == 7500
        assert quote.discount_cents == 5000
        assert quote.total_cents == 0

    def test_invalid_coupon_fails_quote(self, service, user):
        with pytest.raises(NotFoundError):
            service.quote(user.id, 5000, coupon_code="MISSING")

    def test_unknown_user(self, service):
        with pytest.raises(NotFoundError):
            service.quote(uuid4(), 5000)


class TestCreateOrder:
    def test_persists_pending_order(self, service, user):
        _coupon(service.db, "FLAT10")

        order = service.create_order(user.id, 5000, coupon_code="FLAT10")

        assert order.status == OrderStatus.PENDING.value
        assert order.discount_cents == 1000
        assert order.total_cents == 4000
        assert order.coupon_code == "FLAT10"

    def test_order_counts_as_redemption(self, service, user):
        _coupon(service.db, "ONCE", usage_limit_per_user=1)
        service.create_order(user.id, 5000, coupon_code="ONCE")

        with pytest.raises(InvalidRequestError, match="usage limit"):
            service.create_order(user.id, 5000, coupon_code="ONCE")


class TestUpdateStatus:
    def test_delivery_reassigns_segment(self, db_session, service, user, gold):
        order = service.create_order(user.id, 6000)
        assert db_session.get(User, user.id).segment_id != gold.id

        service.update_status(order.id, OrderStatus.DELIVERED)

        refreshed = db_session.get(User, user.id)
        assert refreshed.segment_id == gold.id
        assert refreshed.lifetime_spent_cents == 6000

    def test_other_status_leaves_segment(self, db_session, service, user, gold):
        order = service.create_order(user.id, 6000)

        updated = service.update_status(order.id, OrderStatus.PAID)

        assert updated.status == "paid"
        assert db_session.get(User, user.id).segment_id is None

    def test_unknown_order(self, service):
        with pytest.raises(NotFoundError):
            service.update_status(uuid4(), OrderStatus.PAID)
