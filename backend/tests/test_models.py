"""Tests for shared model utilities and model helpers."""

import uuid
from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import inspect

from storefront.core import database as db_module
from storefront.core.database import init_db
from storefront.models.coupon import Coupon
from storefront.models.segment import CustomerSegment
from storefront.models.segment_coupon import SegmentCoupon
from storefront.models.shared import UUIDType, as_utc, generate_uuid, utc_now


class TestGenerateUuid:
    def test_returns_uuid4(self):
        result = generate_uuid()
        assert isinstance(result, uuid.UUID)
        assert result.version == 4

    def test_returns_unique_values(self):
        assert len({generate_uuid() for _ in range(10)}) == 10


class TestUtcNow:
    def test_returns_utc(self):
        assert utc_now().tzinfo == UTC

    def test_returns_current_time(self):
        before = datetime.now(UTC)
        result = utc_now()
        after = datetime.now(UTC)
        assert before <= result <= after


class TestAsUtc:
    def test_naive_is_treated_as_utc(self):
        naive = datetime(2026, 1, 1, 12, 0)
        assert as_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def test_aware_is_unchanged(self):
        aware = datetime(2026, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        assert as_utc(aware) is aware


class TestUUIDType:
    def test_bind_param(self):
        t = UUIDType()
        val = uuid.uuid4()
        assert t.process_bind_param(None, None) is None
        assert t.process_bind_param(val, None) == str(val)
        assert t.process_bind_param(str(val).upper(), None) == str(val)

    def test_result_value(self):
        t = UUIDType()
        val = uuid.uuid4()
        assert t.process_result_value(None, None) is None
        assert t.process_result_value(val, None) is val
        assert t.process_result_value(str(val), None) == val


class TestSegmentMatches:
    @pytest.mark.parametrize(
        ("spending", "expected"),
        [(999, False), (1000, True), (4999, True), (5000, False)],
    )
    def test_bounded_band(self, spending, expected):
        segment = CustomerSegment(min_spend_cents=1000, max_spend_cents=4999)
        assert segment.matches(spending) is expected

    def test_open_band(self):
        segment = CustomerSegment(min_spend_cents=5000, max_spend_cents=None)
        assert segment.matches(10**12) is True
        assert segment.matches(4999) is False


class TestCouponSegments:
    def test_segment_ids_sorted(self):
        coupon = Coupon(code="X", discount_type="percentage", discount_value=Decimal("1"))
        coupon.segment_links = [SegmentCoupon(segment_id=3), SegmentCoupon(segment_id=1)]
        assert coupon.segment_ids == [1, 3]

    def test_unrestricted(self):
        coupon = Coupon(code="X", discount_type="percentage", discount_value=Decimal("1"))
        assert coupon.segment_ids == []
        assert coupon.segments == []


class TestInitDb:
    def test_creates_every_table(self):
        init_db()
        tables = set(inspect(db_module.engine).get_table_names())
        assert {"customer_segments", "users", "coupons", "segment_coupons", "orders"} <= tables
