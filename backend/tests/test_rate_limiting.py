"""Tests for the sliding-window rate limiter.

Covers the limiter in isolation (per-key windows, expiry, retry hints and
reset) and its use on the coupon validation endpoint.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from storefront.core.rate_limiter import RateLimiter
from storefront.main import app
from storefront.repositories.user_repository import UserRepository
from storefront.routers.coupons import coupon_validation_rate_limiter


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    coupon_validation_rate_limiter.reset()
    yield
    coupon_validation_rate_limiter.reset()


class TestRateLimiter:
    def test_allows_up_to_limit(self):
        limiter = RateLimiter(max_requests=3, window_seconds=60)
        assert [limiter.is_allowed("k") for _ in range(4)] == [True, True, True, False]

    def test_keys_are_independent(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60)
        assert limiter.is_allowed("a") is True
        assert limiter.is_allowed("a") is False
        assert limiter.is_allowed("b") is True

    def test_window_slides(self):
        limiter = RateLimiter(max_requests=1, window_seconds=10)
        with patch("storefront.core.rate_limiter.time.monotonic", return_value=100.0):
            assert limiter.is_allowed("k") is True
            assert limiter.is_allowed("k") is False
        with patch("storefront.core.rate_limiter.time.monotonic", return_value=110.5):
            assert limiter.is_allowed("k") is True

    def test_retry_after(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60)
        with patch("storefront.core.rate_limiter.time.monotonic", return_value=1000.0):
            assert limiter.retry_after("k") == 0
            limiter.is_allowed("k")
        with patch("storefront.core.rate_limiter.time.monotonic", return_value=1030.0):
            assert limiter.retry_after("k") == 31

    def test_zero_limit_blocks_with_full_window_retry(self):
        limiter = RateLimiter(max_requests=0, window_seconds=60)
        assert limiter.is_allowed("k") is False
        assert limiter.retry_after("k") == 60

    def test_rejected_calls_do_not_extend_window(self):
        limiter = RateLimiter(max_requests=1, window_seconds=10)
        with patch("storefront.core.rate_limiter.time.monotonic", return_value=0.0):
            limiter.is_allowed("k")
        with patch("storefront.core.rate_limiter.time.monotonic", return_value=5.0):
            assert limiter.is_allowed("k") is False
        with patch("storefront.core.rate_limiter.time.monotonic", return_value=10.5):
            assert limiter.is_allowed("k") is True

    def test_reset(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60)
        limiter.is_allowed("k")
        limiter.reset()
        assert limiter.is_allowed("k") is True


class TestCouponValidationRateLimit:
    def test_limit_is_per_user(self, client, db_session, monkeypatch):
        monkeypatch.setattr(coupon_validation_rate_limiter, "max_requests", 1)
        repo = UserRepository(db_session)
        first = repo.create(name="First")
        second = repo.create(name="Second")

        def validate(user):
            return client.post(
                "/v1/coupons/validate",
                json={"code": "NOPE", "user_id": str(user.id), "subtotal": "10"},
            )

        # Unknown codes still consume an attempt
        assert validate(first).status_code == 404
        assert validate(first).status_code == 429
        assert validate(second).status_code == 404

    def test_429_detail(self, client, db_session, monkeypatch):
        monkeypatch.setattr(coupon_validation_rate_limiter, "max_requests", 0)
        user = UserRepository(db_session).create(name="Blocked")

        response = client.post(
            "/v1/coupons/validate",
            json={"code": "ANY", "user_id": str(user.id), "subtotal": "10"},
        )

        assert response.status_code == 429
        assert "validations per minute" in response.json()["detail"]
        assert response.headers["Retry-After"] == "60"
