"""Tests for the customer segment API endpoints."""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from storefront.main import app
from storefront.models.order import OrderStatus
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.user_repository import UserRepository


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def tiers(client):
    """Create bronze, silver and gold through the API."""
    payloads = [
        {"name": "Bronze", "slug": "bronze", "min_spend_cents": 0, "max_spend_cents": 999},
        {
            "name": "Silver",
            "slug": "silver",
            "min_spend_cents": 1000,
            "max_spend_cents": 4999,
            "discount_percent": "5",
            "priority": 1,
        },
        {
            "name": "Gold",
            "slug": "gold",
            "min_spend_cents": 5000,
            "discount_percent": "10",
            "priority": 2,
            "color": "#d4af37",
            "icon": "crown",
        },
    ]
    return {p["slug"]: client.post("/v1/segments/", json=p).json() for p in payloads}


@pytest.fixture
def user_repo(db_session):
    return UserRepository(db_session)


class TestCreateSegment:
    def test_create(self, client):
        response = client.post(
            "/v1/segments/",
            json={"name": "VIP", "slug": "vip", "min_spend_cents": 100000, "discount_percent": "15"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["slug"] == "vip"
        assert data["max_spend_cents"] is None
        assert data["is_active"] is True

    def test_duplicate_slug(self, client, tiers):
        response = client.post("/v1/segments/", json={"name": "Gold 2", "slug": "gold"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Segment with this slug already exists"

    def test_inverted_range(self, client):
        response = client.post(
            "/v1/segments/",
            json={"name": "Bad", "slug": "bad", "min_spend_cents": 500, "max_spend_cents": 100},
        )
        assert response.status_code == 400

    def test_discount_over_hundred(self, client):
        response = client.post(
            "/v1/segments/", json={"name": "Bad", "slug": "bad", "discount_percent": "101"}
        )
        assert response.status_code == 422


class TestListAndGetSegments:
    def test_list_by_priority_with_counts(self, client, tiers, user_repo):
        user_repo.create(name="G", segment_id=tiers["gold"]["id"])

        response = client.get("/v1/segments/")

        assert response.status_code == 200
        data = response.json()
        assert [s["slug"] for s in data] == ["gold", "silver", "bronze"]
        assert data[0]["user_count"] == 1
        assert data[1]["user_count"] == 0

    def test_list_hides_inactive(self, client, tiers):
        client.put(f"/v1/segments/{tiers['bronze']['id']}", json={"is_active": False})

        default = client.get("/v1/segments/").json()
        everything = client.get("/v1/segments/", params={"include_inactive": True}).json()

        assert "bronze" not in [s["slug"] for s in default]
        assert "bronze" in [s["slug"] for s in everything]

    def test_get_with_coupons(self, client, tiers):
        client.post(
            "/v1/coupons/",
            json={
                "code": "GOLDEN",
                "discount_type": "fixed_amount",
                "discount_value": "500",
                "segment_ids": [tiers["gold"]["id"]],
            },
        )

        response = client.get(f"/v1/segments/{tiers['gold']['id']}")

        assert response.status_code == 200
        data = response.json()
        assert data["user_count"] == 0
        assert [c["code"] for c in data["coupons"]] == ["GOLDEN"]

    def test_get_missing(self, client):
        response = client.get("/v1/segments/999")
        assert response.status_code == 404
        assert response.json()["detail"] == "Segment not found"


class TestUpdateAndDeleteSegment:
    def test_update(self, client, tiers):
        response = client.put(
            f"/v1/segments/{tiers['silver']['id']}",
            json={"name": "Silver Plus", "max_spend_cents": None},
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Silver Plus"
        assert response.json()["max_spend_cents"] is None

    def test_update_duplicate_slug(self, client, tiers):
        response = client.put(f"/v1/segments/{tiers['silver']['id']}", json={"slug": "gold"})
        assert response.status_code == 400

    def test_update_missing(self, client):
        assert client.put("/v1/segments/999", json={"name": "x"}).status_code == 404

    def test_delete_unassigns_members(self, client, tiers, user_repo, db_session):
        member = user_repo.create(name="Member", segment_id=tiers["gold"]["id"])

        response = client.delete(f"/v1/segments/{tiers['gold']['id']}")

        assert response.status_code == 204
        db_session.expire_all()
        assert user_repo.get_by_id(member.id).segment_id is None

    def test_delete_missing(self, client):
        assert client.delete("/v1/segments/999").status_code == 404


class TestSegmentAssignment:
    def test_assign(self, client, tiers, user_repo, db_session):
        user = user_repo.create(name="Spender")
        OrderRepository(db_session).create(
            user_id=user.id,
            subtotal_cents=3000,
            discount_cents=0,
            total_cents=3000,
            status=OrderStatus.SHIPPED,
        )

        response = client.post(f"/v1/segments/assign/{user.id}")

        assert response.status_code == 200
        assert response.json()["spending"] == 3000
        assert response.json()["segment"]["slug"] == "silver"

    def test_assign_without_segments(self, client, user_repo):
        user = user_repo.create(name="Lonely")
        response = client.post(f"/v1/segments/assign/{user.id}")
        assert response.status_code == 200
        assert response.json() == {"spending": 0, "segment": None}

    def test_assign_unknown_user(self, client):
        assert client.post(f"/v1/segments/assign/{uuid4()}").status_code == 404

    def test_recalculate(self, client, tiers, user_repo):
        for i in range(3):
            user_repo.create(name=f"User {i}")

        response = client.post("/v1/segments/recalculate")

        assert response.status_code == 200
        assert response.json() == {"updated": 3, "failed": []}

    def test_recalculate_async(self, client):
        job = MagicMock()
        job.job_id = "job-42"

        with patch(
            "storefront.routers.segments.enqueue_segment_recalculation",
            new_callable=AsyncMock,
            return_value=job,
        ):
            response = client.post("/v1/segments/recalculate/async")

        assert response.status_code == 202
        assert response.json() == {"job_id": "job-42"}

    def test_assign_async(self, client):
        job = MagicMock()
        job.job_id = "job-43"
        user_id = uuid4()

        with patch(
            "storefront.routers.segments.enqueue_segment_assignment",
            new_callable=AsyncMock,
            return_value=job,
        ) as mock_enqueue:
            response = client.post(f"/v1/segments/assign/{user_id}/async")

        assert response.status_code == 202
        assert response.json() == {"job_id": "job-43"}
        mock_enqueue.assert_called_once_with(user_id)


class TestSegmentStats:
    def test_stats(self, client, tiers, user_repo):
        user_repo.create(name="A", segment_id=tiers["gold"]["id"], lifetime_spent_cents=7000)
        user_repo.create(name="B", segment_id=tiers["gold"]["id"], lifetime_spent_cents=5000)

        response = client.get("/v1/segments/stats")

        assert response.status_code == 200
        stats = {s["slug"]: s for s in response.json()}
        assert stats["gold"]["customer_count"] == 2
        assert stats["gold"]["total_spent_cents"] == 12000
        assert stats["gold"]["icon"] == "crown"
        assert stats["bronze"]["customer_count"] == 0


class TestCustomersBySegment:
    def test_page(self, client, tiers, user_repo, db_session):
        gold_id = tiers["gold"]["id"]
        for i in range(3):
            user = user_repo.create(
                name=f"Gold {i}",
                email=f"gold{i}@test.com",
                segment_id=gold_id,
                lifetime_spent_cents=5000 + i * 100,
            )
        OrderRepository(db_session).create(
            user_id=user.id,
            subtotal_cents=5200,
            discount_cents=0,
            total_cents=5200,
            status=OrderStatus.DELIVERED,
        )

        response = client.get("/v1/segments/customers/gold", params={"page": 1, "limit": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["pagination"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}
        assert [c["name"] for c in data["customers"]] == ["Gold 2", "Gold 1"]
        assert data["customers"][0]["recent_orders"] == [{"total_cents": 5200}]
        assert data["customers"][0]["segment"]["slug"] == "gold"

    def test_custom_order(self, client, tiers, user_repo):
        for name in ("Zed", "Amy"):
            user_repo.create(name=name, segment_id=tiers["gold"]["id"])

        response = client.get("/v1/segments/customers/gold", params={"order_by": "name:asc"})

        assert [c["name"] for c in response.json()["customers"]] == ["Amy", "Zed"]

    def test_unknown_slug(self, client):
        assert client.get("/v1/segments/customers/nope").status_code == 404
