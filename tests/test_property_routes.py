"""
Property creation, duplicate detection, public retrieval and owner-driven
listing status changes.
"""

from decimal import Decimal

from sqlalchemy import func, select

from models.enums import ListingStatus, ListingType, PropertyStatus, PropertyType, UserRole
from models.models import DuplicateListing, Property
from services.duplicate_service import DuplicateDetector

from conftest import auth, duplicate_attempts


async def count_properties(db) -> int:
    result = await db.execute(select(func.count()).select_from(Property))
    return result.scalar_one()


class TestCreateProperty:
    async def test_landlord_creates_pending_listing(self, client, make_user, property_payload):
        await make_user("owner", role=UserRole.LANDLORD)

        response = await client.post(
            "/v1/properties/", json=property_payload, headers=auth("owner")
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["listing_status"] == "active"
        assert body["is_verified"] is False
        assert body["needs_review"] is False
        assert body["owner_id"] == "owner"
        assert body["owner"]["id"] == "owner"
        assert Decimal(body["price"]) == Decimal("1500.00")
        assert [img["image_url"] for img in body["images"]] == property_payload["image_urls"]
        assert [img["display_order"] for img in body["images"]] == [0, 1]
        assert body["age_days"] == 1
        assert body["review_reminder"] is False

    async def test_broker_can_create(self, client, make_user, property_payload):
        await make_user("broker", role=UserRole.BROKER, rera_id="RERA-1")

        response = await client.post(
            "/v1/properties/", json=property_payload, headers=auth("broker")
        )

        assert response.status_code == 201

    async def test_tenant_cannot_create(self, client, make_user, property_payload, db):
        await make_user("tenant", role=UserRole.TENANT)

        response = await client.post(
            "/v1/properties/", json=property_payload, headers=auth("tenant")
        )

        assert response.status_code == 403
        assert await count_properties(db) == 0

    async def test_requires_authentication(self, client, property_payload):
        response = await client.post("/v1/properties/", json=property_payload)
        assert response.status_code == 401

    async def test_non_positive_price_fails_validation(self, client, make_user, property_payload):
        await make_user("owner", role=UserRole.LANDLORD)
        property_payload["price"] = "0"

        response = await client.post(
            "/v1/properties/", json=property_payload, headers=auth("owner")
        )

        assert response.status_code == 422

    async def test_unknown_property_type_fails_validation(
        self, client, make_user, property_payload
    ):
        await make_user("owner", role=UserRole.LANDLORD)
        property_payload["property_type"] = "castle"

        response = await client.post(
            "/v1/properties/", json=property_payload, headers=auth("owner")
        )

        assert response.status_code == 422

    async def test_too_many_images(self, client, make_user, property_payload):
        await make_user("owner", role=UserRole.LANDLORD)
        property_payload["image_urls"] = [f"https://cdn.example.com/{i}.jpg" for i in range(11)]

        response = await client.post(
            "/v1/properties/", json=property_payload, headers=auth("owner")
        )

        assert response.status_code == 400


class TestDuplicateDetection:
    async def test_duplicate_is_rejected_and_recorded(
        self, client, make_user, make_property, property_payload, db
    ):
        await make_user("first", role=UserRole.LANDLORD)
        await make_user("second", role=UserRole.BROKER, rera_id="R-9")
        existing = await make_property("first")

        response = await client.post(
            "/v1/properties/", json=property_payload, headers=auth("second")
        )

        assert response.status_code == 409
        assert await count_properties(db) == 1

        attempts = await duplicate_attempts(db, existing.id)
        assert len(attempts) == 1
        assert attempts[0].attempted_by_user_id == "second"
        assert attempts[0].attempted_title == property_payload["title"]
        assert attempts[0].attempted_location == property_payload["location"]
        assert attempts[0].reviewed is False

    async def test_match_is_exact(self, client, make_user, make_property, property_payload):
        await make_user("owner", role=UserRole.LANDLORD)
        await make_property("owner")
        property_payload["title"] = property_payload["title"] + "!"

        response = await client.post(
            "/v1/properties/", json=property_payload, headers=auth("owner")
        )

        assert response.status_code == 201

    async def test_inactive_listing_is_not_a_duplicate(
        self, client, make_user, make_property, property_payload, db
    ):
        await make_user("owner", role=UserRole.LANDLORD)
        await make_property("owner", listing_status=ListingStatus.INACTIVE)

        response = await client.post(
            "/v1/properties/", json=property_payload, headers=auth("owner")
        )

        assert response.status_code == 201
        result = await db.execute(select(func.count()).select_from(DuplicateListing))
        assert result.scalar_one() == 0

    async def test_concurrent_insert_hits_unique_index(
        self, client, make_user, make_property, property_payload, db, monkeypatch
    ):
        await make_user("owner", role=UserRole.LANDLORD)
        existing = await make_property("owner")

        async def skip_guard(self, title, location, user_id):
            return None

        # simulate losing the race: the pre-check sees nothing
        monkeypatch.setattr(DuplicateDetector, "guard", skip_guard)

        response = await client.post(
            "/v1/properties/", json=property_payload, headers=auth("owner")
        )

        assert response.status_code == 409
        assert await count_properties(db) == 1
        attempts = await duplicate_attempts(db, existing.id)
        assert len(attempts) == 1


class TestFeedAndSearch:
    async def seed(self, make_user, make_property):
        await make_user("owner", role=UserRole.LANDLORD)
        approved = PropertyStatus.APPROVED
        return {
            "cheap_apartment": await make_property(
                "owner", title="Cheap", price="800.00", status=approved
            ),
            "apartment": await make_property(
                "owner", title="Mid", price="1200.00", status=approved, bedrooms=3
            ),
            "villa": await make_property(
                "owner",
                title="Villa",
                price="5000.00",
                location="Palm Jumeirah",
                property_type=PropertyType.VILLA,
                listing_type=ListingType.SALE,
                status=approved,
            ),
            "pending": await make_property("owner", title="Pending", price="2000.00"),
            "sold": await make_property(
                "owner",
                title="Sold",
                price="3000.00",
                status=approved,
                listing_status=ListingStatus.SOLD,
            ),
        }

    async def test_feed_only_shows_approved_active(self, client, make_user, make_property):
        seeded = await self.seed(make_user, make_property)

        response = await client.get("/v1/properties/")

        assert response.status_code == 200
        ids = {p["id"] for p in response.json()}
        assert ids == {
            seeded["cheap_apartment"].id,
            seeded["apartment"].id,
            seeded["villa"].id,
        }

    async def test_feed_attaches_owner_and_images(self, client, make_user, make_property):
        await make_user("owner", role=UserRole.BROKER, is_verified=True, rera_id="R-1")
        await make_property(
            "owner",
            status=PropertyStatus.APPROVED,
            image_urls=["one.jpg", "two.jpg", "three.jpg"],
        )

        body = (await client.get("/v1/properties/")).json()

        assert body[0]["owner"]["rera_verified"] is True
        assert [img["image_url"] for img in body[0]["images"]] == [
            "one.jpg",
            "two.jpg",
            "three.jpg",
        ]

    async def test_type_and_min_price(self, client, make_user, make_property):
        seeded = await self.seed(make_user, make_property)

        response = await client.get(
            "/v1/properties/search",
            params={"property_type": "apartment", "min_price": "1000"},
        )

        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [seeded["apartment"].id]

    async def test_no_filters_matches_feed(self, client, make_user, make_property):
        await self.seed(make_user, make_property)

        feed = (await client.get("/v1/properties/")).json()
        search = (await client.get("/v1/properties/search")).json()

        assert [p["id"] for p in search] == [p["id"] for p in feed]

    async def test_location_is_case_insensitive_substring(
        self, client, make_user, make_property
    ):
        seeded = await self.seed(make_user, make_property)

        response = await client.get("/v1/properties/search", params={"location": "palm"})

        assert [p["id"] for p in response.json()] == [seeded["villa"].id]

    async def test_location_wildcards_are_literal(self, client, make_user, make_property):
        await self.seed(make_user, make_property)

        for term in ("_", "%"):
            response = await client.get("/v1/properties/search", params={"location": term})
            assert response.status_code == 200
            assert response.json() == []

    async def test_price_range_and_bedrooms(self, client, make_user, make_property):
        seeded = await self.seed(make_user, make_property)

        response = await client.get(
            "/v1/properties/search",
            params={"min_price": "500", "max_price": "1500", "bedrooms": 3},
        )

        assert [p["id"] for p in response.json()] == [seeded["apartment"].id]

    async def test_listing_type(self, client, make_user, make_property):
        seeded = await self.seed(make_user, make_property)

        response = await client.get("/v1/properties/search", params={"listing_type": "sale"})

        assert [p["id"] for p in response.json()] == [seeded["villa"].id]

    async def test_inverted_price_range(self, client):
        response = await client.get(
            "/v1/properties/search", params={"min_price": "2000", "max_price": "1000"}
        )
        assert response.status_code == 400


class TestGetProperty:
    async def test_get_by_id(self, client, make_user, make_property):
        await make_user("owner", role=UserRole.LANDLORD)
        prop = await make_property("owner", image_urls=["x.jpg"])

        response = await client.get(f"/v1/properties/{prop.id}")

        assert response.status_code == 200
        assert response.json()["owner"]["id"] == "owner"
        assert response.json()["images"][0]["image_url"] == "x.jpg"

    async def test_unknown_id(self, client):
        response = await client.get("/v1/properties/9999")
        assert response.status_code == 404

    async def test_stale_listing_carries_reminder(self, client, make_user, make_property):
        await make_user("owner", role=UserRole.LANDLORD)
        prop = await make_property("owner", age_days=46)

        body = (await client.get(f"/v1/properties/{prop.id}")).json()

        assert body["age_days"] == 47
        assert body["review_reminder"] is True
        assert body["review_urgent"] is True


class TestOwnerListings:
    async def test_all_statuses_newest_first(self, client, make_user, make_property):
        await make_user("owner", role=UserRole.LANDLORD)
        await make_user("other", role=UserRole.LANDLORD)
        old = await make_property("owner", title="Old", age_days=10)
        rejected = await make_property(
            "owner", title="Rejected", age_days=5, status=PropertyStatus.REJECTED
        )
        new = await make_property("owner", title="New", age_days=1)
        await make_property("other", title="Someone else's")

        response = await client.get("/v1/properties/owner/owner", headers=auth("owner"))

        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [new.id, rejected.id, old.id]

    async def test_cannot_read_another_owners_listings(self, client, make_user):
        await make_user("owner", role=UserRole.LANDLORD)
        await make_user("snoop", role=UserRole.LANDLORD)

        response = await client.get("/v1/properties/owner/owner", headers=auth("snoop"))

        assert response.status_code == 403


class TestListingStatus:
    async def test_owner_marks_approved_listing_sold(self, client, make_user, make_property):
        await make_user("owner", role=UserRole.LANDLORD)
        prop = await make_property("owner", status=PropertyStatus.APPROVED)

        response = await client.patch(
            f"/v1/properties/{prop.id}/status",
            json={"listing_status": "sold"},
            headers=auth("owner"),
        )

        assert response.status_code == 200
        assert response.json()["listing_status"] == "sold"

    async def test_non_owner_is_rejected(self, client, make_user, make_property):
        await make_user("owner", role=UserRole.LANDLORD)
        await make_user("other", role=UserRole.BROKER)
        prop = await make_property("owner", status=PropertyStatus.APPROVED)

        response = await client.patch(
            f"/v1/properties/{prop.id}/status",
            json={"listing_status": "sold"},
            headers=auth("other"),
        )

        assert response.status_code == 403

    async def test_admin_cannot_change_listing_status(self, client, make_user, make_property):
        await make_user("owner", role=UserRole.LANDLORD)
        await make_user("admin", role=UserRole.ADMIN)
        prop = await make_property("owner", status=PropertyStatus.APPROVED)

        response = await client.patch(
            f"/v1/properties/{prop.id}/status",
            json={"listing_status": "inactive"},
            headers=auth("admin"),
        )

        assert response.status_code == 403

    async def test_pending_listing_cannot_change(self, client, make_user, make_property):
        await make_user("owner", role=UserRole.LANDLORD)
        prop = await make_property("owner")

        response = await client.patch(
            f"/v1/properties/{prop.id}/status",
            json={"listing_status": "rented"},
            headers=auth("owner"),
        )

        assert response.status_code == 409

    async def test_closed_listing_cannot_move_sideways(self, client, make_user, make_property):
        await make_user("owner", role=UserRole.LANDLORD)
        prop = await make_property(
            "owner", status=PropertyStatus.APPROVED, listing_status=ListingStatus.SOLD
        )

        response = await client.patch(
            f"/v1/properties/{prop.id}/status",
            json={"listing_status": "rented"},
            headers=auth("owner"),
        )

        assert response.status_code == 409

    async def test_reactivation(self, client, make_user, make_property):
        await make_user("owner", role=UserRole.LANDLORD)
        prop = await make_property(
            "owner", status=PropertyStatus.APPROVED, listing_status=ListingStatus.RENTED
        )

        response = await client.patch(
            f"/v1/properties/{prop.id}/status",
            json={"listing_status": "active"},
            headers=auth("owner"),
        )

        assert response.status_code == 200
        assert response.json()["listing_status"] == "active"

    async def test_reactivation_blocked_by_active_twin(self, client, make_user, make_property):
        await make_user("owner", role=UserRole.LANDLORD)
        closed = await make_property(
            "owner", status=PropertyStatus.APPROVED, listing_status=ListingStatus.SOLD
        )
        await make_property("owner", status=PropertyStatus.APPROVED)

        response = await client.patch(
            f"/v1/properties/{closed.id}/status",
            json={"listing_status": "active"},
            headers=auth("owner"),
        )

        assert response.status_code == 409

    async def test_invalid_status_value(self, client, make_user, make_property):
        await make_user("owner", role=UserRole.LANDLORD)
        prop = await make_property("owner", status=PropertyStatus.APPROVED)

        response = await client.patch(
            f"/v1/properties/{prop.id}/status",
            json={"listing_status": "demolished"},
            headers=auth("owner"),
        )

        assert response.status_code == 400

    async def test_unknown_property(self, client, make_user):
        await make_user("owner", role=UserRole.LANDLORD)

        response = await client.patch(
            "/v1/properties/4242/status",
            json={"listing_status": "sold"},
            headers=auth("owner"),
        )

        assert response.status_code == 404


class TestFlagForReview:
    async def test_owner_flags_listing(self, client, make_user, make_property):
        await make_user("owner", role=UserRole.LANDLORD)
        prop = await make_property("owner")

        response = await client.patch(
            f"/v1/properties/{prop.id}/flag-review", headers=auth("owner")
        )

        assert response.status_code == 200
        assert response.json()["needs_review"] is True

    async def test_admin_flags_listing(self, client, make_user, make_property):
        await make_user("owner", role=UserRole.LANDLORD)
        await make_user("admin", role=UserRole.ADMIN)
        prop = await make_property("owner")

        response = await client.patch(
            f"/v1/properties/{prop.id}/flag-review", headers=auth("admin")
        )

        assert response.status_code == 200
        assert response.json()["needs_review"] is True

    async def test_stranger_cannot_flag(self, client, make_user, make_property):
        await make_user("owner", role=UserRole.LANDLORD)
        await make_user("tenant")
        prop = await make_property("owner")

        response = await client.patch(
            f"/v1/properties/{prop.id}/flag-review", headers=auth("tenant")
        )

        assert response.status_code == 403
