"""
LocalMarket Backend: Parcel Route Tests
========================================

What we test:
    ✅ Booking defaults, generated and client-supplied tracking IDs
    ✅ Loose document fields survive the round trip; reserved keys do not
    ✅ List filters (creator, status set, payment, district, search), newest first
    ✅ Malformed vs unknown identifiers (400 vs 404)
    ✅ Delete by creator/admin only
    ✅ Admin patch and status counts; cancel or reset frees the rider
    ✅ Rider assignment preconditions, side effects and rollback
    ✅ Rider-driven transitions and the tracking log they append
    ✅ A rider stays busy while any assigned parcel is undelivered
"""

import uuid

import pytest

from conftest import (
    ADMIN,
    OTHER_RIDER,
    RIDER,
    SENDER,
    assign_parcel,
    auth,
    book_parcel,
    deliver_parcel,
    onboard_rider,
)
from localmarket.exceptions import ExternalServiceError
from localmarket.models.enums import Role
from localmarket.services.notification_service import NotificationService


class TestBooking:
    @pytest.mark.asyncio
    async def test_create_applies_defaults(self, client):
        created = await book_parcel(client, receiver_name="Karim", receiver_phone="01800000000")

        assert created["tracking_id"].startswith("PCL-")
        response = await client.get(f"/parcels/{created['inserted_id']}", headers=auth(SENDER))
        assert response.status_code == 200
        parcel = response.json()
        assert parcel["id"] == created["inserted_id"]
        assert parcel["delivery_status"] == "not_collected"
        assert parcel["payment_status"] == "unpaid"
        assert parcel["created_by"] == SENDER
        assert parcel["receiver_name"] == "Karim"
        assert parcel["cashout_status"] is None

    @pytest.mark.asyncio
    async def test_client_tracking_id_is_kept_and_unique(self, client):
        created = await book_parcel(client, tracking_id="TRK-0001")
        assert created["tracking_id"] == "TRK-0001"

        response = await client.post(
            "/parcels",
            json={"created_by": SENDER, "cost": 10, "tracking_id": "TRK-0001"},
            headers=auth(SENDER),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_reserved_keys_cannot_be_injected(self, client):
        forged_id = str(uuid.uuid4())
        created = await book_parcel(client, id=forged_id, delivery_status="delivered")

        assert created["inserted_id"] != forged_id
        parcel = (await client.get(f"/parcels/{created['inserted_id']}", headers=auth(SENDER))).json()
        assert parcel["delivery_status"] == "not_collected"

    @pytest.mark.asyncio
    async def test_missing_required_field_is_400(self, client):
        response = await client.post("/parcels", json={"cost": 50}, headers=auth(SENDER))

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert "created_by" in body["message"]

    @pytest.mark.asyncio
    async def test_negative_cost_is_400(self, client):
        response = await client.post(
            "/parcels", json={"created_by": SENDER, "cost": -1}, headers=auth(SENDER)
        )
        assert response.status_code == 400


class TestListing:
    @pytest.mark.asyncio
    async def test_filter_by_creator_newest_first(self, client):
        first = await book_parcel(client, title="First")
        second = await book_parcel(client, title="Second")
        await book_parcel(client, email="someone@localmarket.test", title="Other")

        response = await client.get("/parcels", params={"email": SENDER}, headers=auth(SENDER))

        assert response.status_code == 200
        ids = [p["id"] for p in response.json()]
        assert ids == [second["inserted_id"], first["inserted_id"]]

    @pytest.mark.asyncio
    async def test_delivery_status_set_and_search(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        rider_id = await onboard_rider(client)
        assigned = await book_parcel(client, title="Laptop")
        waiting = await book_parcel(client, title="Lamp")
        await assign_parcel(client, assigned["inserted_id"], rider_id)

        response = await client.get(
            "/parcels",
            params={"delivery_status": "rider_assigned,in_transit"},
            headers=auth(SENDER),
        )
        assert [p["id"] for p in response.json()] == [assigned["inserted_id"]]

        response = await client.get("/parcels", params={"search": "lam"}, headers=auth(SENDER))
        assert [p["id"] for p in response.json()] == [waiting["inserted_id"]]

        response = await client.get(
            "/parcels", params={"search": waiting["tracking_id"][-4:]}, headers=auth(SENDER)
        )
        assert waiting["inserted_id"] in [p["id"] for p in response.json()]

    @pytest.mark.asyncio
    async def test_district_matches_sender_or_receiver(self, client):
        outbound = await book_parcel(client, sender_district="Sylhet", receiver_district="Dhaka")
        inbound = await book_parcel(client, sender_district="Dhaka", receiver_district="Sylhet")
        await book_parcel(client, sender_district="Dhaka", receiver_district="Khulna")

        response = await client.get("/parcels", params={"district": "Sylhet"}, headers=auth(SENDER))

        assert {p["id"] for p in response.json()} == {outbound["inserted_id"], inbound["inserted_id"]}

    @pytest.mark.asyncio
    async def test_unknown_delivery_status_is_400(self, client):
        response = await client.get(
            "/parcels", params={"delivery_status": "teleported"}, headers=auth(SENDER)
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "delivery_status"

    @pytest.mark.asyncio
    async def test_unknown_payment_status_is_400(self, client):
        response = await client.get(
            "/parcels", params={"payment_status": "maybe"}, headers=auth(SENDER)
        )
        assert response.status_code == 400


class TestFetchAndDelete:
    @pytest.mark.asyncio
    async def test_malformed_id_is_400(self, client):
        response = await client.get("/parcels/not-an-id", headers=auth(SENDER))

        assert response.status_code == 400
        assert response.json()["message"] == "'not-an-id' is not a valid parcel_id"

    @pytest.mark.asyncio
    async def test_unknown_id_is_404(self, client):
        response = await client.get(f"/parcels/{uuid.uuid4()}", headers=auth(SENDER))
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_creator_deletes_then_404(self, client):
        created = await book_parcel(client)

        response = await client.delete(f"/parcels/{created['inserted_id']}", headers=auth(SENDER))
        assert response.status_code == 200
        assert response.json() == {"deleted_count": 1}

        again = await client.delete(f"/parcels/{created['inserted_id']}", headers=auth(SENDER))
        assert again.status_code == 404

    @pytest.mark.asyncio
    async def test_stranger_cannot_delete_but_admin_can(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        created = await book_parcel(client)

        stranger = await client.delete(
            f"/parcels/{created['inserted_id']}", headers=auth("stranger@localmarket.test")
        )
        assert stranger.status_code == 403

        admin = await client.delete(f"/parcels/{created['inserted_id']}", headers=auth(ADMIN))
        assert admin.status_code == 200


class TestAdminPatch:
    @pytest.mark.asyncio
    async def test_mark_paid_stamps_paid_at(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        created = await book_parcel(client)

        response = await client.patch(
            f"/parcels/{created['inserted_id']}",
            json={"payment_status": "paid"},
            headers=auth(ADMIN),
        )

        assert response.status_code == 200
        assert response.json()["payment_status"] == "paid"
        assert response.json()["paid_at"] is not None

    @pytest.mark.asyncio
    async def test_empty_patch_is_400(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        created = await book_parcel(client)

        response = await client.patch(
            f"/parcels/{created['inserted_id']}", json={}, headers=auth(ADMIN)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_sender_cannot_patch(self, client):
        created = await book_parcel(client)

        response = await client.patch(
            f"/parcels/{created['inserted_id']}",
            json={"delivery_status": "delivered"},
            headers=auth(SENDER),
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_status_counts_cover_every_status(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        await book_parcel(client)
        await book_parcel(client)

        response = await client.get("/parcels/delivery-status-counts", headers=auth(ADMIN))

        assert response.status_code == 200
        counts = {row["status"]: row["count"] for row in response.json()}
        assert counts["not_collected"] == 2
        assert counts["delivered"] == 0
        assert set(counts) == {"not_collected", "rider_assigned", "in_transit", "delivered", "cancelled"}

    @pytest.mark.asyncio
    async def test_cancelling_assigned_parcel_frees_rider(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        rider_id = await onboard_rider(client)
        created = await book_parcel(client)
        await assign_parcel(client, created["inserted_id"], rider_id)

        response = await client.patch(
            f"/parcels/{created['inserted_id']}",
            json={"delivery_status": "cancelled"},
            headers=auth(ADMIN),
        )

        assert response.status_code == 200
        available = await client.get("/riders/available", headers=auth(ADMIN))
        assert rider_id in [r["id"] for r in available.json()]

    @pytest.mark.asyncio
    async def test_reset_clears_assignment(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        rider_id = await onboard_rider(client)
        created = await book_parcel(client)
        await assign_parcel(client, created["inserted_id"], rider_id)

        response = await client.patch(
            f"/parcels/{created['inserted_id']}",
            json={"delivery_status": "not_collected"},
            headers=auth(ADMIN),
        )

        parcel = response.json()
        assert parcel["delivery_status"] == "not_collected"
        assert parcel["assigned_rider_id"] is None
        assert parcel["assigned_rider_email"] is None
        assert parcel["assigned_at"] is None

        current = await client.get("/rider/parcels", headers=auth(RIDER))
        assert current.json() == []
        available = await client.get("/riders/available", headers=auth(ADMIN))
        assert rider_id in [r["id"] for r in available.json()]

        # The parcel can be handed out again
        await assign_parcel(client, created["inserted_id"], rider_id)

    @pytest.mark.asyncio
    async def test_cancelling_one_of_two_keeps_rider_busy(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        rider_id = await onboard_rider(client)
        first = await book_parcel(client)
        second = await book_parcel(client)
        await assign_parcel(client, first["inserted_id"], rider_id)
        await assign_parcel(client, second["inserted_id"], rider_id)

        await client.patch(
            f"/parcels/{first['inserted_id']}",
            json={"delivery_status": "cancelled"},
            headers=auth(ADMIN),
        )

        available = await client.get("/riders/available", headers=auth(ADMIN))
        assert rider_id not in [r["id"] for r in available.json()]


class TestRiderAssignment:
    @pytest.mark.asyncio
    async def test_assignment_updates_parcel_rider_and_notifies(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        rider_id = await onboard_rider(client)
        created = await book_parcel(client)

        parcel = await assign_parcel(client, created["inserted_id"], rider_id)

        assert parcel["delivery_status"] == "rider_assigned"
        assert parcel["assigned_rider_id"] == rider_id
        assert parcel["assigned_rider_email"] == RIDER
        assert parcel["assigned_at"] is not None

        available = await client.get("/riders/available", headers=auth(ADMIN))
        assert rider_id not in [r["id"] for r in available.json()]

        inbox = await client.get(
            "/notifications", params={"to_email": RIDER}, headers=auth(RIDER)
        )
        assert len(inbox.json()) == 1
        assert created["tracking_id"] in inbox.json()[0]["message"]

    @pytest.mark.asyncio
    async def test_parcel_must_be_uncollected(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        rider_id = await onboard_rider(client)
        created = await book_parcel(client)
        await assign_parcel(client, created["inserted_id"], rider_id)

        response = await client.patch(
            f"/parcels/{created['inserted_id']}/assign-rider",
            json={"rider_id": rider_id},
            headers=auth(ADMIN),
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_rider_must_be_active(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        applied = await client.post(
            "/riders", json={"name": "New", "district": "Khulna"}, headers=auth(RIDER)
        )
        created = await book_parcel(client)

        response = await client.patch(
            f"/parcels/{created['inserted_id']}/assign-rider",
            json={"rider_id": applied.json()["inserted_id"]},
            headers=auth(ADMIN),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Rider is not active"

    @pytest.mark.asyncio
    async def test_identifiers_are_checked(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        created = await book_parcel(client)

        malformed = await client.patch(
            f"/parcels/{created['inserted_id']}/assign-rider",
            json={"rider_id": "rider-7"},
            headers=auth(ADMIN),
        )
        assert malformed.status_code == 400

        unknown = await client.patch(
            f"/parcels/{created['inserted_id']}/assign-rider",
            json={"rider_id": str(uuid.uuid4())},
            headers=auth(ADMIN),
        )
        assert unknown.status_code == 404

    @pytest.mark.asyncio
    async def test_failed_step_rolls_back_every_write(self, client, make_user, monkeypatch):
        await make_user(ADMIN, Role.ADMIN)
        rider_id = await onboard_rider(client)
        created = await book_parcel(client)

        async def failing_stage(self, *args, **kwargs):
            raise ExternalServiceError(service="notifications")

        monkeypatch.setattr(NotificationService, "stage", failing_stage)
        response = await client.patch(
            f"/parcels/{created['inserted_id']}/assign-rider",
            json={"rider_id": rider_id},
            headers=auth(ADMIN),
        )
        assert response.status_code == 500
        monkeypatch.undo()

        parcel = (await client.get(f"/parcels/{created['inserted_id']}", headers=auth(SENDER))).json()
        assert parcel["delivery_status"] == "not_collected"
        assert parcel["assigned_rider_id"] is None

        available = await client.get("/riders/available", headers=auth(ADMIN))
        assert rider_id in [r["id"] for r in available.json()]


class TestRiderProgress:
    @pytest.mark.asyncio
    async def test_full_delivery_frees_rider_and_logs_tracking(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        rider_id = await onboard_rider(client)
        created = await book_parcel(client)
        await assign_parcel(client, created["inserted_id"], rider_id)

        parcel = await deliver_parcel(client, created["inserted_id"])

        assert parcel["delivery_status"] == "delivered"
        assert parcel["picked_at"] is not None
        assert parcel["delivered_at"] is not None

        available = await client.get("/riders/available", headers=auth(ADMIN))
        assert rider_id in [r["id"] for r in available.json()]

        history = await client.get(f"/tracking/{created['tracking_id']}")
        assert [e["status"] for e in history.json()] == [
            "parcel_created",
            "rider_assigned",
            "in_transit",
            "delivered",
        ]

    @pytest.mark.asyncio
    async def test_skipping_a_step_is_400(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        rider_id = await onboard_rider(client)
        created = await book_parcel(client)
        await assign_parcel(client, created["inserted_id"], rider_id)

        response = await client.patch(
            f"/parcels/{created['inserted_id']}/status",
            json={"delivery_status": "delivered"},
            headers=auth(RIDER),
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_only_assigned_rider_may_progress(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        rider_id = await onboard_rider(client)
        await onboard_rider(client, email=OTHER_RIDER)
        created = await book_parcel(client)
        await assign_parcel(client, created["inserted_id"], rider_id)

        response = await client.patch(
            f"/parcels/{created['inserted_id']}/status",
            json={"delivery_status": "in_transit"},
            headers=auth(OTHER_RIDER),
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_rider_views(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        rider_id = await onboard_rider(client)
        active = await book_parcel(client)
        done = await book_parcel(client)
        await assign_parcel(client, active["inserted_id"], rider_id)
        await assign_parcel(client, done["inserted_id"], rider_id)
        await deliver_parcel(client, done["inserted_id"])

        current = await client.get("/rider/parcels", headers=auth(RIDER))
        completed = await client.get("/rider/completed-parcels", headers=auth(RIDER))

        assert [p["id"] for p in current.json()] == [active["inserted_id"]]
        assert [p["id"] for p in completed.json()] == [done["inserted_id"]]

    @pytest.mark.asyncio
    async def test_rider_with_another_parcel_stays_busy(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        rider_id = await onboard_rider(client)
        first = await book_parcel(client)
        second = await book_parcel(client)
        await assign_parcel(client, first["inserted_id"], rider_id)
        await assign_parcel(client, second["inserted_id"], rider_id)

        await deliver_parcel(client, first["inserted_id"])

        available = await client.get("/riders/available", headers=auth(ADMIN))
        assert rider_id not in [r["id"] for r in available.json()]

        await deliver_parcel(client, second["inserted_id"])

        available = await client.get("/riders/available", headers=auth(ADMIN))
        assert rider_id in [r["id"] for r in available.json()]
