"""
LocalMarket Backend: Rider Route Tests
=======================================

What we test:
    ✅ Applications are pending and carry the caller's email
    ✅ Approval and rejection keep the user's role in step
    ✅ Pending / active / available views and their filters
    ✅ Cash-out claims: once only, even when requests race
    ✅ Only the assigned rider may claim, and only after delivery
"""

import asyncio
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
from localmarket.models.enums import Role


class TestApplications:
    @pytest.mark.asyncio
    async def test_application_is_pending_with_caller_email(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)

        response = await client.post(
            "/riders",
            json={"name": "Rafi", "district": "Khulna", "email": "forged@localmarket.test", "bike": "Honda"},
            headers=auth(RIDER),
        )
        assert response.status_code == 201

        pending = await client.get("/riders/pending", headers=auth(ADMIN))
        assert pending.status_code == 200
        [rider] = pending.json()
        assert rider["id"] == response.json()["inserted_id"]
        assert rider["email"] == RIDER
        assert rider["status"] == "pending"
        assert rider["work_status"] == "available"
        assert rider["bike"] == "Honda"

    @pytest.mark.asyncio
    async def test_district_is_required(self, client):
        response = await client.post("/riders", json={"name": "Rafi"}, headers=auth(RIDER))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_pending_list_is_oldest_first(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        first = await client.post("/riders", json={"name": "A", "district": "Dhaka"}, headers=auth(RIDER))
        second = await client.post("/riders", json={"name": "B", "district": "Dhaka"}, headers=auth(OTHER_RIDER))

        pending = await client.get("/riders/pending", headers=auth(ADMIN))

        assert [r["id"] for r in pending.json()] == [
            first.json()["inserted_id"],
            second.json()["inserted_id"],
        ]

    @pytest.mark.asyncio
    async def test_admin_views_are_admin_only(self, client, make_user):
        await make_user(SENDER)
        response = await client.get("/riders/pending", headers=auth(SENDER))
        assert response.status_code == 403


class TestApproval:
    @pytest.mark.asyncio
    async def test_approval_promotes_user_to_rider(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)

        rider_id = await onboard_rider(client)

        role = await client.get(f"/users/{RIDER}/role", headers=auth(RIDER))
        assert role.json() == {"role": "rider"}

        active = await client.get("/riders/active", headers=auth(ADMIN))
        [rider] = active.json()
        assert rider["id"] == rider_id
        assert rider["approved_at"] is not None

    @pytest.mark.asyncio
    async def test_rejection_demotes_rider_to_user(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        rider_id = await onboard_rider(client)

        response = await client.patch(
            f"/riders/{rider_id}", json={"status": "rejected"}, headers=auth(ADMIN)
        )

        assert response.status_code == 200
        assert response.json()["status"] == "rejected"
        role = await client.get(f"/users/{RIDER}/role", headers=auth(RIDER))
        assert role.json() == {"role": "user"}

    @pytest.mark.asyncio
    async def test_deactivation_never_demotes_an_admin(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        applied = await client.post(
            "/riders", json={"name": "Boss", "district": "Dhaka"}, headers=auth(ADMIN)
        )

        await client.patch(
            f"/riders/{applied.json()['inserted_id']}", json={"status": "inactive"}, headers=auth(ADMIN)
        )

        role = await client.get(f"/users/{ADMIN}/role", headers=auth(ADMIN))
        assert role.json() == {"role": "admin"}

    @pytest.mark.asyncio
    async def test_update_requires_a_field(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        rider_id = await onboard_rider(client)

        response = await client.patch(f"/riders/{rider_id}", json={}, headers=auth(ADMIN))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_rider_is_404(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        response = await client.patch(
            f"/riders/{uuid.uuid4()}", json={"status": "active"}, headers=auth(ADMIN)
        )
        assert response.status_code == 404


class TestAvailability:
    @pytest.mark.asyncio
    async def test_available_filters_by_district(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        khulna = await onboard_rider(client, district="Khulna")
        await onboard_rider(client, email=OTHER_RIDER, district="Sylhet")

        response = await client.get(
            "/riders/available", params={"district": "Khulna"}, headers=auth(ADMIN)
        )

        assert [r["id"] for r in response.json()] == [khulna]

    @pytest.mark.asyncio
    async def test_active_search_is_partial_and_case_insensitive(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        await onboard_rider(client)
        other = await onboard_rider(client, email=OTHER_RIDER)

        response = await client.get("/riders/active", params={"search": "RIDER2"}, headers=auth(ADMIN))

        assert [r["id"] for r in response.json()] == [other]

    @pytest.mark.asyncio
    async def test_status_filter_on_full_list(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        active = await onboard_rider(client)
        await client.post("/riders", json={"name": "New", "district": "Dhaka"}, headers=auth(OTHER_RIDER))

        response = await client.get("/riders", params={"status": "active"}, headers=auth(ADMIN))
        assert [r["id"] for r in response.json()] == [active]

        everyone = await client.get("/riders", headers=auth(ADMIN))
        assert len(everyone.json()) == 2


class TestCashOut:
    async def _delivered_parcel(self, client, make_user) -> str:
        await make_user(ADMIN, Role.ADMIN)
        rider_id = await onboard_rider(client)
        created = await book_parcel(client)
        await assign_parcel(client, created["inserted_id"], rider_id)
        await deliver_parcel(client, created["inserted_id"])
        return created["inserted_id"]

    @pytest.mark.asyncio
    async def test_claim_succeeds_once(self, client, make_user):
        parcel_id = await self._delivered_parcel(client, make_user)

        first = await client.patch(f"/riders/cashout/{parcel_id}", headers=auth(RIDER))
        assert first.status_code == 200
        assert first.json()["cashout_status"] == "cashed_out"
        assert first.json()["cashed_out_at"] is not None

        second = await client.patch(f"/riders/cashout/{parcel_id}", headers=auth(RIDER))
        assert second.status_code == 400
        assert second.json()["message"] == "Parcel has already been cashed out"

    @pytest.mark.asyncio
    async def test_other_rider_is_refused(self, client, make_user):
        parcel_id = await self._delivered_parcel(client, make_user)
        await onboard_rider(client, email=OTHER_RIDER)

        response = await client.patch(f"/riders/cashout/{parcel_id}", headers=auth(OTHER_RIDER))

        assert response.status_code == 403
        parcel = await client.get(f"/parcels/{parcel_id}", headers=auth(SENDER))
        assert parcel.json()["cashout_status"] is None

    @pytest.mark.asyncio
    async def test_undelivered_parcel_is_400(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        rider_id = await onboard_rider(client)
        created = await book_parcel(client)
        await assign_parcel(client, created["inserted_id"], rider_id)

        response = await client.patch(f"/riders/cashout/{created['inserted_id']}", headers=auth(RIDER))

        assert response.status_code == 400
        assert response.json()["message"] == "Parcel has not been delivered yet"

    @pytest.mark.asyncio
    async def test_identifier_errors(self, client, make_user):
        await make_user(ADMIN, Role.ADMIN)
        await onboard_rider(client)

        malformed = await client.patch("/riders/cashout/123", headers=auth(RIDER))
        assert malformed.status_code == 400

        missing = await client.patch(f"/riders/cashout/{uuid.uuid4()}", headers=auth(RIDER))
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_non_rider_role_is_refused(self, client, make_user):
        parcel_id = await self._delivered_parcel(client, make_user)

        response = await client.patch(f"/riders/cashout/{parcel_id}", headers=auth(SENDER))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_concurrent_claims_pay_once(self, client, make_user):
        parcel_id = await self._delivered_parcel(client, make_user)

        responses = await asyncio.gather(
            *(client.patch(f"/riders/cashout/{parcel_id}", headers=auth(RIDER)) for _ in range(5))
        )

        codes = sorted(r.status_code for r in responses)
        assert codes == [200, 400, 400, 400, 400]
        parcel = await client.get(f"/parcels/{parcel_id}", headers=auth(SENDER))
        assert parcel.json()["cashout_status"] == "cashed_out"
