"""
LocalMarket Backend: Repository Tests
======================================

What we test:
    ✅ build() keeps loose fields but never lets them shadow managed columns
    ✅ update() merges unknown keys into the loose document fields
    ✅ mark_cashed_out() matches at most once
"""

import pytest

from localmarket.database import utcnow
from localmarket.models.enums import DeliveryStatus
from localmarket.repositories import UnitOfWork


class TestDocumentFields:
    @pytest.mark.asyncio
    async def test_build_filters_reserved_and_column_keys(self, database):
        async with database.session() as session:
            uow = UnitOfWork(session)
            parcel = uow.parcels.build(
                {"tracking_id": "PCL-1", "created_by": "a@x.test", "cost": 10.0, "id": "forged"},
                {"receiver_name": "Rina", "delivery_status": "delivered", "_id": "x", "created_at": "y"},
            )

            assert parcel.extra == {"receiver_name": "Rina"}
            assert parcel.tracking_id == "PCL-1"

    @pytest.mark.asyncio
    async def test_update_merges_loose_fields(self, database):
        async with database.session() as session:
            uow = UnitOfWork(session)
            parcel = await uow.parcels.add(
                uow.parcels.build(
                    {
                        "tracking_id": "PCL-2",
                        "created_by": "a@x.test",
                        "cost": 10.0,
                        "delivery_status": DeliveryStatus.NOT_COLLECTED.value,
                        "payment_status": "unpaid",
                    },
                    {"receiver_name": "Rina"},
                )
            )

            await uow.parcels.update(parcel, {"receiver_phone": "017", "title": "Shoes"})

            document = parcel.to_document()
            assert document["receiver_name"] == "Rina"
            assert document["receiver_phone"] == "017"
            assert document["title"] == "Shoes"


class TestCashOutGuard:
    @pytest.mark.asyncio
    async def test_second_claim_matches_nothing(self, database):
        async with database.session() as session:
            uow = UnitOfWork(session)
            parcel = await uow.parcels.add(
                uow.parcels.build(
                    {
                        "tracking_id": "PCL-3",
                        "created_by": "a@x.test",
                        "cost": 10.0,
                        "delivery_status": DeliveryStatus.DELIVERED.value,
                        "payment_status": "paid",
                        "assigned_rider_email": "r@x.test",
                    }
                )
            )
            await uow.commit()

            first = await uow.parcels.mark_cashed_out(parcel.id, "r@x.test", utcnow())
            second = await uow.parcels.mark_cashed_out(parcel.id, "r@x.test", utcnow())
            other_rider = await uow.parcels.mark_cashed_out(parcel.id, "z@x.test", utcnow())

            assert (first, second, other_rider) == (True, False, False)
