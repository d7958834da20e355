"""
Unit of work: one session, one repository per entity, one commit.

What:  Groups the repositories a request needs around a single AsyncSession.
How:   Services perform every step of a workflow through these repositories
       (each step only flushes) and call `commit()` once at the end. If any
       step raises, nothing has been committed and the request-scoped session
       rolls back. This is what makes rider assignment and payment recording
       all-or-nothing.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from localmarket.repositories.marketplace import (
    AdvertisementRepository,
    OrderRepository,
    ProductRepository,
    ReviewRepository,
    WatchlistRepository,
)
from localmarket.repositories.notifications import NotificationRepository
from localmarket.repositories.parcels import ParcelRepository, TrackingRepository
from localmarket.repositories.payments import PaymentRepository
from localmarket.repositories.riders import RiderRepository
from localmarket.repositories.users import UserRepository


class UnitOfWork:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserRepository(session)
        self.parcels = ParcelRepository(session)
        self.tracking = TrackingRepository(session)
        self.riders = RiderRepository(session)
        self.payments = PaymentRepository(session)
        self.notifications = NotificationRepository(session)
        self.products = ProductRepository(session)
        self.reviews = ReviewRepository(session)
        self.orders = OrderRepository(session)
        self.advertisements = AdvertisementRepository(session)
        self.watchlist = WatchlistRepository(session)

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
