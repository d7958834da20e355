"""
LocalMarket Backend: Dependency Providers
==========================================

What:  FastAPI `Depends` factories for the unit of work, the external adapters
       and every service.
How:   External adapters (identity provider, payment gateway, mailer,
       notification hub) are created once by `create_app()` and stored on
       `app.state`; the getters below read them from there. Services are
       built per request around the request's UnitOfWork.

Tests swap an adapter by passing a fake to `create_app(...)`, so nothing in
this module needs patching.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import HTTPConnection

from localmarket.auth.identity import IdentityProvider
from localmarket.config import settings
from localmarket.database import get_db_session
from localmarket.repositories import UnitOfWork
from localmarket.services.advertisement_service import AdvertisementService
from localmarket.services.contact_service import ContactService
from localmarket.services.mailer import Mailer
from localmarket.services.notification_hub import NotificationHub
from localmarket.services.notification_service import NotificationService
from localmarket.services.order_service import OrderService
from localmarket.services.parcel_service import ParcelService
from localmarket.services.payment_gateway import PaymentGateway
from localmarket.services.payment_service import PaymentService
from localmarket.services.product_service import ProductService
from localmarket.services.rider_service import RiderService
from localmarket.services.tracking_service import TrackingService
from localmarket.services.user_service import UserService
from localmarket.services.watchlist_service import WatchlistService


# ── Adapters (one per application) ────────────────────────────────────────
def get_identity_provider(connection: HTTPConnection) -> IdentityProvider:
    return connection.app.state.identity_provider


def get_payment_gateway(connection: HTTPConnection) -> PaymentGateway:
    return connection.app.state.payment_gateway


def get_mailer(connection: HTTPConnection) -> Mailer:
    return connection.app.state.mailer


def get_notification_hub(connection: HTTPConnection) -> NotificationHub:
    return connection.app.state.notification_hub


# ── Unit of work (one per request) ────────────────────────────────────────
def get_unit_of_work(session: AsyncSession = Depends(get_db_session)) -> UnitOfWork:
    return UnitOfWork(session)


# ── Services ──────────────────────────────────────────────────────────────
def get_notification_service(
    uow: UnitOfWork = Depends(get_unit_of_work),
    hub: NotificationHub = Depends(get_notification_hub),
) -> NotificationService:
    return NotificationService(uow, hub)


def get_user_service(uow: UnitOfWork = Depends(get_unit_of_work)) -> UserService:
    return UserService(uow)


def get_parcel_service(
    uow: UnitOfWork = Depends(get_unit_of_work),
    notifications: NotificationService = Depends(get_notification_service),
) -> ParcelService:
    return ParcelService(uow, notifications)


def get_rider_service(uow: UnitOfWork = Depends(get_unit_of_work)) -> RiderService:
    return RiderService(uow)


def get_tracking_service(uow: UnitOfWork = Depends(get_unit_of_work)) -> TrackingService:
    return TrackingService(uow)


def get_payment_service(
    uow: UnitOfWork = Depends(get_unit_of_work),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    notifications: NotificationService = Depends(get_notification_service),
) -> PaymentService:
    return PaymentService(uow, gateway, notifications)


def get_product_service(uow: UnitOfWork = Depends(get_unit_of_work)) -> ProductService:
    return ProductService(uow)


def get_order_service(uow: UnitOfWork = Depends(get_unit_of_work)) -> OrderService:
    return OrderService(uow)


def get_advertisement_service(uow: UnitOfWork = Depends(get_unit_of_work)) -> AdvertisementService:
    return AdvertisementService(uow)


def get_watchlist_service(uow: UnitOfWork = Depends(get_unit_of_work)) -> WatchlistService:
    return WatchlistService(uow)


def get_contact_service(mailer: Mailer = Depends(get_mailer)) -> ContactService:
    return ContactService(mailer, settings.contact_inbox)
