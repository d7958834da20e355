"""ORM models. Importing this package registers every table with `Base.metadata`."""

from localmarket.models.marketplace import (
    Advertisement,
    Order,
    Product,
    Review,
    WatchlistItem,
)
from localmarket.models.notification import Notification
from localmarket.models.parcel import Parcel, TrackingEvent
from localmarket.models.payment import Payment
from localmarket.models.rider import Rider
from localmarket.models.user import User

__all__ = [
    "Advertisement",
    "Notification",
    "Order",
    "Parcel",
    "Payment",
    "Product",
    "Review",
    "Rider",
    "TrackingEvent",
    "User",
    "WatchlistItem",
]
