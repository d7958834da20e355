"""
Canonical status enumerations.

Every status string stored or accepted by the API is one of these values.
Enums subclass `str` so members compare equal to their stored column value
and serialize as plain strings.
"""

from enum import Enum
from typing import Dict, FrozenSet


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"
    VENDOR = "vendor"
    RIDER = "rider"


class DeliveryStatus(str, Enum):
    NOT_COLLECTED = "not_collected"
    RIDER_ASSIGNED = "rider_assigned"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Transitions a rider may drive on a parcel assigned to them
RIDER_TRANSITIONS: Dict[DeliveryStatus, FrozenSet[DeliveryStatus]] = {
    DeliveryStatus.RIDER_ASSIGNED: frozenset({DeliveryStatus.IN_TRANSIT}),
    DeliveryStatus.IN_TRANSIT: frozenset({DeliveryStatus.DELIVERED}),
}


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class CashoutStatus(str, Enum):
    CASHED_OUT = "cashed_out"


class RiderStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"
    INACTIVE = "inactive"


class RiderWorkStatus(str, Enum):
    AVAILABLE = "available"
    BUSY = "busy"


class NotificationStatus(str, Enum):
    UNREAD = "unread"
    READ = "read"


class ModerationStatus(str, Enum):
    """Review state shared by products and advertisements."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class OrderStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
