"""
LocalMarket Backend: Route Authorization Policy
================================================

What:  One table that states who may call each HTTP route, and the single
       interceptor dependency that enforces it.
How:   `authorize` is attached once to the API router
       (`APIRouter(dependencies=[Depends(authorize)])`), so it runs before every
       route handler. It looks up the matched route's (method, path template)
       in ROUTE_POLICY:

           PUBLIC         → no credential needed
           AUTHENTICATED  → valid bearer token
           roles(...)     → valid bearer token AND stored role in the set

       A route missing from the table is refused (403) and logged, so a new
       endpoint is closed until someone decides who may call it.

Roles are read from the users table on each call, never from token claims:
promoting or demoting a user takes effect on their next request.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Tuple

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from localmarket.auth.identity import Identity, IdentityProvider
from localmarket.database import get_db_session
from localmarket.dependencies import get_identity_provider
from localmarket.exceptions import AuthenticationError, AuthorizationError
from localmarket.models.enums import Role
from localmarket.repositories.users import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Access:
    public: bool = False
    roles: FrozenSet[Role] = frozenset()


def roles(*allowed: Role) -> Access:
    return Access(roles=frozenset(allowed))


PUBLIC = Access(public=True)
AUTHENTICATED = Access()
ADMIN = roles(Role.ADMIN)
RIDER = roles(Role.RIDER)
VENDOR = roles(Role.VENDOR)


# ── Policy Table ──────────────────────────────────────────────────────────
# Keys are (HTTP method, route path template exactly as declared).
ROUTE_POLICY: Dict[Tuple[str, str], Access] = {
    # Service
    ("GET", "/"): PUBLIC,
    ("GET", "/health"): PUBLIC,
    # Users
    ("POST", "/users"): PUBLIC,
    ("GET", "/users"): ADMIN,
    ("GET", "/users/{email}/role"): AUTHENTICATED,
    ("PATCH", "/users/{user_id}/role"): ADMIN,
    # Parcels
    ("GET", "/parcels"): AUTHENTICATED,
    ("POST", "/parcels"): AUTHENTICATED,
    ("GET", "/parcels/delivery-status-counts"): ADMIN,
    ("GET", "/parcels/{parcel_id}"): AUTHENTICATED,
    ("DELETE", "/parcels/{parcel_id}"): AUTHENTICATED,
    ("PATCH", "/parcels/{parcel_id}"): ADMIN,
    ("PATCH", "/parcels/{parcel_id}/status"): RIDER,
    ("PATCH", "/parcels/{parcel_id}/assign-rider"): ADMIN,
    # Riders
    ("POST", "/riders"): AUTHENTICATED,
    ("GET", "/riders"): ADMIN,
    ("GET", "/riders/pending"): ADMIN,
    ("GET", "/riders/active"): ADMIN,
    ("GET", "/riders/available"): ADMIN,
    ("PATCH", "/riders/{rider_id}"): ADMIN,
    ("PATCH", "/riders/cashout/{parcel_id}"): RIDER,
    ("GET", "/rider/parcels"): RIDER,
    ("GET", "/rider/completed-parcels"): RIDER,
    # Tracking
    ("POST", "/tracking"): AUTHENTICATED,
    ("GET", "/tracking/{tracking_id}"): PUBLIC,
    # Payments
    ("POST", "/create-payment-intent"): AUTHENTICATED,
    ("GET", "/payments"): AUTHENTICATED,
    ("POST", "/payments"): AUTHENTICATED,
    # Products and reviews
    ("GET", "/products"): PUBLIC,
    ("GET", "/products/{product_id}"): PUBLIC,
    ("POST", "/vendor/products"): VENDOR,
    ("GET", "/vendor/products"): VENDOR,
    ("PATCH", "/vendor/products/{product_id}"): VENDOR,
    ("DELETE", "/vendor/products/{product_id}"): VENDOR,
    ("GET", "/admin/products"): ADMIN,
    ("PATCH", "/admin/products/{product_id}/status"): ADMIN,
    ("DELETE", "/admin/products/{product_id}"): ADMIN,
    ("GET", "/api/products/{product_id}/reviews"): PUBLIC,
    ("POST", "/api/products/{product_id}/reviews"): AUTHENTICATED,
    # Orders
    ("POST", "/orders"): AUTHENTICATED,
    ("GET", "/orders"): AUTHENTICATED,
    ("DELETE", "/orders/{order_id}"): AUTHENTICATED,
    ("GET", "/admin/orders"): ADMIN,
    ("PATCH", "/orders/{order_id}/status"): ADMIN,
    ("PATCH", "/orders/{order_id}/accept"): roles(Role.ADMIN, Role.RIDER),
    # Advertisements
    ("POST", "/vendor/advertisements"): VENDOR,
    ("GET", "/vendor/advertisements"): VENDOR,
    ("DELETE", "/vendor/advertisements/{ad_id}"): VENDOR,
    ("GET", "/advertisements"): PUBLIC,
    ("GET", "/admin/advertisements"): ADMIN,
    ("PATCH", "/admin/advertisements/{ad_id}/status"): ADMIN,
    # Watchlist
    ("POST", "/watchlist"): AUTHENTICATED,
    ("GET", "/watchlist"): AUTHENTICATED,
    ("DELETE", "/watchlist/{item_id}"): AUTHENTICATED,
    # Notifications
    ("POST", "/notifications"): AUTHENTICATED,
    ("GET", "/notifications"): AUTHENTICATED,
    ("PATCH", "/notifications/read-all"): AUTHENTICATED,
    ("PATCH", "/notifications/{notification_id}/read"): AUTHENTICATED,
    # Contact
    ("POST", "/contact"): PUBLIC,
}


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Returns the token from an `Authorization: Bearer <token>` header.

    Raises:
        AuthenticationError: header missing, wrong scheme, or empty token.
    """
    if not authorization:
        raise AuthenticationError(context={"reason": "missing authorization header"})
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError(context={"reason": "expected a bearer token"})
    return token.strip()


def lookup_policy(method: str, path: str) -> Optional[Access]:
    if method == "HEAD":
        method = "GET"
    return ROUTE_POLICY.get((method, path))


async def authorize(
    request: Request,
    provider: IdentityProvider = Depends(get_identity_provider),
    session: AsyncSession = Depends(get_db_session),
) -> Optional[Identity]:
    """
    Interceptor dependency evaluated before every API route.

    Returns:
        The caller's Identity, or None on a public route.

    Raises:
        AuthenticationError: credential missing or rejected (401)
        AuthorizationError:  route not in the table, or role not allowed (403)
    """
    route = request.scope.get("route")
    path = getattr(route, "path", request.url.path)
    access = lookup_policy(request.method, path)

    if access is None:
        logger.warning("Refusing %s %s: route has no authorization policy", request.method, path)
        raise AuthorizationError(context={"reason": "no policy for route"})

    if access.public:
        return None

    token = extract_bearer_token(request.headers.get("Authorization"))
    identity = await provider.verify(token)
    request.state.identity = identity

    if access.roles:
        role = await UserRepository(session).role_of(identity.email)
        if role not in access.roles:
            logger.info(
                "Denied %s %s to %s (role %s)", request.method, path, identity.email, role.value
            )
            raise AuthorizationError(context={"role": role.value})

    return identity


async def current_identity(identity: Optional[Identity] = Depends(authorize)) -> Identity:
    """Route-level dependency for handlers that need the caller."""
    if identity is None:
        raise AuthenticationError()
    return identity
