"""
LocalMarket Backend: Test Configuration (conftest.py)
======================================================

What:  Shared fixtures: an in-memory database, fake external adapters, an
       application wired with them, and an HTTP client.
How:   Environment variables are set BEFORE the first `localmarket` import so
       the module-level settings never point at a real database or provider.

Fixture Hierarchy (all function-scoped):
    database ──┐
    payment_gateway ──┼── app ── client
    mailer ──┘
    make_user: inserts a user with a given role straight into the database

Tokens are real HS256 JWTs signed with TEST_JWT_SECRET, verified by the real
JWTIdentityProvider.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["AUTH_JWT_SECRET"] = "localmarket-test-secret-0123456789abcdef0123456789"
os.environ["AUTH_JWT_ALGORITHM"] = "HS256"
os.environ["AUTH_JWKS_URL"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from localmarket.auth.identity import JWTIdentityProvider
from localmarket.database import Database
from localmarket.exceptions import ExternalServiceError
from localmarket.main import create_app
from localmarket.models.enums import Role
from localmarket.models.user import User
from localmarket.services.mailer import EmailMessage, Mailer
from localmarket.services.payment_gateway import PaymentGateway, PaymentIntent

TEST_JWT_SECRET = os.environ["AUTH_JWT_SECRET"]

ADMIN = "admin@localmarket.test"
SENDER = "sender@localmarket.test"
RIDER = "rider@localmarket.test"
OTHER_RIDER = "rider2@localmarket.test"
VENDOR = "vendor@localmarket.test"


# ══════════════════════════════════════════════════════════════════════════
# Token Helpers
# ══════════════════════════════════════════════════════════════════════════

def make_token(
    email: Optional[str],
    expires_in: int = 3600,
    secret: str = TEST_JWT_SECRET,
    **claims: Any,
) -> str:
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": f"uid-{email}",
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
        **claims,
    }
    if email is not None:
        payload["email"] = email
    return jwt.encode(payload, secret, algorithm="HS256")


def auth(email: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token(email)}"}


# ══════════════════════════════════════════════════════════════════════════
# Fake External Adapters
# ══════════════════════════════════════════════════════════════════════════

class FakePaymentGateway(PaymentGateway):
    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.fail = False

    async def create_intent(self, amount_in_cents, currency, metadata=None) -> PaymentIntent:
        if self.fail:
            raise ExternalServiceError(service="payment_gateway")
        self.calls.append({"amount": amount_in_cents, "currency": currency, "metadata": metadata})
        n = len(self.calls)
        return PaymentIntent(id=f"pi_test_{n}", client_secret=f"pi_test_{n}_secret_abc")


class FakeMailer(Mailer):
    def __init__(self) -> None:
        self.sent: List[EmailMessage] = []
        self.fail = False

    async def send(self, message: EmailMessage) -> None:
        if self.fail:
            raise ExternalServiceError(service="mail_relay")
        self.sent.append(message)


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database():
    """Fresh in-memory SQLite schema per test."""
    db = Database("sqlite+aiosqlite://")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def payment_gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def app(database, payment_gateway, mailer):
    return create_app(
        database=database,
        identity_provider=JWTIdentityProvider(secret=TEST_JWT_SECRET),
        payment_gateway=payment_gateway,
        mailer=mailer,
    )


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(database):
    """
    Returns an async callable inserting a user with the given role.

    Usage:
        await make_user(ADMIN, Role.ADMIN)
    """

    async def _make_user(email: str, role: Role = Role.USER, name: Optional[str] = None) -> User:
        async with database.session() as session:
            user = User(email=email, name=name, role=role.value, extra={})
            session.add(user)
            await session.commit()
            return user

    return _make_user


# ══════════════════════════════════════════════════════════════════════════
# Workflow Helpers
# ══════════════════════════════════════════════════════════════════════════

async def book_parcel(client: AsyncClient, email: str = SENDER, **fields: Any) -> Dict[str, Any]:
    """POST /parcels and return the {"inserted_id", "tracking_id"} body."""
    body = {
        "created_by": email,
        "cost": 120.0,
        "title": "Textbooks",
        "parcel_type": "document",
        "sender_district": "Dhaka",
        "receiver_district": "Khulna",
        **fields,
    }
    response = await client.post("/parcels", json=body, headers=auth(email))
    assert response.status_code == 201, response.text
    return response.json()


async def onboard_rider(client: AsyncClient, email: str = RIDER, district: str = "Khulna") -> str:
    """Registers, applies and approves a rider (ADMIN must exist). Returns the rider ID."""
    await client.post("/users", json={"email": email, "name": email.split("@")[0]})
    applied = await client.post(
        "/riders",
        json={"name": email.split("@")[0], "district": district, "phone": "01700000000"},
        headers=auth(email),
    )
    assert applied.status_code == 201, applied.text
    rider_id = applied.json()["inserted_id"]
    approved = await client.patch(f"/riders/{rider_id}", json={"status": "active"}, headers=auth(ADMIN))
    assert approved.status_code == 200, approved.text
    return rider_id


async def assign_parcel(client: AsyncClient, parcel_id: str, rider_id: str) -> Dict[str, Any]:
    response = await client.patch(
        f"/parcels/{parcel_id}/assign-rider",
        json={"rider_id": rider_id},
        headers=auth(ADMIN),
    )
    assert response.status_code == 200, response.text
    return response.json()


async def deliver_parcel(client: AsyncClient, parcel_id: str, rider_email: str = RIDER) -> Dict[str, Any]:
    for status in ("in_transit", "delivered"):
        response = await client.patch(
            f"/parcels/{parcel_id}/status",
            json={"delivery_status": status, "location": "Khulna hub"},
            headers=auth(rider_email),
        )
        assert response.status_code == 200, response.text
    return response.json()
