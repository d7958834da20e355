"""
LocalMarket Backend: Identity Provider Interface
=================================================

What:  Verifies bearer tokens issued by the external identity provider and
       turns them into an `Identity` (uid, email, raw claims).
How:   `IdentityProvider` is the abstract contract; `JWTIdentityProvider`
       validates signed JWTs with PyJWT, either against a shared secret
       (HS256, development and tests) or against the provider's published
       JWKS (RS256, production).
Who:   Called by the authorization interceptor for every non-public route and
       by the notification WebSocket endpoint.

Firebase-style configuration:
    AUTH_JWKS_URL=https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com
    AUTH_JWT_ALGORITHM=RS256
    AUTH_ISSUER=https://securetoken.google.com/<project-id>
    AUTH_AUDIENCE=<project-id>
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import jwt
from fastapi.concurrency import run_in_threadpool

from localmarket.config import Settings, settings as default_settings
from localmarket.exceptions import AuthenticationError, ExternalServiceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The decoded caller: provider user ID, lower-cased email, all claims."""

    uid: str
    email: str
    claims: Dict[str, Any] = field(default_factory=dict)


class IdentityProvider(ABC):
    """Contract for bearer-token verification."""

    @abstractmethod
    async def verify(self, token: str) -> Identity:
        """
        Validate a bearer token.

        Raises:
            AuthenticationError: token malformed, expired, badly signed, or
                missing an email claim (→ 401)
            ExternalServiceError: the provider's key endpoint is unreachable
                or verification is not configured (→ 500)
        """
        ...


class JWTIdentityProvider(IdentityProvider):
    """PyJWT-based verifier for shared-secret or JWKS-signed tokens."""

    def __init__(
        self,
        secret: str = "",
        algorithm: str = "HS256",
        jwks_url: str = "",
        issuer: Optional[str] = None,
        audience: Optional[str] = None,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.issuer = issuer
        self.audience = audience
        self._jwks_client: Optional[jwt.PyJWKClient] = (
            jwt.PyJWKClient(jwks_url) if jwks_url else None
        )

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "JWTIdentityProvider":
        config = config or default_settings
        return cls(
            secret=config.auth_jwt_secret,
            algorithm=config.auth_jwt_algorithm,
            jwks_url=config.auth_jwks_url,
            issuer=config.auth_issuer,
            audience=config.auth_audience,
        )

    async def _signing_key(self, token: str) -> Any:
        if self._jwks_client is not None:
            # PyJWKClient fetches over blocking urllib; it caches the key set
            signing_key = await run_in_threadpool(self._jwks_client.get_signing_key_from_jwt, token)
            return signing_key.key
        if self.secret:
            return self.secret
        raise ExternalServiceError(
            service="identity_provider",
            message="Token verification is not configured.",
        )

    async def verify(self, token: str) -> Identity:
        try:
            key = await self._signing_key(token)
            claims = jwt.decode(
                token,
                key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                audience=self.audience,
                options={"require": ["exp"], "verify_aud": self.audience is not None},
            )
        except jwt.PyJWKClientConnectionError as e:
            logger.error("Identity provider key endpoint unreachable: %s", str(e))
            raise ExternalServiceError(
                service="identity_provider",
                context={"error_type": type(e).__name__},
            )
        except jwt.PyJWTError as e:
            logger.info("Rejected bearer token: %s", str(e))
            raise AuthenticationError(context={"reason": type(e).__name__})

        email = claims.get("email")
        if not isinstance(email, str) or not email:
            raise AuthenticationError(context={"reason": "missing email claim"})

        uid = claims.get("sub") or claims.get("user_id") or email
        return Identity(uid=str(uid), email=email.strip().lower(), claims=claims)
