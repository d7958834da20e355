"""
LocalMarket Backend: FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() wires settings, the database, the
       external adapters, middleware, exception handlers and routers.
Who:   uvicorn (`uvicorn localmarket.main:app`) and the test suite, which
       calls create_app() with an in-memory database and fake adapters.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  Request ID → Access log → GZip → CORS      │
    │                                                          │
    │  api_router  [Depends(authorize)]  ← ROUTE_POLICY table  │
    │    users, parcels, riders, tracking, payments, products, │
    │    orders, advertisements, watchlist, notifications,     │
    │    contact, health                                       │
    │  ws_router   /ws/notifications (query-string token)      │
    │                                                          │
    │  app.state:  database, identity_provider,                │
    │              payment_gateway, mailer, notification_hub   │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → configuration check → database probe (tenacity)
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from localmarket import __version__
from localmarket.auth.identity import IdentityProvider, JWTIdentityProvider
from localmarket.config import settings
from localmarket.database import Database
from localmarket.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DatabaseError,
    ExternalServiceError,
    LocalMarketError,
    NotFoundError,
    ValidationError,
)
from localmarket.middleware.logging import RequestLoggingMiddleware
from localmarket.middleware.request_id import RequestIDMiddleware, request_id_var
from localmarket.routes import api_router, ws_router
from localmarket.services.mailer import HttpMailRelay, Mailer
from localmarket.services.notification_hub import NotificationHub
from localmarket.services.payment_gateway import PaymentGateway, StripePaymentGateway

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "An internal error occurred. Please try again later."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configures the root logger once at startup.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, to stdout so
    container runtimes collect it.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Report missing external credentials (the server still boots so
           /health can answer)
        3. Probe the database with retries; give up after
           DB_CONNECT_ATTEMPTS and fail startup

    Shutdown:
        Dispose the database engine (closes pooled connections).
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("LocalMarket Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    database: Database = app.state.database
    await database.wait_until_ready(settings.db_connect_attempts, settings.db_connect_wait)
    logger.info("Database reachable")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("LocalMarket Backend shutting down...")
    await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(status_code: int, error: str, message: str, details: Optional[dict] = None) -> JSONResponse:
    content = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Maps exceptions to the shared error body.

    Handler hierarchy:
        ValidationError, RequestValidationError  → 400
        AuthenticationError                      → 401
        AuthorizationError                       → 403
        NotFoundError                            → 404
        DatabaseError, SQLAlchemyError           → 500 (generic message)
        ExternalServiceError                     → 500 (generic message)
        LocalMarketError (base)                  → 500
        Exception (fallback)                     → 500

    500 responses never carry internal details; those are logged only.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = jsonable_encoder(exc.errors(), exclude={"input", "ctx", "url"})
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg", "Invalid request"))
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), message)
        return _error_response(400, "validation_error", message, {"errors": errors})

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        logger.info("[%s] Unauthenticated %s %s: %s", request_id_var.get(""), request.method, request.url.path, exc.context)
        return _error_response(401, "unauthorized", exc.message)

    @app.exception_handler(AuthorizationError)
    async def handle_authorization_error(request: Request, exc: AuthorizationError):
        return _error_response(403, "forbidden", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(500, "server_error", GENERIC_SERVER_ERROR)

    @app.exception_handler(SQLAlchemyError)
    async def handle_sqlalchemy_error(request: Request, exc: SQLAlchemyError):
        logger.error("[%s] Datastore failure: %s", request_id_var.get(""), type(exc).__name__, exc_info=True)
        return _error_response(500, "server_error", GENERIC_SERVER_ERROR)

    @app.exception_handler(ExternalServiceError)
    async def handle_external_service_error(request: Request, exc: ExternalServiceError):
        logger.error("[%s] External service '%s' failed: %s", request_id_var.get(""), exc.service, exc.context)
        return _error_response(500, "server_error", GENERIC_SERVER_ERROR)

    @app.exception_handler(LocalMarketError)
    async def handle_application_error(request: Request, exc: LocalMarketError):
        logger.error("[%s] Application error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(500, "server_error", GENERIC_SERVER_ERROR)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    database: Optional[Database] = None,
    identity_provider: Optional[IdentityProvider] = None,
    payment_gateway: Optional[PaymentGateway] = None,
    mailer: Optional[Mailer] = None,
) -> FastAPI:
    """
    Assemble the application.

    Every collaborator can be injected; anything omitted is built from
    settings. Nothing connects at construction time: the database is first
    contacted by the lifespan probe or the first request.
    """
    app = FastAPI(
        title="LocalMarket API",
        description=(
            "Parcel delivery and local marketplace backend: parcels, riders, "
            "tracking, payments, products, orders and notifications."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.database = database or Database.from_settings(settings)
    app.state.identity_provider = identity_provider or JWTIdentityProvider.from_settings(settings)
    app.state.payment_gateway = payment_gateway or StripePaymentGateway.from_settings(settings)
    app.state.mailer = mailer or HttpMailRelay.from_settings(settings)
    app.state.notification_hub = NotificationHub()

    # ── Middleware (last added runs first) ────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(api_router)
    app.include_router(ws_router)

    return app


def run() -> None:
    """Console entry point: serve the module-level app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "localmarket.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
