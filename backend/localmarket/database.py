"""
LocalMarket Backend: Database Engine and Session Management
============================================================

What:  Async SQLAlchemy engine, session factory, declarative base, and the
       FastAPI dependency that hands one session to each request.
How:   A `Database` object owns the engine and session factory. The application
       factory attaches one to `app.state.database`; `get_db_session` reads it
       from there, so tests inject an in-memory SQLite database without
       touching module globals.
When:  Engine created with the app; sessions created per request.

Connection Pooling (PostgreSQL):
    pool_size / max_overflow:  from settings
    pool_pre_ping:             validates connections before use
    pool_recycle=3600:         recycles long-lived connections

SQLite URLs (tests, local demos) get a StaticPool so an in-memory database
survives across sessions.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import Request
from sqlalchemy import JSON, DateTime, Uuid, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool
from tenacity import (
    before_sleep_log,
    retry,
    stop_after_attempt,
    wait_fixed,
)

from localmarket.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp used for every stored datetime."""
    return datetime.now(timezone.utc)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """Base class for all ORM models; its metadata drives Alembic."""
    pass


class DocumentMixin:
    """
    Shared columns for every stored entity.

    Entities are loosely-typed documents: the columns declared on each model
    hold the fields the application filters or acts on, and `extra` keeps
    whatever additional fields the client sent. `to_document()` merges the
    two back into one flat JSON-ready dict.
    """

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    extra: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def to_document(self) -> Dict[str, Any]:
        document: Dict[str, Any] = dict(self.extra or {})
        for column in self.__table__.columns:  # type: ignore[attr-defined]
            if column.key == "extra":
                continue
            document[column.key] = getattr(self, column.key)
        return document

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id})>"


# ── Engine and Sessions ───────────────────────────────────────────────────
class Database:
    """
    Owns an async engine and its session factory.

    Example:
        database = Database.from_settings(settings)
        async with database.session() as session:
            ...
    """

    def __init__(self, url: str, *, echo: bool = False, **engine_kwargs: Any):
        if url.startswith("sqlite"):
            engine_kwargs.setdefault("poolclass", StaticPool)
            engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "Database":
        config = config or default_settings
        kwargs: Dict[str, Any] = {}
        if not config.database_url.startswith("sqlite"):
            kwargs.update(
                pool_size=config.db_pool_size,
                max_overflow=config.db_max_overflow,
                pool_pre_ping=config.db_pool_pre_ping,
                pool_recycle=3600,
            )
        return cls(config.database_url, echo=config.log_level == "DEBUG", **kwargs)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Yields a session that is rolled back if the caller raises.

        Commits are explicit: services commit through their unit of work once
        every step of a workflow has been flushed.
        """
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> None:
        """Executes SELECT 1; raises whatever the driver raises."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def wait_until_ready(self, attempts: int, wait_seconds: float) -> None:
        """
        Pings the database until it answers, retrying with a fixed wait.

        Only used at startup so the API tolerates a database container that
        becomes reachable after it. Request handlers never retry.
        """
        probe = retry(
            stop=stop_after_attempt(attempts),
            wait=wait_fixed(wait_seconds),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )(self.ping)
        await probe()

    async def create_all(self) -> None:
        """Creates every table known to `Base.metadata` (tests and demos)."""
        import localmarket.models  # noqa: F401  registers the models

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Closes all pooled connections."""
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency providing one session per request.

    The session comes from the `Database` attached to the running app.
    Any exception raised by the handler rolls back uncommitted work before it
    propagates to the global error handlers.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
