"""Async engine, session factory and the request-scoped session dependency."""

from __future__ import annotations

from typing import AsyncIterator

from loguru import logger
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fuelpoints_api.core.errors import ConflictError
from fuelpoints_api.core.settings import settings


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy own BEGIN on sqlite so nested SAVEPOINTs behave."""

    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):  # noqa: ARG001
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    options: dict = {"echo": echo, "future": True}
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        # every session must see the same in-memory database
        options["poolclass"] = StaticPool
    engine = create_async_engine(database_url, **options)
    enable_sqlite_savepoints(engine)
    return engine


engine = build_engine(settings.database_url, echo=settings.database_echo)

async_session = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


async def init_models() -> None:
    """Create tables straight from metadata for local sqlite databases."""

    import fuelpoints_api.models  # noqa: F401
    from fuelpoints_api.db.base import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def flush_or_conflict(session: AsyncSession, message: str) -> None:
    """Flush pending writes; a uniqueness violation becomes ``ConflictError``."""

    try:
        await session.flush()
    except IntegrityError as error:
        await session.rollback()
        logger.warning("Uniqueness conflict on flush", reason=message)
        raise ConflictError(message) from error
