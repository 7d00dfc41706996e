"""Catalog database: engine, session factory and the per-request session dependency.

Each application owns one ``Database`` built from its ``Settings`` and kept on
``app.state.database``; nothing here reads module-level configuration.
"""

from collections.abc import AsyncGenerator
from typing import Any

from fastapi import Request
from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from products_api.config import Settings

# Stable constraint names, so uq_products_sku is the same on every backend.
NAMING_CONVENTION: dict[str, str] = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base for catalog models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def make_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine with dialect-specific options.

    - PostgreSQL (asyncpg): pool sizing from settings, statement timeout
    - SQLite (aiosqlite): no pool sizing, usable from any thread
    """
    kwargs: dict[str, Any] = {"echo": settings.db_echo}
    if settings.database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=settings.db_pool_pre_ping,
            connect_args={"command_timeout": settings.db_statement_timeout},
        )
    return create_async_engine(settings.database_url, **kwargs)


class Database:
    """Engine plus session factory for one application instance."""

    def __init__(self, settings: Settings) -> None:
        self.engine = make_engine(settings)
        # expire_on_commit=False: committed products stay readable without
        # an implicit reload, which async sessions cannot do.
        self.sessionmaker = async_sessionmaker(self.engine, expire_on_commit=False)

    async def create_schema(self) -> None:
        """Create missing tables. Used at startup when DB_CREATE_SCHEMA is set."""
        import products_api.models  # noqa: F401 registers Product with Base.metadata

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request from the app's Database.

    Commits when the route returns, rolls back when it raises. Services and
    repositories only flush.
    """
    database: Database = request.app.state.database
    async with database.sessionmaker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
