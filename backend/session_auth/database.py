"""Async SQLAlchemy engine factory, declarative base and shared query helpers."""
from datetime import datetime, timezone

from sqlalchemy import ColumnElement, text
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from session_auth.config import Settings

Base = declarative_base()

# Partial-index predicate matching active()
ACTIVE_ROW = text("deleted_at IS NULL")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def active(model) -> ColumnElement:
    """Row filter for records that have not been soft-deleted."""
    return model.deleted_at.is_(None)


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the pooled async engine described by ``settings``."""
    url = settings.database_url()
    if url.startswith("sqlite"):
        # Pool sizing options are not accepted by the SQLite dialect
        return create_async_engine(url, connect_args={"check_same_thread": False})

    connect_args = {"ssl": "require"} if settings.use_ssl() else {}
    return create_async_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    # expire_on_commit=False keeps returned rows readable after the session closes
    return async_sessionmaker(engine, autoflush=False, expire_on_commit=False)
