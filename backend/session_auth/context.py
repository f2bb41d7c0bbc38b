"""AppContext: shared resources threaded through every repository and use case.

One instance is built at process start (see ``main.lifespan``) and closed on
shutdown. Requests never mutate it; the auth gates derive a per-request copy
carrying the authenticated user via ``with_user``.
"""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from session_auth.config import Settings
from session_auth.database import build_engine, build_sessionmaker
from session_auth.errors import DatabaseConnectionError
from session_auth.models.user import User
from session_auth.services.password import Password

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppContext:
    engine: AsyncEngine
    sessionmaker: async_sessionmaker
    password: Password
    user: Optional[User] = None

    @classmethod
    async def initialize(cls, settings: Settings, *, password: Password | None = None) -> AppContext:
        """Connect to the datastore and verify it answers ``SELECT 1``."""
        if not settings.has_database_config():
            raise DatabaseConnectionError(
                "Missing database config. Set DATABASE_URL or DB_HOST, DB_USER, DB_NAME."
            )

        engine = build_engine(settings)
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as exc:
            await engine.dispose()
            raise DatabaseConnectionError("Failed to connect to the database") from exc

        logger.info("Database connected (%s)", engine.url.render_as_string(hide_password=True))
        return cls(
            engine=engine,
            sessionmaker=build_sessionmaker(engine),
            password=password or Password(),
        )

    def session(self) -> AsyncSession:
        return self.sessionmaker()

    def with_user(self, user: User) -> AppContext:
        return dataclasses.replace(self, user=user)

    async def health_check(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            logger.warning("Database health check failed", exc_info=True)
            return False
        return True

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Database connection closed")
