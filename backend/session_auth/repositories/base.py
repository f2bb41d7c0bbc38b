"""Shared plumbing for repositories: one short-lived session per operation."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import Executable, Select

if TYPE_CHECKING:
    from session_auth.context import AppContext


class Repository:
    def __init__(self, context: AppContext) -> None:
        self._context = context

    async def _first(self, stmt: Select) -> Any | None:
        async with self._context.session() as session:
            result = await session.execute(stmt.limit(1))
            return result.scalars().first()

    async def _write(self, *stmts: Executable) -> int:
        """Run write statements in one transaction; return rows hit by the first."""
        async with self._context.session() as session:
            async with session.begin():
                results = [await session.execute(stmt) for stmt in stmts]
        return results[0].rowcount if results else 0

    async def _insert(self, row: Any) -> Any:
        async with self._context.session() as session:
            session.add(row)
            await session.commit()
            # Pull server-side defaults (id, timestamps) before the session closes
            await session.refresh(row)
        return row
