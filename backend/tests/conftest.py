"""Pytest fixtures — a fresh SQLite (aiosqlite) database file per test."""
import httpx
import pytest
from sqlalchemy import text

from session_auth.config import Settings
from session_auth.context import AppContext
from session_auth.database import Base
from session_auth.main import create_app
from session_auth.schemas.user import UserCreate
from session_auth.services.password import Password

# Import all models so they register with Base.metadata
from session_auth.models.user import User               # noqa: F401
from session_auth.models.oauth_token import OauthToken  # noqa: F401

# Cheap Argon2id parameters keep the suite fast; test_password.py covers the real ones.
FAST_PASSWORD = dict(memory_cost=1024, time_cost=1, parallelism=1)


def make_settings(url: str) -> Settings:
    return Settings(DATABASE_URL=url, _env_file=None)


@pytest.fixture(scope="function")
async def context(tmp_path):
    """An initialized AppContext over an empty schema."""
    settings = make_settings(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    ctx = await AppContext.initialize(settings, password=Password(**FAST_PASSWORD))
    async with ctx.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield ctx
    await ctx.close()


@pytest.fixture(scope="function")
async def client(context):
    """httpx client bound to the ASGI app, sharing the test context."""
    app = create_app()
    app.state.context = context
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def user_args(**overrides) -> UserCreate:
    data = {
        "name": "Jane",
        "email": "jane@x.com",
        "phone": "+1000",
        "password": "longenough1",
    }
    data.update(overrides)
    return UserCreate(**data)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def create_test_user(client: httpx.AsyncClient, **overrides) -> dict:
    """Helper — POST /api/users and return response JSON ({user, token})."""
    resp = await client.post("/api/users/", json=user_args(**overrides).model_dump())
    assert resp.status_code == 201, resp.text
    return resp.json()


async def count_rows(context: AppContext, table: str) -> int:
    async with context.engine.connect() as conn:
        result = await conn.execute(text(f"SELECT COUNT(*) FROM {table}"))
        return result.scalar_one()


async def soft_delete_user_row(context: AppContext, user_id: int) -> None:
    """Mark a user deleted without touching its tokens (an orphaned session)."""
    async with context.engine.begin() as conn:
        await conn.execute(
            text("UPDATE users SET deleted_at = CURRENT_TIMESTAMP WHERE id = :id"), {"id": user_id}
        )
