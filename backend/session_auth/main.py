"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from session_auth.auth.http import install_auth_gate
from session_auth.config import settings
from session_auth.context import AppContext
from session_auth.routers import auth, users
from session_auth.rpc import adapter as rpc_adapter

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the shared AppContext on startup and release it on shutdown.

    A context placed on ``app.state`` beforehand (tests, embedding) is used
    as-is and left for its owner to close.
    """
    owned = getattr(app.state, "context", None) is None
    if owned:
        app.state.context = await AppContext.initialize(settings)
    try:
        yield
    finally:
        if owned:
            await app.state.context.close()
            app.state.context = None


def create_app() -> FastAPI:
    app = FastAPI(
        title="Session Auth",
        description="Bearer-token session service with HTTP and RPC auth gates",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS.split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_auth_gate(app)

    app.include_router(users.router, prefix="/api/users", tags=["Users"])
    app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
    app.include_router(rpc_adapter.api, prefix="/v1/trpc", tags=["RPC"])

    @app.get("/api/health")
    async def health_check(request: Request):
        healthy = await request.app.state.context.health_check()
        return {"status": "ok" if healthy else "degraded", "database": healthy}

    return app


app = create_app()
