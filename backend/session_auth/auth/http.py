"""HTTP auth gate — FastAPI dependency placed in front of protected routes.

Usage::

    @router.get("/me")
    async def me(user: User = Depends(require_user)):
        ...

Failures short-circuit the route with a JSON body of the form
``{"error": "Unauthorized", "message": <reason>}``.
"""
import logging

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse

from session_auth.auth.gate import INTERNAL_ERROR, Unauthorized, resolve_user
from session_auth.context import AppContext
from session_auth.models.user import User

logger = logging.getLogger(__name__)


class AuthGateError(Exception):
    def __init__(self, status_code: int, error: str, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.message = message


def get_context(request: Request) -> AppContext:
    """The process-wide context built by the app lifespan."""
    return request.app.state.context


async def require_user(request: Request, context: AppContext = Depends(get_context)) -> User:
    """Resolve the bearer token to a user and attach both to ``request.state``."""
    try:
        user = await resolve_user(request.headers.get("authorization"), context)
    except Unauthorized as exc:
        raise AuthGateError(status.HTTP_401_UNAUTHORIZED, "Unauthorized", exc.reason) from None
    except Exception:
        logger.exception("Auth gate failed for %s %s", request.method, request.url.path)
        raise AuthGateError(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", INTERNAL_ERROR
        ) from None

    request.state.user = user
    request.state.context = context.with_user(user)
    return user


def get_user_context(request: Request, user: User = Depends(require_user)) -> AppContext:
    """Per-request context carrying the authenticated user."""
    return request.state.context


async def auth_gate_error_handler(request: Request, exc: AuthGateError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "message": exc.message},
        headers=headers,
    )


def install_auth_gate(app: FastAPI) -> None:
    app.add_exception_handler(AuthGateError, auth_gate_error_handler)
