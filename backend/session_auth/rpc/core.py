"""Minimal procedure pipeline: typed errors, composable middleware, routers.

A procedure is built immutably::

    find = public_procedure.input(FindById).query(resolver)
    protected = public_procedure.use(auth_middleware)

Middleware receives the call context, the call info and ``next``; it either
raises an RpcError or returns ``await next(ctx)``, optionally with an
augmented context.
"""
from __future__ import annotations

import dataclasses
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional

from pydantic import BaseModel, ValidationError

from session_auth.context import AppContext
from session_auth.models.user import User

logger = logging.getLogger(__name__)


class RpcErrorCode(str, enum.Enum):
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_SUPPORTED = "METHOD_NOT_SUPPORTED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


HTTP_STATUS = {
    RpcErrorCode.BAD_REQUEST: 400,
    RpcErrorCode.UNAUTHORIZED: 401,
    RpcErrorCode.NOT_FOUND: 404,
    RpcErrorCode.METHOD_NOT_SUPPORTED: 405,
    RpcErrorCode.INTERNAL_SERVER_ERROR: 500,
}


class RpcError(Exception):
    def __init__(self, code: RpcErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def http_status(self) -> int:
        return HTTP_STATUS[self.code]


@dataclass(frozen=True)
class CallContext:
    """What every procedure sees. ``user`` is set only behind the auth middleware."""

    context: AppContext
    headers: Mapping[str, str] = field(default_factory=dict)
    user: Optional[User] = None

    @property
    def authorization(self) -> Optional[str]:
        return self.headers.get("authorization")

    def with_user(self, user: User) -> CallContext:
        return dataclasses.replace(self, context=self.context.with_user(user), user=user)


@dataclass(frozen=True)
class CallInfo:
    path: str
    type: str


Next = Callable[[CallContext], Awaitable[Any]]
Middleware = Callable[[CallContext, CallInfo, Next], Awaitable[Any]]
Resolver = Callable[..., Awaitable[Any]]


@dataclass(frozen=True)
class Procedure:
    middlewares: tuple[Middleware, ...] = ()
    input_model: Optional[type[BaseModel]] = None
    resolver: Optional[Resolver] = None
    type: Optional[str] = None

    def use(self, middleware: Middleware) -> Procedure:
        return dataclasses.replace(self, middlewares=self.middlewares + (middleware,))

    def input(self, model: type[BaseModel]) -> Procedure:
        return dataclasses.replace(self, input_model=model)

    def query(self, resolver: Resolver) -> Procedure:
        return dataclasses.replace(self, resolver=resolver, type="query")

    def mutation(self, resolver: Resolver) -> Procedure:
        return dataclasses.replace(self, resolver=resolver, type="mutation")

    def _parse(self, raw_input: Any) -> Any:
        if self.input_model is None:
            return raw_input
        try:
            return self.input_model.model_validate(raw_input if raw_input is not None else {})
        except ValidationError as exc:
            messages = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}"
                for err in exc.errors()
            )
            raise RpcError(RpcErrorCode.BAD_REQUEST, messages) from None

    async def call(self, ctx: CallContext, path: str, raw_input: Any = None) -> Any:
        if self.resolver is None:
            raise RpcError(RpcErrorCode.NOT_FOUND, f"No resolver for procedure '{path}'")
        info = CallInfo(path=path, type=self.type or "query")

        async def resolve(final_ctx: CallContext) -> Any:
            return await self.resolver(ctx=final_ctx, input=self._parse(raw_input))

        handler: Next = resolve
        for middleware in reversed(self.middlewares):
            handler = _link(middleware, info, handler)
        return await handler(ctx)


def _link(middleware: Middleware, info: CallInfo, next_: Next) -> Next:
    async def run(ctx: CallContext) -> Any:
        return await middleware(ctx, info, next_)

    return run


class Router:
    """Named procedures and nested routers, addressed by dotted path."""

    def __init__(self, entries: Mapping[str, "Procedure | Router"]) -> None:
        self._procedures: dict[str, Procedure] = {}
        for name, entry in entries.items():
            if isinstance(entry, Router):
                for sub_path, procedure in entry.procedures.items():
                    self._procedures[f"{name}.{sub_path}"] = procedure
            else:
                self._procedures[name] = entry

    @property
    def procedures(self) -> dict[str, Procedure]:
        return dict(self._procedures)

    def get(self, path: str) -> Optional[Procedure]:
        return self._procedures.get(path)


def router(**entries: "Procedure | Router") -> Router:
    return Router(entries)


async def call_procedure(
    app_router: Router,
    path: str,
    ctx: CallContext,
    raw_input: Any = None,
    *,
    expected_type: Optional[str] = None,
) -> Any:
    """Run ``path`` and normalize every failure into an RpcError."""
    procedure = app_router.get(path)
    if procedure is None:
        raise RpcError(RpcErrorCode.NOT_FOUND, f"No procedure found on path '{path}'")
    if expected_type is not None and procedure.type != expected_type:
        raise RpcError(
            RpcErrorCode.METHOD_NOT_SUPPORTED,
            f"Unsupported {expected_type} on {procedure.type} procedure '{path}'",
        )
    try:
        return await procedure.call(ctx, path, raw_input)
    except RpcError:
        raise
    except Exception as exc:
        logger.exception("Unhandled error in procedure %s", path)
        raise RpcError(RpcErrorCode.INTERNAL_SERVER_ERROR, "Internal server error") from exc


def create_caller(app_router: Router, ctx: CallContext) -> Callable[..., Awaitable[Any]]:
    """In-process caller, handy for tests and server-side composition."""

    async def caller(path: str, raw_input: Any = None) -> Any:
        return await call_procedure(app_router, path, ctx, raw_input)

    return caller
