"""Base procedures and middleware for the RPC layer."""
import logging
import time
from typing import Any

from session_auth.auth.gate import INTERNAL_ERROR, Unauthorized, resolve_user
from session_auth.rpc.core import CallContext, CallInfo, Next, Procedure, RpcError, RpcErrorCode

logger = logging.getLogger(__name__)


async def logger_middleware(ctx: CallContext, info: CallInfo, next_: Next) -> Any:
    start = time.perf_counter()
    try:
        return await next_(ctx)
    finally:
        logger.info("[rpc] %s %s - %dms", info.type, info.path, (time.perf_counter() - start) * 1000)


async def auth_middleware(ctx: CallContext, info: CallInfo, next_: Next) -> Any:
    """RPC auth gate: downstream procedures always see a non-null ``ctx.user``."""
    try:
        user = await resolve_user(ctx.authorization, ctx.context)
    except Unauthorized as exc:
        raise RpcError(RpcErrorCode.UNAUTHORIZED, exc.reason) from None
    except Exception as exc:
        logger.exception("Auth middleware failed for %s", info.path)
        raise RpcError(RpcErrorCode.INTERNAL_SERVER_ERROR, INTERNAL_ERROR) from exc

    return await next_(ctx.with_user(user))


public_procedure = Procedure()
logged_procedure = public_procedure.use(logger_middleware)
protected_procedure = logged_procedure.use(auth_middleware)
