"""FastAPI adapter for the RPC layer, mounted at /v1/trpc.

Endpoints:
  - POST /v1/trpc/user.create            (mutation, JSON body is the input)
  - GET  /v1/trpc/user.findById?input={"id": 1}   (query)
"""
import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from session_auth.auth.http import get_context
from session_auth.context import AppContext
from session_auth.rpc.core import CallContext, RpcError, RpcErrorCode, call_procedure, router
from session_auth.rpc.routers.user import user_router

logger = logging.getLogger(__name__)

app_router = router(
    user=user_router,
)

api = APIRouter()


def _decode(raw: Optional[str | bytes]) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        raise RpcError(RpcErrorCode.BAD_REQUEST, "Input is not valid JSON") from None


def _error_response(path: str, exc: RpcError) -> JSONResponse:
    if exc.code == RpcErrorCode.UNAUTHORIZED:
        logger.debug("[rpc error] %s: %s", path, exc.message)
    else:
        logger.warning("[rpc error] %s: %s", path, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content={
            "error": {
                "message": exc.message,
                "code": exc.code.value,
                "data": {"code": exc.code.value, "httpStatus": exc.http_status, "path": path},
            }
        },
    )


async def _dispatch(path: str, request: Request, context: AppContext, raw: Any, kind: str):
    try:
        ctx = CallContext(context=context, headers=request.headers)
        data = await call_procedure(app_router, path, ctx, _decode(raw), expected_type=kind)
    except RpcError as exc:
        return _error_response(path, exc)
    return {"result": {"data": data}}


@api.get("/{path}")
async def rpc_query(
    path: str,
    request: Request,
    raw_input: Optional[str] = Query(default=None, alias="input"),
    context: AppContext = Depends(get_context),
):
    return await _dispatch(path, request, context, raw_input, "query")


@api.post("/{path}")
async def rpc_mutation(path: str, request: Request, context: AppContext = Depends(get_context)):
    return await _dispatch(path, request, context, await request.body(), "mutation")
