"""Tests for the procedure pipeline and its auth middleware, called in-process."""
from unittest.mock import AsyncMock

import pytest

from session_auth.auth.gate import INTERNAL_ERROR, INVALID_TOKEN, MISSING_HEADER, USER_NOT_FOUND
from session_auth.repositories.oauth_tokens import OauthTokenRepository
from session_auth.repositories.users import UserRepository
from session_auth.rpc.adapter import app_router
from session_auth.rpc.core import CallContext, RpcError, RpcErrorCode, create_caller, router
from session_auth.rpc.procedures import protected_procedure, public_procedure
from session_auth.services import auth_service
from tests.conftest import soft_delete_user_row, user_args


def caller_for(context, authorization=None):
    headers = {"authorization": authorization} if authorization is not None else {}
    return create_caller(app_router, CallContext(context=context, headers=headers))


async def _session(context):
    result = await auth_service.create_user(user_args(), context)
    return result.user, result.token


class TestAuthMiddleware:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "authorization", [None, "", "Bearer", "Bearer ", "Bearer  tok", "Token tok", "Bearer a b"]
    )
    async def test_malformed_header_never_hits_datastore(self, context, monkeypatch, authorization):
        lookup = AsyncMock(return_value=None)
        monkeypatch.setattr(OauthTokenRepository, "find_by_token", lookup)

        with pytest.raises(RpcError) as exc_info:
            await caller_for(context, authorization)("user.me")

        assert exc_info.value.code == RpcErrorCode.UNAUTHORIZED
        assert exc_info.value.message == MISSING_HEADER
        assert exc_info.value.http_status == 401
        lookup.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_token_skips_user_lookup(self, context, monkeypatch):
        user_lookup = AsyncMock()
        monkeypatch.setattr(UserRepository, "find_by_id", user_lookup)

        with pytest.raises(RpcError) as exc_info:
            await caller_for(context, "Bearer " + "f" * 64)("user.me")

        assert exc_info.value.code == RpcErrorCode.UNAUTHORIZED
        assert exc_info.value.message == INVALID_TOKEN
        user_lookup.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_revoked_token_skips_user_lookup(self, context, monkeypatch):
        _, token = await _session(context)
        assert await auth_service.logout(token, context) is True

        user_lookup = AsyncMock()
        monkeypatch.setattr(UserRepository, "find_by_id", user_lookup)

        with pytest.raises(RpcError) as exc_info:
            await caller_for(context, f"Bearer {token}")("user.me")

        assert exc_info.value.code == RpcErrorCode.UNAUTHORIZED
        assert exc_info.value.message == INVALID_TOKEN
        user_lookup.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_token_of_deleted_user(self, context):
        user, token = await _session(context)
        await soft_delete_user_row(context, user.id)

        with pytest.raises(RpcError) as exc_info:
            await caller_for(context, f"Bearer {token}")("user.me")
        assert exc_info.value.message == USER_NOT_FOUND

    @pytest.mark.asyncio
    async def test_internal_failure(self, context, monkeypatch):
        monkeypatch.setattr(
            OauthTokenRepository, "find_by_token", AsyncMock(side_effect=RuntimeError("db down"))
        )

        with pytest.raises(RpcError) as exc_info:
            await caller_for(context, "Bearer " + "a" * 64)("user.me")

        assert exc_info.value.code == RpcErrorCode.INTERNAL_SERVER_ERROR
        assert exc_info.value.message == INTERNAL_ERROR

    @pytest.mark.asyncio
    async def test_protected_procedure_sees_user(self, context):
        user, token = await _session(context)
        seen = {}

        @protected_procedure.query
        async def whoami(ctx, input):
            seen["user"] = ctx.user
            seen["context_user"] = ctx.context.user
            return ctx.user.id

        caller = create_caller(
            router(whoami=whoami),
            CallContext(context=context, headers={"authorization": f"bearer {token}"}),
        )

        assert await caller("whoami") == user.id
        assert seen["user"].id == user.id
        assert seen["context_user"].id == user.id
        assert context.user is None

    @pytest.mark.asyncio
    async def test_auth_runs_before_input_validation(self, context):
        with pytest.raises(RpcError) as exc_info:
            await caller_for(context)("user.update", {"email": "not-an-email"})
        assert exc_info.value.code == RpcErrorCode.UNAUTHORIZED


class TestPipeline:

    @pytest.mark.asyncio
    async def test_middleware_order(self, context):
        calls = []

        async def outer(ctx, info, next_):
            calls.append(("outer", info.path, info.type))
            return await next_(ctx)

        async def inner(ctx, info, next_):
            calls.append(("inner", info.path, info.type))
            return await next_(ctx)

        @public_procedure.use(outer).use(inner).mutation
        async def ping(ctx, input):
            calls.append(("resolver", input))
            return "pong"

        caller = create_caller(router(nested=router(ping=ping)), CallContext(context=context))

        assert await caller("nested.ping", {"x": 1}) == "pong"
        assert calls == [
            ("outer", "nested.ping", "mutation"),
            ("inner", "nested.ping", "mutation"),
            ("resolver", {"x": 1}),
        ]

    def test_builder_does_not_mutate_base(self):
        async def noop(ctx, info, next_):
            return await next_(ctx)

        extended = public_procedure.use(noop)
        assert public_procedure.middlewares == ()
        assert extended.middlewares == (noop,)

    @pytest.mark.asyncio
    async def test_unknown_path(self, context):
        with pytest.raises(RpcError) as exc_info:
            await caller_for(context)("user.nope")
        assert exc_info.value.code == RpcErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_input_validation(self, context):
        with pytest.raises(RpcError) as exc_info:
            await caller_for(context)("user.findById", {"id": 0})
        assert exc_info.value.code == RpcErrorCode.BAD_REQUEST
        assert "id" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_unhandled_resolver_error(self, context):
        @public_procedure.query
        async def explode(ctx, input):
            raise RuntimeError("secret internals")

        caller = create_caller(router(explode=explode), CallContext(context=context))
        with pytest.raises(RpcError) as exc_info:
            await caller("explode")
        assert exc_info.value.code == RpcErrorCode.INTERNAL_SERVER_ERROR
        assert "secret" not in exc_info.value.message
