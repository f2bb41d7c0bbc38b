"""User procedures. Thin wrappers over the use cases; no business logic here."""
import logging

from sqlalchemy.exc import IntegrityError

from session_auth.auth.gate import extract_bearer_token
from session_auth.models.user import User
from session_auth.repositories.users import UserRepository
from session_auth.rpc.core import CallContext, RpcError, RpcErrorCode, router
from session_auth.rpc.procedures import logged_procedure, protected_procedure
from session_auth.schemas.user import (
    FindByEmailOrPhone,
    FindById,
    LoginRequest,
    UserCreate,
    UserOut,
    UserUpdate,
)
from session_auth.services import auth_service

logger = logging.getLogger(__name__)


def _safe(user: User) -> dict:
    return UserOut.model_validate(user).model_dump(mode="json")


@logged_procedure.input(UserCreate).mutation
async def create(ctx: CallContext, input: UserCreate) -> dict:
    result = await auth_service.create_user(input, ctx.context)
    if not result.success or result.user is None:
        raise RpcError(RpcErrorCode.BAD_REQUEST, result.error or "Failed to create user")
    return {"user": _safe(result.user), "token": result.token}


@logged_procedure.input(LoginRequest).mutation
async def login(ctx: CallContext, input: LoginRequest) -> dict:
    result = await auth_service.authenticate(input.email, input.phone, input.password, ctx.context)
    if not result.success or result.user is None:
        raise RpcError(RpcErrorCode.BAD_REQUEST, result.error or "Failed to authenticate")
    return {"user": _safe(result.user), "token": result.token}


@logged_procedure.input(FindById).query
async def find_by_id(ctx: CallContext, input: FindById) -> dict:
    result = await auth_service.find_user_by_id(input.id, ctx.context)
    if not result.success:
        raise RpcError(RpcErrorCode.INTERNAL_SERVER_ERROR, result.error or "Failed to find user")
    if result.user is None:
        raise RpcError(RpcErrorCode.NOT_FOUND, f"User with ID {input.id} not found")
    return _safe(result.user)


@logged_procedure.input(FindByEmailOrPhone).query
async def find_by_email_or_phone(ctx: CallContext, input: FindByEmailOrPhone) -> dict | None:
    if not input.email and not input.phone:
        raise RpcError(RpcErrorCode.BAD_REQUEST, "Email or phone is required")
    result = await auth_service.find_user_by_email_or_phone(input.email, input.phone, ctx.context)
    if not result.success:
        raise RpcError(RpcErrorCode.INTERNAL_SERVER_ERROR, result.error or "Failed to find user")
    return _safe(result.user) if result.user else None


@protected_procedure.query
async def me(ctx: CallContext, input: None) -> dict:
    return _safe(ctx.user)


@protected_procedure.input(UserUpdate).mutation
async def update(ctx: CallContext, input: UserUpdate) -> dict:
    try:
        updated = await UserRepository(ctx.context).update(ctx.user, input)
    except IntegrityError:
        raise RpcError(RpcErrorCode.BAD_REQUEST, "Email or phone already in use") from None
    if not updated:
        raise RpcError(RpcErrorCode.NOT_FOUND, f"User with ID {ctx.user.id} not found")
    logger.info("User %s updated their profile", ctx.user.id)
    return _safe(ctx.user)


@protected_procedure.mutation
async def logout(ctx: CallContext, input: None) -> dict:
    token = extract_bearer_token(ctx.authorization)
    return {"success": await auth_service.logout(token, ctx.context)}


user_router = router(
    create=create,
    login=login,
    findById=find_by_id,
    findByEmailOrPhone=find_by_email_or_phone,
    me=me,
    update=update,
    logout=logout,
)
