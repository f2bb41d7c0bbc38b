"""Session use cases — account creation, login, logout and user lookups.

Each use case has one top-level ``try/except``. Domain errors become a
failed ``AuthResult`` carrying their message; anything else is logged with
its traceback and reported as "Unknown error".
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError

from session_auth.context import AppContext
from session_auth.errors import (
    ClientError,
    HashingError,
    InvalidCredentials,
    InvalidPassword,
    UserAlreadyExists,
    UserNotFound,
)
from session_auth.models.oauth_token import OauthToken
from session_auth.models.user import User
from session_auth.repositories.oauth_tokens import OauthTokenRepository
from session_auth.repositories.users import UserRepository
from session_auth.schemas.user import UserCreate

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error"


@dataclass
class AuthResult:
    success: bool
    user: Optional[User] = None
    token: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "AuthResult":
        return cls(success=False, error=error)


def _failure(action: str, exc: Exception) -> AuthResult:
    if isinstance(exc, ClientError):
        logger.info("%s failed: %s", action, exc.message)
        return AuthResult.failure(exc.message)
    logger.exception("Error %s", action)
    return AuthResult.failure(UNKNOWN_ERROR)


async def create_user(args: UserCreate, context: AppContext) -> AuthResult:
    """Create an account and issue its first session token."""
    try:
        users = UserRepository(context)
        if await users.find_by_email_or_phone(args.email, args.phone) is not None:
            raise UserAlreadyExists()

        try:
            user = await users.create(args)
        except IntegrityError as exc:
            # Lost a race with an identical signup between the check and the insert
            raise UserAlreadyExists() from exc
        oauth_token = await OauthTokenRepository(context).create(user.id)
        return AuthResult(success=True, user=user, token=oauth_token.token)
    except Exception as exc:
        return _failure("creating user", exc)


async def authenticate(email: str, phone: str, password: str, context: AppContext) -> AuthResult:
    """Verify credentials and issue (or rotate) the user's session token."""
    try:
        if not email and not phone:
            raise InvalidCredentials()

        user = await UserRepository(context).find_by_email_or_phone(email, phone)
        if user is None:
            raise UserNotFound()

        try:
            valid = await context.password.verify(user.password_hash, password)
        except HashingError:
            logger.error("Password verification could not run for user %s", user.id, exc_info=True)
            valid = False
        if not valid:
            raise InvalidPassword()

        oauth_token = await _issue_token(user.id, OauthTokenRepository(context))
        logger.info("User %s authenticated", user.id)
        return AuthResult(success=True, user=user, token=oauth_token.token)
    except Exception as exc:
        return _failure("authenticating user", exc)


async def _issue_token(user_id: int, tokens: OauthTokenRepository) -> OauthToken:
    """Rotate the user's live token, or create one if there is none."""
    existing = await tokens.find_by_user_id(user_id)
    if existing is not None and await tokens.regenerate(existing):
        return existing

    try:
        return await tokens.create(user_id)
    except IntegrityError:
        # A concurrent login created the row first; rotate that one instead.
        winner = await tokens.find_by_user_id(user_id)
        if winner is None or not await tokens.regenerate(winner):
            raise
        return winner


async def logout(token: str, context: AppContext) -> bool:
    """Revoke the session identified by ``token``. False if it was not active."""
    try:
        tokens = OauthTokenRepository(context)
        oauth_token = await tokens.find_by_token(token)
        if oauth_token is None:
            return False
        return await tokens.revoke(oauth_token)
    except Exception:
        logger.exception("Error revoking session token")
        return False


async def find_user_by_id(user_id: int, context: AppContext) -> AuthResult:
    try:
        user = await UserRepository(context).find_by_id(user_id)
        return AuthResult(success=True, user=user)
    except Exception as exc:
        return _failure("finding user by id", exc)


async def find_user_by_email_or_phone(email: str, phone: str, context: AppContext) -> AuthResult:
    try:
        user = await UserRepository(context).find_by_email_or_phone(email, phone)
        return AuthResult(success=True, user=user)
    except Exception as exc:
        return _failure("finding user by email or phone", exc)
