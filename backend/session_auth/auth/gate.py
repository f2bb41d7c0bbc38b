"""Bearer token resolution shared by the HTTP and RPC auth gates."""
from __future__ import annotations

import logging
from typing import Optional

from session_auth.context import AppContext
from session_auth.models.user import User
from session_auth.repositories.oauth_tokens import OauthTokenRepository
from session_auth.repositories.users import UserRepository

logger = logging.getLogger(__name__)

MISSING_HEADER = "Missing or invalid Authorization header"
INVALID_TOKEN = "Invalid or expired token"
USER_NOT_FOUND = "User not found"
INTERNAL_ERROR = "Authentication failed due to an internal error"


class Unauthorized(Exception):
    """A request that does not carry a usable session. ``reason`` is client-facing."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token of an ``Authorization: Bearer <token>`` header.

    The header must be exactly two parts separated by a single space; the
    scheme is matched case-insensitively.
    """
    if not authorization:
        return None
    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
        return None
    return parts[1]


async def resolve_user(authorization: Optional[str], context: AppContext) -> User:
    """Map a bearer header to its live user or raise Unauthorized.

    Lookups run token first, then user; a malformed header never reaches
    the datastore.
    """
    token = extract_bearer_token(authorization)
    if token is None:
        logger.debug("Rejected request with malformed Authorization header")
        raise Unauthorized(MISSING_HEADER)

    oauth_token = await OauthTokenRepository(context).find_by_token(token)
    if oauth_token is None:
        raise Unauthorized(INVALID_TOKEN)

    user = await UserRepository(context).find_by_id(oauth_token.user_id)
    if user is None:
        raise Unauthorized(USER_NOT_FOUND)
    return user
