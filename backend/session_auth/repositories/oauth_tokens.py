"""Session token persistence: generation, rotation and revocation."""
from __future__ import annotations

import secrets
from typing import Optional

from sqlalchemy import select, update

from session_auth.database import active, utcnow
from session_auth.models.oauth_token import OauthToken
from session_auth.repositories.base import Repository

TOKEN_BYTES = 32


class OauthTokenRepository(Repository):
    """Manages the single active bearer token of each user."""

    @staticmethod
    def generate_token() -> str:
        """64 lowercase hex characters from the OS CSPRNG; uniqueness rests on entropy."""
        return secrets.token_hex(TOKEN_BYTES)

    async def create(self, user_id: int) -> OauthToken:
        """Insert a fresh token row.

        Raises IntegrityError if the user already holds an active token.
        """
        return await self._insert(OauthToken(user_id=user_id, token=self.generate_token()))

    async def regenerate(self, oauth_token: OauthToken) -> bool:
        """Rotate the token value in place, keeping the row id."""
        value = self.generate_token()
        now = utcnow()
        updated = await self._write(
            update(OauthToken)
            .where(OauthToken.id == oauth_token.id, active(OauthToken))
            .values(token=value, updated_at=now)
        )
        if updated == 1:
            oauth_token.token = value
            oauth_token.updated_at = now
        return updated == 1

    async def revoke(self, oauth_token: OauthToken) -> bool:
        """Soft-delete the token. A second revoke returns False."""
        now = utcnow()
        revoked = await self._write(
            update(OauthToken)
            .where(OauthToken.id == oauth_token.id, active(OauthToken))
            .values(deleted_at=now, updated_at=now)
        )
        if revoked:
            oauth_token.deleted_at = now
        return revoked > 0

    async def find_by_id(self, token_id: int) -> Optional[OauthToken]:
        return await self._first(
            select(OauthToken).where(OauthToken.id == token_id, active(OauthToken))
        )

    async def find_by_user_id(self, user_id: int) -> Optional[OauthToken]:
        return await self._first(
            select(OauthToken).where(OauthToken.user_id == user_id, active(OauthToken))
        )

    async def find_by_token(self, token: str) -> Optional[OauthToken]:
        return await self._first(
            select(OauthToken).where(OauthToken.token == token, active(OauthToken))
        )
