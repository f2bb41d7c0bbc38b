"""User persistence. Duplicate checks belong to the caller (see auth_service)."""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import or_, select, update

from session_auth.database import active, utcnow
from session_auth.models.oauth_token import OauthToken
from session_auth.models.user import User
from session_auth.repositories.base import Repository
from session_auth.schemas.user import UserCreate, UserUpdate, normalize_email

logger = logging.getLogger(__name__)


class UserRepository(Repository):
    """CRUD helpers for `User`."""

    async def create(self, args: UserCreate) -> User:
        password_hash = await self._context.password.encrypt(args.password)
        user = User(
            full_name=args.name,
            email=args.email,
            phone=args.phone or None,
            password_hash=password_hash,
            color_theme=args.color_theme,
            lang=args.language,
        )
        await self._insert(user)
        logger.info("Created user %s", user.id)
        return user

    async def update(self, user: User, args: UserUpdate) -> bool:
        """Apply a partial update; the stored hash is kept unless a password is given."""
        # An explicit null clears the phone; on required columns it means "leave as is"
        values = {
            field: value
            for field, value in args.model_dump(exclude_unset=True).items()
            if value is not None or field == "phone"
        }
        password = values.pop("password", None)
        if "language" in values:
            values["lang"] = values.pop("language")
        values["password_hash"] = (
            await self._context.password.encrypt(password) if password else user.password_hash
        )
        values["updated_at"] = utcnow()

        updated = await self._write(
            update(User).where(User.id == user.id, active(User)).values(**values)
        )
        if updated == 1:
            for field, value in values.items():
                setattr(user, field, value)
        return updated == 1

    async def delete(self, user: User) -> bool:
        """Soft-delete the user and revoke their live tokens.

        Returns False when the user was already deleted.
        """
        now = utcnow()
        deleted = await self._write(
            update(User).where(User.id == user.id, active(User)).values(deleted_at=now, updated_at=now),
            update(OauthToken)
            .where(OauthToken.user_id == user.id, active(OauthToken))
            .values(deleted_at=now, updated_at=now),
        )
        if deleted:
            user.deleted_at = now
            logger.info("Deleted user %s", user.id)
        return deleted > 0

    async def find_by_id(self, user_id: int) -> Optional[User]:
        return await self._first(select(User).where(User.id == user_id, active(User)))

    async def find_by_email_or_phone(self, email: str | None, phone: str | None) -> Optional[User]:
        """First live user whose email OR phone equals the given value.

        Emails are normalized like stored ones. Empty values never match, so
        two blanks return None.
        """
        matches = []
        if email:
            matches.append(User.email == normalize_email(email))
        if phone:
            matches.append(User.phone == phone)
        if not matches:
            return None
        return await self._first(
            select(User).where(or_(*matches), active(User)).order_by(User.id)
        )
