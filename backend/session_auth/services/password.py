"""Argon2id password hashing.

Both calls run in a worker thread so the event loop stays free while a
64 MiB hash is computed.
"""
import asyncio

from argon2 import PasswordHasher, Type
from argon2.exceptions import VerifyMismatchError

from session_auth.errors import HashingError

MEMORY_COST_KIB = 65536
TIME_COST = 3
PARALLELISM = 4


class Password:
    """One-way hash + verify of plaintext secrets."""

    def __init__(
        self,
        *,
        memory_cost: int = MEMORY_COST_KIB,
        time_cost: int = TIME_COST,
        parallelism: int = PARALLELISM,
    ) -> None:
        self._hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            type=Type.ID,
        )

    async def encrypt(self, plaintext: str) -> str:
        try:
            return await asyncio.to_thread(self._hasher.hash, plaintext)
        except Exception as exc:
            raise HashingError(f"Failed to encrypt password: {exc}") from exc

    async def verify(self, password_hash: str, plaintext: str) -> bool:
        """Return True on match, False on mismatch.

        A hash that cannot be checked at all (malformed, unsupported
        parameters) raises HashingError so callers can tell it apart from a
        wrong password.
        """
        try:
            return await asyncio.to_thread(self._hasher.verify, password_hash, plaintext)
        except VerifyMismatchError:
            return False
        except Exception as exc:
            raise HashingError(f"Failed to verify password: {exc}") from exc
