"""Tests for the Argon2id password hasher (real production parameters)."""
import pytest

from session_auth.errors import HashingError
from session_auth.services.password import Password


@pytest.fixture(scope="module")
def password():
    return Password()


class TestPasswordHasher:

    @pytest.mark.asyncio
    async def test_round_trip_unicode(self, password):
        secret = "pässwörd-密码-🔑"
        hashed = await password.encrypt(secret)
        assert hashed != secret
        assert await password.verify(hashed, secret) is True
        assert await password.verify(hashed, "pässwörd-密码-🔐") is False

    @pytest.mark.asyncio
    async def test_uses_argon2id_parameters(self, password):
        hashed = await password.encrypt("longenough1")
        assert hashed.startswith("$argon2id$")
        assert "m=65536,t=3,p=4" in hashed

    @pytest.mark.asyncio
    async def test_same_password_hashes_differently(self, password):
        """Salted: two hashes of one password differ but both verify."""
        first = await password.encrypt("longenough1")
        second = await password.encrypt("longenough1")
        assert first != second
        assert await password.verify(second, "longenough1")

    @pytest.mark.asyncio
    async def test_malformed_hash_raises(self, password):
        """A hash that cannot be checked is an error, not a mismatch."""
        with pytest.raises(HashingError):
            await password.verify("not-a-hash", "longenough1")

    @pytest.mark.asyncio
    async def test_encrypt_failure_raises(self, password):
        with pytest.raises(HashingError):
            await password.encrypt(None)
