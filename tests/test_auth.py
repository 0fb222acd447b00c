"""Tests for the local instructor password."""

import pytest

from reading_heroes.errors import AuthMismatchError, CredentialSetupError
from reading_heroes.instructor.auth import InstructorAuth, sha256_hex


@pytest.fixture
def auth(repo):
    return InstructorAuth(repo)


class TestSetup:
    async def test_setup_then_login(self, auth):
        assert not auth.is_configured
        await auth.setup("teach", "teach")
        assert auth.is_configured
        assert await auth.login("teach") is True

    async def test_stores_salted_hash(self, auth, repo):
        await auth.setup("secret1", "secret1")
        digest, salt = repo.get_admin_credential()
        assert digest != "secret1"
        assert len(salt) == 32
        assert digest == sha256_hex(salt + "secret1")

    async def test_short_password_rejected(self, auth):
        with pytest.raises(CredentialSetupError):
            await auth.setup("abc", "abc")
        assert not auth.is_configured

    async def test_mismatched_confirmation(self, auth):
        with pytest.raises(CredentialSetupError):
            await auth.setup("teach", "teech")
        assert not auth.is_configured


class TestLogin:
    async def test_not_configured(self, auth):
        with pytest.raises(CredentialSetupError):
            await auth.login("anything")

    async def test_wrong_password(self, auth):
        await auth.setup("teach", "teach")
        with pytest.raises(AuthMismatchError) as exc_info:
            await auth.login("wrong")
        assert exc_info.value.code == "auth_mismatch"

    async def test_custom_digest(self, repo):
        auth = InstructorAuth(repo, digest=lambda data: data[::-1])
        await auth.setup("teach", "teach")
        digest, salt = repo.get_admin_credential()
        assert digest == (salt + "teach")[::-1]
        assert await auth.login("teach") is True
