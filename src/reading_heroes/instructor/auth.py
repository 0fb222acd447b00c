"""Local instructor password (salted one-way hash)."""

import asyncio
import hashlib
import hmac
import secrets
from collections.abc import Callable

import structlog

from reading_heroes.errors import AuthMismatchError, CredentialSetupError
from reading_heroes.storage.repository import StudentRepository

logger = structlog.get_logger()

MIN_PASSWORD_LENGTH = 4

Digest = Callable[[str], str]


def sha256_hex(data: str) -> str:
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def generate_salt() -> str:
    return secrets.token_hex(16)


class InstructorAuth:
    """Guards the instructor view with a single locally stored password.

    This is local protection only; the salt and hash live beside the
    student's own data.

    Args:
        repo: Student state repository holding the credential.
        digest: One-way digest of ``salt + password``; SHA-256 hex by default.
    """

    def __init__(self, repo: StudentRepository, digest: Digest = sha256_hex):
        self.repo = repo
        self.digest = digest

    @property
    def is_configured(self) -> bool:
        return self.repo.get_admin_credential() is not None

    async def _hash(self, password: str, salt: str) -> str:
        return await asyncio.to_thread(self.digest, salt + password)

    async def setup(self, password: str, confirm: str) -> None:
        """Store a new instructor password.

        Raises:
            CredentialSetupError: Password too short or confirmation differs.
        """
        if len(password) < MIN_PASSWORD_LENGTH:
            raise CredentialSetupError(
                f"password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if password != confirm:
            raise CredentialSetupError("passwords do not match")
        salt = generate_salt()
        self.repo.set_admin_credential(await self._hash(password, salt), salt)
        logger.info("instructor_credential_set")

    async def login(self, password: str) -> bool:
        """Check a password against the stored credential.

        Raises:
            CredentialSetupError: No credential has been set up yet.
            AuthMismatchError: Wrong password.
        """
        credential = self.repo.get_admin_credential()
        if credential is None:
            raise CredentialSetupError("instructor password has not been set up")
        stored, salt = credential
        if not hmac.compare_digest(await self._hash(password, salt), stored):
            logger.warning("instructor_login_failed")
            raise AuthMismatchError("wrong instructor password")
        return True
