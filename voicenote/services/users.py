import base64
import hashlib
import hmac
import os
from typing import Optional

from voicenote.logic.defaults import default_settings, resolve_language
from voicenote.logic.models import SettingsUpdate, User
from voicenote.persistence.base import Repository
from voicenote.util.errors import InvalidCredentials, ValidationError
from voicenote.util.logger import get_logger

logger = get_logger(__name__)

HASH_ALGORITHM = "pbkdf2_sha256"
HASH_ITERATIONS = 260_000


def hash_password(password: str, salt: Optional[bytes] = None) -> str:
    """Salted PBKDF2-SHA256, stored as ``algorithm$iterations$salt$digest``."""
    salt = salt or os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, HASH_ITERATIONS)
    return "$".join(
        [
            HASH_ALGORITHM,
            str(HASH_ITERATIONS),
            base64.b64encode(salt).decode(),
            base64.b64encode(digest).decode(),
        ]
    )


def verify_password(password: str, stored: str) -> bool:
    try:
        algorithm, iterations, salt_b64, digest_b64 = stored.split("$")
    except ValueError:
        return False
    if algorithm != HASH_ALGORITHM:
        return False
    try:
        salt = base64.b64decode(salt_b64, validate=True)
        expected = base64.b64decode(digest_b64, validate=True)
        digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, int(iterations))
    except (ValueError, OverflowError):
        # binascii.Error subclasses ValueError
        return False
    return hmac.compare_digest(digest, expected)


async def register_user(
    repo: Repository,
    username: str,
    email: str,
    password: str,
    language: Optional[str] = None,
) -> User:
    """
    Create an account and its default settings.

    Raises:
        ValidationError: email or username already taken
    """
    if await repo.get_user_by_email(email) or await repo.get_user_by_username(username):
        raise ValidationError("User already exists")

    user = await repo.create_user(
        username=username,
        email=email,
        password_hash=hash_password(password),
        language=resolve_language(language),
    )

    defaults = default_settings(user.id, user.language)
    await repo.create_or_update_settings(
        user.id,
        SettingsUpdate(**defaults.model_dump(exclude={"id", "owner_id"})),
    )
    logger.info(f"Registered user {user.id}")
    return user


async def authenticate(repo: Repository, email: str, password: str) -> User:
    user = await repo.get_user_by_email(email)
    if user is None or not verify_password(password, user.password_hash):
        raise InvalidCredentials()
    return user
