"""
voicenote/services/users.py tests
"""

import pytest

from voicenote.services.users import (
    authenticate,
    hash_password,
    register_user,
    verify_password,
)
from voicenote.util.errors import InvalidCredentials, ValidationError


class TestPasswordHashing:
    def test_hash_is_salted(self):
        first = hash_password("secret")
        second = hash_password("secret")

        assert first != second
        assert first.startswith("pbkdf2_sha256$")
        assert "secret" not in first

    def test_verify(self):
        stored = hash_password("secret")

        assert verify_password("secret", stored)
        assert not verify_password("wrong", stored)

    def test_malformed_hash_never_verifies(self):
        assert not verify_password("secret", "secret")

    @pytest.mark.parametrize(
        "stored",
        [
            "pbkdf2_sha256$abc$c2FsdA==$ZGlnZXN0",
            "pbkdf2_sha256$260000$abc$abc",
            "pbkdf2_sha256$260000$!!$!!",
            "pbkdf2_sha256$0$c2FsdA==$ZGlnZXN0",
            "md5$1$c2FsdA==$ZGlnZXN0",
        ],
    )
    def test_corrupt_hash_fields_never_verify(self, stored):
        assert verify_password("secret", stored) is False


class TestRegisterUser:
    """register_user tests"""

    @pytest.mark.asyncio
    async def test_creates_user_and_default_settings(self, repo):
        user = await register_user(repo, "alice", "alice@example.com", "secret", language="ko")

        settings = await repo.get_settings(user.id)
        assert user.language == "ko"
        assert settings.output_language == "ko"
        assert settings.keep_raw_audio is True
        assert settings.note_organization_style == "minimal"
        assert settings.transcription_model == "whisper-1"

    @pytest.mark.asyncio
    async def test_language_defaults_to_english(self, repo):
        user = await register_user(repo, "alice", "alice@example.com", "secret")

        assert user.language == "en"

    @pytest.mark.asyncio
    async def test_duplicate_email_or_username(self, repo):
        await register_user(repo, "alice", "alice@example.com", "secret")

        with pytest.raises(ValidationError) as exc_info:
            await register_user(repo, "alice2", "alice@example.com", "secret")
        assert exc_info.value.message == "User already exists"

        with pytest.raises(ValidationError):
            await register_user(repo, "alice", "other@example.com", "secret")


class TestAuthenticate:
    """authenticate tests"""

    @pytest.mark.asyncio
    async def test_valid_credentials(self, repo):
        created = await register_user(repo, "alice", "alice@example.com", "secret")

        user = await authenticate(repo, "alice@example.com", "secret")

        assert user.id == created.id

    @pytest.mark.asyncio
    async def test_wrong_password(self, repo):
        await register_user(repo, "alice", "alice@example.com", "secret")

        with pytest.raises(InvalidCredentials):
            await authenticate(repo, "alice@example.com", "nope")

    @pytest.mark.asyncio
    async def test_unknown_email(self, repo):
        with pytest.raises(InvalidCredentials):
            await authenticate(repo, "nobody@example.com", "secret")

    @pytest.mark.asyncio
    async def test_corrupt_stored_hash_is_invalid_credentials(self, repo):
        await repo.create_user("bob", "bob@example.com", "pbkdf2_sha256$x$y$z")

        with pytest.raises(InvalidCredentials):
            await authenticate(repo, "bob@example.com", "secret")
