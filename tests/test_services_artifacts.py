"""
voicenote/services/artifacts.py tests
"""

import re
from unittest.mock import MagicMock

import pytest

from voicenote.services.artifacts import (
    TransientArtifact,
    discard,
    finalize_artifact,
    generate_artifact_name,
    release_stored,
    save_upload,
)
from voicenote.util.errors import ValidationError


class TestSaveUpload:
    """save_upload tests"""

    @pytest.mark.asyncio
    async def test_writes_into_transient_directory(self, temp_dir, make_upload):
        artifact = await save_upload(make_upload(b"0123456789"))

        assert artifact.path.parent == temp_dir
        assert artifact.path.read_bytes() == b"0123456789"
        assert artifact.size == 10
        assert artifact.content_type == "audio/webm"

    @pytest.mark.asyncio
    async def test_rejects_non_audio(self, temp_dir, make_upload):
        with pytest.raises(ValidationError) as exc_info:
            await save_upload(make_upload(b"text", content_type="text/plain"))

        assert exc_info.value.message == "Only audio files are allowed"
        assert list(temp_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_rejects_oversize_and_leaves_nothing(self, temp_dir, make_upload):
        with pytest.raises(ValidationError) as exc_info:
            await save_upload(make_upload(b"x" * 2048), max_size=1024)

        assert "exceeds" in exc_info.value.message
        assert list(temp_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_rejects_empty(self, temp_dir, make_upload):
        with pytest.raises(ValidationError):
            await save_upload(make_upload(b""))

        assert list(temp_dir.iterdir()) == []


class TestNaming:
    def test_generated_name_shape(self):
        name = generate_artifact_name(now_ms=1700000000000)

        assert re.fullmatch(r"audio-1700000000000-\d{1,9}\.webm", name)


class TestFinalize:
    """finalize_artifact / discard / release_stored tests"""

    @pytest.fixture
    def artifact(self, temp_dir):
        path = temp_dir / "audio-1-1.webm"
        path.write_bytes(b"audio")
        return TransientArtifact(path=path, size=5, content_type="audio/webm")

    @pytest.mark.asyncio
    async def test_keep_raw_audio_moves_into_store(self, artifact, audio_store):
        reference = await finalize_artifact(artifact, True, audio_store)

        assert reference == "audio-1-1.webm"
        assert not artifact.path.exists()
        assert audio_store.exists(reference)

    @pytest.mark.asyncio
    async def test_without_keep_raw_audio_file_is_gone(self, artifact, audio_store):
        reference = await finalize_artifact(artifact, False, audio_store)

        assert reference is None
        assert not artifact.path.exists()
        assert not audio_store.exists("audio-1-1.webm")

    def test_discard_missing_file_is_not_an_error(self, tmp_path):
        result = discard(tmp_path / "never-existed.webm")

        assert result.deleted is False
        assert result.ok

    @pytest.mark.asyncio
    async def test_release_without_reference(self, audio_store):
        result = await release_stored(audio_store, None)

        assert result.deleted is False
        assert result.ok

    @pytest.mark.asyncio
    async def test_release_failure_is_reported_not_raised(self):
        store = MagicMock()
        store.delete.side_effect = OSError("disk gone")

        result = await release_stored(store, "audio-1-1.webm")

        assert result.deleted is False
        assert not result.ok
        assert "disk gone" in result.error
