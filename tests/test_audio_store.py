"""
voicenote/persistence/audio_store.py tests
"""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from voicenote.persistence.audio_store import S3AudioStore, validate_artifact_name
from voicenote.util.errors import ValidationError


class TestValidateArtifactName:
    @pytest.mark.parametrize("name", ["", ".", "..", "../etc/passwd", "a/b.webm", "a\\b.webm", "x..y"])
    def test_rejects_anything_but_a_bare_filename(self, name):
        with pytest.raises(ValidationError):
            validate_artifact_name(name)

    def test_accepts_generated_names(self):
        assert validate_artifact_name("audio-1700000000000-42.webm") == "audio-1700000000000-42.webm"


class TestLocalAudioStore:
    """LocalAudioStore tests"""

    def test_persist_read_delete(self, audio_store, tmp_path):
        source = tmp_path / "audio-1-1.webm"
        source.write_bytes(b"abc")

        reference = audio_store.persist(source, source.name)

        assert not source.exists()
        assert audio_store.exists(reference)
        assert b"".join(audio_store.iter_bytes(reference)) == b"abc"
        assert audio_store.local_path(reference) == audio_store.directory / reference
        assert audio_store.delete(reference) is True
        assert audio_store.delete(reference) is False
        assert audio_store.local_path(reference) is None


class TestS3AudioStore:
    """S3AudioStore tests with a mocked boto3 client"""

    @pytest.fixture
    def s3_client(self):
        return MagicMock()

    @pytest.fixture
    def store(self, s3_client):
        return S3AudioStore("test-bucket", prefix="audio/", client=s3_client)

    def test_persist_uploads_and_removes_local_copy(self, store, s3_client, tmp_path):
        source = tmp_path / "audio-1-1.webm"
        source.write_bytes(b"abc")

        reference = store.persist(source, source.name)

        assert reference == "audio-1-1.webm"
        s3_client.upload_file.assert_called_once_with(str(source), "test-bucket", "audio/audio-1-1.webm")
        assert not source.exists()

    def test_exists_maps_client_error_to_false(self, store, s3_client):
        s3_client.head_object.side_effect = ClientError(
            {"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject"
        )

        assert store.exists("audio-1-1.webm") is False
        assert store.delete("audio-1-1.webm") is False
        s3_client.delete_object.assert_not_called()

    def test_delete_existing_object(self, store, s3_client):
        assert store.delete("audio-1-1.webm") is True
        s3_client.delete_object.assert_called_once_with(
            Bucket="test-bucket", Key="audio/audio-1-1.webm"
        )

    def test_iter_bytes_streams_body(self, store, s3_client):
        body = MagicMock()
        body.read.side_effect = [b"ab", b"c", b""]
        s3_client.get_object.return_value = {"Body": body}

        assert b"".join(store.iter_bytes("audio-1-1.webm")) == b"abc"
        body.close.assert_called_once()
