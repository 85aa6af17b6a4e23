"""
Pytest global setup: test environment, HTTP stubs and in-memory backings.
"""

import io
import os
import sys
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

# project root
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# config reads the environment on import, so this must run first
TEST_ENV_VARS = {
    "VOICENOTE_DATA_DIR": tempfile.mkdtemp(prefix="voicenote-test-"),
    "STORAGE_BACKEND": "memory",
    "AUDIO_STORE": "local",
    "SEED_DEMO_DATA": "false",
    "RETENTION_SWEEP_INTERVAL": "0",
    "OPENAI_API_KEY": "test-openai-key",
    "S3_REGION": "ap-northeast-2",
    "S3_ACCESS_KEY_ID": "test-access-key",
    "AWS_SECRET_ACCESS_KEY": "test-secret-key",
    "S3_BUCKET_NAME": "test-bucket",
}
for key, value in TEST_ENV_VARS.items():
    os.environ[key] = value

import pytest
from fastapi.testclient import TestClient
from starlette.datastructures import Headers, UploadFile

from voicenote import config
from voicenote.persistence.audio_store import LocalAudioStore
from voicenote.persistence.memory import InMemoryRepository


# =============================================================================
# HTTP Client Stub Fixtures
# =============================================================================


def create_mock_response(status_code: int = 200, json_data=None, text: str = ""):
    """Mock HTTP response helper"""
    mock_resp = MagicMock()
    mock_resp.status_code = status_code
    mock_resp.text = text
    mock_resp.json.return_value = json_data if json_data is not None else {}
    return mock_resp


@pytest.fixture
def mock_httpx_client():
    """
    Stub httpx.AsyncClient.
    Every request (POST, GET, PATCH, DELETE) gets a mock response.
    """
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client_class.return_value.__aenter__.return_value = mock_client

        mock_client.post.return_value = create_mock_response(status_code=201, json_data=[])
        mock_client.get.return_value = create_mock_response(status_code=200, json_data=[])
        mock_client.patch.return_value = create_mock_response(status_code=200, json_data=[])
        mock_client.delete.return_value = create_mock_response(status_code=200, json_data=[])

        yield mock_client


# =============================================================================
# Upstream AI Stubs
# =============================================================================


@pytest.fixture
def mock_transcription():
    """
    Stub the speech-to-text client.
    The returned client answers "hello world" unless reconfigured.
    """
    client = MagicMock()
    client.audio.transcriptions.create.return_value = MagicMock(text="hello world")
    with patch("voicenote.services.stt.get_openai_client", return_value=client), patch(
        "voicenote.services.stt.measure_duration_seconds", return_value=3
    ):
        yield client


@pytest.fixture
def mock_restructure():
    """
    Stub the note restructuring model call.
    Defaults to a well-formed response.
    """
    with patch("voicenote.services.restructure.ask_openai_with_format") as mock_ask:
        mock_ask.return_value = {"title": "Greeting", "processedNote": "Hello world."}
        yield mock_ask


@pytest.fixture
def mock_ai(mock_transcription, mock_restructure):
    return {"stt": mock_transcription, "llm": mock_restructure}


# =============================================================================
# Backings
# =============================================================================


@pytest.fixture
def temp_dir(tmp_path, monkeypatch):
    """Transient upload directory, isolated per test."""
    path = tmp_path / "temp"
    path.mkdir()
    monkeypatch.setattr(config, "TEMP_DIR", path)
    return path


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def audio_store(tmp_path):
    return LocalAudioStore(tmp_path / "audio")


@pytest.fixture
def make_upload():
    """Build a starlette UploadFile from raw bytes."""

    def _make(data: bytes = b"fake-audio-bytes", content_type: str = "audio/webm", filename: str = "recording.webm"):
        return UploadFile(
            file=io.BytesIO(data),
            filename=filename,
            headers=Headers({"content-type": content_type}),
        )

    return _make


@pytest.fixture
def client(repo, audio_store, temp_dir):
    """FastAPI TestClient over in-memory backings"""
    from voicenote.main import create_app

    app = create_app(repository=repo, audio_store=audio_store, retention_interval=0)
    with TestClient(app) as test_client:
        yield test_client
