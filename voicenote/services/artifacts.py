"""
Lifecycle of uploaded audio artifacts.

An upload first lands in the transient directory. Once the transcription
gateway has consumed it, the owner's ``keep_raw_audio`` preference decides
whether it moves into durable storage (and is referenced by the note) or is
deleted. Cleanup is best-effort: failures are logged and reported through
``CleanupResult``, never raised.
"""

import asyncio
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from voicenote import config
from voicenote.persistence.audio_store import AudioStore
from voicenote.util.errors import StorageIOError, ValidationError
from voicenote.util.logger import get_logger

logger = get_logger(__name__)


@dataclass
class TransientArtifact:
    path: Path
    size: int
    content_type: str

    @property
    def name(self) -> str:
        return self.path.name


@dataclass
class CleanupResult:
    """Outcome of a best-effort release; distinct from the pipeline result."""

    target: str
    deleted: bool
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def generate_artifact_name(now_ms: Optional[int] = None) -> str:
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"audio-{now_ms}-{random.randint(0, 10**9 - 1)}.webm"


def check_audio_content_type(content_type: Optional[str]) -> str:
    if not content_type or not content_type.startswith(config.ALLOWED_AUDIO_PREFIX):
        raise ValidationError("Only audio files are allowed")
    return content_type


async def save_upload(
    upload: UploadFile,
    dest_dir: Optional[Path] = None,
    max_size: Optional[int] = None,
) -> TransientArtifact:
    """
    Stream an uploaded file into the transient directory.

    Args:
        upload: The multipart upload
        dest_dir: Transient directory, defaults to config.TEMP_DIR
        max_size: Byte cap, defaults to config.MAX_UPLOAD_SIZE

    Returns:
        TransientArtifact: where the bytes landed and how many there are
    """
    content_type = check_audio_content_type(upload.content_type)
    dest_dir = Path(dest_dir or config.TEMP_DIR)
    max_size = max_size or config.MAX_UPLOAD_SIZE
    dest_dir.mkdir(parents=True, exist_ok=True)
    destination = dest_dir / generate_artifact_name()

    size = 0
    try:
        with open(destination, "wb") as buffer:
            while chunk := await upload.read(config.CHUNK_SIZE):
                size += len(chunk)
                if size > max_size:
                    raise ValidationError(
                        f"Audio file exceeds {max_size // (1024 * 1024)}MB limit"
                    )
                buffer.write(chunk)
    except ValidationError:
        discard(destination)
        raise
    except OSError as e:
        logger.error(f"Could not write upload to {destination}: {e}")
        discard(destination)
        raise StorageIOError("Could not save uploaded audio")
    finally:
        await upload.close()

    if size == 0:
        discard(destination)
        raise ValidationError("Audio file is empty")

    logger.info(f"Saved upload {destination.name} ({size} bytes)")
    return TransientArtifact(path=destination, size=size, content_type=content_type)


def discard(path: Path) -> CleanupResult:
    """Delete a transient file. A missing file counts as already deleted."""
    path = Path(path)
    try:
        path.unlink()
    except FileNotFoundError:
        return CleanupResult(target=str(path), deleted=False)
    except OSError as e:
        logger.warning(f"Could not delete temp file {path}: {e}")
        return CleanupResult(target=str(path), deleted=False, error=str(e))
    return CleanupResult(target=str(path), deleted=True)


async def retain(artifact: TransientArtifact, store: AudioStore) -> str:
    """Move the artifact into durable storage. Failures are fatal (StorageIOError)."""
    return await asyncio.to_thread(store.persist, artifact.path, artifact.name)


async def finalize_artifact(
    artifact: TransientArtifact, keep_raw_audio: bool, store: AudioStore
) -> Optional[str]:
    """
    Decide the fate of an artifact the gateway has already consumed.

    Returns:
        The durable reference when retained, otherwise None
    """
    if keep_raw_audio:
        reference = await retain(artifact, store)
        logger.info(f"Retained audio artifact {reference}")
        return reference

    result = discard(artifact.path)
    if result.deleted:
        logger.info(f"Discarded audio artifact {artifact.name}")
    return None


async def release_stored(store: AudioStore, reference: Optional[str]) -> CleanupResult:
    """Best-effort removal of a note's stored artifact."""
    if not reference:
        return CleanupResult(target="", deleted=False)
    try:
        deleted = await asyncio.to_thread(store.delete, reference)
    except Exception as e:
        logger.warning(f"Could not delete audio file {reference}: {e}")
        return CleanupResult(target=reference, deleted=False, error=str(e))
    return CleanupResult(target=reference, deleted=deleted)
