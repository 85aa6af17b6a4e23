from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, Optional
import os
import shutil

from voicenote.util.errors import StorageIOError, ValidationError
from voicenote.util.logger import get_logger

logger = get_logger(__name__)

READ_CHUNK_SIZE = 64 * 1024


def validate_artifact_name(name: str) -> str:
    """
    Reject anything that is not a bare filename.

    Artifacts are addressed by filename only, so separators and parent
    references are refused before the name touches a filesystem or bucket.
    """
    if not name or name in (".", "..") or "/" in name or "\\" in name or ".." in name:
        raise ValidationError("Invalid audio filename")
    if os.sep in name or (os.altsep and os.altsep in name):
        raise ValidationError("Invalid audio filename")
    return name


class AudioStore(ABC):
    """Durable storage for retained audio artifacts, keyed by filename."""

    @abstractmethod
    def persist(self, source: Path, name: str) -> str:
        """Take ownership of ``source`` and return the stored reference."""

    @abstractmethod
    def exists(self, name: str) -> bool: ...

    @abstractmethod
    def delete(self, name: str) -> bool:
        """Remove the artifact; False when there was nothing to remove."""

    @abstractmethod
    def iter_bytes(self, name: str) -> Iterator[bytes]: ...

    def local_path(self, name: str) -> Optional[Path]:
        return None


class LocalAudioStore(AudioStore):
    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, name: str) -> Path:
        return self.directory / validate_artifact_name(name)

    def persist(self, source: Path, name: str) -> str:
        dest = self._path(name)
        try:
            shutil.move(str(source), dest)
        except OSError as e:
            logger.error(f"Could not move {source} into {dest}: {e}")
            raise StorageIOError("Could not store audio file")
        return name

    def exists(self, name: str) -> bool:
        return self._path(name).is_file()

    def delete(self, name: str) -> bool:
        path = self._path(name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageIOError(f"Could not delete audio file: {e}")
        return True

    def iter_bytes(self, name: str) -> Iterator[bytes]:
        with open(self._path(name), "rb") as f:
            while chunk := f.read(READ_CHUNK_SIZE):
                yield chunk

    def local_path(self, name: str) -> Optional[Path]:
        path = self._path(name)
        return path if path.is_file() else None


class S3AudioStore(AudioStore):
    """Artifacts kept in an S3 bucket under ``prefix``."""

    def __init__(self, bucket: str, prefix: str = "audio/", client=None):
        if client is None:
            from voicenote.util.s3 import create_s3_client

            client = create_s3_client()
        self.client = client
        self.bucket = bucket
        self.prefix = prefix

    def _key(self, name: str) -> str:
        return f"{self.prefix}{validate_artifact_name(name)}"

    def persist(self, source: Path, name: str) -> str:
        try:
            self.client.upload_file(str(source), self.bucket, self._key(name))
        except Exception as e:
            logger.error(f"S3 upload failed for {name}: {e}")
            raise StorageIOError("Could not store audio file")
        try:
            Path(source).unlink()
        except OSError as e:
            logger.warning(f"Could not remove local copy {source}: {e}")
        return name

    def exists(self, name: str) -> bool:
        from botocore.exceptions import ClientError

        try:
            self.client.head_object(Bucket=self.bucket, Key=self._key(name))
        except ClientError:
            return False
        return True

    def delete(self, name: str) -> bool:
        if not self.exists(name):
            return False
        try:
            self.client.delete_object(Bucket=self.bucket, Key=self._key(name))
        except Exception as e:
            raise StorageIOError(f"Could not delete audio file: {e}")
        return True

    def iter_bytes(self, name: str) -> Iterator[bytes]:
        obj = self.client.get_object(Bucket=self.bucket, Key=self._key(name))
        body = obj["Body"]
        try:
            while chunk := body.read(READ_CHUNK_SIZE):
                yield chunk
        finally:
            body.close()
