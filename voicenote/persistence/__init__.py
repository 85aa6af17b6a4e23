from voicenote.persistence.base import Repository
from voicenote.persistence.memory import InMemoryRepository
from voicenote.persistence.supabase import SupabaseRepository
from voicenote.persistence.audio_store import (
    AudioStore,
    LocalAudioStore,
    S3AudioStore,
    validate_artifact_name,
)
from voicenote import config


def build_repository(backend: str = None) -> Repository:
    """Pick the repository backing named by configuration."""
    backend = (backend or config.STORAGE_BACKEND).lower()
    if backend == "supabase":
        return SupabaseRepository(config.SUPABASE_URL, config.SUPABASE_SERVICE_KEY)
    if backend == "memory":
        return InMemoryRepository(seed_demo=config.SEED_DEMO_DATA)
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")


def build_audio_store(kind: str = None) -> AudioStore:
    kind = (kind or config.AUDIO_STORE).lower()
    if kind == "s3":
        return S3AudioStore(config.S3_BUCKET_NAME, prefix=config.S3_PREFIX)
    if kind == "local":
        return LocalAudioStore(config.UPLOADS_DIR)
    raise ValueError(f"Unknown AUDIO_STORE: {kind}")


__all__ = [
    "Repository",
    "InMemoryRepository",
    "SupabaseRepository",
    "AudioStore",
    "LocalAudioStore",
    "S3AudioStore",
    "validate_artifact_name",
    "build_repository",
    "build_audio_store",
]
