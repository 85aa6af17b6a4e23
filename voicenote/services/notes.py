from datetime import datetime, timedelta, timezone
from typing import List, Optional

from fastapi import UploadFile

from voicenote.logic.defaults import resolve_language, resolve_style
from voicenote.logic.models import Note, NoteCreate, NoteUpdate
from voicenote.persistence.audio_store import AudioStore
from voicenote.persistence.base import Repository
from voicenote.services.artifacts import (
    discard,
    finalize_artifact,
    release_stored,
    save_upload,
)
from voicenote.services.restructure import restructure_note
from voicenote.services.settings import get_settings_or_default
from voicenote.services.stt import transcribe_audio
from voicenote.util.errors import NotFoundError, ValidationError
from voicenote.util.logger import get_logger

logger = get_logger(__name__)

PERIODS = ("all", "week", "month", "older")
DAY = timedelta(days=1)


async def process_audio_note(
    repo: Repository,
    store: AudioStore,
    owner_id: str,
    upload: UploadFile,
) -> Note:
    """
    Run the upload -> transcribe -> restructure -> persist pipeline.

    The transient file is deleted only after the gateway consumed it
    successfully, unless the owner keeps raw audio. Until the artifact is
    retained or discarded the pipeline owns it: any failure or cancellation
    on the way removes the transient file and propagates.
    """
    settings = await get_settings_or_default(repo, owner_id)
    language = resolve_language(settings.output_language)
    style = resolve_style(settings.note_organization_style)

    artifact = await save_upload(upload)

    try:
        transcription = await transcribe_audio(
            artifact.path, model=settings.transcription_model
        )
        restructured = await restructure_note(transcription.text, language, style)

        keep_raw_audio = bool(settings.keep_raw_audio)
        reference = await finalize_artifact(artifact, keep_raw_audio, store)
    finally:
        # no-op once the store has taken the file
        discard(artifact.path)

    try:
        note = await repo.create_note(
            owner_id,
            NoteCreate(
                title=restructured.title,
                original_transcription=transcription.text,
                ai_processed_note=restructured.processed_note,
                audio_file_path=reference,
                duration_seconds=transcription.duration_seconds,
                file_size_bytes=artifact.size,
                language=language,
            ),
        )
    except BaseException:
        await release_stored(store, reference)
        raise

    logger.info(
        f"Created note {note.id} for {owner_id} (restructure={restructured.source}, kept_audio={reference is not None})"
    )
    return note


async def get_note(repo: Repository, note_id: str) -> Note:
    note = await repo.get_note(note_id)
    if note is None:
        raise NotFoundError("Note not found")
    return note


async def update_note(repo: Repository, note_id: str, updates: NoteUpdate) -> Note:
    if updates.title is not None and not updates.title.strip():
        raise ValidationError("Title cannot be empty")
    if updates.ai_processed_note is not None and not updates.ai_processed_note.strip():
        raise ValidationError("Note cannot be empty")
    note = await repo.update_note(note_id, updates)
    if note is None:
        raise NotFoundError("Note not found")
    return note


async def delete_note(repo: Repository, store: AudioStore, note_id: str) -> None:
    """Delete a note and, best-effort, its stored audio."""
    note = await repo.get_note(note_id)
    if note is None:
        raise NotFoundError("Note not found")

    await release_stored(store, note.audio_file_path)

    if not await repo.delete_note(note_id):
        raise NotFoundError("Note not found")
    logger.info(f"Deleted note {note_id}")


def filter_notes(
    notes: List[Note],
    search: Optional[str] = None,
    period: str = "all",
    now: Optional[datetime] = None,
) -> List[Note]:
    """Library filters: text search over title/body and a recency window."""
    if period not in PERIODS:
        raise ValidationError(f"Unknown period: {period}")
    now = now or datetime.now(timezone.utc)
    needle = (search or "").lower()

    def matches(note: Note) -> bool:
        if needle and needle not in note.title.lower() and needle not in note.ai_processed_note.lower():
            return False
        created_at = note.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        age = now - created_at
        if period == "week":
            return age <= 7 * DAY
        if period == "month":
            return age <= 30 * DAY
        if period == "older":
            return age > 30 * DAY
        return True

    return [note for note in notes if matches(note)]


async def list_notes(
    repo: Repository,
    owner_id: str,
    search: Optional[str] = None,
    period: str = "all",
    now: Optional[datetime] = None,
) -> List[Note]:
    notes = await repo.list_notes_by_owner(owner_id)
    return filter_notes(notes, search=search, period=period, now=now)
