import traceback
from typing import List, Optional

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Path as FastAPIPath,
    Query,
    UploadFile,
    status,
)

from voicenote.controllers.deps import get_audio_store, get_repository, require_principal
from voicenote.controllers.views.common import DeleteResponse, ErrorResponse
from voicenote.logic.models import Note, NoteUpdate
from voicenote.persistence.audio_store import AudioStore
from voicenote.persistence.base import Repository
from voicenote.services import notes as note_service
from voicenote.util.errors import AppError, ValidationError
from voicenote.util.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api/notes",
    tags=["Notes"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)


def _internal_error(action: str, e: Exception, detail: str) -> HTTPException:
    logger.error(f"Error {action}: {e}\n with traceback:\n{traceback.format_exc()}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail
    )


@router.get(
    "",
    summary="List notes",
    description="""
    Lists the caller's notes, newest first.

    - `search` matches title and processed note, case-insensitively.
    - `period` is one of `all`, `week` (last 7 days), `month` (last 30 days)
      or `older` (more than 30 days ago).
    """,
    response_model=List[Note],
)
async def list_notes(
    search: Optional[str] = Query(None, description="Text to look for"),
    period: str = Query("all", description="Recency window"),
    principal: str = Depends(require_principal),
    repo: Repository = Depends(get_repository),
) -> List[Note]:
    try:
        return await note_service.list_notes(repo, principal, search=search, period=period)
    except AppError:
        raise
    except Exception as e:
        raise _internal_error("fetching notes", e, "Failed to fetch notes")


@router.post(
    "/process-audio",
    summary="Create a note from audio",
    description="""
    Upload a recording (multipart field `audio`, at most 50MB, `audio/*`).

    The recording is transcribed, restructured according to the caller's
    settings, and stored as a new note. The raw audio is kept only when the
    caller's `keepRawAudio` setting is on.
    """,
    response_model=Note,
)
async def process_audio(
    audio: Optional[UploadFile] = File(None, description="The recorded audio"),
    principal: str = Depends(require_principal),
    repo: Repository = Depends(get_repository),
    store: AudioStore = Depends(get_audio_store),
) -> Note:
    if audio is None:
        raise ValidationError("Audio file required")
    try:
        return await note_service.process_audio_note(repo, store, principal, audio)
    except AppError:
        raise
    except Exception as e:
        raise _internal_error("processing audio", e, "Failed to process audio")


@router.get(
    "/{note_id}",
    summary="Get a note",
    response_model=Note,
)
async def get_note(
    note_id: str = FastAPIPath(..., description="Note identifier"),
    repo: Repository = Depends(get_repository),
) -> Note:
    try:
        return await note_service.get_note(repo, note_id)
    except AppError:
        raise
    except Exception as e:
        raise _internal_error("fetching note", e, "Failed to fetch note")


@router.patch(
    "/{note_id}",
    summary="Edit a note",
    description="Updates the title and/or the processed note. Other fields are immutable.",
    response_model=Note,
)
async def update_note(
    updates: NoteUpdate,
    note_id: str = FastAPIPath(..., description="Note identifier"),
    repo: Repository = Depends(get_repository),
) -> Note:
    try:
        return await note_service.update_note(repo, note_id, updates)
    except AppError:
        raise
    except Exception as e:
        raise _internal_error("updating note", e, "Failed to update note")


@router.delete(
    "/{note_id}",
    summary="Delete a note",
    description="Deletes the note and its stored audio, if any.",
    response_model=DeleteResponse,
)
async def delete_note(
    note_id: str = FastAPIPath(..., description="Note identifier"),
    repo: Repository = Depends(get_repository),
    store: AudioStore = Depends(get_audio_store),
) -> DeleteResponse:
    try:
        await note_service.delete_note(repo, store, note_id)
    except AppError:
        raise
    except Exception as e:
        raise _internal_error("deleting note", e, "Failed to delete note")
    return DeleteResponse(success=True)
