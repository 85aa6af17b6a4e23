import asyncio

from fastapi import APIRouter, Depends, Path as FastAPIPath
from fastapi.responses import FileResponse, StreamingResponse

from voicenote.controllers.deps import get_audio_store
from voicenote.persistence.audio_store import AudioStore, validate_artifact_name
from voicenote.util.errors import NotFoundError
from voicenote.util.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/audio", tags=["Audio"])

AUDIO_MEDIA_TYPE = "audio/webm"


@router.get(
    "/{filename}",
    summary="Stream a stored recording",
    description="Serves a retained audio artifact by its filename.",
)
async def get_audio(
    filename: str = FastAPIPath(..., description="Stored artifact filename"),
    store: AudioStore = Depends(get_audio_store),
):
    validate_artifact_name(filename)

    local = await asyncio.to_thread(store.local_path, filename)
    if local is not None:
        return FileResponse(local, media_type=AUDIO_MEDIA_TYPE)

    if not await asyncio.to_thread(store.exists, filename):
        raise NotFoundError("Audio file not found")
    return StreamingResponse(store.iter_bytes(filename), media_type=AUDIO_MEDIA_TYPE)
