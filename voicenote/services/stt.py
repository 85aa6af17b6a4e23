import asyncio
import traceback
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel
from pydub import AudioSegment

from voicenote import config
from voicenote.services.ai_client import get_openai_client
from voicenote.util.errors import TranscriptionFailed
from voicenote.util.logger import get_logger

logger = get_logger(__name__)


class TranscriptionResult(BaseModel):
    """Verbatim speech-to-text output for one artifact."""

    text: str
    duration_seconds: int = 0


def measure_duration_seconds(audio_path: Union[str, Path]) -> int:
    """
    Decode the artifact with pydub and return its length in whole seconds.

    Returns 0 when the file cannot be decoded (missing ffmpeg, truncated
    container); duration is informational and never fails the pipeline.
    """
    try:
        audio = AudioSegment.from_file(str(audio_path))
    except Exception as e:
        logger.warning(f"Could not measure duration of {audio_path}: {e}")
        return 0
    return int(round(len(audio) / 1000))


async def transcribe_audio(
    audio_path: Union[str, Path], model: Optional[str] = None
) -> TranscriptionResult:
    """
    Send the artifact to the speech-to-text service.

    Raises:
        TranscriptionFailed: the service errored or returned no text.
    """
    model = model or config.OPENAI_API_STT_MODEL
    client = get_openai_client()
    if client is None:
        raise TranscriptionFailed("Transcription service is not configured")

    def _call_transcription() -> str:
        with open(audio_path, "rb") as audio_file:
            response = client.audio.transcriptions.create(model=model, file=audio_file)
        return getattr(response, "text", None) or ""

    try:
        text = await asyncio.to_thread(_call_transcription)
    except Exception as e:
        err_msg = f"ERROR in transcribe_audio: {e}\n with traceback:\n{traceback.format_exc()}"
        logger.error(err_msg)
        raise TranscriptionFailed()

    if not text.strip():
        logger.warning(f"Empty transcription for {audio_path}")
        raise TranscriptionFailed()

    duration = await asyncio.to_thread(measure_duration_seconds, audio_path)
    logger.info(f"Transcribed {audio_path}: {len(text)} chars, {duration}s")
    return TranscriptionResult(text=text, duration_seconds=duration)
