import asyncio
import traceback
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from voicenote import config
from voicenote.logic.defaults import (
    TITLE_SOFT_LIMIT,
    check_title,
    fallback_title,
    resolve_language,
    resolve_style,
)
from voicenote.logic.models import OrganizationStyle
from voicenote.services.ai_client import ask_openai_with_format
from voicenote.util.errors import RestructureFailed
from voicenote.util.logger import get_logger

logger = get_logger(__name__)

STYLE_INSTRUCTIONS = {
    OrganizationStyle.MINIMAL: (
        "Clean up the text minimally while preserving the original structure and wording. "
        "Fix punctuation, capitalization and obvious transcription errors; remove filler words."
    ),
    OrganizationStyle.NARRATIVE: (
        "Rewrite the text as flowing prose in paragraph format with clear transitions. "
        "Do not add or remove any facts."
    ),
}

NOTE_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "processedNote": {"type": "string"},
    },
    "required": ["title", "processedNote"],
    "additionalProperties": False,
}


class RestructuredNote(BaseModel):
    title: str
    processed_note: str
    source: str = "llm"  # "llm" | "fallback"


def build_note_prompt(transcript: str, language: str, style: OrganizationStyle) -> str:
    return f"""Please process this voice note transcription and provide:
1. A clear, descriptive title (max {TITLE_SOFT_LIMIT} characters)
2. A well-organized note based on the content

Transcription: "{transcript}"

Output language: {language}
Organization style: {STYLE_INSTRUCTIONS[style]}

Respond with JSON in this exact format: {{"title": "Generated Title", "processedNote": "Organized note content"}}"""


def parse_note_response(data: Any) -> RestructuredNote:
    """Validate the model output; anything off-schema is a RestructureFailed."""
    if not isinstance(data, dict):
        raise RestructureFailed("Response is not a JSON object")
    title = data.get("title")
    processed = data.get("processedNote")
    if not isinstance(title, str) or not title.strip():
        raise RestructureFailed("Response has no title")
    if not isinstance(processed, str) or not processed.strip():
        raise RestructureFailed("Response has no processedNote")
    return RestructuredNote(title=title.strip(), processed_note=processed)


def fallback_note(transcript: str, now: Optional[datetime] = None) -> RestructuredNote:
    return RestructuredNote(
        title=fallback_title(now), processed_note=transcript, source="fallback"
    )


async def restructure_note(
    transcript: str,
    language: Optional[str] = None,
    style: Optional[str] = None,
    model: Optional[str] = None,
    now: Optional[datetime] = None,
) -> RestructuredNote:
    """
    Turn a raw transcript into a titled note.

    Never raises: any upstream failure (timeout, API error, malformed or
    off-schema output) yields a date-based title and the transcript verbatim.
    """
    language = resolve_language(language)
    resolved_style = resolve_style(style)
    messages = [
        {"role": "system", "content": config.note_system_prompt},
        {
            "role": "user",
            "content": build_note_prompt(transcript, language, resolved_style),
        },
    ]

    try:
        data = await asyncio.to_thread(
            ask_openai_with_format,
            messages,
            NOTE_RESPONSE_SCHEMA,
            model or config.OPENAI_API_NOTE_MODEL,
        )
        note = parse_note_response(data)
    except Exception as e:
        err_msg = f"ERROR in restructure_note, using fallback: {e}\n with traceback:\n{traceback.format_exc()}"
        logger.error(err_msg)
        return fallback_note(transcript, now)

    if not check_title(note.title):
        logger.warning(
            f"Generated title exceeds {TITLE_SOFT_LIMIT} characters ({len(note.title)}), keeping it"
        )
    return note
