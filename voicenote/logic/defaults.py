"""
Explicit default resolution for the soft contracts around notes.

Language and style used to be picked with ad-hoc ``a or b or c`` chains at
each call site; these helpers make the fallback order visible and testable.
"""

from datetime import datetime
from typing import Optional

from voicenote.logic.models import OrganizationStyle, Settings

DEFAULT_LANGUAGE = "en"
DEFAULT_STYLE = OrganizationStyle.MINIMAL
TITLE_SOFT_LIMIT = 60
FALLBACK_TITLE_PREFIX = "Voice Note"


def resolve_language(*candidates: Optional[str]) -> str:
    """Return the first non-empty language code, else ``DEFAULT_LANGUAGE``."""
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    return DEFAULT_LANGUAGE


def resolve_style(style: Optional[str]) -> OrganizationStyle:
    """Map a stored style onto a supported one; unknown values become minimal."""
    if isinstance(style, OrganizationStyle):
        return style
    try:
        return OrganizationStyle(style)
    except ValueError:
        return DEFAULT_STYLE


def check_title(title: str, limit: int = TITLE_SOFT_LIMIT) -> bool:
    """True when the title respects the advisory length cap."""
    return len(title) <= limit


def format_locale_date(moment: datetime) -> str:
    # en-US short date, e.g. 3/7/2026
    return f"{moment.month}/{moment.day}/{moment.year}"


def fallback_title(moment: Optional[datetime] = None) -> str:
    moment = moment or datetime.now()
    return f"{FALLBACK_TITLE_PREFIX} {format_locale_date(moment)}"


def default_settings(owner_id: str, language: Optional[str] = None) -> Settings:
    """Settings a fresh account starts with."""
    return Settings(
        owner_id=owner_id,
        output_language=resolve_language(language),
        transcription_model="whisper-1",
        note_organization_style=DEFAULT_STYLE,
        keep_raw_audio=True,
    )
