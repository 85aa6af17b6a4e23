from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from enum import Enum
from datetime import datetime, timezone
import uuid


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class OrganizationStyle(str, Enum):
    """How the language model reshapes a transcript."""

    MINIMAL = "minimal"
    NARRATIVE = "narrative"


class AudioQuality(str, Enum):
    HIGH = "high"
    STANDARD = "standard"
    COMPRESSED = "compressed"


class DataRetention(str, Enum):
    FOREVER = "forever"
    ONE_YEAR = "1year"
    SIX_MONTHS = "6months"
    THREE_MONTHS = "3months"


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys for the web client."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, use_enum_values=True
    )


class User(CamelModel):
    id: str = Field(default_factory=new_id)
    username: str
    email: str
    password_hash: str
    language: Optional[str] = "en"
    created_at: datetime = Field(default_factory=utcnow)


class Note(CamelModel):
    """A transcribed and restructured voice memo."""

    id: str = Field(default_factory=new_id)
    owner_id: str = Field(alias="userId")
    title: str
    original_transcription: str
    ai_processed_note: str
    audio_file_path: Optional[str] = None
    duration_seconds: Optional[int] = Field(default=None, alias="duration")
    file_size_bytes: Optional[int] = Field(default=None, alias="fileSize")
    language: Optional[str] = "en"
    created_at: datetime = Field(default_factory=utcnow)


class NoteCreate(CamelModel):
    title: str
    original_transcription: str
    ai_processed_note: str
    audio_file_path: Optional[str] = None
    duration_seconds: Optional[int] = Field(default=None, alias="duration")
    file_size_bytes: Optional[int] = Field(default=None, alias="fileSize")
    language: Optional[str] = "en"


class NoteUpdate(CamelModel):
    """Editable note fields. Identity, owner and creation time never change."""

    title: Optional[str] = None
    ai_processed_note: Optional[str] = None


class Settings(CamelModel):
    # None until the owner saves settings for the first time
    id: Optional[str] = Field(default_factory=new_id)
    owner_id: str = Field(alias="userId")
    output_language: Optional[str] = "en"
    transcription_model: Optional[str] = "whisper-1"
    audio_quality: Optional[AudioQuality] = AudioQuality.HIGH
    note_organization_style: Optional[OrganizationStyle] = OrganizationStyle.MINIMAL
    keep_raw_audio: Optional[bool] = True
    data_retention: Optional[DataRetention] = DataRetention.FOREVER


class SettingsUpdate(CamelModel):
    """Partial settings payload; only fields that were sent are merged."""

    output_language: Optional[str] = None
    transcription_model: Optional[str] = None
    audio_quality: Optional[AudioQuality] = None
    note_organization_style: Optional[OrganizationStyle] = None
    keep_raw_audio: Optional[bool] = None
    data_retention: Optional[DataRetention] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)
