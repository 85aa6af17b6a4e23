from typing import Dict, List, Optional

from voicenote.logic.models import (
    Note,
    NoteCreate,
    NoteUpdate,
    Settings,
    SettingsUpdate,
    User,
)
from voicenote.persistence.base import Repository
from voicenote.util.logger import get_logger

logger = get_logger(__name__)

DEMO_USER_ID = "demo-user-123"

WELCOME_NOTE = """# Welcome to VoiceNote

Welcome to VoiceNote, the audio note-taking app that transcribes and organizes your voice memos.

## Key Features
- **Automatic Transcription**: speech is converted to text with Whisper
- **AI Organization**: notes are cleaned up and structured by a language model
- **Voice-First**: capture thoughts naturally through speech

This is a sample note to demonstrate the library."""


class InMemoryRepository(Repository):
    """Dict-backed repository for tests and single-process development."""

    def __init__(self, seed_demo: bool = False):
        self.users: Dict[str, User] = {}
        self.notes: Dict[str, Note] = {}
        # keyed by owner id, which makes the upsert contract structural
        self.settings: Dict[str, Settings] = {}
        if seed_demo:
            self._seed_demo()

    def _seed_demo(self) -> None:
        from voicenote.services.users import hash_password

        demo = User(
            id=DEMO_USER_ID,
            username="demo",
            email="demo@example.com",
            password_hash=hash_password("demo123"),
            language="en",
        )
        self.users[demo.id] = demo
        self.settings[demo.id] = Settings(
            id="demo-settings-123", owner_id=demo.id, keep_raw_audio=False
        )
        sample = Note(
            id="sample-note-123",
            owner_id=demo.id,
            title="Welcome to VoiceNote",
            original_transcription=(
                "Welcome to VoiceNote, the audio note-taking app that transcribes "
                "and organizes your voice memos. This is a sample note to "
                "demonstrate the library."
            ),
            ai_processed_note=WELCOME_NOTE,
            duration_seconds=45,
            file_size_bytes=2048,
        )
        self.notes[sample.id] = sample
        logger.info(f"Seeded demo user {demo.id}")

    # ---- users ----
    async def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.username == username), None)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)

    async def create_user(self, username, email, password_hash, language=None) -> User:
        user = User(
            username=username,
            email=email,
            password_hash=password_hash,
            language=language,
        )
        self.users[user.id] = user
        return user

    # ---- notes ----
    async def create_note(self, owner_id: str, data: NoteCreate) -> Note:
        note = Note(owner_id=owner_id, **data.model_dump())
        self.notes[note.id] = note
        return note

    async def get_note(self, note_id: str) -> Optional[Note]:
        return self.notes.get(note_id)

    async def list_notes_by_owner(self, owner_id: str) -> List[Note]:
        owned = [n for n in self.notes.values() if n.owner_id == owner_id]
        return sorted(owned, key=lambda n: n.created_at, reverse=True)

    async def update_note(self, note_id: str, updates: NoteUpdate) -> Optional[Note]:
        existing = self.notes.get(note_id)
        if existing is None:
            return None
        updated = existing.model_copy(update=updates.model_dump(exclude_none=True))
        self.notes[note_id] = updated
        return updated

    async def delete_note(self, note_id: str) -> bool:
        return self.notes.pop(note_id, None) is not None

    # ---- settings ----
    async def get_settings(self, owner_id: str) -> Optional[Settings]:
        return self.settings.get(owner_id)

    async def create_or_update_settings(
        self, owner_id: str, updates: SettingsUpdate
    ) -> Settings:
        existing = self.settings.get(owner_id)
        if existing is None:
            merged = Settings(owner_id=owner_id, **updates.changes())
        else:
            merged = existing.model_copy(update=updates.changes())
        self.settings[owner_id] = merged
        return merged

    async def list_settings(self) -> List[Settings]:
        return list(self.settings.values())
