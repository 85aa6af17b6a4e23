from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from voicenote.logic.models import (
    Note,
    NoteCreate,
    NoteUpdate,
    Settings,
    SettingsUpdate,
    User,
)


class Repository(ABC):
    """
    Keyed store of users, notes and settings.

    Owner-scoped calls take the principal explicitly; no backing reads request
    state. Concurrent writers to the same record are last-write-wins.
    """

    # ---- users ----
    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    async def create_user(
        self,
        username: str,
        email: str,
        password_hash: str,
        language: Optional[str] = None,
    ) -> User: ...

    # ---- notes ----
    @abstractmethod
    async def create_note(self, owner_id: str, data: NoteCreate) -> Note: ...

    @abstractmethod
    async def get_note(self, note_id: str) -> Optional[Note]: ...

    @abstractmethod
    async def list_notes_by_owner(self, owner_id: str) -> List[Note]:
        """Notes of one owner, newest first. Tie order is unspecified."""

    @abstractmethod
    async def update_note(self, note_id: str, updates: NoteUpdate) -> Optional[Note]: ...

    @abstractmethod
    async def delete_note(self, note_id: str) -> bool:
        """True if a record was removed; deleting twice reports False."""

    # ---- settings ----
    @abstractmethod
    async def get_settings(self, owner_id: str) -> Optional[Settings]: ...

    @abstractmethod
    async def create_or_update_settings(
        self, owner_id: str, updates: SettingsUpdate
    ) -> Settings:
        """Upsert keyed by owner: one Settings record per owner, fields merged."""

    @abstractmethod
    async def list_settings(self) -> List[Settings]: ...

    async def list_notes_created_before(
        self, owner_id: str, cutoff: datetime
    ) -> List[Note]:
        notes = await self.list_notes_by_owner(owner_id)
        return [note for note in notes if note.created_at < cutoff]
