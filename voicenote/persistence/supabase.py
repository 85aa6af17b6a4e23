from datetime import datetime
from typing import Any, Dict, List, Optional
import httpx

from voicenote.logic.models import (
    Note,
    NoteCreate,
    NoteUpdate,
    Settings,
    SettingsUpdate,
    User,
)
from voicenote.persistence.base import Repository
from voicenote.util.errors import StorageIOError
from voicenote.util.logger import get_logger

logger = get_logger(__name__)

# model field -> column, where they differ
NOTE_COLUMNS = {
    "owner_id": "user_id",
    "duration_seconds": "duration",
    "file_size_bytes": "file_size",
}
SETTINGS_COLUMNS = {"owner_id": "user_id"}


def _to_row(data: Dict[str, Any], columns: Dict[str, str]) -> Dict[str, Any]:
    row = {}
    for key, value in data.items():
        if isinstance(value, datetime):
            value = value.isoformat()
        row[columns.get(key, key)] = value
    return row


def _from_row(row: Dict[str, Any], columns: Dict[str, str]) -> Dict[str, Any]:
    reverse = {column: field for field, column in columns.items()}
    return {reverse.get(key, key): value for key, value in row.items()}


def _first_row(data: Any) -> Dict[str, Any]:
    return (
        data[0]
        if isinstance(data, list) and data
        else data if isinstance(data, dict) else {}
    )


class SupabaseRepository(Repository):
    """
    Repository backed by Supabase tables through the PostgREST API.

    Tables: ``users``, ``notes`` (``user_id`` references ``users.id`` with
    cascade delete) and ``settings`` (unique ``user_id``).
    """

    def __init__(self, url: str, service_key: str, timeout: float = 15):
        if not url or not service_key:
            raise StorageIOError("Supabase settings are not configured.")
        self.base_url = f"{url.rstrip('/')}/rest/v1"
        self.service_key = service_key
        self.timeout = timeout

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        expected: tuple = (200,),
        params: Optional[Dict[str, str]] = None,
        json: Optional[Any] = None,
        prefer: Optional[str] = None,
    ) -> Any:
        url = f"{self.base_url}/{table}"
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            if method == "get":
                resp = await client.get(url, headers=self._headers(prefer), params=params)
            elif method == "post":
                resp = await client.post(url, headers=self._headers(prefer), json=json)
            elif method == "patch":
                resp = await client.patch(
                    url, headers=self._headers(prefer), params=params, json=json
                )
            else:
                resp = await client.delete(url, headers=self._headers(prefer), params=params)

        if resp.status_code not in expected:
            logger.error(
                f"Supabase {method.upper()} {table} failed: status={resp.status_code} body={resp.text}"
            )
            raise StorageIOError(f"Storage request on {table} failed.")
        if resp.status_code == 204:
            return []
        return resp.json()

    async def _select(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        data = await self._request("get", table, params={"select": "*", **params})
        return data if isinstance(data, list) else [data]

    # ---- users ----
    async def _find_user(self, column: str, value: str) -> Optional[User]:
        rows = await self._select("users", {column: f"eq.{value}"})
        return User.model_validate(rows[0]) if rows else None

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self._find_user("id", user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return await self._find_user("username", username)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return await self._find_user("email", email)

    async def create_user(self, username, email, password_hash, language=None) -> User:
        user = User(
            username=username,
            email=email,
            password_hash=password_hash,
            language=language,
        )
        data = await self._request(
            "post",
            "users",
            expected=(200, 201),
            json=_to_row(user.model_dump(), {}),
            prefer="return=representation",
        )
        row = _first_row(data)
        return User.model_validate(row) if row else user

    # ---- notes ----
    def _note(self, row: Dict[str, Any]) -> Note:
        return Note.model_validate(_from_row(row, NOTE_COLUMNS))

    async def create_note(self, owner_id: str, data: NoteCreate) -> Note:
        note = Note(owner_id=owner_id, **data.model_dump())
        resp = await self._request(
            "post",
            "notes",
            expected=(200, 201),
            json=_to_row(note.model_dump(), NOTE_COLUMNS),
            prefer="return=representation",
        )
        row = _first_row(resp)
        return self._note(row) if row else note

    async def get_note(self, note_id: str) -> Optional[Note]:
        rows = await self._select("notes", {"id": f"eq.{note_id}"})
        return self._note(rows[0]) if rows else None

    async def list_notes_by_owner(self, owner_id: str) -> List[Note]:
        rows = await self._select(
            "notes", {"user_id": f"eq.{owner_id}", "order": "created_at.desc"}
        )
        return [self._note(row) for row in rows]

    async def list_notes_created_before(self, owner_id: str, cutoff: datetime) -> List[Note]:
        rows = await self._select(
            "notes",
            {"user_id": f"eq.{owner_id}", "created_at": f"lt.{cutoff.isoformat()}"},
        )
        return [self._note(row) for row in rows]

    async def update_note(self, note_id: str, updates: NoteUpdate) -> Optional[Note]:
        changes = updates.model_dump(exclude_none=True)
        if not changes:
            return await self.get_note(note_id)
        data = await self._request(
            "patch",
            "notes",
            params={"id": f"eq.{note_id}"},
            json=_to_row(changes, NOTE_COLUMNS),
            prefer="return=representation",
        )
        row = _first_row(data)
        return self._note(row) if row else None

    async def delete_note(self, note_id: str) -> bool:
        data = await self._request(
            "delete",
            "notes",
            expected=(200, 204),
            params={"id": f"eq.{note_id}"},
            prefer="return=representation",
        )
        return bool(data)

    # ---- settings ----
    def _settings(self, row: Dict[str, Any]) -> Settings:
        return Settings.model_validate(_from_row(row, SETTINGS_COLUMNS))

    async def get_settings(self, owner_id: str) -> Optional[Settings]:
        rows = await self._select("settings", {"user_id": f"eq.{owner_id}"})
        return self._settings(rows[0]) if rows else None

    async def create_or_update_settings(
        self, owner_id: str, updates: SettingsUpdate
    ) -> Settings:
        existing = await self.get_settings(owner_id)
        if existing is None:
            created = Settings(owner_id=owner_id, **updates.changes())
            data = await self._request(
                "post",
                "settings",
                expected=(200, 201),
                json=_to_row(created.model_dump(), SETTINGS_COLUMNS),
                prefer="return=representation",
            )
            row = _first_row(data)
            return self._settings(row) if row else created

        changes = updates.changes()
        if not changes:
            return existing
        data = await self._request(
            "patch",
            "settings",
            params={"user_id": f"eq.{owner_id}"},
            json=_to_row(changes, SETTINGS_COLUMNS),
            prefer="return=representation",
        )
        row = _first_row(data)
        return self._settings(row) if row else existing.model_copy(update=changes)

    async def list_settings(self) -> List[Settings]:
        rows = await self._select("settings", {})
        return [self._settings(row) for row in rows]
