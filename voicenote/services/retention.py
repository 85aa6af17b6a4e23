import asyncio
import traceback
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from voicenote.logic.models import DataRetention
from voicenote.persistence.audio_store import AudioStore
from voicenote.persistence.base import Repository
from voicenote.services.artifacts import release_stored
from voicenote.util.logger import get_logger

logger = get_logger(__name__)

RETENTION_WINDOWS: Dict[str, Optional[timedelta]] = {
    DataRetention.FOREVER.value: None,
    DataRetention.ONE_YEAR.value: timedelta(days=365),
    DataRetention.SIX_MONTHS.value: timedelta(days=180),
    DataRetention.THREE_MONTHS.value: timedelta(days=90),
}


def retention_cutoff(policy: Optional[str], now: datetime) -> Optional[datetime]:
    """Oldest creation time a note may have under ``policy``; None keeps all."""
    policy = getattr(policy, "value", policy) or DataRetention.FOREVER.value
    window = RETENTION_WINDOWS.get(policy)
    return now - window if window else None


async def purge_expired_notes(
    repo: Repository, store: AudioStore, now: Optional[datetime] = None
) -> List[str]:
    """
    Delete notes (and their audio) older than each owner's retention window.

    Returns:
        Ids of the deleted notes
    """
    now = now or datetime.now(timezone.utc)
    deleted: List[str] = []
    for settings in await repo.list_settings():
        cutoff = retention_cutoff(settings.data_retention, now)
        if cutoff is None:
            continue
        for note in await repo.list_notes_created_before(settings.owner_id, cutoff):
            await release_stored(store, note.audio_file_path)
            if await repo.delete_note(note.id):
                deleted.append(note.id)
    if deleted:
        logger.info(f"Retention sweep removed {len(deleted)} notes")
    return deleted


class RetentionMonitor:
    """Runs the retention sweep every ``interval`` seconds on the event loop."""

    def __init__(self, repo: Repository, store: AudioStore, interval: int):
        self.repo = repo
        self.store = store
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running or self.interval <= 0:
            return
        self._task = asyncio.create_task(self._run())
        logger.info(f"Started retention monitor (every {self.interval}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        while True:
            try:
                await purge_expired_notes(self.repo, self.store)
            except Exception as e:
                logger.error(f"Error in retention sweep: {e}\n{traceback.format_exc()}")
            await asyncio.sleep(self.interval)
