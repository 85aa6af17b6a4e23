"""
voicenote/services/retention.py tests
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest

from voicenote.logic.models import NoteCreate, SettingsUpdate
from voicenote.services.retention import (
    RetentionMonitor,
    purge_expired_notes,
    retention_cutoff,
)

NOW = datetime(2026, 3, 7, tzinfo=timezone.utc)


async def aged_note(repo, owner_id, title, age_days, audio_file_path=None):
    note = await repo.create_note(
        owner_id,
        NoteCreate(
            title=title,
            original_transcription=title,
            ai_processed_note=title,
            audio_file_path=audio_file_path,
        ),
    )
    repo.notes[note.id] = note.model_copy(update={"created_at": NOW - timedelta(days=age_days)})
    return note


class TestRetentionCutoff:
    def test_forever_keeps_everything(self):
        assert retention_cutoff("forever", NOW) is None
        assert retention_cutoff(None, NOW) is None

    def test_windows(self):
        assert retention_cutoff("3months", NOW) == NOW - timedelta(days=90)
        assert retention_cutoff("6months", NOW) == NOW - timedelta(days=180)
        assert retention_cutoff("1year", NOW) == NOW - timedelta(days=365)


class TestPurgeExpiredNotes:
    """purge_expired_notes tests"""

    @pytest.mark.asyncio
    async def test_removes_only_expired_notes_and_their_audio(self, repo, audio_store, tmp_path):
        source = tmp_path / "audio-1-1.webm"
        source.write_bytes(b"audio")
        reference = audio_store.persist(source, source.name)
        await repo.create_or_update_settings("user-1", SettingsUpdate(data_retention="3months"))
        old = await aged_note(repo, "user-1", "old", 100, audio_file_path=reference)
        recent = await aged_note(repo, "user-1", "recent", 10)

        deleted = await purge_expired_notes(repo, audio_store, now=NOW)

        assert deleted == [old.id]
        assert await repo.get_note(recent.id) is not None
        assert not audio_store.exists(reference)

    @pytest.mark.asyncio
    async def test_forever_policy_is_untouched(self, repo, audio_store):
        await repo.create_or_update_settings("user-1", SettingsUpdate(data_retention="forever"))
        await aged_note(repo, "user-1", "ancient", 3000)

        assert await purge_expired_notes(repo, audio_store, now=NOW) == []

    @pytest.mark.asyncio
    async def test_policies_are_per_owner(self, repo, audio_store):
        await repo.create_or_update_settings("user-1", SettingsUpdate(data_retention="3months"))
        await repo.create_or_update_settings("user-2", SettingsUpdate(data_retention="1year"))
        mine = await aged_note(repo, "user-1", "mine", 100)
        theirs = await aged_note(repo, "user-2", "theirs", 100)

        deleted = await purge_expired_notes(repo, audio_store, now=NOW)

        assert deleted == [mine.id]
        assert await repo.get_note(theirs.id) is not None


class TestRetentionMonitor:
    """RetentionMonitor lifecycle tests"""

    @pytest.mark.asyncio
    async def test_disabled_interval_never_starts(self, repo, audio_store):
        monitor = RetentionMonitor(repo, audio_store, 0)

        monitor.start()

        assert not monitor.running
        await monitor.stop()

    @pytest.mark.asyncio
    async def test_runs_sweep_until_stopped(self, repo, audio_store):
        with patch(
            "voicenote.services.retention.purge_expired_notes", new=AsyncMock(return_value=[])
        ) as mock_purge:
            monitor = RetentionMonitor(repo, audio_store, 60)
            monitor.start()
            await asyncio.sleep(0.01)

            assert monitor.running
            mock_purge.assert_awaited_once_with(repo, audio_store)

            await monitor.stop()

        assert not monitor.running

    @pytest.mark.asyncio
    async def test_sweep_errors_do_not_kill_the_loop(self, repo, audio_store):
        with patch(
            "voicenote.services.retention.purge_expired_notes",
            new=AsyncMock(side_effect=RuntimeError("storage down")),
        ):
            monitor = RetentionMonitor(repo, audio_store, 60)
            monitor.start()
            await asyncio.sleep(0.01)

            assert monitor.running
            await monitor.stop()
