from voicenote.logic.models import Settings, SettingsUpdate
from voicenote.persistence.base import Repository
from voicenote.util.logger import get_logger

logger = get_logger(__name__)


async def get_settings_or_default(repo: Repository, owner_id: str) -> Settings:
    """Stored settings, or unsaved defaults (no id) when the owner never saved any."""
    settings = await repo.get_settings(owner_id)
    return settings or Settings(id=None, owner_id=owner_id)


async def update_settings(
    repo: Repository, owner_id: str, updates: SettingsUpdate
) -> Settings:
    settings = await repo.create_or_update_settings(owner_id, updates)
    logger.info(f"Updated settings for {owner_id}: {sorted(updates.changes())}")
    return settings
