import traceback

from fastapi import APIRouter, Depends, HTTPException, status

from voicenote.controllers.deps import get_repository, require_principal
from voicenote.logic.models import Settings, SettingsUpdate
from voicenote.persistence.base import Repository
from voicenote.services.settings import get_settings_or_default, update_settings
from voicenote.util.errors import AppError
from voicenote.util.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/settings", tags=["Settings"])


@router.get(
    "",
    summary="Read settings",
    description="Returns the caller's settings, or the defaults if none were saved.",
    response_model=Settings,
)
async def read_settings(
    principal: str = Depends(require_principal),
    repo: Repository = Depends(get_repository),
) -> Settings:
    try:
        return await get_settings_or_default(repo, principal)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error fetching settings: {e}\n{traceback.format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch settings",
        )


@router.put(
    "",
    summary="Update settings",
    description="Creates the caller's settings on first write, then merges the sent fields.",
    response_model=Settings,
)
async def write_settings(
    updates: SettingsUpdate,
    principal: str = Depends(require_principal),
    repo: Repository = Depends(get_repository),
) -> Settings:
    try:
        return await update_settings(repo, principal, updates)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error updating settings: {e}\n{traceback.format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update settings",
        )
