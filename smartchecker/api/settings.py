"""
Checker Settings API endpoints.

Provides per-user settings management for the checking pipeline.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..models.linting import LintSeverity
from ..models.settings import CheckerSettings
from ..services.settings_service import get_settings_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/settings", tags=["settings"])


class SettingsUpdateRequest(BaseModel):
    """Request model for updating checker settings (only provided fields change)."""
    enabled: Optional[bool] = None
    realtime_checking: Optional[bool] = None
    use_remote: Optional[bool] = None
    fallback_to_local: Optional[bool] = None
    severity_level: Optional[LintSeverity] = None
    timeout_ms: Optional[int] = Field(default=None, ge=0)
    check_delay_ms: Optional[int] = Field(default=None, ge=0)


@router.get("", response_model=CheckerSettings)
async def get_settings():
    """Get current checker settings."""
    try:
        return get_settings_store().get_settings()
    except Exception as e:
        logger.error(f"Failed to get settings: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put("", response_model=CheckerSettings)
async def update_settings(request: SettingsUpdateRequest):
    """
    Update checker settings.

    Supports partial updates - only provided fields are changed.
    """
    try:
        store = get_settings_store()
        updates = request.model_dump(mode="json", exclude_none=True)

        if updates:
            settings = store.update_settings(updates)
            logger.info(f"Settings updated: {list(updates.keys())}")
            return settings

        return store.get_settings()

    except Exception as e:
        logger.error(f"Failed to update settings: {e}")
        raise HTTPException(status_code=500, detail=str(e))
