"""
Check API endpoints.

Runs one Checking phase on posted content and records it in the history.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..models.linting import CheckReport, FileMeta
from ..services.shared import get_check_history, get_orchestrator

logger = logging.getLogger(__name__)
router = APIRouter()


class CheckContentRequest(BaseModel):
    """Request model for checking a buffer."""
    content: str
    filename: Optional[str] = None


@router.post("", response_model=CheckReport)
async def check_content(request: CheckContentRequest):
    """
    Check the posted content with the current settings.

    The file type comes from `filename`; without one (or with an unknown
    extension) nothing is checked and the report's engine is "none".
    """
    try:
        orchestrator = get_orchestrator()
        report = await orchestrator.check_content(request.content, request.filename)

        get_check_history().store_check_result(
            report.diagnostics,
            FileMeta(
                name=request.filename or "unknown",
                file_type=report.file_type,
                size=len(request.content),
                lines=len(request.content.split("\n")) if request.content else 0,
                engine=report.engine,
            ),
        )
        return report

    except Exception as e:
        logger.error(f"Failed to check content: {e}")
        raise HTTPException(status_code=500, detail=str(e))
