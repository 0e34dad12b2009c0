"""
Check history API endpoints.
"""

from typing import List

from fastapi import APIRouter, HTTPException, Query

from ..models.history import CheckRecord
from ..services.shared import get_check_history

router = APIRouter()


@router.get("", response_model=List[CheckRecord])
async def list_history(limit: int = Query(default=20, ge=1, le=100)):
    """Most recent check records first."""
    return get_check_history().recent(limit)


@router.get("/latest", response_model=CheckRecord)
async def get_latest():
    """
    Get the last recorded check.

    Raises:
        HTTPException: 404 when nothing has been checked yet
    """
    record = get_check_history().latest()
    if record is None:
        raise HTTPException(status_code=404, detail="No check results recorded yet")
    return record
