"""
Remote service API endpoints.

Exposes the availability map and lets the host refresh it on demand.
"""

import logging
from typing import Dict, List

from fastapi import APIRouter
from pydantic import BaseModel

from ..services.shared import get_orchestrator

logger = logging.getLogger(__name__)
router = APIRouter()


class AvailabilityResponse(BaseModel):
    """Response model for remote availability."""
    # Per supported language; languages never probed report True
    availability: Dict[str, bool]
    probed: List[str]


def _availability_response() -> AvailabilityResponse:
    gateway = get_orchestrator().gateway
    if gateway is None:
        return AvailabilityResponse(availability={}, probed=[])
    return AvailabilityResponse(
        availability={file_type.value: gateway.is_available(file_type) for file_type in gateway.supported_types},
        probed=sorted(file_type.value for file_type in gateway.availability),
    )


@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability():
    """Current availability map (no network access)."""
    return _availability_response()


@router.post("/probe", response_model=AvailabilityResponse)
async def probe_remote_services():
    """Probe every remote service and return the refreshed map."""
    gateway = get_orchestrator().gateway
    if gateway is not None:
        await gateway.probe_all()
        logger.info("🔍 Remote services probed on request")
    return _availability_response()
