"""
Build metadata for hosts that embed the checker (about boxes, support logs).
"""

from fastapi import APIRouter
from pydantic import BaseModel

from .._version import __release_date__, __version__

router = APIRouter()


class VersionResponse(BaseModel):
    """Package version as published, plus the date it was cut."""
    version: str
    release_date: str


@router.get("/version", response_model=VersionResponse)
async def get_version():
    """Report which Smart Checker build is serving requests."""
    return VersionResponse(version=__version__, release_date=__release_date__)
