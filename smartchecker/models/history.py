"""
Check history models (what the result store keeps per check).
"""

from datetime import datetime
from typing import Dict, List
from uuid import uuid4

from pydantic import BaseModel, Field

from .linting import Diagnostic, FileMeta


class CheckStats(BaseModel):
    """Aggregates over the diagnostics of one check."""
    total: int = 0
    errors: int = 0
    warnings: int = 0
    infos: int = 0
    by_source: Dict[str, int] = Field(default_factory=dict)
    by_rule: Dict[str, int] = Field(default_factory=dict)
    # Keys are 0-based line numbers rendered as strings (JSON object keys)
    by_line: Dict[str, int] = Field(default_factory=dict)


class CheckRecord(BaseModel):
    """One stored check result."""
    id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = Field(default_factory=datetime.now)
    file_meta: FileMeta
    diagnostics: List[Diagnostic] = Field(default_factory=list)
    stats: CheckStats = Field(default_factory=CheckStats)
