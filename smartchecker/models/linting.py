"""
Linting models (diagnostics shared by every producer and consumer).

These models are intentionally small and stable: the local heuristic engine,
the remote capabilities and the orchestrator all speak `Diagnostic`, and the
HTTP surface returns them as-is.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LintSeverity(str, Enum):
    """Severity level for diagnostics."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Numeric rank used for filtering and sorting (error is highest)."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    LintSeverity.ERROR: 3,
    LintSeverity.WARNING: 2,
    LintSeverity.INFO: 1,
}


class FileType(str, Enum):
    """Closed set of languages the pipeline knows about."""

    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    PYTHON = "python"
    JSON = "json"
    HTML = "html"
    CSS = "css"
    LUA = "lua"
    C = "c"
    CPP = "cpp"
    CSHARP = "csharp"
    UNKNOWN = "unknown"


class Diagnostic(BaseModel):
    """A single issue reported for a buffer. Immutable once produced."""

    model_config = ConfigDict(frozen=True)

    # 0-based line / column
    line: int = Field(default=0, ge=0)
    column: int = Field(default=0, ge=0)
    message: str
    severity: LintSeverity
    source: str

    # Producer-specific code (e.g. eqeqeq, reportMissingImports, 2304)
    rule: Optional[str] = None


class CheckRequest(BaseModel):
    """One debounced check of a buffer."""

    content: str
    file_type: FileType
    timestamp: datetime = Field(default_factory=datetime.now)


class CheckReport(BaseModel):
    """What one Checking phase produced, after severity filtering."""

    # local | remote | fallback | none
    engine: str = "local"
    file_type: FileType = FileType.UNKNOWN
    diagnostics: List[Diagnostic] = Field(default_factory=list)


class FileMeta(BaseModel):
    """File information recorded next to each stored check result."""

    name: str = "unknown"
    file_type: FileType = FileType.UNKNOWN
    size: int = 0
    lines: int = 0
    engine: str = "none"
    error: Optional[str] = None


class CheckStatus(BaseModel):
    """Payload for the status indicator collaborator."""

    state: str
    file_type: Optional[FileType] = None
    engine: Optional[str] = None
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    message: Optional[str] = None
