"""Data models for Smart Checker."""

from .history import CheckRecord, CheckStats
from .linting import (
    CheckReport,
    CheckRequest,
    CheckStatus,
    Diagnostic,
    FileMeta,
    FileType,
    LintSeverity,
)
from .settings import CheckerSettings

__all__ = [
    "CheckRecord",
    "CheckReport",
    "CheckRequest",
    "CheckStats",
    "CheckStatus",
    "CheckerSettings",
    "Diagnostic",
    "FileMeta",
    "FileType",
    "LintSeverity",
]
