"""Services for Smart Checker."""

from .check_history import CheckHistory
from .diagnostic_filter import filter_diagnostics, sort_diagnostics
from .local_linter import LocalLintEngine
from .orchestrator import CheckOrchestrator, CheckState
from .remote_checkers import RemoteCheckError, UnsupportedFileTypeError
from .remote_gateway import RemoteGateway
from .settings_service import JsonSettingsStore

__all__ = [
    "CheckHistory",
    "CheckOrchestrator",
    "CheckState",
    "JsonSettingsStore",
    "LocalLintEngine",
    "RemoteCheckError",
    "RemoteGateway",
    "UnsupportedFileTypeError",
    "filter_diagnostics",
    "sort_diagnostics",
]
