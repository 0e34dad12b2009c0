"""
Collaborator contracts for the checking pipeline.

The orchestrator talks to the outside world only through these protocols.
Editors and hosts implement them; the reference classes below cover headless
use (the HTTP host, scripts and tests).
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol

from ..models.linting import CheckStatus, Diagnostic, FileMeta
from ..models.settings import CheckerSettings

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[], None]
Unsubscribe = Callable[[], None]


class BufferSource(Protocol):
    def get_text(self) -> str: ...

    def get_filename(self) -> Optional[str]: ...

    def subscribe(self, callback: ChangeCallback) -> Unsubscribe: ...


class RenderingSink(Protocol):
    def display(self, diagnostics: List[Diagnostic]) -> None: ...

    def clear_all(self) -> None: ...


class ResultStore(Protocol):
    def store_check_result(self, diagnostics: List[Diagnostic], file_meta: FileMeta) -> None: ...


class SettingsStore(Protocol):
    def get_settings(self) -> CheckerSettings: ...

    def save_settings(self, settings: CheckerSettings) -> None: ...


class StatusReporter(Protocol):
    def update_status(self, status: CheckStatus) -> None: ...


class InMemoryBuffer:
    """A text buffer with change notification."""

    def __init__(self, text: str = "", filename: Optional[str] = None):
        self._text = text
        self._filename = filename
        self._subscribers: List[ChangeCallback] = []

    def get_text(self) -> str:
        return self._text

    def get_filename(self) -> Optional[str]:
        return self._filename

    def set_text(self, text: str, filename: Optional[str] = None) -> None:
        """Replace the content and notify subscribers."""
        self._text = text
        if filename is not None:
            self._filename = filename
        for callback in list(self._subscribers):
            try:
                callback()
            except Exception as e:
                logger.error(f"Buffer change callback failed: {e}")

    def subscribe(self, callback: ChangeCallback) -> Unsubscribe:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


class RecordingSink:
    """Keeps what is currently displayed, plus a log of every delivery."""

    def __init__(self):
        self.current: List[Diagnostic] = []
        self.deliveries: List[List[Diagnostic]] = []
        self.clear_count = 0

    def display(self, diagnostics: List[Diagnostic]) -> None:
        self.current = list(diagnostics)
        self.deliveries.append(list(diagnostics))

    def clear_all(self) -> None:
        self.current = []
        self.clear_count += 1


class RecordingStatusReporter:
    def __init__(self):
        self.history: List[CheckStatus] = []

    @property
    def latest(self) -> Optional[CheckStatus]:
        return self.history[-1] if self.history else None

    def update_status(self, status: CheckStatus) -> None:
        self.history.append(status)
