"""
Checking orchestrator.

Decides *when* to check (debounce), *how* (remote gateway or local engine,
with fallback on failure) and where the results go (filter, rendering sink,
result store, status reporter).

State per cycle: idle -> debouncing -> checking -> (idle | fallback_checking -> idle)

Invariants:
- At most one Checking phase runs at a time; cycles are serialized by a lock.
- A trigger during a running check does not cancel it; it schedules a fresh
  debounced cycle that runs after the current one.
- No fault from either checking path ends a cycle abnormally; every path
  resolves to a (possibly empty) diagnostic list.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Dict, List, Optional

from ..models.linting import CheckReport, CheckStatus, FileMeta, FileType, LintSeverity
from ..models.settings import CheckerSettings
from .collaborators import BufferSource, RenderingSink, ResultStore, SettingsStore, StatusReporter, Unsubscribe
from .diagnostic_filter import filter_diagnostics, severity_counts, sort_diagnostics
from .file_types import detect_file_type, get_language_name
from .local_linter import LocalLintEngine
from .remote_checkers import RemoteCheckError
from .remote_gateway import RemoteGateway
from .timers import CancellableTimer

logger = logging.getLogger(__name__)


class CheckState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    CHECKING = "checking"
    FALLBACK_CHECKING = "fallback_checking"


class CheckOrchestrator:
    """
    Coordinates one buffer's checks.

    Args:
        buffer: Buffer source (text, filename, change notifications)
        sink: Rendering sink receiving the filtered diagnostics
        settings_store: Re-read at the start of every cycle
        engine: Local heuristic engine (a default one is created when omitted)
        gateway: Remote gateway; without one every check is local
        result_store: Optional recorder of every delivered result
        status_reporter: Optional status indicator
    """

    def __init__(
        self,
        buffer: BufferSource,
        sink: RenderingSink,
        settings_store: SettingsStore,
        engine: Optional[LocalLintEngine] = None,
        gateway: Optional[RemoteGateway] = None,
        result_store: Optional[ResultStore] = None,
        status_reporter: Optional[StatusReporter] = None,
    ):
        self.buffer = buffer
        self.sink = sink
        self.settings_store = settings_store
        self.engine = engine or LocalLintEngine()
        self.gateway = gateway
        self.result_store = result_store
        self.status_reporter = status_reporter

        self._state = CheckState.IDLE
        self._lock = asyncio.Lock()
        self._timer = CancellableTimer(self.run_check, name="check debounce")
        self._unsubscribe: Optional[Unsubscribe] = None
        self.check_count = 0
        self.last_report: Optional[CheckReport] = None

    @property
    def state(self) -> CheckState:
        return self._state

    @property
    def subscribed(self) -> bool:
        return self._unsubscribe is not None

    # -- Lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        """Probe remote availability, subscribe to edits and schedule the first check."""
        await self.probe_remote()

        settings = self._read_settings()
        self._sync_subscription(settings.realtime_checking)
        if settings.enabled:
            self.trigger("startup")
        logger.info("🚀 Check orchestrator started")

    async def probe_remote(self) -> Dict[FileType, bool]:
        """Refresh the gateway's availability map; a failed probe round is logged, not raised."""
        if self.gateway is None:
            return {}
        try:
            availability = await self.gateway.probe_all()
        except Exception as e:
            logger.warning(f"⚠️ Remote probe failed: {e}")
            return self.gateway.availability

        available = sorted(file_type.value for file_type, ok in availability.items() if ok)
        logger.info(f"🔍 Remote services available: {available or 'none'}")
        return availability

    async def close(self) -> None:
        """Stop listening and drop any scheduled or running cycle."""
        self._sync_subscription(False)
        await self._timer.aclose()
        self._state = CheckState.IDLE

    async def wait_idle(self) -> None:
        """Wait until no cycle is scheduled or running."""
        while self._timer.pending or self._timer.running or self._lock.locked():
            await self._timer.join()
            if self._lock.locked():
                async with self._lock:
                    pass

    # -- Triggers ------------------------------------------------------------

    def trigger(self, reason: str = "manual") -> None:
        """(Re)start the debounce window at the current check delay."""
        settings = self._read_settings()
        logger.debug(f"Check triggered ({reason}), delay {settings.check_delay_ms}ms")
        self._timer.schedule(settings.check_delay_ms)
        if not self._lock.locked():
            self._state = CheckState.DEBOUNCING

    def apply_settings(self, settings: CheckerSettings) -> None:
        """Persist new settings and react to them."""
        self.settings_store.save_settings(settings)
        self._sync_subscription(settings.realtime_checking)

        if not settings.enabled:
            self._timer.cancel()
            self.sink.clear_all()
            self._report_status(CheckStatus(state=CheckState.IDLE.value, message="Checking disabled"))
            if not self._lock.locked():
                self._state = CheckState.IDLE
            return

        self.trigger("settings-change")

    def _on_buffer_change(self) -> None:
        self.trigger("buffer-change")

    def _sync_subscription(self, wanted: bool) -> None:
        if wanted and self._unsubscribe is None:
            self._unsubscribe = self.buffer.subscribe(self._on_buffer_change)
        elif not wanted and self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # -- Cycles --------------------------------------------------------------

    async def run_check(self) -> Optional[CheckReport]:
        """Run one full cycle now (bypasses debounce, still serialized)."""
        async with self._lock:
            try:
                return await self._cycle()
            finally:
                self._state = CheckState.DEBOUNCING if self._timer.pending else CheckState.IDLE

    async def check_content(
        self,
        content: str,
        filename: Optional[str],
        settings: Optional[CheckerSettings] = None,
    ) -> CheckReport:
        """
        One Checking phase for explicit content, without delivery.

        Disabled settings, a missing filename or blank content give an empty
        report with engine "none"; so does an unknown file type.
        """
        settings = settings or self._read_settings()
        file_type = detect_file_type(filename)
        if not settings.enabled or not filename or not content.strip() or file_type is FileType.UNKNOWN:
            return CheckReport(engine="none", file_type=file_type)

        async with self._lock:
            try:
                return await self._check_phase(content, file_type, settings)
            finally:
                self._state = CheckState.DEBOUNCING if self._timer.pending else CheckState.IDLE

    async def _cycle(self) -> Optional[CheckReport]:
        filename = None
        content = ""
        file_type = FileType.UNKNOWN
        try:
            settings = self._read_settings()
            filename = self.buffer.get_filename()
            content = self.buffer.get_text() or ""

            if not settings.enabled or not filename or not content.strip():
                self.sink.clear_all()
                self._report_status(CheckStatus(state=CheckState.IDLE.value))
                return None

            file_type = detect_file_type(filename)
            if file_type is FileType.UNKNOWN:
                self.sink.clear_all()
                self._report_status(CheckStatus(
                    state="unsupported",
                    file_type=file_type,
                    message="Unsupported file type",
                ))
                return None

            self._report_status(CheckStatus(state=CheckState.CHECKING.value, file_type=file_type))
            report = await self._check_phase(content, file_type, settings)
        except Exception as e:
            logger.error(f"❌ Check cycle failed: {e}")
            report = CheckReport(engine="none", file_type=file_type)
            self._deliver(report, filename, content, error=str(e))
            self._report_status(CheckStatus(
                state="error",
                file_type=file_type,
                message=f"Check failed: {e}",
            ))
            return report

        self._deliver(report, filename, content)
        counts = severity_counts(report.diagnostics)
        self._report_status(CheckStatus(
            state="done",
            file_type=file_type,
            engine=report.engine,
            error_count=counts[LintSeverity.ERROR],
            warning_count=counts[LintSeverity.WARNING],
            info_count=counts[LintSeverity.INFO],
            message=_summarize(counts),
        ))
        return report

    async def _check_phase(self, content: str, file_type: FileType, settings: CheckerSettings) -> CheckReport:
        """Select remote or local, apply fallback, then filter by severity."""
        self.check_count += 1
        self._state = CheckState.CHECKING

        if settings.use_remote and self._remote_ready(file_type):
            try:
                diagnostics = await self.gateway.check(content, file_type, settings.timeout_ms)
                engine = "remote"
            except RemoteCheckError as e:
                logger.warning(f"⚠️ Remote check failed for {get_language_name(file_type)}: {e}")
                if settings.fallback_to_local:
                    logger.info("🔄 Falling back to local checker")
                    self._state = CheckState.FALLBACK_CHECKING
                    diagnostics = await self.engine.scan(content, file_type)
                    engine = "fallback"
                else:
                    diagnostics = []
                    engine = "remote"
        else:
            diagnostics = await self.engine.scan(content, file_type)
            engine = "local"

        filtered = filter_diagnostics(diagnostics, settings.severity_level)
        report = CheckReport(engine=engine, file_type=file_type, diagnostics=sort_diagnostics(filtered))
        self.last_report = report
        logger.info(f"✅ {get_language_name(file_type)} check ({engine}): {len(report.diagnostics)} issues")
        return report

    def _remote_ready(self, file_type: FileType) -> bool:
        if self.gateway is None or not self.gateway.supports(file_type):
            return False
        return self.gateway.is_available(file_type)

    # -- Delivery ------------------------------------------------------------

    def _deliver(self, report: CheckReport, filename: Optional[str], content: str, error: Optional[str] = None) -> None:
        self.sink.display(list(report.diagnostics))

        if self.result_store is None:
            return
        file_meta = FileMeta(
            name=filename or "unknown",
            file_type=report.file_type,
            size=len(content),
            lines=len(content.split("\n")) if content else 0,
            engine=report.engine,
            error=error,
        )
        try:
            self.result_store.store_check_result(list(report.diagnostics), file_meta)
        except Exception as e:
            logger.error(f"Failed to store check result: {e}")

    def _report_status(self, status: CheckStatus) -> None:
        if self.status_reporter is None:
            return
        try:
            self.status_reporter.update_status(status)
        except Exception as e:
            logger.error(f"Failed to update status: {e}")

    def _read_settings(self) -> CheckerSettings:
        try:
            return self.settings_store.get_settings()
        except Exception as e:
            logger.error(f"Failed to read settings, using defaults: {e}")
            return CheckerSettings()


def _summarize(counts) -> str:
    parts: List[str] = []
    for severity, label in ((LintSeverity.ERROR, "error"), (LintSeverity.WARNING, "warning"), (LintSeverity.INFO, "info")):
        count = counts[severity]
        if count:
            parts.append(f"{count} {label}{'' if count == 1 or label == 'info' else 's'}")
    return ", ".join(parts) if parts else "No issues"
