"""
Remote lint capabilities, one per supported file type.

Each capability offers exactly two operations:
- probe(): liveness check, short timeout, never raises
- check(code): POST {code, options} and map the service's own diagnostic
  schema onto `Diagnostic`

The set is closed: `CHECKER_TYPES` is the explicit FileType -> capability
dispatch table used by the gateway.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type

import httpx

from ..models.linting import Diagnostic, FileType, LintSeverity

logger = logging.getLogger(__name__)


class RemoteCheckError(Exception):
    """A remote check failed in a way the orchestrator should react to."""

    def __init__(self, message: str, file_type: Optional[FileType] = None):
        super().__init__(message)
        self.file_type = file_type


class UnsupportedFileTypeError(RemoteCheckError):
    """No remote capability exists for the requested file type."""


@dataclass(frozen=True)
class RemoteEndpoint:
    check_url: str
    status_url: str


def _as_index(value: Any, one_based: bool = False) -> int:
    """Coerce a remote line/column into a 0-based non-negative int (default 0)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    index = int(value) - (1 if one_based else 0)
    return max(index, 0)


def _as_rule(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


class RemoteChecker(ABC):
    """
    Base class for remote capabilities.

    Subclasses declare their schema (entries key, severity vocabulary,
    request options) and implement `transform_entry`.

    Failure policy: non-strict capabilities log and return [] on any transport,
    status or decoding failure; strict capabilities raise RemoteCheckError so
    the orchestrator's fallback path can react.
    """

    file_type: FileType = FileType.UNKNOWN
    source_name: str = "Remote"
    entries_key: str = "diagnostics"
    severity_map: Dict[Any, LintSeverity] = {}
    default_options: Dict[str, Any] = {}

    PROBE_TIMEOUT_MS = 3000

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoint: RemoteEndpoint,
        strict: bool = False,
        probe_timeout_ms: int = PROBE_TIMEOUT_MS,
    ):
        self._client = client
        self.endpoint = endpoint
        self.strict = strict
        self._probe_timeout_s = max(probe_timeout_ms, 1) / 1000

    async def probe(self) -> bool:
        """Return True when the service answers its status URL with 2xx."""
        try:
            response = await asyncio.wait_for(
                self._client.head(self.endpoint.status_url, timeout=self._probe_timeout_s),
                timeout=self._probe_timeout_s,
            )
            return response.is_success
        except Exception as e:
            logger.info(f"{self.source_name} API connection test failed: {e or type(e).__name__}")
            return False

    async def check(self, code: str, timeout_ms: int = 5000) -> List[Diagnostic]:
        """
        Check `code` remotely.

        Args:
            code: Full buffer text
            timeout_ms: Request budget; the in-flight request is cancelled when
                it elapses. 0 disables the guard.

        Returns:
            Diagnostics mapped to the common shape ([] on non-strict failure).
        """
        timeout_s = timeout_ms / 1000 if timeout_ms > 0 else None
        body = {"code": code, "options": dict(self.default_options)}
        # Without a budget the client's own timeout applies
        request_kwargs: Dict[str, Any] = {"timeout": timeout_s} if timeout_s else {}

        try:
            response = await asyncio.wait_for(
                self._client.post(self.endpoint.check_url, json=body, **request_kwargs),
                timeout=timeout_s,
            )
            if not response.is_success:
                return self._fail(f"{self.source_name} API returned error: {response.status_code}")
            payload = response.json()
        except asyncio.TimeoutError:
            return self._fail(f"{self.source_name} API request timeout")
        except (httpx.HTTPError, ValueError) as e:
            return self._fail(f"{self.source_name} API check failed: {e or type(e).__name__}")

        diagnostics = self.transform_response(payload)
        logger.info(f"🌐 {self.source_name} API returned {len(diagnostics)} issues")
        return diagnostics

    def transform_response(self, payload: Any) -> List[Diagnostic]:
        """Map a decoded response body; malformed parts are skipped, not fatal."""
        entries = _dig(payload, self.entries_key)
        if not isinstance(entries, list):
            return []
        return [self.transform_entry(entry) for entry in entries if isinstance(entry, dict)]

    @abstractmethod
    def transform_entry(self, entry: Dict[str, Any]) -> Diagnostic:
        """Map one service-native diagnostic."""

    def map_severity(self, value: Any) -> LintSeverity:
        """Service vocabulary -> LintSeverity, with "warning" for anything unknown."""
        if isinstance(value, (str, int)) and not isinstance(value, bool):
            return self.severity_map.get(value, LintSeverity.WARNING)
        return LintSeverity.WARNING

    def _fail(self, message: str) -> List[Diagnostic]:
        logger.warning(message)
        if self.strict:
            raise RemoteCheckError(message, self.file_type)
        return []

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(file_type={self.file_type.value}, strict={self.strict})>"


class PyrightChecker(RemoteChecker):
    """Pyright-style service: LSP-like ranges, information/warning/error."""

    file_type = FileType.PYTHON
    source_name = "Pyright"
    severity_map = {
        "error": LintSeverity.ERROR,
        "warning": LintSeverity.WARNING,
        "information": LintSeverity.INFO,
    }
    default_options = {"typeChecking": True, "pythonVersion": "3.8"}

    def transform_entry(self, entry: Dict[str, Any]) -> Diagnostic:
        return Diagnostic(
            line=_as_index(_dig(entry, "range", "start", "line")),
            column=_as_index(_dig(entry, "range", "start", "character")),
            message=str(entry.get("message") or ""),
            severity=self.map_severity(entry.get("severity")),
            source=self.source_name,
            rule=_as_rule(entry.get("rule")),
        )


class TypeScriptChecker(RemoteChecker):
    """TypeScript compiler service: start positions, numeric codes, categories."""

    file_type = FileType.TYPESCRIPT
    source_name = "TypeScript"
    severity_map = {
        "error": LintSeverity.ERROR,
        "warning": LintSeverity.WARNING,
        "suggestion": LintSeverity.INFO,
    }
    default_options = {"strict": True, "noImplicitAny": True}

    def transform_entry(self, entry: Dict[str, Any]) -> Diagnostic:
        message = entry.get("messageText")
        # Message chains nest the head text one level down
        if isinstance(message, dict):
            message = message.get("messageText")
        return Diagnostic(
            line=_as_index(_dig(entry, "start", "line")),
            column=_as_index(_dig(entry, "start", "character")),
            message=str(message or ""),
            severity=self.map_severity(entry.get("category")),
            source=self.source_name,
            rule=_as_rule(entry.get("code")),
        )


class ESLintChecker(RemoteChecker):
    """ESLint-style service: 1-based positions, numeric severities (2=error, 1=warn)."""

    file_type = FileType.JAVASCRIPT
    source_name = "ESLint"
    entries_key = "messages"
    severity_map = {
        2: LintSeverity.ERROR,
        1: LintSeverity.WARNING,
        "error": LintSeverity.ERROR,
        "warning": LintSeverity.WARNING,
        "info": LintSeverity.INFO,
    }
    default_options = {"ecmaVersion": "latest", "sourceType": "module"}

    def transform_entry(self, entry: Dict[str, Any]) -> Diagnostic:
        return Diagnostic(
            line=_as_index(entry.get("line"), one_based=True),
            column=_as_index(entry.get("column"), one_based=True),
            message=str(entry.get("message") or ""),
            severity=self.map_severity(entry.get("severity")),
            source=self.source_name,
            rule=_as_rule(entry.get("ruleId")),
        )


CHECKER_TYPES: Dict[FileType, Type[RemoteChecker]] = {
    FileType.JAVASCRIPT: ESLintChecker,
    FileType.TYPESCRIPT: TypeScriptChecker,
    FileType.PYTHON: PyrightChecker,
}


def build_checker(
    file_type: FileType,
    client: httpx.AsyncClient,
    endpoint: RemoteEndpoint,
    strict: bool = False,
    probe_timeout_ms: int = RemoteChecker.PROBE_TIMEOUT_MS,
) -> RemoteChecker:
    """Instantiate the capability registered for `file_type`."""
    checker_type = CHECKER_TYPES.get(file_type)
    if checker_type is None:
        raise UnsupportedFileTypeError(f"Unsupported file type: {file_type.value}", file_type)
    return checker_type(client, endpoint, strict=strict, probe_timeout_ms=probe_timeout_ms)
