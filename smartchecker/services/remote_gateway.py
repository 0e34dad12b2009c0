"""
Remote service gateway.

Owns the shared HTTP client, the per-file-type capabilities and the
availability map. Only probes write the map; checks never touch it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Mapping, Optional

import httpx

from ..models.linting import Diagnostic, FileType
from .remote_checkers import (
    CHECKER_TYPES,
    RemoteChecker,
    RemoteEndpoint,
    UnsupportedFileTypeError,
    build_checker,
)

logger = logging.getLogger(__name__)


class RemoteGateway:
    """
    Uniform remote check/probe entry point.

    Args:
        endpoints: FileType -> endpoint URLs. File types without an endpoint
            (or without a registered capability) have no remote support.
        strict_types: File types whose capability raises on failure
        client: Optional shared client (tests inject one with a MockTransport)
        probe_timeout_ms: Probe budget per capability
    """

    def __init__(
        self,
        endpoints: Mapping[FileType, RemoteEndpoint],
        strict_types: Iterable[FileType] = (FileType.TYPESCRIPT,),
        client: Optional[httpx.AsyncClient] = None,
        probe_timeout_ms: int = RemoteChecker.PROBE_TIMEOUT_MS,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=10.0, follow_redirects=True)
        strict = set(strict_types)
        self._checkers: Dict[FileType, RemoteChecker] = {
            file_type: build_checker(
                file_type,
                self._client,
                endpoint,
                strict=file_type in strict,
                probe_timeout_ms=probe_timeout_ms,
            )
            for file_type, endpoint in endpoints.items()
            if file_type in CHECKER_TYPES
        }
        self._availability: Dict[FileType, bool] = {}

    @classmethod
    def from_config(cls, client: Optional[httpx.AsyncClient] = None) -> "RemoteGateway":
        """Build a gateway from the project configuration."""
        from ..config import config

        return cls(
            endpoints=config.get_remote_endpoints(),
            strict_types=config.get_strict_file_types(),
            client=client,
            probe_timeout_ms=config.get_probe_timeout_ms(),
        )

    @property
    def supported_types(self) -> List[FileType]:
        return list(self._checkers)

    @property
    def availability(self) -> Dict[FileType, bool]:
        """Snapshot of the availability map (probed types only)."""
        return dict(self._availability)

    def supports(self, file_type: FileType) -> bool:
        return file_type in self._checkers

    def get_checker(self, file_type: FileType) -> RemoteChecker:
        checker = self._checkers.get(file_type)
        if checker is None:
            raise UnsupportedFileTypeError(f"Unsupported file type: {file_type.value}", file_type)
        return checker

    def is_available(self, file_type: FileType) -> bool:
        """Last probe result; types never probed are optimistically available."""
        return self._availability.get(file_type, True)

    async def probe(self, file_type: FileType) -> bool:
        """Probe one capability and record the result."""
        checker = self.get_checker(file_type)
        available = await checker.probe()
        self._availability[file_type] = available
        logger.info(f"🔍 {checker.source_name} availability: {'✅' if available else '❌'}")
        return available

    async def probe_all(self) -> Dict[FileType, bool]:
        """Probe every capability concurrently; returns the refreshed snapshot."""
        file_types = list(self._checkers)
        if file_types:
            await asyncio.gather(*(self.probe(file_type) for file_type in file_types))
        return self.availability

    async def check(self, code: str, file_type: FileType, timeout_ms: int = 5000) -> List[Diagnostic]:
        """
        Dispatch a check to the capability for `file_type`.

        Raises:
            UnsupportedFileTypeError: No capability for `file_type`
            RemoteCheckError: The capability is strict and the request failed
        """
        checker = self.get_checker(file_type)
        return await checker.check(code, timeout_ms)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
