"""
Shared service instances to ensure consistency across API endpoints.

Instances are created on first use so importing the API does not touch the
network or the settings directory.
"""

import logging
from typing import Optional

from .check_history import CheckHistory
from .collaborators import InMemoryBuffer, RecordingSink, RecordingStatusReporter
from .local_linter import LocalLintEngine
from .orchestrator import CheckOrchestrator
from .remote_gateway import RemoteGateway
from .settings_service import get_settings_store

logger = logging.getLogger(__name__)

_check_history: Optional[CheckHistory] = None
_orchestrator: Optional[CheckOrchestrator] = None


def get_check_history() -> CheckHistory:
    """Get or create the history shared by the orchestrator and the API."""
    global _check_history
    if _check_history is None:
        _check_history = CheckHistory()
    return _check_history


def get_orchestrator() -> CheckOrchestrator:
    """Get or create the orchestrator used by the HTTP host."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = CheckOrchestrator(
            buffer=InMemoryBuffer(),
            sink=RecordingSink(),
            settings_store=get_settings_store(),
            engine=LocalLintEngine(),
            gateway=RemoteGateway.from_config(),
            result_store=get_check_history(),
            status_reporter=RecordingStatusReporter(),
        )
        logger.info("🧩 Shared check orchestrator created")
    return _orchestrator


async def shutdown_shared_services() -> None:
    """Close the shared orchestrator and its HTTP client."""
    global _orchestrator
    if _orchestrator is None:
        return
    await _orchestrator.close()
    if _orchestrator.gateway is not None:
        await _orchestrator.gateway.aclose()
    _orchestrator = None
