"""
Checker settings schema.

Settings are owned by the settings store collaborator; the orchestrator only
reads them (once per check cycle) and never keeps a copy between cycles.
"""

from pydantic import BaseModel, Field

from .linting import LintSeverity


class CheckerSettings(BaseModel):
    """User-facing switches for the checking pipeline."""
    enabled: bool = True
    realtime_checking: bool = True
    use_remote: bool = False
    fallback_to_local: bool = True
    severity_level: LintSeverity = LintSeverity.WARNING
    timeout_ms: int = Field(default=5000, ge=0)
    check_delay_ms: int = Field(default=1500, ge=0)
    version: int = 1  # For future migrations
