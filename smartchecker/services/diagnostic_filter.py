"""
Severity filtering and ordering for diagnostics.

Pure functions; no state. Severity order is error > warning > info.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Union

from ..models.linting import Diagnostic, LintSeverity


def _coerce_severity(value: Union[LintSeverity, str]) -> LintSeverity:
    if isinstance(value, LintSeverity):
        return value
    try:
        return LintSeverity(value)
    except ValueError:
        raise ValueError(f"Unknown severity level: {value!r}") from None


def filter_diagnostics(
    diagnostics: Iterable[Diagnostic],
    min_severity: Union[LintSeverity, str],
) -> List[Diagnostic]:
    """
    Keep diagnostics at or above `min_severity`.

    "error" keeps only errors, "warning" keeps errors and warnings,
    "info" keeps everything. Input order is preserved.
    """
    threshold = _coerce_severity(min_severity).rank
    return [d for d in diagnostics if d.severity.rank >= threshold]


def sort_diagnostics(diagnostics: Iterable[Diagnostic]) -> List[Diagnostic]:
    """Canonical display order: severity descending, then line, then column."""
    return sorted(diagnostics, key=lambda d: (-d.severity.rank, d.line, d.column))


def severity_counts(diagnostics: Iterable[Diagnostic]) -> Dict[LintSeverity, int]:
    counts = {severity: 0 for severity in LintSeverity}
    for diagnostic in diagnostics:
        counts[diagnostic.severity] += 1
    return counts
