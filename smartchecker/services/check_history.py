"""
In-memory check history (the result store collaborator).

Keeps the most recent check results with per-check statistics so hosts can
show a summary or a debug listing without re-running the pipeline.
"""

import logging
import threading
from collections import Counter, deque
from typing import Deque, List, Optional

from ..models.history import CheckRecord, CheckStats
from ..models.linting import Diagnostic, FileMeta, LintSeverity

logger = logging.getLogger(__name__)


def compute_stats(diagnostics: List[Diagnostic]) -> CheckStats:
    """Totals per severity, source, rule and line."""
    severities = Counter(d.severity for d in diagnostics)
    return CheckStats(
        total=len(diagnostics),
        errors=severities[LintSeverity.ERROR],
        warnings=severities[LintSeverity.WARNING],
        infos=severities[LintSeverity.INFO],
        by_source=dict(Counter(d.source for d in diagnostics)),
        by_rule=dict(Counter(d.rule for d in diagnostics if d.rule)),
        by_line={str(line): count for line, count in sorted(Counter(d.line for d in diagnostics).items())},
    )


class CheckHistory:
    """
    Bounded, thread-safe store of recent check results.

    Oldest records are dropped once `max_records` is reached.
    """

    MAX_RECORDS = 100

    def __init__(self, max_records: int = MAX_RECORDS):
        self._records: Deque[CheckRecord] = deque(maxlen=max(max_records, 1))
        self._lock = threading.Lock()

    def store_check_result(self, diagnostics: List[Diagnostic], file_meta: FileMeta) -> CheckRecord:
        record = CheckRecord(
            file_meta=file_meta,
            diagnostics=list(diagnostics),
            stats=compute_stats(diagnostics),
        )
        with self._lock:
            self._records.append(record)
        logger.debug(f"Stored check result for {file_meta.name}: {record.stats.total} issues")
        return record

    def latest(self) -> Optional[CheckRecord]:
        with self._lock:
            return self._records[-1] if self._records else None

    def recent(self, limit: int = 20) -> List[CheckRecord]:
        """Most recent first."""
        with self._lock:
            records = list(self._records)
        records.reverse()
        return records[:max(limit, 0)]

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
