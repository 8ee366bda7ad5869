"""In-memory record of completed analyses."""

import logging
import threading
from typing import List, Optional

from ..config import settings
from ..models.schemas import AnalysisResult, DashboardStats, HistoryEntry, Verdict

logger = logging.getLogger(__name__)


class AnalysisHistory:
    """Bounded, newest-first store of analysis results.

    Stands in for a real persistence layer; the orchestrator never
    touches it.
    """

    def __init__(self, max_entries: Optional[int] = None):
        self.max_entries = max_entries or settings.MAX_HISTORY_STORED
        self._entries: List[HistoryEntry] = []
        self._lock = threading.Lock()

    def record(
        self,
        result: AnalysisResult,
        submitted_by: Optional[str] = None
    ) -> HistoryEntry:
        """Store a result at the front of the history."""
        entry = HistoryEntry(result=result, submitted_by=submitted_by)

        with self._lock:
            self._entries.insert(0, entry)
            if len(self._entries) > self.max_entries:
                dropped = len(self._entries) - self.max_entries
                del self._entries[self.max_entries:]
                logger.info(f"Dropped {dropped} old analyses from history")

        return entry

    def list(
        self,
        submitted_by: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[HistoryEntry]:
        """Return recorded entries, newest first.

        Args:
            submitted_by: Only return entries from this submitter
            limit: Maximum number of entries to return

        Returns:
            List of HistoryEntry objects
        """
        with self._lock:
            entries = [
                e for e in self._entries
                if submitted_by is None or e.submitted_by == submitted_by
            ]

        if limit is not None:
            entries = entries[:limit]
        return entries

    def clear(self, submitted_by: Optional[str] = None) -> int:
        """Remove entries, all of them or one submitter's. Returns the count removed."""
        with self._lock:
            before = len(self._entries)
            if submitted_by is None:
                self._entries = []
            else:
                self._entries = [e for e in self._entries if e.submitted_by != submitted_by]
            return before - len(self._entries)

    def stats(self, submitted_by: Optional[str] = None) -> DashboardStats:
        """Count verdicts over the recorded entries."""
        results = [e.result for e in self.list(submitted_by=submitted_by)]

        return DashboardStats(
            total=len(results),
            truth=sum(1 for r in results if r.verdict == Verdict.TRUTH),
            harmful=sum(1 for r in results if r.verdict == Verdict.HARMFUL),
            misinformation=sum(1 for r in results if r.verdict == Verdict.MISINFORMATION),
        )
