# ============================================================================
# REPORT HISTORY
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Infrastructure - Dashboard storage
# PURPOSE: Bounded in-memory history of reports per dashboard endpoint
# CREATED: 19 OCT 2026
# ============================================================================
"""
Report History

In-memory ring buffer of the last N reports for each dashboard endpoint.
The oldest report is evicted first once an endpoint reaches max_size.
"""

import threading
from collections import deque
from typing import Deque, Dict, List, Optional

from health.core import HealthReport


class ReportHistory:
    """Bounded per-endpoint report storage."""

    def __init__(self, max_size: int = 50):
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self._lock = threading.Lock()
        self._reports: Dict[str, Deque[HealthReport]] = {}

    def append(self, endpoint: str, report: HealthReport) -> None:
        """Store a report, evicting the oldest one when full."""
        with self._lock:
            buffer = self._reports.get(endpoint)
            if buffer is None:
                buffer = deque(maxlen=self.max_size)
                self._reports[endpoint] = buffer
            buffer.append(report)

    def get(self, endpoint: str) -> List[HealthReport]:
        """Reports for an endpoint, oldest first."""
        with self._lock:
            return list(self._reports.get(endpoint, ()))

    def latest(self, endpoint: str) -> Optional[HealthReport]:
        """Most recent report for an endpoint."""
        with self._lock:
            buffer = self._reports.get(endpoint)
            return buffer[-1] if buffer else None

    def endpoints(self) -> List[str]:
        """Endpoint names in first-seen order."""
        with self._lock:
            return list(self._reports)

    def snapshot(self) -> Dict[str, List[HealthReport]]:
        """Copy of every endpoint's history."""
        with self._lock:
            return {name: list(buffer) for name, buffer in self._reports.items()}

    def clear(self, endpoint: Optional[str] = None) -> None:
        """Drop one endpoint's history, or everything."""
        with self._lock:
            if endpoint is None:
                self._reports.clear()
            else:
                self._reports.pop(endpoint, None)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(b) for b in self._reports.values())


__all__ = [
    "ReportHistory",
]
