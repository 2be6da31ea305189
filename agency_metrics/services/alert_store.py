"""
Bounded, most-recent-first, in-memory ledger of raised alerts.

One AlertStore instance is created per application (see main.create_app) and
injected into the scanner and the alert endpoints. Request handlers may run
concurrently in worker threads, so every access is guarded by a lock.
"""

import threading
from collections import deque
from typing import Deque, List

from agency_metrics.models import Alert

DEFAULT_CAPACITY: int = 100
DEFAULT_LIST_LIMIT: int = 20


class AlertStore:
    """
    Newest-first ledger holding at most `capacity` alerts; the oldest alert
    is evicted once the capacity is exceeded.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._alerts: Deque[Alert] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def add_alert(self, alert: Alert) -> None:
        # appendleft on a bounded deque drops from the right (oldest) end
        with self._lock:
            self._alerts.appendleft(alert)

    def list_alerts(self, limit: int = DEFAULT_LIST_LIMIT) -> List[Alert]:
        """First `limit` alerts, newest first. Does not modify the store."""
        if limit <= 0:
            return []
        with self._lock:
            return list(self._alerts)[:limit]

    def clear(self) -> None:
        with self._lock:
            self._alerts.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._alerts)
