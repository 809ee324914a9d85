"""
Module: delivery_log.py
Description: Bounded history of delivery attempts.

The log is a fixed-capacity ring: appending past capacity evicts the
oldest entry. Reads return newest-first copies and never consume.
"""

import threading
from collections import deque
from typing import Deque, List

from content_webhooks.models.delivery import DeliveryLogEntry

DEFAULT_CAPACITY = 100


class DeliveryLog:
    """Thread-safe ring buffer of DeliveryLogEntry records."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._entries: Deque[DeliveryLogEntry] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, entry: DeliveryLogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def recent(self, limit: int = 50) -> List[DeliveryLogEntry]:
        """
        Most recent entries first.

        Args:
            limit: Maximum number of entries to return
        """
        if limit <= 0:
            return []
        with self._lock:
            entries = list(self._entries)
        entries.reverse()
        return entries[:limit]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
