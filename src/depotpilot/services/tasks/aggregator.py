"""Bounded operator log shared by every pipeline."""

import threading
from collections import deque

from depotpilot.models.tasks import LogEntry, StreamKind


class LogAggregator:
    """
    Fixed-capacity, append-only log buffer.

    Entries keep insertion order and get a sequence number on append, so
    callers can remember the last number they saw and ask for newer entries
    only. Once full, every append drops the oldest entry.
    """

    def __init__(self, capacity: int = 1000) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._seq = 0
        self._lock = threading.Lock()

    def append(self, entry: LogEntry) -> LogEntry:
        """Store ``entry`` and return the stored copy carrying its sequence number."""
        with self._lock:
            self._seq += 1
            stored = entry.model_copy(update={"seq": self._seq})
            self._entries.append(stored)
            return stored

    def write(self, stream: StreamKind, message: str, task_id: int | None = None) -> LogEntry:
        return self.append(LogEntry(task_id=task_id, stream=stream, message=message))

    def info(self, message: str) -> LogEntry:
        return self.write(StreamKind.INFO, message)

    def warning(self, message: str) -> LogEntry:
        return self.write(StreamKind.WARNING, message)

    def error(self, message: str) -> LogEntry:
        return self.write(StreamKind.ERROR, message)

    def snapshot(self) -> list[LogEntry]:
        """Return a copy of the buffer, oldest first."""
        return self.read()[0]

    def since(self, cursor: int) -> list[LogEntry]:
        """Return the buffered entries with a sequence number above ``cursor``."""
        return self.read(cursor)[0]

    def read(self, since: int | None = None) -> tuple[list[LogEntry], int]:
        """Return the entries above ``since`` (all when None) and the cursor, taken together."""
        with self._lock:
            entries = list(self._entries) if since is None else [e for e in self._entries if e.seq > since]
            return entries, self._seq

    @property
    def cursor(self) -> int:
        """Sequence number of the newest entry ever appended."""
        with self._lock:
            return self._seq

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
