
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from itertools import islice
from typing import Deque, List, Optional

from .schemas import Reading

DEFAULT_CAPACITY = 100_000


@dataclass(frozen=True)
class HistorySlice:
    """Newest-first readings returned by a count-limited lookup."""
    readings: List[Reading]
    requested: int

    @property
    def partial(self) -> bool:
        return self.requested > len(self.readings)

    @property
    def note(self) -> Optional[str]:
        if not self.partial:
            return None
        return (f"requested {self.requested} updates but only "
                f"{len(self.readings)} updates are stored")


class HistoryStore:
    """
    Bounded retention buffer for one channel.

    Entries are kept in insertion order and handed out newest first. Once
    ``capacity`` entries are held, every append evicts the oldest one.
    A single lock covers append+evict and the snapshot each read takes.
    """
    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError('capacity must be at least 1')
        self.capacity = capacity
        self._entries: Deque[Reading] = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self.appended = 0
        self.evicted = 0

    def __len__(self) -> int:
        return len(self._entries)

    def is_empty(self) -> bool:
        return not self._entries

    def append(self, reading: Reading) -> None:
        with self._lock:
            if len(self._entries) == self.capacity:
                self.evicted += 1
            # deque(maxlen) drops the leftmost (oldest) entry
            self._entries.append(reading)
            self.appended += 1

    def latest(self) -> Optional[Reading]:
        with self._lock:
            if not self._entries:
                return None
            return self._entries[-1]

    def last_n(self, n: int) -> Optional[HistorySlice]:
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            raise ValueError('n must be a non-negative integer')
        with self._lock:
            if not self._entries:
                return None
            readings = list(islice(reversed(self._entries), n))
        return HistorySlice(readings=readings, requested=n)

    def range(self, start: datetime, end: datetime) -> Optional[List[Reading]]:
        with self._lock:
            if not self._entries:
                return None
            snapshot = tuple(self._entries)
        if start > end:
            return []
        return [r for r in reversed(snapshot) if start <= r.timestamp <= end]
