"""Update-coalescing mutex.

Remembers which record ids are currently being written so a second writer
for the same id can skip its update instead of queueing behind the first.
Mutual exclusion only: waiting callers are not served in any order.
"""

from __future__ import annotations

import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager


class UpdateGuard:
    """Set of owned ids; every operation runs under one lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owned: set[Hashable] = set()

    def try_acquire(self, record_id: Hashable) -> bool:
        """Take ownership of ``record_id``; False if someone already holds it."""
        with self._lock:
            if record_id in self._owned:
                return False
            self._owned.add(record_id)
            return True

    def release(self, record_id: Hashable) -> None:
        """Give up ownership. Releasing an id nobody holds is a no-op."""
        with self._lock:
            self._owned.discard(record_id)

    @contextmanager
    def holding(self, record_id: Hashable) -> Iterator[bool]:
        """Yield whether ownership was obtained; release on exit only if it was."""
        acquired = self.try_acquire(record_id)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(record_id)

    def __contains__(self, record_id: object) -> bool:
        with self._lock:
            return record_id in self._owned

    def __len__(self) -> int:
        with self._lock:
            return len(self._owned)
