"""Striped per-key locks.

Keys (driver ids, trip ids, rider ids) hash onto a fixed number of
re-entrant locks, so memory stays bounded no matter how many keys exist
while unrelated keys rarely contend.
"""

import threading
import zlib
from collections.abc import Iterator
from contextlib import contextmanager


class StripedLock:
    """A fixed pool of RLocks addressed by key."""

    def __init__(self, stripes: int = 64) -> None:
        if stripes < 1:
            raise ValueError("stripes must be at least 1")
        self._locks = [threading.RLock() for _ in range(stripes)]

    @property
    def stripes(self) -> int:
        return len(self._locks)

    def _index(self, key: str) -> int:
        # crc32 is stable across processes, unlike hash() with PYTHONHASHSEED
        return zlib.crc32(key.encode("utf-8")) % len(self._locks)

    def lock_for(self, key: str) -> threading.RLock:
        return self._locks[self._index(key)]

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self.lock_for(key)
        with lock:
            yield
