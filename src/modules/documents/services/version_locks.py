import threading
from contextlib import contextmanager
from typing import Dict, Hashable, List


class VersionLockRegistry:
    """
    One lock per key, created on demand and dropped when the last holder
    releases it. Keys are version ids, or `("document", id)` tuples for
    version-number allocation. Different keys never wait on each other.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # key -> [lock, number of threads holding or waiting]
        self._locks: Dict[Hashable, List] = {}

    @contextmanager
    def hold(self, key: Hashable):
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        entry[0].acquire()
        try:
            yield
        finally:
            entry[0].release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def active(self) -> int:
        with self._guard:
            return len(self._locks)


version_locks = VersionLockRegistry()
