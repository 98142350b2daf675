"""Data structures used by multiple volume components."""

import collections
from contextlib import contextmanager
from dataclasses import dataclass
import threading
from typing import Dict, Iterator

import cephvol.constants as constants


@dataclass
class VolumeInfo:
    """Volume as reported to the container host, mountpoint is empty if unknown."""

    name: str
    mountpoint: str = ""


@dataclass
class Capabilities:
    """Capabilities of the driver."""

    scope: str = constants.SCOPE


class NameLocks:
    """
    Mutexes that serialize critical sections per volume name.

    Locks are created on first use and dropped again once no thread holds or waits for
    them, so the index doesn't grow with every name ever seen.
    """

    def __init__(self) -> None:
        """Instantiate an empty index."""
        self._index_lock = threading.Lock()

        self._locks: Dict[str, threading.Lock] = collections.defaultdict(threading.Lock)
        self._waiters: Dict[str, int] = collections.defaultdict(int)

    @contextmanager
    def hold(self, name: str) -> Iterator[None]:
        """Hold the lock of the given name for the duration of the context."""
        with self._index_lock:
            self._waiters[name] += 1
            lock = self._locks[name]

        try:
            with lock:
                yield
        finally:
            with self._index_lock:
                self._waiters[name] -= 1

                if self._waiters[name] == 0:
                    del self._waiters[name]
                    del self._locks[name]

    def __len__(self) -> int:
        """Return the number of names that currently have a lock."""
        with self._index_lock:
            return len(self._locks)
