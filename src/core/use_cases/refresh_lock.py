import threading
from contextlib import contextmanager
from typing import Iterator, Set

from src.core.exceptions import AlreadyRunning


class RefreshLockRegistry:
    """
    Process-wide set of keys with an ingestion in flight.
    A second acquire for a busy key is rejected immediately; nothing queues.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._active: Set[str] = set()

    def is_locked(self, key: str) -> bool:
        with self._guard:
            return key in self._active

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            if key in self._active:
                raise AlreadyRunning(key)
            self._active.add(key)
        try:
            yield
        finally:
            with self._guard:
                self._active.discard(key)
