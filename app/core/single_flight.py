"""Per-key in-flight registry: a second claim on a busy key is dropped, not queued."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Hashable, Iterator


class InFlightRegistry:
    """
    Tracks which keys have work running on the event loop.

    Claiming does not await, so check-and-claim is atomic for coroutines
    sharing one loop. Different keys never block each other.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._keys: set[Hashable] = set()

    def is_in_flight(self, key: Hashable) -> bool:
        return key in self._keys

    def try_acquire(self, key: Hashable) -> bool:
        if key in self._keys:
            return False
        self._keys.add(key)
        return True

    def release(self, key: Hashable) -> None:
        self._keys.discard(key)

    @contextmanager
    def claim(self, key: Hashable) -> Iterator[bool]:
        """Yield True if the key was claimed; released on exit only if claimed here."""
        acquired = self.try_acquire(key)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(key)

    def __len__(self) -> int:
        return len(self._keys)
