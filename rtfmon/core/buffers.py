from __future__ import annotations

from typing import List, Optional

from ..errors import InvalidCapacityError


class BoundedWindow:
    """Fixed-capacity FIFO of the most recent samples.

    Backed by a preallocated list used as a ring: ``_start`` points at the
    oldest element and pushes past capacity overwrite it in place.
    Not thread-safe on its own; SampleIngestor serializes access.
    """

    def __init__(self, capacity: int) -> None:
        self._capacity: int = 0
        self._slots: List[Optional[float]] = []
        self._start: int = 0
        self._size: int = 0
        self.configure(capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def configure(self, capacity: int) -> None:
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            raise InvalidCapacityError(f"capacity must be a positive integer, got {capacity!r}")
        self._capacity = capacity
        self._slots = [None] * capacity
        self._start = 0
        self._size = 0

    def push(self, x: float) -> None:
        if self._size < self._capacity:
            self._slots[(self._start + self._size) % self._capacity] = x
            self._size += 1
            return
        self._slots[self._start] = x
        self._start = (self._start + 1) % self._capacity

    def values(self) -> List[float]:
        return [
            self._slots[(self._start + i) % self._capacity]  # type: ignore[misc]
            for i in range(self._size)
        ]

    def clear(self) -> None:
        self._slots = [None] * self._capacity
        self._start = 0
        self._size = 0

    def __len__(self) -> int:
        return self._size
