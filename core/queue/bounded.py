"""Fixed-capacity ring buffer with overwrite-on-full insertion.

Holds committed commands waiting for the next batched push. No locking:
exactly one owner (the dispatcher) touches an instance.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class QueueEmptyError(IndexError):
    """Raised by dequeue() on an empty queue."""


class BoundedQueue(Generic[T]):
    """FIFO ring buffer. When full, each new item overwrites the oldest one."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._slots: list[T | None] = [None] * capacity
        self._head = 0
        self._tail = 0
        self._count = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return self._count

    def is_full(self) -> bool:
        return self._count == self._capacity

    def enqueue(self, *items: T) -> list[T]:
        """Append items in order. Returns the items evicted to make room."""
        evicted: list[T] = []
        for item in items:
            if self._count == self._capacity:
                evicted.append(self._slots[self._head])  # type: ignore[arg-type]
                self._head = (self._head + 1) % self._capacity
            else:
                self._count += 1
            self._slots[self._tail] = item
            self._tail = (self._tail + 1) % self._capacity
        return evicted

    def dequeue(self) -> T:
        if self._count == 0:
            raise QueueEmptyError("queue is empty")
        item = self._slots[self._head]
        self._slots[self._head] = None
        self._head = (self._head + 1) % self._capacity
        self._count -= 1
        return item  # type: ignore[return-value]

    def drain(self) -> Iterator[T]:
        """Lazily dequeue until empty. Drained items are gone for good."""
        while self._count > 0:
            yield self.dequeue()
