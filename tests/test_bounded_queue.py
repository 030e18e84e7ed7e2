"""Tests for the overwrite-on-full ring buffer."""

import pytest

from core.queue import BoundedQueue, QueueEmptyError


class TestBoundedQueue:
    def test_enqueue_dequeue_fifo(self):
        q = BoundedQueue[int](5)
        q.enqueue(1)
        q.enqueue(2)
        q.enqueue(3)

        assert q.dequeue() == 1
        assert q.dequeue() == 2
        assert q.dequeue() == 3
        assert len(q) == 0

    def test_length_caps_at_capacity(self):
        q = BoundedQueue[int](5)
        assert len(q) == 0

        q.enqueue(1, 2, 3)
        assert len(q) == 3
        assert not q.is_full()

        q.enqueue(4, 5, 6)
        assert len(q) == 5
        assert q.is_full()

    def test_overflow_evicts_oldest(self):
        q = BoundedQueue[int](5)
        q.enqueue(1, 2, 3, 4, 5)

        evicted = q.enqueue(6, 7, 8)

        assert evicted == [1, 2, 3]
        assert list(q.drain()) == [4, 5, 6, 7, 8]

    def test_drain_after_single_overflow(self):
        q = BoundedQueue[int](5)
        q.enqueue(1, 2, 3, 4, 5, 6)
        assert list(q.drain()) == [2, 3, 4, 5, 6]

    def test_enqueue_below_capacity_evicts_nothing(self):
        q = BoundedQueue[str](3)
        assert q.enqueue("a", "b") == []

    def test_dequeue_empty_raises(self):
        q = BoundedQueue[int](2)
        with pytest.raises(QueueEmptyError):
            q.dequeue()

        q.enqueue(1)
        q.dequeue()
        with pytest.raises(QueueEmptyError, match="queue is empty"):
            q.dequeue()

    def test_drain_is_destructive_and_lazy(self):
        q = BoundedQueue[int](4)
        q.enqueue(1, 2, 3)

        it = q.drain()
        assert len(q) == 3
        assert next(it) == 1
        assert len(q) == 2

        assert list(it) == [2, 3]
        assert len(q) == 0
        assert list(q.drain()) == []

    def test_reuse_after_wraparound(self):
        q = BoundedQueue[int](3)
        for i in range(10):
            q.enqueue(i)
        assert list(q.drain()) == [7, 8, 9]

        q.enqueue(42)
        assert q.dequeue() == 42

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            BoundedQueue(0)
